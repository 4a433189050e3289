import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from quillscribe.core import security


def test_create_and_decode_token_round_trip():
    token = security.create_access_token("author-1")
    payload = security.decode_token(token)

    assert payload is not None
    assert payload.sub == "author-1"
    assert payload.exp is not None


def test_decode_token_invalid_returns_none():
    assert security.decode_token("not-a-token") is None


def test_decode_token_expired_returns_none():
    token = security.create_access_token("author-1", expires_minutes=-5)
    assert security.decode_token(token) is None


@pytest.mark.asyncio
async def test_get_current_user_requires_credentials():
    with pytest.raises(HTTPException) as excinfo:
        await security.get_current_user(credentials=None)

    assert excinfo.value.status_code == 401
    assert excinfo.value.detail == "You must be authenticated to use this feature."


@pytest.mark.asyncio
async def test_get_current_user_rejects_invalid_token():
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="garbage")

    with pytest.raises(HTTPException) as excinfo:
        await security.get_current_user(credentials=credentials)

    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user_returns_subject():
    credentials = HTTPAuthorizationCredentials(
        scheme="Bearer",
        credentials=security.create_access_token("author-7"),
    )

    user = await security.get_current_user(credentials=credentials)

    assert user.id == "author-7"
