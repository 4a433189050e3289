import pytest
import httpx

from quillscribe.services.llm_client import LLMClient
from quillscribe.shared_kernel.exceptions import ExternalServiceError


class DummyResponse:
    def __init__(self, status_code=200, json_data=None, text="error"):
        self.status_code = status_code
        self._json_data = json_data or {}
        self.text = text

    def json(self):
        return self._json_data


class DummyClient:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.captured = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def post(self, url, headers=None, json=None):
        self.captured = {"url": url, "headers": headers, "json": json}
        if self.exc:
            raise self.exc
        return self.response


def _ok(content):
    return DummyResponse(
        status_code=200,
        json_data={"choices": [{"message": {"content": content, "role": "assistant"}}]},
    )


@pytest.mark.asyncio
async def test_chat_returns_message_content(monkeypatch):
    client = DummyClient(response=_ok("Hello"))
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: client)

    llm = LLMClient(api_key="k", base_url="https://llm.example/v1/", model="m")
    result = await llm.chat(messages=[{"role": "user", "content": "hi"}])

    assert result == "Hello"
    assert client.captured["url"] == "https://llm.example/v1/chat/completions"
    assert client.captured["headers"]["Authorization"] == "Bearer k"
    assert client.captured["json"]["model"] == "m"


@pytest.mark.asyncio
async def test_chat_includes_response_format(monkeypatch):
    client = DummyClient(response=_ok("{}"))
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: client)

    llm = LLMClient()
    await llm.chat(
        messages=[{"role": "user", "content": "hi"}],
        response_format={"type": "json_object"},
    )

    assert client.captured["json"]["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_generate_content_sends_single_user_message(monkeypatch):
    client = DummyClient(response=_ok("prose"))
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: client)

    result = await LLMClient().generate_content("Write something")

    assert result == "prose"
    assert client.captured["json"]["messages"] == [{"role": "user", "content": "Write something"}]


@pytest.mark.asyncio
async def test_chat_raises_on_bad_status(monkeypatch):
    client = DummyClient(response=DummyResponse(status_code=500, text="fail"))
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: client)

    with pytest.raises(ExternalServiceError) as excinfo:
        await LLMClient().chat(messages=[{"role": "user", "content": "hi"}])

    assert excinfo.value.details == {"status_code": 500}


@pytest.mark.asyncio
async def test_chat_raises_on_http_error(monkeypatch):
    client = DummyClient(exc=httpx.HTTPError("fail"))
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: client)

    with pytest.raises(ExternalServiceError):
        await LLMClient().chat(messages=[{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_chat_raises_when_no_choices(monkeypatch):
    client = DummyClient(response=DummyResponse(status_code=200, json_data={"choices": []}))
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: client)

    with pytest.raises(ExternalServiceError):
        await LLMClient().chat(messages=[{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_chat_propagates_timeout(monkeypatch):
    client = DummyClient(exc=httpx.ReadTimeout("timeout"))
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: client)

    with pytest.raises(httpx.ReadTimeout):
        await LLMClient().chat(messages=[{"role": "user", "content": "hi"}])
