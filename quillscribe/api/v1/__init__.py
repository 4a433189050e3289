from fastapi import APIRouter

from quillscribe.api.v1.endpoints import ai

api_router = APIRouter()
api_router.include_router(ai.router, prefix="/ai", tags=["AI"])
