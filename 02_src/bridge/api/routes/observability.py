"""Observability API routes."""

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import Application
from ...errors import StoreError


class TurnResponse(BaseModel):
    """Response model for a conversation turn."""

    request_text: str
    response_text: str


class HealthResponse(BaseModel):
    """Response model for health."""

    status: str
    model: str
    model_supported: bool
    dedup_keys: int


def create_observability_router(app: Application) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/conversations/{user_id}/{topic_id}", response_model=list[TurnResponse])
    async def get_conversation(
        user_id: str,
        topic_id: str,
        limit: int = Query(10, ge=1, le=100),
    ) -> list[dict]:
        """Get the most recent turns of a conversation, oldest first."""
        try:
            turns = await app.store.get_recent(user_id, topic_id, limit)
            return [turn.to_dict() for turn in turns]
        except StoreError as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/health", response_model=HealthResponse)
    async def health() -> dict:
        """Report configured model and dedup cache size."""
        return {
            "status": "ok",
            "model": app.settings.upstream_model,
            "model_supported": app.provider is not None,
            "dedup_keys": app.cache.size,
        }

    return router
