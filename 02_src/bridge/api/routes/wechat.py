"""WeChat webhook routes."""

from fastapi import APIRouter, HTTPException, Query, Request, Response

from ...app import Application
from ...errors import (
    BridgeError,
    InvalidSignature,
    MalformedMessage,
    NotFound,
    StoreError,
    UnsupportedModel,
    UpstreamError,
)
from ...logging_config import get_logger
from ...wechat import parse_inbound, render_reply, verify_signature

logger = get_logger(__name__)

# Most specific first; NotFound is a StoreError
ERROR_STATUS: list[tuple[type[BridgeError], int]] = [
    (InvalidSignature, 400),
    (MalformedMessage, 400),
    (UnsupportedModel, 400),
    (NotFound, 404),
    (UpstreamError, 502),
    (StoreError, 500),
    (BridgeError, 500),
]


def status_for(error: BridgeError) -> int:
    """HTTP status for a bridge error."""
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


def create_wechat_router(app: Application) -> APIRouter:
    """Create WeChat webhook router."""
    router = APIRouter(tags=["wechat"])

    @router.get("/")
    async def verify_server(
        signature: str = Query(...),
        timestamp: str = Query(...),
        nonce: str = Query(...),
        echostr: str | None = Query(None),
    ) -> Response:
        """Answer the platform's server verification handshake."""
        try:
            verify_signature(app.settings.wechat_token, signature, timestamp, nonce)
        except InvalidSignature as e:
            logger.warning("Rejected verification request: %s", e)
            raise HTTPException(status_code=400, detail=str(e))

        if echostr is None:
            raise HTTPException(status_code=400, detail="Missing echostr")
        return Response(content=echostr, media_type="text/plain")

    @router.post("/")
    async def receive_message(request: Request) -> Response:
        """Answer an inbound message with a passive XML reply."""
        body = await request.body()
        try:
            message = parse_inbound(body)
            logger.debug("Received message %s", message.message_id)
            reply = await app.pipeline.handle(message)
        except BridgeError as e:
            status = status_for(e)
            logger.error("Message handling failed (%d): %s", status, e)
            raise HTTPException(status_code=status, detail=str(e))
        except Exception as e:
            logger.error("Unexpected error handling message: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))

        return Response(content=render_reply(reply), media_type="text/xml")

    return router
