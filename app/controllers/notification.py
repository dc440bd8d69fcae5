# file: controllers/notification.py

import logging

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.config import Settings
from app.dependencies import get_push_provider, get_settings
from app.errors import ValidationError, redact
from app.models.notification import NotificationRequest, resolve_target
from app.services.push import PushProvider

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/send-notification")
async def send_notification(
        payload: NotificationRequest,
        provider: PushProvider = Depends(get_push_provider),
        settings: Settings = Depends(get_settings),
):
    """
    Relays one notification to the push provider, addressed either to a
    device token or to a topic derived from `topic`, `topicId` or
    `data.tribeId`.
    """
    try:
        target = resolve_target(payload, settings.topic_prefix)
    except ValidationError as e:
        logger.info("Rejected notification: %s", e.message)
        return JSONResponse(
            status_code=e.status_code,
            content={"success": False, "error": e.message},
        )

    try:
        response = await run_in_threadpool(
            provider.send, target, payload.title, payload.body, payload.data
        )
    except Exception as e:
        logger.error(f"Error sending notification: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": redact(str(e), settings)},
        )

    return {"success": True, "response": response}
