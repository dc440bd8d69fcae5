# file: controllers/health.py

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.config import Settings
from app.dependencies import get_settings

router = APIRouter()
debug_router = APIRouter()

LIVENESS_MESSAGE = "Tribes notification server running"


def _mask(value):
    if not value:
        return None
    return f"{value[:4]}..." if len(value) > 4 else "****"


@router.get("/", response_class=PlainTextResponse)
async def root():
    return LIVENESS_MESSAGE


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {
        "message": "Server is running",
        "privyConfigured": settings.privy_configured,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


@debug_router.get("/debug/config")
async def debug_config(settings: Settings = Depends(get_settings)):
    """Which providers this process was started with. Never returns secrets."""
    return {
        "environment": settings.environment,
        "services": list(settings.services),
        "firebaseConfigured": settings.firebase_configured,
        "privyConfigured": settings.privy_configured,
        "privyAppId": _mask(settings.privy_app_id),
        "privyApiUrl": settings.privy_api_url,
        "topicPrefix": settings.topic_prefix,
        "walletChainType": settings.wallet_chain_type,
        "fcmDryRun": settings.fcm_dry_run,
    }
