# file: controllers/auth.py

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.config import Settings
from app.dependencies import get_identity_client, get_settings
from app.errors import ProviderError, ValidationError, redact
from app.models.auth import AuthSession, EmailRequest, VerifyCodeRequest, normalize_email
from app.services.identity import PrivyClient, UserFound, UserLookupFailed

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, error: str, details=None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def _provider_details(e: Exception):
    if isinstance(e, ProviderError):
        return e.details if e.details is not None else e.message
    return str(e)


@router.post("/send-login-code")
async def send_login_code(
        payload: EmailRequest,
        privy: PrivyClient = Depends(get_identity_client),
        settings: Settings = Depends(get_settings),
):
    try:
        email = normalize_email(payload.email)
    except ValidationError as e:
        return _error(e.status_code, e.message)

    try:
        await privy.send_login_code(email)
    except ProviderError as e:
        logger.error("Error sending login code to %s: %s", email, e.message)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to send login code",
            redact(_provider_details(e), settings),
        )

    logger.info("Login code sent to %s", email)
    return {"message": "Login code sent", "email": email}


@router.post("/verify-code")
async def verify_code(
        payload: VerifyCodeRequest,
        privy: PrivyClient = Depends(get_identity_client),
        settings: Settings = Depends(get_settings),
):
    """
    Verifies an email login code, then makes sure the user exists and owns a
    wallet of the configured chain type. Safe to retry: the wallet is only
    created when the user has none.
    """
    try:
        session = AuthSession.from_request(payload)
    except ValidationError as e:
        return _error(e.status_code, e.message)

    try:
        await privy.verify_login_code(session.email, session.code)
        user = await privy.get_or_create_user(session.email)
        user, wallet = await privy.ensure_wallet(user)
    except ProviderError as e:
        logger.error("Verification failed for %s: %s", session.email, e.message)
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Verification failed",
            redact(_provider_details(e), settings),
        )

    return {
        "message": "Login successful",
        "userId": user["id"],
        "user": user,
        "wallet": wallet,
    }


@router.post("/create-user")
async def create_user(
        payload: EmailRequest,
        privy: PrivyClient = Depends(get_identity_client),
        settings: Settings = Depends(get_settings),
):
    try:
        email = normalize_email(payload.email)
    except ValidationError as e:
        return _error(e.status_code, e.message)

    lookup = await privy.get_user_by_email(email)
    if isinstance(lookup, UserFound):
        return {"message": "User already exists", "user": lookup.user}
    if isinstance(lookup, UserLookupFailed):
        content = {
            "error": "User lookup failed",
            "details": redact(_provider_details(lookup.error), settings),
            "retryable": True,
        }
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=content)

    try:
        user = await privy.import_user(email)
    except ProviderError as e:
        logger.error("Error creating user %s: %s", email, e.message)
        return _error(
            e.provider_status or status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to create user",
            redact(_provider_details(e), settings),
        )

    return {"message": "User created successfully", "user": user}
