# file: main.py

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import AUTH, KNOWN_SERVICES, NOTIFICATIONS, Settings
from app.controllers.auth import router as auth_router
from app.controllers.health import debug_router
from app.controllers.health import router as health_router
from app.controllers.notification import router as notification_router
from app.controllers.notification import send_notification
from app.errors import StartupError
from app.services.identity import PrivyClient
from app.services.push import FirebasePushProvider, PushProvider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if app.state.identity_client is not None:
        await app.state.identity_client.aclose()


def _check_services(settings: Settings) -> None:
    if not settings.services:
        raise StartupError("RELAY_SERVICES is empty; enable at least one of: " + ", ".join(KNOWN_SERVICES))
    unknown = [name for name in settings.services if name not in KNOWN_SERVICES]
    if unknown:
        raise StartupError(f"Unknown service(s) in RELAY_SERVICES: {', '.join(unknown)}")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        clean = {k: v for k, v in err.items() if k not in ("ctx", "input")}
        if "msg" in clean:
            clean["msg"] = str(clean["msg"])
        errors.append(clean)
    content = {"error": "Invalid request body", "details": errors}
    if request.scope.get("endpoint") is send_notification:
        content = {"success": False, **content}
    return JSONResponse(status_code=400, content=content)


def create_app(
        settings: Optional[Settings] = None,
        push_provider: Optional[PushProvider] = None,
        identity_client: Optional[PrivyClient] = None,
) -> FastAPI:
    """
    Builds the application. Provider handles are created here, once, unless
    they are passed in; a missing credential raises StartupError before any
    route is registered.
    """
    settings = settings or Settings.from_env()
    _check_services(settings)

    if settings.enabled(NOTIFICATIONS) and push_provider is None:
        push_provider = FirebasePushProvider.from_settings(settings)
    if settings.enabled(AUTH) and identity_client is None:
        identity_client = PrivyClient.from_settings(settings)

    app = FastAPI(title="Tribes Relay", lifespan=lifespan)
    app.state.settings = settings
    app.state.push_provider = push_provider
    app.state.identity_client = identity_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins) or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(health_router, tags=["health"])
    if not settings.is_production:
        app.include_router(debug_router, tags=["debug"])
    if settings.enabled(NOTIFICATIONS):
        app.include_router(notification_router, tags=["notifications"])
    if settings.enabled(AUTH):
        app.include_router(auth_router, tags=["auth"])
    return app


def run() -> None:
    try:
        settings = Settings.from_env()
    except ValueError as e:
        logging.basicConfig(level=logging.INFO)
        logger.critical(f"FATAL: Invalid configuration: {e}")
        sys.exit(1)

    logging.basicConfig(level=settings.log_level)
    try:
        app = create_app(settings)
    except StartupError as e:
        logger.critical(f"FATAL: {e.message}")
        sys.exit(1)

    logger.info(f"Starting server on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
