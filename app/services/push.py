# file: services/push.py

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from app.config import Settings
from app.errors import ProviderError, StartupError
from app.models.notification import DeliveryTarget, TokenTarget, TopicTarget

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "tribes-relay"


class PushProvider(ABC):
    """
    Common interface for push delivery.
    Implementations are built once at startup and shared by every request.
    """

    @abstractmethod
    def send(
        self,
        target: DeliveryTarget,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Delivers one notification and returns the provider's opaque result."""
        ...


def build_message(
    target: DeliveryTarget,
    title: str,
    body: str,
    data: Optional[Dict[str, str]] = None,
) -> messaging.Message:
    # Exactly one of token/topic is set on the message.
    if isinstance(target, TopicTarget):
        addressing = {"topic": target.topic}
    elif isinstance(target, TokenTarget):
        addressing = {"token": target.token}
    else:
        raise TypeError(f"Unsupported delivery target: {target!r}")

    return messaging.Message(
        notification=messaging.Notification(title=title, body=body),
        data=data or {},
        **addressing,
    )


def _load_credential(settings: Settings):
    if settings.firebase_credentials:
        return credentials.Certificate(settings.firebase_credentials)
    return credentials.ApplicationDefault()


class FirebasePushProvider(PushProvider):
    """Sends notifications through Firebase Cloud Messaging."""

    def __init__(self, app: firebase_admin.App, dry_run: bool = False):
        self._app = app
        self._dry_run = dry_run

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirebasePushProvider":
        if not settings.firebase_configured:
            raise StartupError(
                "Firebase credentials missing: set FIREBASE_CREDENTIALS or FIREBASE_USE_ADC=true"
            )
        try:
            app = firebase_admin.initialize_app(_load_credential(settings), name=FIREBASE_APP_NAME)
        except Exception as e:
            raise StartupError(f"Error initializing Firebase Admin SDK: {e}") from e
        logger.info("Firebase Admin SDK initialized (dry_run=%s).", settings.fcm_dry_run)
        return cls(app, dry_run=settings.fcm_dry_run)

    @property
    def app(self) -> firebase_admin.App:
        return self._app

    def send(self, target, title, body, data=None):
        message = build_message(target, title, body, data)
        try:
            response = messaging.send(message, dry_run=self._dry_run, app=self._app)
        except FirebaseError as e:
            raise ProviderError(str(e), details={"code": e.code}) from e
        logger.info("Notification sent: %s", response)
        return response
