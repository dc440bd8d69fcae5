# file: config.py

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

NOTIFICATIONS = "notifications"
AUTH = "auth"
KNOWN_SERVICES = (NOTIFICATIONS, AUTH)

PRIVY_API_URL = "https://auth.privy.io/api/v1"


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _log_level(value: str) -> str:
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown LOG_LEVEL: {value!r}")
    return level


def _split(value: Optional[str]) -> Tuple[str, ...]:
    return tuple(item.strip() for item in (value or "").split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    port: int = 3000
    host: str = "0.0.0.0"
    environment: str = "development"
    services: Tuple[str, ...] = (NOTIFICATIONS,)
    cors_origins: Tuple[str, ...] = field(default_factory=tuple)
    log_level: str = "INFO"

    # Firebase Cloud Messaging
    firebase_credentials: Optional[str] = None
    firebase_use_adc: bool = False
    fcm_dry_run: bool = False
    topic_prefix: str = "tribe_"

    # Privy
    privy_app_id: Optional[str] = None
    privy_app_secret: Optional[str] = None
    privy_api_url: str = PRIVY_API_URL
    wallet_chain_type: str = "ethereum"

    @classmethod
    def from_env(cls) -> "Settings":
        """Reads every recognized option from the process environment."""
        return cls(
            port=int(os.getenv("PORT", "3000")),
            host=os.getenv("HOST", "0.0.0.0"),
            environment=os.getenv("NODE_ENV", "development").strip().lower(),
            services=_split(os.getenv("RELAY_SERVICES", NOTIFICATIONS)),
            cors_origins=_split(os.getenv("CORS_ORIGINS")),
            log_level=_log_level(os.getenv("LOG_LEVEL", "INFO")),
            firebase_credentials=os.getenv("FIREBASE_CREDENTIALS") or None,
            firebase_use_adc=_flag(os.getenv("FIREBASE_USE_ADC")),
            fcm_dry_run=_flag(os.getenv("FCM_DRY_RUN")),
            topic_prefix=os.getenv("TOPIC_PREFIX", "tribe_"),
            privy_app_id=os.getenv("PRIVY_APP_ID") or None,
            privy_app_secret=os.getenv("PRIVY_APP_SECRET") or None,
            privy_api_url=os.getenv("PRIVY_API_URL", PRIVY_API_URL).rstrip("/"),
            wallet_chain_type=os.getenv("WALLET_CHAIN_TYPE", "ethereum"),
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def privy_configured(self) -> bool:
        return bool(self.privy_app_id and self.privy_app_secret)

    @property
    def firebase_configured(self) -> bool:
        return bool(self.firebase_credentials or self.firebase_use_adc)

    def enabled(self, service: str) -> bool:
        return service in self.services
