# file: dependencies.py

from fastapi import Request

from app.config import Settings
from app.services.identity import PrivyClient
from app.services.push import PushProvider


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_push_provider(request: Request) -> PushProvider:
    """Returns the push provider built once at startup."""
    return request.app.state.push_provider


def get_identity_client(request: Request) -> PrivyClient:
    """Returns the Privy client built once at startup."""
    return request.app.state.identity_client
