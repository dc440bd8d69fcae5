# file: services/identity.py

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import httpx

from app.config import Settings
from app.errors import ProviderError, StartupError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserFound:
    user: Dict[str, Any]


@dataclass(frozen=True)
class UserNotFound:
    pass


@dataclass(frozen=True)
class UserLookupFailed:
    error: ProviderError


UserLookup = Union[UserFound, UserNotFound, UserLookupFailed]


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(response: httpx.Response, body: Any) -> str:
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Privy responded with {response.status_code}"


def find_wallet(user: Dict[str, Any], chain_type: str) -> Optional[Dict[str, Any]]:
    """Returns the user's linked wallet of `chain_type`, if any."""
    for account in user.get("linked_accounts") or []:
        if account.get("type") == "wallet" and account.get("chain_type") == chain_type:
            return account
    return None


class PrivyClient:
    """
    Thin async client for the Privy REST API.
    One instance wraps one long-lived httpx.AsyncClient for the whole process.
    """

    def __init__(self, http: httpx.AsyncClient, chain_type: str = "ethereum"):
        self._http = http
        self.chain_type = chain_type

    @classmethod
    def from_settings(cls, settings: Settings) -> "PrivyClient":
        if not settings.privy_configured:
            raise StartupError("Privy credentials missing: set PRIVY_APP_ID and PRIVY_APP_SECRET")
        try:
            http = httpx.AsyncClient(
                base_url=settings.privy_api_url,
                auth=(settings.privy_app_id, settings.privy_app_secret),
                headers={"privy-app-id": settings.privy_app_id},
            )
        except Exception as e:
            raise StartupError(f"Error creating Privy client: {e}") from e
        logger.info("Privy client initialized for app %s", settings.privy_app_id)
        return cls(http, chain_type=settings.wallet_chain_type)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> Dict[str, Any]:
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.RequestError as e:
            raise ProviderError(f"Error while requesting Privy: {e}") from e

        if response.status_code >= 400:
            body = _error_body(response)
            raise ProviderError(
                _error_message(response, body),
                status_code=response.status_code,
                details=body,
            )
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"Privy returned a non-JSON response for {path}") from e

    async def send_login_code(self, email: str) -> Dict[str, Any]:
        return await self._request("POST", "/passwordless/init", json={"email": email})

    async def verify_login_code(self, email: str, code: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/passwordless/authenticate", json={"email": email, "code": code}
        )

    async def get_user_by_email(self, email: str) -> UserLookup:
        """
        Looks a user up by email address.
        A 404 from Privy means the user does not exist; every other failure is
        reported as UserLookupFailed so callers never create a duplicate user.
        """
        try:
            user = await self._request("POST", "/users/email/address", json={"address": email})
        except ProviderError as e:
            if e.provider_status == 404:
                return UserNotFound()
            logger.warning("Privy user lookup failed for %s: %s", email, e.message)
            return UserLookupFailed(e)
        return UserFound(user)

    async def import_user(self, email: str) -> Dict[str, Any]:
        user = await self._request(
            "POST",
            "/users",
            json={"linked_accounts": [{"type": "email", "address": email}]},
        )
        logger.info("Created Privy user %s for %s", user.get("id"), email)
        return user

    async def create_wallet(self, user_id: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/users/{user_id}/wallets",
            json={"wallets": [{"chain_type": self.chain_type}]},
        )

    async def get_or_create_user(self, email: str) -> Dict[str, Any]:
        lookup = await self.get_user_by_email(email)
        if isinstance(lookup, UserFound):
            return lookup.user
        if isinstance(lookup, UserLookupFailed):
            raise lookup.error
        return await self.import_user(email)

    async def ensure_wallet(self, user: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """
        Links a wallet of the configured chain type unless the user already has
        one. Returns the (possibly updated) user and the wallet account.
        """
        wallet = find_wallet(user, self.chain_type)
        if wallet is not None:
            return user, wallet

        updated = await self.create_wallet(user["id"])
        wallet = find_wallet(updated, self.chain_type)
        if wallet is None:
            raise ProviderError(f"Privy did not link a {self.chain_type} wallet to user {user['id']}")
        logger.info("Linked %s wallet %s to user %s", self.chain_type, wallet.get("address"), user["id"])
        return updated, wallet
