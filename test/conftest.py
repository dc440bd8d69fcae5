import json
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.config import Settings
from app.errors import ProviderError
from app.services.identity import PrivyClient
from main import create_app

PRIVY_BASE_URL = "https://privy.test/api/v1"
VALID_CODE = "123456"


class FakePushProvider:
    """Records every send; returns `response` or raises `error`."""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else "projects/tribes/messages/1"
        self.error = error
        self.calls = []

    def send(self, target, title, body, data=None):
        self.calls.append({"target": target, "title": title, "body": body, "data": data})
        if self.error is not None:
            raise self.error
        return self.response


class FakePrivyAPI:
    """In-memory stand-in for the Privy REST API, mounted through httpx.MockTransport."""

    def __init__(self):
        self.users = {}
        self.requests = []
        self.headers = []
        self.failures = {}
        self._next_id = 1

    def add_user(self, email, wallet_chain=None):
        user = {
            "id": f"user-{self._next_id}",
            "linked_accounts": [{"type": "email", "address": email}],
        }
        self._next_id += 1
        if wallet_chain:
            user["linked_accounts"].append(
                {"type": "wallet", "chain_type": wallet_chain, "address": "0xexisting"}
            )
        self.users[email] = user
        return user

    def count(self, method, route):
        return sum(1 for m, r in self.requests if m == method and r == route)

    def wallet_requests(self):
        return [r for m, r in self.requests if m == "POST" and r.endswith("/wallets")]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        route = request.url.path[len("/api/v1"):]
        self.requests.append((request.method, route))
        self.headers.append(request.headers)
        body = json.loads(request.content) if request.content else {}

        if route in self.failures:
            status_code, payload = self.failures[route]
            return httpx.Response(status_code, json=payload)

        if route == "/passwordless/init":
            return httpx.Response(200, json={"success": True})
        if route == "/passwordless/authenticate":
            if body.get("code") != VALID_CODE:
                return httpx.Response(401, json={"error": "Invalid code"})
            return httpx.Response(200, json={"token": "session-token"})
        if route == "/users/email/address":
            user = self.users.get(body["address"])
            if user is None:
                return httpx.Response(404, json={"error": "User not found"})
            return httpx.Response(200, json=user)
        if route == "/users":
            email = body["linked_accounts"][0]["address"]
            return httpx.Response(200, json=self.add_user(email))
        if route.startswith("/users/") and route.endswith("/wallets"):
            user_id = route.split("/")[2]
            user = next(u for u in self.users.values() if u["id"] == user_id)
            for wallet in body["wallets"]:
                user["linked_accounts"].append(
                    {"type": "wallet", "chain_type": wallet["chain_type"], "address": "0xnew"}
                )
            return httpx.Response(200, json=user)
        return httpx.Response(404, json={"error": "Not found"})


def make_settings(**overrides) -> Settings:
    values = dict(
        services=("notifications", "auth"),
        firebase_use_adc=True,
        privy_app_id="app-id-123",
        privy_app_secret="app-secret",
        privy_api_url=PRIVY_BASE_URL,
    )
    values.update(overrides)
    return Settings(**values)


def make_privy_client(api: FakePrivyAPI, chain_type="ethereum") -> PrivyClient:
    http = httpx.AsyncClient(
        base_url=PRIVY_BASE_URL,
        transport=httpx.MockTransport(api),
        auth=("app-id-123", "app-secret"),
        headers={"privy-app-id": "app-id-123"},
    )
    return PrivyClient(http, chain_type=chain_type)


@pytest.fixture
def push_provider() -> FakePushProvider:
    return FakePushProvider()


@pytest.fixture
def privy_api() -> FakePrivyAPI:
    return FakePrivyAPI()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture(scope="function")
async def client(settings, push_provider, privy_api) -> AsyncGenerator[AsyncClient, None]:
    privy = make_privy_client(privy_api)
    app = create_app(settings, push_provider=push_provider, identity_client=privy)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await privy.aclose()


@pytest.fixture
def provider_error():
    return ProviderError("Requested entity was not found.", details={"code": "NOT_FOUND"})
