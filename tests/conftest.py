"""
Pytest Fixtures for Expense Portal Tests

The expense backend is replaced by an in-memory fake served through
httpx.MockTransport; every request it receives is recorded.
"""
import json
import os
from typing import Any, Dict, List, Tuple

import httpx
import pytest
import pytest_asyncio
import structlog
from httpx import ASGITransport, AsyncClient

os.environ["ENVIRONMENT"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key"

from expense_portal.api.client import ExpenseApiClient
from expense_portal.config import Settings
from expense_portal.core.notifications import Notifier
from expense_portal.core.storage import AUTH_TOKEN_KEY, USER_KEY, MemoryStorage
from expense_portal.web.app import create_app

BACKEND_URL = "http://backend.test/api"
TEST_EMAIL = "user@example.com"
TEST_PASSWORD = "secret1"
TEST_TOKEN = "test-token"


class FakeBackend:
    """In-memory expense backend"""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.users: Dict[str, str] = {}
        self.expenses: Dict[str, Dict[str, Any]] = {}
        self.overrides: Dict[Tuple[str, str], httpx.Response] = {}
        self.token = TEST_TOKEN
        self.extracted: Dict[str, Any] = {
            "docType": "INVOICE",
            "amountBeforeVat": 100,
            "amountAfterVat": 117,
            "transactionDate": "2025-01-15T00:00:00.000Z",
            "businessName": "קפה נחת",
            "businessId": "514000000",
            "invoiceNumber": "INV-1",
        }
        self._next_id = 1

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def add_expense(self, **fields) -> Dict[str, Any]:
        expense_id = fields.pop("id", None) or f"e{self._next_id}"
        self._next_id += 1
        expense = {
            "id": expense_id,
            "userId": "u-1",
            "businessName": None,
            "businessId": None,
            "invoiceNumber": None,
            "serviceDesc": None,
            "docType": "INVOICE",
            "amountBeforeVat": 100,
            "amountAfterVat": 117,
            "transactionDate": "2025-01-15T00:00:00.000Z",
            "category": "OTHER",
        }
        expense.update(fields)
        self.expenses[expense_id] = expense
        return expense

    def override(self, method: str, path: str, status_code: int, body: Any = None) -> None:
        """Answer METHOD path with a fixed response."""
        self.overrides[(method, path)] = httpx.Response(status_code, json=body)

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and self._path(r) == path]

    @staticmethod
    def _path(request: httpx.Request) -> str:
        path = request.url.path
        return path[len("/api"):] if path.startswith("/api") else path

    @staticmethod
    def _body(request: httpx.Request) -> Dict[str, Any]:
        return json.loads(request.content) if request.content else {}

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = self._path(request)
        method = request.method

        if (method, path) in self.overrides:
            return self.overrides[(method, path)]

        if path == "/auth/register" and method == "POST":
            body = self._body(request)
            if body["email"] in self.users:
                return httpx.Response(409, json={"error": "User already exists"})
            self.users[body["email"]] = body["password"]
            return httpx.Response(201, json={"id": "u-1", "email": body["email"]})

        if path == "/auth/login" and method == "POST":
            body = self._body(request)
            if self.users.get(body["email"]) != body["password"]:
                return httpx.Response(401, json={"error": "Invalid credentials"})
            return httpx.Response(200, json={"token": self.token, "user": {"id": "u-1", "email": body["email"]}})

        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"error": "Unauthorized"})

        if path == "/invoices/parse" and method == "POST":
            return httpx.Response(200, json={"extracted": self.extracted})

        if path == "/invoices/save" and method == "POST":
            expense = self.add_expense(**self._body(request))
            return httpx.Response(201, json={"expense": expense})

        if path == "/expenses" and method == "GET":
            params = request.url.params
            items = list(self.expenses.values())
            if params.get("category"):
                items = [e for e in items if e["category"] == params["category"]]
            page = int(params.get("page", 1))
            page_size = int(params.get("pageSize", 20))
            start = (page - 1) * page_size
            return httpx.Response(200, json={
                "items": items[start:start + page_size],
                "totalCount": len(items),
                "page": page,
                "pageSize": page_size,
            })

        parts = path.strip("/").split("/")
        if parts[0] == "expenses" and len(parts) >= 2:
            expense = self.expenses.get(parts[1])
            if expense is None:
                return httpx.Response(404, json={"error": "Expense not found"})
            if len(parts) == 3 and parts[2] == "category" and method == "PATCH":
                expense["category"] = self._body(request)["category"]
                return httpx.Response(200, json={"expense": expense})
            if len(parts) == 2 and method == "PATCH":
                expense.update(self._body(request))
                return httpx.Response(200, json={"expense": expense})
            if len(parts) == 2 and method == "DELETE":
                del self.expenses[parts[1]]
                return httpx.Response(204)

        return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Keep a test's logging config from pointing later tests at a closed capture stream."""
    yield
    structlog.reset_defaults()


# =============================================================================
# Backend / client fixtures
# =============================================================================

@pytest.fixture
def backend() -> FakeBackend:
    fake = FakeBackend()
    fake.users[TEST_EMAIL] = TEST_PASSWORD
    fake.add_expense(id="e1", businessName="קפה נחת", category="FOOD", amountAfterVat=58.5)
    fake.add_expense(id="e2", businessName="פז", category="CAR", amountAfterVat=250)
    return fake


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def logged_in_storage() -> MemoryStorage:
    return MemoryStorage({
        AUTH_TOKEN_KEY: TEST_TOKEN,
        USER_KEY: json.dumps({"id": "u-1", "email": TEST_EMAIL}),
    })


@pytest.fixture
def api_client(backend: FakeBackend, storage: MemoryStorage) -> ExpenseApiClient:
    return ExpenseApiClient(storage, base_url=BACKEND_URL, transport=backend.transport)


@pytest.fixture
def authed_client(backend: FakeBackend, logged_in_storage: MemoryStorage) -> ExpenseApiClient:
    return ExpenseApiClient(logged_in_storage, base_url=BACKEND_URL, transport=backend.transport)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


# =============================================================================
# Web app fixtures
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    return Settings(
        ENVIRONMENT="testing",
        SECRET_KEY="test-secret-key",
        API_BASE_URL=BACKEND_URL,
        LOG_LEVEL="WARNING",
        DEFAULT_PAGE_SIZE=20,
    )


@pytest.fixture
def app(settings: Settings, backend: FakeBackend):
    return create_app(settings, transport=backend.transport)


@pytest_asyncio.fixture
async def web_client(app) -> AsyncClient:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def logged_in_web(web_client: AsyncClient) -> AsyncClient:
    response = await web_client.post("/login", data={"email": TEST_EMAIL, "password": TEST_PASSWORD})
    assert response.status_code == 303
    return web_client

