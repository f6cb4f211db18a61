"""
Expense Backend API Client

Thin async wrapper around the expense backend REST API. Every call is a
single attempt and returns an ApiResponse instead of raising.
"""
import json
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from ..core.types import ApiResponse, UploadedFile
from ..core.storage import AUTH_TOKEN_KEY, USER_KEY, Storage
from .models import (
    Expense,
    ExpenseFilters,
    LoginResponse,
    PaginatedExpenses,
    ParseInvoiceResponse,
    SaveInvoiceData,
    UpdateExpenseData,
    User,
)

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)

SERVER_ERROR = "שגיאה בהתחברות לשרת"
UPLOAD_ERROR = "שגיאה בהעלאת הקובץ"
NETWORK_ERROR = "שגיאת רשת"
INVALID_RESPONSE = "תגובה לא תקינה מהשרת"


def _decode_body(response: httpx.Response) -> Any:
    """Decode a JSON body; empty or non-JSON bodies decode to None."""
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def _error_message(body: Any, default: str) -> str:
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


def _unwrap(body: Any) -> Any:
    """Backends may wrap payloads as {"data": ...}; unwrap when they do."""
    if isinstance(body, dict) and body.get("data") is not None:
        return body["data"]
    return body


class ExpenseApiClient:
    """
    Client for the expense backend.

    The bearer token is read from storage on every request, so a login or
    logout performed through the same storage takes effect immediately.
    """

    def __init__(
        self,
        storage: Storage,
        base_url: str = "http://localhost:5000/api",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            storage: Persistent storage holding auth_token and user
            base_url: Backend base URL (no trailing slash needed)
            timeout: Transport timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.storage = storage
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _get_token(self) -> Optional[str]:
        return self.storage.get_item(AUTH_TOKEN_KEY)

    def _get_headers(self, json_body: bool = True) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        token = self._get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    def _normalize(self, response: httpx.Response, default_error: str) -> ApiResponse[Any]:
        body = _decode_body(response)
        if not response.is_success:
            error = _error_message(body, default_error)
            logger.warning(
                "API request rejected",
                method=response.request.method,
                path=response.request.url.path,
                status=response.status_code,
                error=error,
            )
            return ApiResponse.fail(error, status_code=response.status_code)
        return ApiResponse.ok(_unwrap(body), status_code=response.status_code)

    async def request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> ApiResponse[Any]:
        """
        Send a JSON request.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL, e.g. "/expenses"
            json_data: Optional JSON body
            params: Optional query parameters

        Returns:
            ApiResponse with the (unwrapped) body as data
        """
        url = f"{self.base_url}{endpoint}"
        try:
            async with self._client() as client:
                response = await client.request(
                    method.upper(),
                    url,
                    headers=self._get_headers(),
                    json=json_data,
                    params=params,
                )
        except httpx.HTTPError as e:
            logger.error("API request failed", method=method.upper(), endpoint=endpoint, error=str(e))
            return ApiResponse.fail(str(e) or NETWORK_ERROR)

        logger.debug("API request", method=method.upper(), endpoint=endpoint, status=response.status_code)
        return self._normalize(response, SERVER_ERROR)

    async def request_with_file(self, endpoint: str, file: UploadedFile) -> ApiResponse[Any]:
        """Send a multipart POST with a single "file" field."""
        url = f"{self.base_url}{endpoint}"
        files = {"file": (file.filename, file.content, file.content_type)}
        try:
            async with self._client() as client:
                response = await client.post(
                    url,
                    headers=self._get_headers(json_body=False),
                    files=files,
                )
        except httpx.HTTPError as e:
            logger.error("File upload failed", endpoint=endpoint, filename=file.filename, error=str(e))
            return ApiResponse.fail(str(e) or NETWORK_ERROR)

        logger.info("File uploaded", endpoint=endpoint, filename=file.filename, status=response.status_code)
        return self._normalize(response, UPLOAD_ERROR)

    @staticmethod
    def _parse(response: ApiResponse[Any], model: Type[M]) -> ApiResponse[M]:
        """Validate response data into a model; validation failure is an error result."""
        if not response.success:
            return response
        try:
            return ApiResponse.ok(model.model_validate(response.data), status_code=response.status_code)
        except ValidationError as e:
            logger.error("Unexpected response payload", model=model.__name__, error=str(e))
            return ApiResponse.fail(INVALID_RESPONSE, status_code=response.status_code)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def register(self, email: str, password: str) -> ApiResponse[Optional[User]]:
        """Create an account; any 2xx counts, the user payload is optional."""
        response = await self.request("POST", "/auth/register", {"email": email, "password": password})
        if not response.success:
            return response
        try:
            user = User.model_validate(response.data)
        except ValidationError:
            logger.debug("Registration response carried no user record")
            user = None
        return ApiResponse.ok(user, status_code=response.status_code)

    async def login(self, email: str, password: str) -> ApiResponse[LoginResponse]:
        """Log in and persist the token and user on success."""
        response = self._parse(
            await self.request("POST", "/auth/login", {"email": email, "password": password}),
            LoginResponse,
        )
        if response.success and response.data:
            self.storage.set_item(AUTH_TOKEN_KEY, response.data.token)
            self.storage.set_item(USER_KEY, response.data.user.model_dump_json())
            logger.info("User logged in", email=response.data.user.email)
        return response

    def logout(self) -> None:
        self.storage.remove_item(AUTH_TOKEN_KEY)
        self.storage.remove_item(USER_KEY)

    def get_current_user(self) -> Optional[User]:
        """Read the persisted user record; a corrupt record counts as absent."""
        raw = self.storage.get_item(USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding corrupt persisted user record")
            return None

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    async def parse_invoice(self, file: UploadedFile) -> ApiResponse[ParseInvoiceResponse]:
        response = await self.request_with_file("/invoices/parse", file)
        return self._parse(response, ParseInvoiceResponse)

    async def save_invoice(self, data: SaveInvoiceData) -> ApiResponse[Dict[str, Any]]:
        return await self.request("POST", "/invoices/save", data.to_payload())

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def get_expenses(
        self,
        filters: Optional[ExpenseFilters] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> ApiResponse[PaginatedExpenses]:
        params = filters.to_query_params() if filters else {}
        if page is not None:
            params["page"] = str(page)
        if page_size is not None:
            params["pageSize"] = str(page_size)
        response = await self.request("GET", "/expenses", params=params or None)
        return self._parse(response, PaginatedExpenses)

    async def update_expense_category(self, expense_id: str, category: str) -> ApiResponse[Dict[str, Any]]:
        return await self.request("PATCH", f"/expenses/{expense_id}/category", {"category": category})

    async def update_expense(self, expense_id: str, data: UpdateExpenseData) -> ApiResponse[Dict[str, Any]]:
        return await self.request("PATCH", f"/expenses/{expense_id}", data.to_payload())

    async def delete_expense(self, expense_id: str) -> ApiResponse[None]:
        return await self.request("DELETE", f"/expenses/{expense_id}")


def expense_from_response(response: ApiResponse[Dict[str, Any]]) -> Optional[Expense]:
    """Pull the {expense: ...} payload of a mutation response, if present."""
    if not response.success or not isinstance(response.data, dict):
        return None
    payload = response.data.get("expense")
    if payload is None:
        return None
    try:
        return Expense.model_validate(payload)
    except ValidationError:
        return None
