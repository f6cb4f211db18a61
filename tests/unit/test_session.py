"""
Unit Tests - Session store, auth forms and storage backends
"""
import json
from unittest.mock import MagicMock

import pytest

from expense_portal.core.enums import NotificationLevel
from expense_portal.core.storage import AUTH_TOKEN_KEY, USER_KEY, FileStorage, MemoryStorage, SessionStorage
from expense_portal.core.validators import PASSWORD_TOO_SHORT, PASSWORDS_DO_NOT_MATCH
from expense_portal.session import LoginForm, RegisterForm, SessionStore
from expense_portal.session.forms import LOGIN_SUCCESS, REGISTER_SUCCESS
from expense_portal.session.store import LOGOUT_SUCCESS

from ..conftest import TEST_EMAIL, TEST_PASSWORD


class TestSessionStore:
    """Tests for session restore, login, register and logout"""

    @pytest.mark.unit
    def test_restores_user_without_network(self, authed_client, backend):
        store = SessionStore(authed_client)

        assert store.is_loading is False
        assert store.is_authenticated is True
        assert store.user.email == TEST_EMAIL
        assert backend.requests == []

    @pytest.mark.unit
    def test_starts_signed_out_with_empty_storage(self, api_client):
        store = SessionStore(api_client)
        assert store.is_authenticated is False
        assert store.is_loading is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_login_success(self, api_client, storage):
        navigate = MagicMock()
        store = SessionStore(api_client, navigate=navigate)

        result = await store.login(TEST_EMAIL, TEST_PASSWORD)

        assert result.success is True
        assert store.is_authenticated is True
        assert storage.get_item(AUTH_TOKEN_KEY) is not None
        assert json.loads(storage.get_item(USER_KEY))["email"] == TEST_EMAIL
        navigate.assert_called_once_with("/")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_login_failure(self, api_client):
        navigate = MagicMock()
        store = SessionStore(api_client, navigate=navigate)

        result = await store.login(TEST_EMAIL, "wrong-password")

        assert result.success is False
        assert result.error == "Invalid credentials"
        assert store.is_authenticated is False
        navigate.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_register_logs_in(self, api_client, backend):
        store = SessionStore(api_client)

        result = await store.register("new@example.com", "password1")

        assert result.success is True
        assert store.user.email == "new@example.com"
        assert [(r.method, r.url.path) for r in backend.requests] == [
            ("POST", "/api/auth/register"),
            ("POST", "/api/auth/login"),
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_register_error_skips_login(self, api_client, backend):
        store = SessionStore(api_client)

        result = await store.register(TEST_EMAIL, "password1")

        assert result.success is False
        assert result.error == "User already exists"
        assert backend.requests_to("POST", "/auth/login") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_register_with_bodyless_response_logs_in(self, api_client, backend):
        backend.override("POST", "/auth/register", 204)
        backend.users["new@example.com"] = "password1"
        store = SessionStore(api_client)

        result = await store.register("new@example.com", "password1")

        assert result.success is True
        assert store.user.email == "new@example.com"

    @pytest.mark.unit
    def test_logout(self, authed_client, logged_in_storage, notifier):
        navigate = MagicMock()
        store = SessionStore(authed_client, navigate=navigate, notifier=notifier)

        store.logout()

        assert store.is_authenticated is False
        assert AUTH_TOKEN_KEY not in logged_in_storage
        assert USER_KEY not in logged_in_storage
        assert [n.title for n in notifier.drain()] == [LOGOUT_SUCCESS]
        navigate.assert_called_once_with("/login")


class TestAuthForms:
    """Tests for login and registration forms"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_login_form_success_notifies(self, api_client, notifier):
        form = LoginForm(SessionStore(api_client, notifier=notifier))

        result = await form.submit(TEST_EMAIL, TEST_PASSWORD)

        assert result.success
        assert form.error is None
        assert form.is_loading is False
        assert [(n.level, n.title) for n in notifier.drain()] == [(NotificationLevel.SUCCESS, LOGIN_SUCCESS)]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_login_form_failure_sets_inline_error(self, api_client, notifier):
        form = LoginForm(SessionStore(api_client, notifier=notifier))

        await form.submit(TEST_EMAIL, "nope")

        assert form.error == "Invalid credentials"
        assert notifier.pending[0].level == NotificationLevel.ERROR

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_register_short_password_blocked_before_request(self, api_client, backend, notifier):
        form = RegisterForm(SessionStore(api_client, notifier=notifier))

        result = await form.submit("new@example.com", "12345", "12345")

        assert result.success is False
        assert form.error == PASSWORD_TOO_SHORT
        assert backend.requests == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_register_mismatch_blocked_before_request(self, api_client, backend, notifier):
        form = RegisterForm(SessionStore(api_client, notifier=notifier))

        result = await form.submit("new@example.com", "password1", "password2")

        assert result.success is False
        assert form.error == PASSWORDS_DO_NOT_MATCH
        assert notifier.pending[0].title == PASSWORDS_DO_NOT_MATCH
        assert backend.requests == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_register_success(self, api_client, notifier):
        form = RegisterForm(SessionStore(api_client, notifier=notifier))

        result = await form.submit("new@example.com", "password1", "password1")

        assert result.success
        assert notifier.pending[-1].title == REGISTER_SUCCESS


class TestStorageBackends:
    """Tests for storage implementations"""

    @pytest.mark.unit
    def test_memory_storage(self):
        storage = MemoryStorage()
        storage.set_item("a", "1")
        assert storage.get_item("a") == "1"
        storage.remove_item("a")
        storage.remove_item("a")
        assert storage.get_item("a") is None

    @pytest.mark.unit
    def test_session_storage_ignores_non_strings(self):
        session = {"a": "1", "b": 2}
        storage = SessionStorage(session)
        assert storage.get_item("a") == "1"
        assert storage.get_item("b") is None
        storage.set_item("c", "3")
        assert session["c"] == "3"

    @pytest.mark.unit
    def test_file_storage_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        FileStorage(path).set_item(AUTH_TOKEN_KEY, "tok")

        assert FileStorage(path).get_item(AUTH_TOKEN_KEY) == "tok"
        assert path.stat().st_mode & 0o777 == 0o600

        FileStorage(path).remove_item(AUTH_TOKEN_KEY)
        assert json.loads(path.read_text()) == {}

    @pytest.mark.unit
    def test_file_storage_tolerates_corrupt_file(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{broken")
        assert FileStorage(path).get_item(AUTH_TOKEN_KEY) is None
