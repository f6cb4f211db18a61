"""
Session Store - the authenticated user and the actions that change it
"""
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from ..api.client import ExpenseApiClient
from ..api.models import User
from ..core.notifications import Notifier

logger = structlog.get_logger()

LOGOUT_SUCCESS = "התנתקת בהצלחה"

DASHBOARD_PATH = "/"
LOGIN_PATH = "/login"


@dataclass
class AuthResult:
    """Outcome of a login or register action"""
    success: bool
    error: Optional[str] = None


class SessionStore:
    """
    Holds the current user for the lifetime of a session.

    Restoration from storage happens synchronously in the constructor, so
    `is_loading` is only ever True while that restoration is running.
    Navigation is delegated to the injected `navigate` callable.
    """

    def __init__(
        self,
        client: ExpenseApiClient,
        navigate: Optional[Callable[[str], None]] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.client = client
        self.notifier = notifier or Notifier()
        self._navigate = navigate or (lambda path: None)
        self.user: Optional[User] = None
        self.is_loading = True
        self._restore()

    def _restore(self) -> None:
        self.user = self.client.get_current_user()
        self.is_loading = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def login(self, email: str, password: str) -> AuthResult:
        response = await self.client.login(email, password)
        if response.success and response.data:
            self.user = response.data.user
            self._navigate(DASHBOARD_PATH)
            return AuthResult(success=True)
        return AuthResult(success=False, error=response.error)

    async def register(self, email: str, password: str) -> AuthResult:
        """Create the account, then log straight in with the same credentials."""
        response = await self.client.register(email, password)
        if not response.success:
            return AuthResult(success=False, error=response.error)
        logger.info("User registered", email=email)
        return await self.login(email, password)

    def logout(self) -> None:
        email = self.user.email if self.user else None
        self.client.logout()
        self.user = None
        self.notifier.success(LOGOUT_SUCCESS)
        logger.info("User logged out", email=email)
        self._navigate(LOGIN_PATH)
