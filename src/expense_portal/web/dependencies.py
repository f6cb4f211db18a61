"""
FastAPI dependencies: settings, storage, API client, session store and route guards.
"""
from typing import Optional

from fastapi import Depends, Request

from ..api.client import ExpenseApiClient
from ..config import Settings
from ..core.notifications import Notifier
from ..core.storage import SessionStorage, Storage
from ..session.store import DASHBOARD_PATH, LOGIN_PATH, SessionStore
from .templating import flash


class GuardRedirect(Exception):
    """Raised by a guard to send the browser elsewhere"""

    def __init__(self, url: str):
        super().__init__(url)
        self.url = url


class SessionLoading(Exception):
    """Raised by a guard while the session is still being restored"""


class Navigator:
    """Remembers the last path a flow asked to navigate to"""

    def __init__(self):
        self.path: Optional[str] = None

    def __call__(self, path: str) -> None:
        self.path = path


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    return SessionStorage(request.session)


def get_api_client(
    request: Request,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> ExpenseApiClient:
    return ExpenseApiClient(
        storage,
        base_url=settings.API_BASE_URL,
        timeout=settings.REQUEST_TIMEOUT,
        transport=request.app.state.api_transport,
    )


def get_notifier(request: Request) -> Notifier:
    return Notifier(on_push=lambda notification: flash(request, notification))


def get_navigator() -> Navigator:
    return Navigator()


def get_session_store(
    client: ExpenseApiClient = Depends(get_api_client),
    notifier: Notifier = Depends(get_notifier),
    navigator: Navigator = Depends(get_navigator),
) -> SessionStore:
    return SessionStore(client, navigate=navigator, notifier=notifier)


def require_guest(store: SessionStore = Depends(get_session_store)) -> SessionStore:
    """Auth pages: only for signed-out users."""
    if store.is_loading:
        raise SessionLoading()
    if store.is_authenticated:
        raise GuardRedirect(DASHBOARD_PATH)
    return store


def require_user(store: SessionStore = Depends(get_session_store)) -> SessionStore:
    """Dashboard pages: only for signed-in users."""
    if store.is_loading:
        raise SessionLoading()
    if not store.is_authenticated:
        raise GuardRedirect(LOGIN_PATH)
    return store
