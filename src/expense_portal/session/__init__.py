"""
Client session: persisted storage, the session store and auth forms.
"""

from ..core.storage import (
    AUTH_TOKEN_KEY,
    USER_KEY,
    Storage,
    MemoryStorage,
    SessionStorage,
    FileStorage,
)
from .store import SessionStore, AuthResult
from .forms import LoginForm, RegisterForm

__all__ = [
    "AUTH_TOKEN_KEY",
    "USER_KEY",
    "Storage",
    "MemoryStorage",
    "SessionStorage",
    "FileStorage",
    "SessionStore",
    "AuthResult",
    "LoginForm",
    "RegisterForm",
]
