"""
Login and registration forms.

The forms own their inline error and in-flight flag; notifications go to
the session store's notifier.
"""
from typing import Optional

from ..core.validators import validate_registration
from .store import AuthResult, SessionStore

LOGIN_SUCCESS = "התחברות הצליחה - ברוך הבא!"
LOGIN_INLINE_ERROR = "שגיאה בהתחברות"
LOGIN_TOAST_ERROR = "אימייל או סיסמה שגויים"
REGISTER_SUCCESS = "הרשמה הצליחה - החשבון נוצר בהצלחה!"
REGISTER_INLINE_ERROR = "שגיאה בהרשמה"
REGISTER_TOAST_ERROR = "לא ניתן ליצור חשבון"


class LoginForm:
    def __init__(self, store: SessionStore):
        self.store = store
        self.email = ""
        self.error: Optional[str] = None
        self.is_loading = False

    async def submit(self, email: str, password: str) -> AuthResult:
        self.email = email
        self.error = None
        self.is_loading = True
        try:
            result = await self.store.login(email, password)
        finally:
            self.is_loading = False

        if result.success:
            self.store.notifier.success(LOGIN_SUCCESS)
        else:
            self.error = result.error or LOGIN_INLINE_ERROR
            self.store.notifier.error(result.error or LOGIN_TOAST_ERROR)
        return result


class RegisterForm:
    """Registration with confirmation and minimal length checked before any request"""

    def __init__(self, store: SessionStore):
        self.store = store
        self.email = ""
        self.error: Optional[str] = None
        self.is_loading = False

    async def submit(self, email: str, password: str, confirm_password: str) -> AuthResult:
        self.email = email
        self.error = None

        valid, message = validate_registration(password, confirm_password)
        if not valid:
            self.error = message
            self.store.notifier.error(message)
            return AuthResult(success=False, error=message)

        self.is_loading = True
        try:
            result = await self.store.register(email, password)
        finally:
            self.is_loading = False

        if result.success:
            self.store.notifier.success(REGISTER_SUCCESS)
        else:
            self.error = result.error or REGISTER_INLINE_ERROR
            self.store.notifier.error(result.error or REGISTER_TOAST_ERROR)
        return result
