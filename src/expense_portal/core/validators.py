"""
Client-side validation run before any request is sent.

All validators return a tuple of (is_valid, error_message).
"""
from typing import Optional, Tuple, Union

ALLOWED_UPLOAD_TYPES = frozenset({
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
})

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
MIN_PASSWORD_LENGTH = 6

UNSUPPORTED_FILE_TYPE = "סוג קובץ לא נתמך. אנא העלה קובץ PDF או תמונה (JPG/PNG)"
FILE_TOO_LARGE = "קובץ גדול מדי. גודל הקובץ חייב להיות קטן מ-10MB"
MISSING_REQUIRED_FIELDS = "שדות חובה חסרים - אנא מלא סכום ותאריך"
PASSWORDS_DO_NOT_MATCH = "הסיסמאות אינן תואמות"
PASSWORD_TOO_SHORT = "הסיסמה חייבת להכיל לפחות 6 תווים"


def validate_upload_file(
    content_type: Optional[str],
    size: int,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> Tuple[bool, Optional[str]]:
    """
    Validate an invoice/receipt file before it is uploaded.

    Args:
        content_type: MIME type reported for the file
        size: File size in bytes
        max_bytes: Largest accepted size (10 MiB by default)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if (content_type or "").lower() not in ALLOWED_UPLOAD_TYPES:
        return False, UNSUPPORTED_FILE_TYPE

    if size > max_bytes:
        return False, FILE_TOO_LARGE

    return True, None


def validate_required_fields(
    amount_after_vat: Union[int, float, str, None],
    transaction_date: Optional[str],
) -> Tuple[bool, Optional[str]]:
    """
    Presence check for the two mandatory expense fields.

    An amount of 0 counts as missing.
    """
    try:
        amount = float(amount_after_vat or 0)
    except (ValueError, TypeError):
        amount = 0.0

    if not amount or not (transaction_date or "").strip():
        return False, MISSING_REQUIRED_FIELDS

    return True, None


def validate_registration(
    password: str,
    confirm_password: str,
) -> Tuple[bool, Optional[str]]:
    """Check password confirmation first, then minimal length."""
    if password != confirm_password:
        return False, PASSWORDS_DO_NOT_MATCH

    if len(password) < MIN_PASSWORD_LENGTH:
        return False, PASSWORD_TOO_SHORT

    return True, None
