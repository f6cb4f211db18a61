"""
Core types, enums, formatters and validators shared by the web client and CLI.
"""

from .types import ApiResponse, Notification, UploadedFile
from .enums import (
    ExpenseCategory,
    DocType,
    UploadState,
    NotificationLevel,
)
from .formatters import (
    format_currency,
    format_date,
    format_file_size,
    category_label,
    doc_type_label,
)
from .validators import (
    validate_upload_file,
    validate_required_fields,
    validate_registration,
)

__all__ = [
    # Types
    "ApiResponse",
    "Notification",
    "UploadedFile",
    # Enums
    "ExpenseCategory",
    "DocType",
    "UploadState",
    "NotificationLevel",
    # Formatters
    "format_currency",
    "format_date",
    "format_file_size",
    "category_label",
    "doc_type_label",
    # Validators
    "validate_upload_file",
    "validate_required_fields",
    "validate_registration",
]
