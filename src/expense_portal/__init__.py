"""
Expense Portal - web and command-line client for the expense backend.

Users sign in, upload invoices and receipts for extraction, review the
extracted fields and manage the resulting expense records.
"""

__version__ = "1.0.0"

from .core.enums import ExpenseCategory, DocType
from .core.types import ApiResponse

__all__ = [
    "ApiResponse",
    "DocType",
    "ExpenseCategory",
]
