"""
Backend API access: HTTP client wrapper and payload models.
"""

from .client import ExpenseApiClient, expense_from_response
from .models import (
    User,
    LoginResponse,
    Expense,
    ExtractedData,
    ParseInvoiceResponse,
    SaveInvoiceData,
    UpdateExpenseData,
    PaginatedExpenses,
    ExpenseFilters,
)

__all__ = [
    "ExpenseApiClient",
    "expense_from_response",
    "User",
    "LoginResponse",
    "Expense",
    "ExtractedData",
    "ParseInvoiceResponse",
    "SaveInvoiceData",
    "UpdateExpenseData",
    "PaginatedExpenses",
    "ExpenseFilters",
]
