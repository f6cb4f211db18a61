"""
User flows: invoice upload and expense management.
"""

from .forms import ExpenseForm
from .upload import UploadFlow
from .expenses import (
    DELETE_CONFIRMATION,
    EditExpenseForm,
    ExpenseList,
    FilterPanel,
    filters_from_mapping,
)

__all__ = [
    "DELETE_CONFIRMATION",
    "EditExpenseForm",
    "ExpenseForm",
    "ExpenseList",
    "FilterPanel",
    "UploadFlow",
    "filters_from_mapping",
]
