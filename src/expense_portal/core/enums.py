"""
Enumerations for the expense portal.
"""
from enum import Enum


class ExpenseCategory(str, Enum):
    """Expense categories known to the backend"""
    CAR = "CAR"
    FOOD = "FOOD"
    OPERATIONS = "OPERATIONS"
    IT = "IT"
    TRAINING = "TRAINING"
    OTHER = "OTHER"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


class DocType(str, Enum):
    """Type of the uploaded document"""
    INVOICE = "INVOICE"
    RECEIPT = "RECEIPT"
    UNKNOWN = "UNKNOWN"

    @property
    def label(self) -> str:
        return DOC_TYPE_LABELS[self]


class UploadState(str, Enum):
    """States of the upload-and-extract flow"""
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    UPLOADING = "uploading"
    PREVIEW = "preview"
    SAVING = "saving"


class NotificationLevel(str, Enum):
    """Severity of a transient notification"""
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


CATEGORY_LABELS = {
    ExpenseCategory.CAR: "רכב",
    ExpenseCategory.FOOD: "מזון",
    ExpenseCategory.OPERATIONS: "תפעול",
    ExpenseCategory.IT: "IT",
    ExpenseCategory.TRAINING: "הדרכה/הכשרה",
    ExpenseCategory.OTHER: "אחר",
}

DOC_TYPE_LABELS = {
    DocType.INVOICE: "חשבונית",
    DocType.RECEIPT: "קבלה",
    DocType.UNKNOWN: "לא ידוע",
}
