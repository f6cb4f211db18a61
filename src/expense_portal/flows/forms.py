"""
Editable expense form shared by the upload preview and the edit dialog.
"""
import inspect
import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Awaitable, Callable, Mapping, Optional, Tuple, Union

from ..api.models import Expense, ExtractedData, SaveInvoiceData, UpdateExpenseData
from ..core.enums import DocType, ExpenseCategory
from ..core.formatters import to_input_date, to_iso_timestamp
from ..core.validators import validate_required_fields

Callback = Callable[[], Union[None, Awaitable[None]]]

AMOUNT_FIELDS = ("amount_before_vat", "amount_after_vat")
OPTIONAL_TEXT_FIELDS = ("business_name", "business_id", "invoice_number", "service_desc")


async def run_callback(callback: Optional[Callback]) -> None:
    """Call a sync or async no-argument callback."""
    if callback is None:
        return
    result = callback()
    if inspect.isawaitable(result):
        await result


def parse_amount(value: Any) -> float:
    """Parse a numeric input; anything unparsable becomes 0."""
    if value is None:
        return 0.0
    try:
        amount = float(str(value).strip())
    except ValueError:
        return 0.0
    if math.isnan(amount) or math.isinf(amount):
        return 0.0
    return amount


def _doc_type(value: Any) -> str:
    try:
        return DocType(value).value
    except ValueError:
        return DocType.UNKNOWN.value


def _category(value: Any) -> str:
    try:
        return ExpenseCategory(value).value
    except ValueError:
        return ExpenseCategory.OTHER.value


@dataclass
class ExpenseForm:
    """
    Field values as the user sees and edits them.

    Text fields are never None (missing values are ""), amounts are floats
    (missing values are 0) and the date is a YYYY-MM-DD input value.
    """
    business_name: str = ""
    business_id: str = ""
    invoice_number: str = ""
    transaction_date: str = ""
    amount_before_vat: float = 0.0
    amount_after_vat: float = 0.0
    doc_type: str = DocType.UNKNOWN.value
    service_desc: str = ""
    category: str = ExpenseCategory.OTHER.value

    @classmethod
    def from_extracted(cls, extracted: ExtractedData) -> "ExpenseForm":
        return cls(
            business_name=extracted.business_name or "",
            business_id=extracted.business_id or "",
            invoice_number=extracted.invoice_number or "",
            transaction_date=to_input_date(extracted.transaction_date),
            amount_before_vat=extracted.amount_before_vat or 0.0,
            amount_after_vat=extracted.amount_after_vat or 0.0,
            doc_type=_doc_type(extracted.doc_type or DocType.UNKNOWN.value),
            service_desc=extracted.service_desc or "",
        )

    @classmethod
    def from_expense(cls, expense: Expense) -> "ExpenseForm":
        return cls(
            business_name=expense.business_name or "",
            business_id=expense.business_id or "",
            invoice_number=expense.invoice_number or "",
            transaction_date=to_input_date(expense.transaction_date),
            amount_before_vat=expense.amount_before_vat or 0.0,
            amount_after_vat=expense.amount_after_vat or 0.0,
            doc_type=expense.doc_type.value,
            service_desc=expense.service_desc or "",
            category=expense.category.value,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExpenseForm":
        """Build a form from submitted field values; unknown keys are ignored."""
        form = cls()
        for f in fields(cls):
            if f.name in data:
                form.update(f.name, data[f.name])
        return form

    def to_dict(self) -> dict:
        return asdict(self)

    def update(self, name: str, value: Any) -> None:
        """Set one field, coercing the raw input to the field's type."""
        if name not in {f.name for f in fields(self)}:
            raise ValueError(f"Unknown form field: {name}")
        if name in AMOUNT_FIELDS:
            value = parse_amount(value)
        elif name == "doc_type":
            value = _doc_type(value)
        elif name == "category":
            value = _category(value)
        else:
            value = "" if value is None else str(value).strip()
        setattr(self, name, value)

    def validate(self) -> Tuple[bool, Optional[str]]:
        return validate_required_fields(self.amount_after_vat, self.transaction_date)

    def to_save_data(self) -> SaveInvoiceData:
        """Body for saving a new invoice; empty optional strings are left out."""
        optional = {name: getattr(self, name) or None for name in OPTIONAL_TEXT_FIELDS}
        return SaveInvoiceData(
            transaction_date=to_iso_timestamp(self.transaction_date),
            amount_before_vat=self.amount_before_vat,
            amount_after_vat=self.amount_after_vat,
            doc_type=self.doc_type,
            **optional,
        )

    def to_update_data(self) -> UpdateExpenseData:
        """Body for updating an expense; empty optional strings are sent as null."""
        optional = {name: getattr(self, name) or None for name in OPTIONAL_TEXT_FIELDS}
        return UpdateExpenseData(
            transaction_date=to_iso_timestamp(self.transaction_date),
            amount_before_vat=self.amount_before_vat,
            amount_after_vat=self.amount_after_vat,
            doc_type=DocType(self.doc_type),
            category=ExpenseCategory(self.category),
            **optional,
        )
