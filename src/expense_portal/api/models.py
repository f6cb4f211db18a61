"""
API Models - Pydantic models for backend payloads

Field names are snake_case in Python and camelCase on the wire.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..core.enums import DocType, ExpenseCategory


class ApiModel(BaseModel):
    """Base model: camelCase aliases, unknown fields ignored"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self, **kwargs) -> Dict[str, Any]:
        """Serialize for the backend (camelCase keys)."""
        return self.model_dump(by_alias=True, mode="json", **kwargs)


class User(ApiModel):
    """Authenticated user"""
    id: str
    email: str

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, v):
        return str(v) if v is not None else v


class LoginResponse(ApiModel):
    """Response of POST /auth/login"""
    token: str
    user: User


class Expense(ApiModel):
    """Expense record as returned by the backend"""
    id: str
    user_id: Optional[str] = None
    business_name: Optional[str] = None
    business_id: Optional[str] = None
    service_desc: Optional[str] = None
    invoice_number: Optional[str] = None
    doc_type: DocType = DocType.UNKNOWN
    amount_before_vat: float = 0
    amount_after_vat: float = 0
    transaction_date: str = ""
    category: ExpenseCategory = ExpenseCategory.OTHER
    raw_text: Optional[str] = None
    created_at: Optional[str] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def ids_to_str(cls, v):
        return str(v) if v is not None else v


class ExtractedData(ApiModel):
    """Candidate fields produced by the backend's parse step"""
    doc_type: Optional[str] = None
    amount_before_vat: Optional[float] = None
    amount_after_vat: Optional[float] = None
    transaction_date: Optional[str] = None
    business_name: Optional[str] = None
    business_id: Optional[str] = None
    invoice_number: Optional[str] = None
    service_desc: Optional[str] = None


class ParseInvoiceResponse(ApiModel):
    """Response of POST /invoices/parse"""
    extracted: ExtractedData


class SaveInvoiceData(ApiModel):
    """Body of POST /invoices/save"""
    business_name: Optional[str] = None
    business_id: Optional[str] = None
    service_desc: Optional[str] = None
    invoice_number: Optional[str] = None
    doc_type: Optional[str] = None
    amount_before_vat: float
    amount_after_vat: float
    transaction_date: str

    def to_payload(self, **kwargs) -> Dict[str, Any]:
        # Unset optional fields are left out of the body entirely
        return super().to_payload(exclude_none=True, **kwargs)


class UpdateExpenseData(ApiModel):
    """Body of PATCH /expenses/:id; explicit None is sent as null"""
    business_name: Optional[str] = None
    business_id: Optional[str] = None
    service_desc: Optional[str] = None
    invoice_number: Optional[str] = None
    doc_type: Optional[DocType] = None
    amount_before_vat: Optional[float] = None
    amount_after_vat: Optional[float] = None
    transaction_date: Optional[str] = None
    category: Optional[ExpenseCategory] = None

    def to_payload(self, **kwargs) -> Dict[str, Any]:
        return super().to_payload(exclude_unset=True, **kwargs)


class PaginatedExpenses(ApiModel):
    """Response of GET /expenses"""
    items: List[Expense] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 20


def _format_query_value(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class ExpenseFilters(ApiModel):
    """List filters; unset values are omitted from the query string"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    category: Optional[ExpenseCategory] = None
    business: Optional[str] = None

    @field_validator("from_", "to", "business", "category", "min", "max", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_query_params(self) -> Dict[str, str]:
        params = {}
        for key, value in self.model_dump(by_alias=True, mode="json").items():
            if value is None or value == "":
                continue
            params[key] = _format_query_value(value)
        return params

    @property
    def is_active(self) -> bool:
        return bool(self.to_query_params())
