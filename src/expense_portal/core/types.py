"""
Core types for the expense portal.

Provides the uniform API result wrapper and the transient notification type.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Optional, TypeVar

from .enums import NotificationLevel

T = TypeVar("T")


@dataclass
class ApiResponse(Generic[T]):
    """Result of a single backend call"""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def ok(cls, data: Optional[T] = None, status_code: Optional[int] = None) -> "ApiResponse[T]":
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, error: str, status_code: Optional[int] = None) -> "ApiResponse[T]":
        return cls(success=False, error=error, status_code=status_code)


@dataclass
class UploadedFile:
    """A file picked by the user, held in memory until it is uploaded"""
    filename: str
    content_type: str
    content: bytes = b""

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_pdf(self) -> bool:
        return self.content_type == "application/pdf"


@dataclass
class Notification:
    """A transient, passive message for the user ("toast")"""
    level: NotificationLevel
    title: str
    description: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "title": self.title,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Notification":
        return cls(
            level=NotificationLevel(data.get("level", NotificationLevel.INFO.value)),
            title=data.get("title", ""),
            description=data.get("description"),
        )
