"""
Jinja2 templates, display filters and flash messages.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

from ..core.enums import CATEGORY_LABELS, DOC_TYPE_LABELS
from ..core.formatters import (
    category_label,
    doc_type_label,
    format_currency,
    format_date,
    format_file_size,
    or_dash,
)
from ..core.types import Notification

WEB_DIR = Path(__file__).parent
TEMPLATES_DIR = WEB_DIR / "templates"
STATIC_DIR = WEB_DIR / "static"

FLASH_KEY = "_flashes"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters.update(
    currency=format_currency,
    date=format_date,
    file_size=format_file_size,
    category_label=category_label,
    doc_type_label=doc_type_label,
    or_dash=or_dash,
)
templates.env.globals.update(
    CATEGORY_LABELS={c.value: label for c, label in CATEGORY_LABELS.items()},
    DOC_TYPE_LABELS={d.value: label for d, label in DOC_TYPE_LABELS.items()},
)


def flash(request: Request, notification: Notification) -> None:
    """Keep a notification in the session until the next rendered page."""
    flashes = list(request.session.get(FLASH_KEY, []))
    flashes.append(notification.to_dict())
    request.session[FLASH_KEY] = flashes


def pop_flashes(request: Request) -> List[Notification]:
    return [Notification.from_dict(item) for item in request.session.pop(FLASH_KEY, [])]


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
):
    """Render a page together with the notifications waiting for it."""
    ctx = {"notifications": pop_flashes(request)}
    ctx.update(context or {})
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)
