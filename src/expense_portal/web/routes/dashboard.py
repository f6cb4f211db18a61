"""
Dashboard Routes - invoice upload and expense management

The dashboard is one page with two tabs. Dialogs, the filter popover and
row menus are opened through query parameters; every POST redirects back
(303) so notifications are flashed through the session.
"""
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import RedirectResponse

from ...api.client import ExpenseApiClient
from ...config import Settings
from ...core.notifications import Notifier
from ...core.types import UploadedFile
from ...flows.expenses import (
    DELETE_CONFIRMATION,
    FILTER_KEYS,
    UPDATE_ERROR,
    EditExpenseForm,
    ExpenseList,
    FilterPanel,
    filters_from_mapping,
)
from ...flows.forms import ExpenseForm
from ...flows.upload import UploadFlow
from ...session.store import SessionStore
from ...ui.primitives import Dialog, DropdownMenu, MenuItem, Popover
from ..dependencies import get_api_client, get_notifier, get_settings, require_user
from ..templating import render

logger = structlog.get_logger()
router = APIRouter()

PREVIEW_KEY = "upload_preview"
EDIT_DRAFT_KEY = "edit_draft"
TABS = ("upload", "expenses")
EXPENSES_URL = "/?tab=expenses"
UPLOAD_URL = "/?tab=upload"

EXPENSE_NOT_FOUND = "ההוצאה לא נמצאה"
INVALID_CATEGORY = "קטגוריה לא תקינה"
INVALID_FILTER = "ערך סינון לא תקין"


def _safe_return_to(value: Optional[str], default: str = EXPENSES_URL) -> str:
    s = (value or "").strip()
    if not s:
        return default
    # Keep navigation internal
    if "://" in s or not s.startswith("/") or s.startswith("//"):
        return default
    return s


def _link(base: Dict[str, str], **changes: Any) -> str:
    params = dict(base)
    for key, value in changes.items():
        if value is None:
            params.pop(key, None)
        else:
            params[key] = str(value)
    return "/?" + urlencode(params)


def _row_menu(expense_id: str, open_menu: Optional[str], expenses: ExpenseList) -> DropdownMenu:
    busy = expenses.is_busy(expense_id)
    return DropdownMenu(
        items=[
            MenuItem("edit", "ערוך", disabled=busy),
            MenuItem("delete", "מחק", disabled=busy, destructive=True),
        ],
        default_open=open_menu == expense_id,
    )


@router.get("/")
async def dashboard(
    request: Request,
    tab: str = "upload",
    page: int = 1,
    edit: Optional[str] = None,
    delete: Optional[str] = None,
    menu: Optional[str] = None,
    show_filters: bool = Query(False, alias="filters"),
    store: SessionStore = Depends(require_user),
    client: ExpenseApiClient = Depends(get_api_client),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    if tab not in TABS:
        tab = "upload"

    preview = request.session.get(PREVIEW_KEY)
    context: Dict[str, Any] = {
        "user": store.user,
        "tab": tab,
        "preview": preview,
        "preview_form": ExpenseForm.from_dict(preview["form"]) if preview else None,
        "max_upload_mb": settings.MAX_UPLOAD_MB,
    }

    if tab == "expenses":
        filters = filters_from_mapping(dict(request.query_params))
        expenses = ExpenseList(
            client,
            notifier,
            filters=filters,
            page=page,
            page_size=settings.DEFAULT_PAGE_SIZE,
            refresh_after_mutation=False,
        )
        await expenses.load()
        panel = FilterPanel(applied=filters, popover=Popover(default_open=show_filters))

        base = {"tab": "expenses", **filters.to_query_params()}
        if expenses.page > 1:
            base["page"] = str(expenses.page)

        edit_form = None
        if edit:
            try:
                edit_form = expenses.open_edit(edit)
            except ValueError:
                notifier.error(EXPENSE_NOT_FOUND)
            draft = request.session.pop(EDIT_DRAFT_KEY, None)
            if edit_form and draft and draft.get("id") == edit:
                edit_form.form = ExpenseForm.from_dict(draft.get("form", {}))

        delete_target = None
        if delete:
            try:
                delete_target = expenses.find(delete)
            except ValueError:
                notifier.error(EXPENSE_NOT_FOUND)

        context.update(
            expenses=expenses,
            panel=panel,
            base_query=base,
            current_url=_link(base),
            link=lambda **changes: _link(base, **changes),
            menus={e.id: _row_menu(e.id, menu, expenses) for e in expenses.items},
            edit_form=edit_form,
            edit_dialog=expenses.edit_dialog,
            delete_target=delete_target,
            confirm_dialog=Dialog(default_open=delete_target is not None),
            delete_message=DELETE_CONFIRMATION,
        )

    return render(request, "dashboard.html", context)


# =============================================================================
# Upload
# =============================================================================

@router.post("/upload/parse")
async def upload_parse(
    request: Request,
    file: UploadFile = File(...),
    store: SessionStore = Depends(require_user),
    client: ExpenseApiClient = Depends(get_api_client),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    content = await file.read()
    uploaded = UploadedFile(
        filename=file.filename or "upload",
        content_type=file.content_type or "",
        content=content,
    )

    flow = UploadFlow(client, notifier, max_bytes=settings.max_upload_bytes)
    if flow.select_file(uploaded) and await flow.upload():
        request.session[PREVIEW_KEY] = {
            "filename": uploaded.filename,
            "size": uploaded.size,
            "is_pdf": uploaded.is_pdf,
            "form": flow.form.to_dict(),
        }
    return RedirectResponse(url=UPLOAD_URL, status_code=303)


@router.post("/upload/save")
async def upload_save(
    request: Request,
    store: SessionStore = Depends(require_user),
    client: ExpenseApiClient = Depends(get_api_client),
    notifier: Notifier = Depends(get_notifier),
):
    preview = request.session.get(PREVIEW_KEY)
    if not preview:
        return RedirectResponse(url=UPLOAD_URL, status_code=303)

    submitted = await request.form()
    form = ExpenseForm.from_dict({**preview["form"], **dict(submitted)})

    flow = UploadFlow(client, notifier)
    flow.restore_preview(form)
    if await flow.save():
        request.session.pop(PREVIEW_KEY, None)
    else:
        request.session[PREVIEW_KEY] = {**preview, "form": form.to_dict()}
    return RedirectResponse(url=UPLOAD_URL, status_code=303)


@router.post("/upload/cancel")
async def upload_cancel(
    request: Request,
    store: SessionStore = Depends(require_user),
    client: ExpenseApiClient = Depends(get_api_client),
):
    preview = request.session.pop(PREVIEW_KEY, None)
    if preview:
        flow = UploadFlow(client)
        flow.restore_preview(ExpenseForm.from_dict(preview["form"]))
        flow.cancel()
    return RedirectResponse(url=UPLOAD_URL, status_code=303)


# =============================================================================
# Expenses
# =============================================================================

@router.post("/expenses/filters/apply")
async def apply_filters(
    request: Request,
    store: SessionStore = Depends(require_user),
    notifier: Notifier = Depends(get_notifier),
):
    submitted = await request.form()
    panel = FilterPanel()
    for key in FILTER_KEYS:
        try:
            panel.set(key, submitted.get(key))
        except ValueError:
            notifier.error(INVALID_FILTER)
    applied = await panel.apply()
    logger.debug("Filters applied", filters=applied.to_query_params())
    return RedirectResponse(url=_link({"tab": "expenses", **applied.to_query_params()}), status_code=303)


@router.post("/expenses/filters/reset")
async def reset_filters(store: SessionStore = Depends(require_user)):
    return RedirectResponse(url=EXPENSES_URL, status_code=303)


@router.post("/expenses/{expense_id}/category")
async def change_category(
    expense_id: str,
    category: str = Form(""),
    return_to: str = Form(""),
    store: SessionStore = Depends(require_user),
    client: ExpenseApiClient = Depends(get_api_client),
    notifier: Notifier = Depends(get_notifier),
):
    expenses = ExpenseList(client, notifier, refresh_after_mutation=False)
    try:
        await expenses.change_category(expense_id, category)
    except ValueError:
        notifier.error(UPDATE_ERROR, INVALID_CATEGORY)
    return RedirectResponse(url=_safe_return_to(return_to), status_code=303)


@router.post("/expenses/{expense_id}/edit")
async def edit_expense(
    request: Request,
    expense_id: str,
    store: SessionStore = Depends(require_user),
    client: ExpenseApiClient = Depends(get_api_client),
    notifier: Notifier = Depends(get_notifier),
):
    submitted = dict(await request.form())
    return_to = _safe_return_to(submitted.pop("return_to", None))

    edit_form = EditExpenseForm(client, expense_id, ExpenseForm.from_dict(submitted), notifier)
    if await edit_form.save():
        return RedirectResponse(url=return_to, status_code=303)

    request.session[EDIT_DRAFT_KEY] = {"id": expense_id, "form": edit_form.form.to_dict()}
    separator = "&" if "?" in return_to else "?"
    return RedirectResponse(url=f"{return_to}{separator}{urlencode({'edit': expense_id})}", status_code=303)


@router.post("/expenses/{expense_id}/delete")
async def delete_expense(
    expense_id: str,
    confirmed: str = Form(""),
    return_to: str = Form(""),
    store: SessionStore = Depends(require_user),
    client: ExpenseApiClient = Depends(get_api_client),
    notifier: Notifier = Depends(get_notifier),
):
    expenses = ExpenseList(client, notifier, refresh_after_mutation=False)
    await expenses.delete(expense_id, confirm=lambda message: confirmed == "yes")
    return RedirectResponse(url=_safe_return_to(return_to), status_code=303)
