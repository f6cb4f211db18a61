"""
Expense list, filter panel and row mutations.
"""
import math
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import structlog
from pydantic import ValidationError

from ..api.client import ExpenseApiClient, expense_from_response
from ..api.models import Expense, ExpenseFilters
from ..core.enums import ExpenseCategory
from ..core.notifications import Notifier
from ..ui.primitives import Dialog, Popover
from .forms import Callback, ExpenseForm, parse_amount, run_callback

logger = structlog.get_logger()

FILTER_KEYS = ("from", "to", "min", "max", "category", "business")

DELETE_CONFIRMATION = "האם אתה בטוח שברצונך למחוק את ההוצאה הזו?"
DELETED = "נמחק בהצלחה"
EXPENSE_DELETED = "ההוצאה נמחקה מהמערכת"
DELETE_ERROR = "שגיאה במחיקה"
DELETE_FAILED = "לא ניתן למחוק את ההוצאה"
UPDATED = "עודכן בהצלחה"
EXPENSE_UPDATED = "ההוצאה עודכנה במערכת"
CATEGORY_UPDATED = "הקטגוריה עודכנה"
UPDATE_ERROR = "שגיאה בעדכון"
UPDATE_FAILED = "לא ניתן לעדכן את ההוצאה"
LOAD_ERROR = "שגיאה בטעינת ההוצאות"
INVALID_DATE = "תאריך לא תקין"

FiltersChanged = Callable[[ExpenseFilters], Union[None, Awaitable[None]]]
Confirm = Callable[[str], bool]


def _draft_of(filters: ExpenseFilters) -> Dict[str, Any]:
    return filters.model_dump(by_alias=True, mode="json", exclude_none=True)


class FilterPanel:
    """
    Filter criteria being edited, kept apart from the applied filter.

    Edits go to `draft`; only `apply()` and `reset()` change `applied`.
    """

    def __init__(
        self,
        applied: Optional[ExpenseFilters] = None,
        on_change: Optional[FiltersChanged] = None,
        popover: Optional[Popover] = None,
    ):
        self.applied = applied or ExpenseFilters()
        self.draft: Dict[str, Any] = _draft_of(self.applied)
        self.on_change = on_change
        self.popover = popover or Popover()

    @property
    def has_active_filters(self) -> bool:
        return self.applied.is_active

    def set(self, key: str, value: Any) -> None:
        """Edit one draft criterion; an empty value unsets it."""
        if key not in FILTER_KEYS:
            raise ValueError(f"Unknown filter: {key}")

        if isinstance(value, str):
            value = value.strip()
        if value is None or value == "":
            self.draft.pop(key, None)
            return

        if key in ("min", "max"):
            amount = parse_amount(value)
            if not amount:
                self.draft.pop(key, None)
                return
            value = amount
        elif key == "category":
            value = ExpenseCategory(value).value

        self.draft[key] = value

    async def apply(self) -> ExpenseFilters:
        """Copy the draft into the applied filter and close the panel."""
        self.applied = ExpenseFilters.model_validate(self.draft)
        self.popover.close()
        await self._notify()
        return self.applied

    async def reset(self) -> ExpenseFilters:
        self.draft = {}
        self.applied = ExpenseFilters()
        await self._notify()
        return self.applied

    def sync(self, applied: ExpenseFilters) -> None:
        """Follow a change of the applied filter made elsewhere."""
        if applied != self.applied:
            self.applied = applied
            self.draft = _draft_of(applied)

    async def _notify(self) -> None:
        if self.on_change is None:
            return
        await run_callback(lambda: self.on_change(self.applied))


class EditExpenseForm:
    """Edit dialog for one expense"""

    def __init__(
        self,
        client: ExpenseApiClient,
        expense_id: str,
        form: ExpenseForm,
        notifier: Optional[Notifier] = None,
        dialog: Optional[Dialog] = None,
        on_success: Optional[Callback] = None,
    ):
        self.client = client
        self.expense_id = expense_id
        self.form = form
        self.notifier = notifier or Notifier()
        self.dialog = dialog or Dialog(default_open=True)
        self.on_success = on_success
        self.is_saving = False
        self.saved_expense: Optional[Expense] = None

    def update_field(self, name: str, value: Any) -> None:
        self.form.update(name, value)

    async def save(self) -> bool:
        if self.is_saving:
            return False

        valid, error = self.form.validate()
        if not valid:
            self.notifier.error(error)
            return False

        try:
            data = self.form.to_update_data()
        except ValueError:
            self.notifier.error(INVALID_DATE)
            return False

        self.is_saving = True
        try:
            response = await self.client.update_expense(self.expense_id, data)
        finally:
            self.is_saving = False

        if not response.success:
            self.notifier.error(UPDATE_ERROR, response.error or UPDATE_FAILED)
            return False

        self.saved_expense = expense_from_response(response)
        logger.info("Expense updated", expense_id=self.expense_id)
        self.notifier.success(UPDATED, EXPENSE_UPDATED)
        await run_callback(self.on_success)
        self.dialog.close()
        return True


class ExpenseList:
    """
    One page of expenses under the applied filter.

    Row mutations are tracked by `updating_id` / `deleting_id`; a row with a
    mutation in flight refuses further ones. With `refresh_after_mutation`
    off, a successful mutation leaves reloading to the caller.
    """

    def __init__(
        self,
        client: ExpenseApiClient,
        notifier: Optional[Notifier] = None,
        filters: Optional[ExpenseFilters] = None,
        page: int = 1,
        page_size: int = 20,
        refresh_after_mutation: bool = True,
    ):
        self.client = client
        self.notifier = notifier or Notifier()
        self.filters = filters or ExpenseFilters()
        self.page = max(1, page)
        self.page_size = page_size
        self.refresh_after_mutation = refresh_after_mutation

        self.items: List[Expense] = []
        self.total_count = 0
        self.is_loading = False
        self.updating_id: Optional[str] = None
        self.deleting_id: Optional[str] = None

        self.edit_form: Optional[EditExpenseForm] = None
        self.edit_dialog = Dialog(open=False, on_open_change=self._on_edit_open_change)

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 1
        return max(1, math.ceil(self.total_count / self.page_size))

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    async def load(self) -> bool:
        """Fetch the current page under the applied filter."""
        self.is_loading = True
        try:
            response = await self.client.get_expenses(self.filters, page=self.page, page_size=self.page_size)
        finally:
            self.is_loading = False

        if not response.success or response.data is None:
            self.notifier.error(LOAD_ERROR, response.error)
            return False

        result = response.data
        self.items = list(result.items)
        self.total_count = result.total_count
        self.page = result.page
        self.page_size = result.page_size
        logger.debug("Expenses loaded", count=len(self.items), total=self.total_count, page=self.page)

        # Last rows of the last page went away; step back to the new last page
        if not self.items and self.page > self.total_pages:
            logger.debug("Page out of range", page=self.page, total_pages=self.total_pages)
            self.page = self.total_pages
            return await self.load()
        return True

    async def set_filters(self, filters: ExpenseFilters) -> bool:
        """Apply a new filter; refetches from page 1 only when it differs."""
        if filters == self.filters:
            return False
        self.filters = filters
        self.page = 1
        await self.load()
        return True

    async def go_to_page(self, page: int) -> bool:
        if page < 1 or page > self.total_pages or page == self.page:
            return False
        self.page = page
        return await self.load()

    async def next_page(self) -> bool:
        return await self.go_to_page(self.page + 1)

    async def previous_page(self) -> bool:
        return await self.go_to_page(self.page - 1)

    def find(self, expense_id: str) -> Expense:
        for expense in self.items:
            if expense.id == expense_id:
                return expense
        raise ValueError(f"Expense not found: {expense_id}")

    def is_busy(self, expense_id: str) -> bool:
        return expense_id in (self.updating_id, self.deleting_id)

    async def _refresh(self) -> None:
        if self.refresh_after_mutation:
            await self.load()

    async def change_category(self, expense_id: str, category: str) -> bool:
        """Reassign a category; the row changes only after the server confirms."""
        if self.is_busy(expense_id):
            return False
        category = ExpenseCategory(category)

        self.updating_id = expense_id
        try:
            response = await self.client.update_expense_category(expense_id, category.value)
        finally:
            self.updating_id = None

        if not response.success:
            self.notifier.error(UPDATE_ERROR, response.error or UPDATE_FAILED)
            return False

        logger.info("Expense category changed", expense_id=expense_id, category=category.value)
        self.notifier.success(UPDATED, CATEGORY_UPDATED)
        await self._refresh()
        return True

    def _on_edit_open_change(self, open: bool) -> None:
        self.edit_dialog.set_controlled_open(open)

    def open_edit(self, expense_id: str) -> Optional[EditExpenseForm]:
        """Open the edit dialog pre-filled from a loaded row."""
        if self.is_busy(expense_id):
            return None
        expense = self.find(expense_id)
        self.edit_form = EditExpenseForm(
            self.client,
            expense.id,
            ExpenseForm.from_expense(expense),
            notifier=self.notifier,
            dialog=self.edit_dialog,
            on_success=self._refresh,
        )
        self.edit_dialog.open()
        return self.edit_form

    async def delete(self, expense_id: str, confirm: Confirm) -> bool:
        """Delete a row after the user confirms; a declined prompt sends nothing."""
        if self.is_busy(expense_id):
            return False
        if not confirm(DELETE_CONFIRMATION):
            return False

        self.deleting_id = expense_id
        try:
            response = await self.client.delete_expense(expense_id)
        finally:
            self.deleting_id = None

        if not response.success:
            self.notifier.error(DELETE_ERROR, response.error or DELETE_FAILED)
            return False

        logger.info("Expense deleted", expense_id=expense_id)
        self.notifier.success(DELETED, EXPENSE_DELETED)
        await self._refresh()
        return True


def filters_from_mapping(data: Dict[str, Any]) -> ExpenseFilters:
    """Build filters from query/form values, skipping values that do not parse."""
    panel = FilterPanel()
    for key in FILTER_KEYS:
        if key in data:
            try:
                panel.set(key, data[key])
            except ValueError:
                logger.debug("Ignoring invalid filter value", key=key)
    try:
        return ExpenseFilters.model_validate(panel.draft)
    except ValidationError:
        return ExpenseFilters()
