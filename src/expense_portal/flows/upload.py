"""
Upload-and-extract flow.

idle -> file_selected -> uploading -> preview -> saving -> idle

The backend extracts candidate fields from the uploaded document; nothing
is saved until the user confirms the (possibly corrected) preview form.
"""
from typing import Any, Optional

import structlog

from ..api.client import ExpenseApiClient, expense_from_response
from ..api.models import Expense
from ..core.enums import UploadState
from ..core.notifications import Notifier
from ..core.types import UploadedFile
from ..core.validators import MAX_UPLOAD_BYTES, validate_upload_file
from .forms import Callback, ExpenseForm, run_callback

logger = structlog.get_logger()

PARSE_SUCCESS = "הקובץ נבדק בהצלחה - אנא בדוק את הפרטים המחולצים"
PARSE_FAILED = "לא ניתן לעבד את הקובץ"
PARSE_UNEXPECTED = "אירעה שגיאה בעת עיבוד הקובץ"
SAVE_SUCCESS = "החשבונית נשמרה במערכת בהצלחה"
SAVE_FAILED = "לא ניתן לשמור את החשבונית"
INVALID_DATE = "תאריך לא תקין"


class UploadFlow:
    """
    State of one invoice upload.

    Every operation returns False (and pushes an error notification) when
    it is refused or fails; the flow then stays in, or returns to, the
    last interactive state.
    """

    def __init__(
        self,
        client: ExpenseApiClient,
        notifier: Optional[Notifier] = None,
        on_success: Optional[Callback] = None,
        max_bytes: int = MAX_UPLOAD_BYTES,
    ):
        self.client = client
        self.notifier = notifier or Notifier()
        self.on_success = on_success
        self.max_bytes = max_bytes

        self.state = UploadState.IDLE
        self.file: Optional[UploadedFile] = None
        self.form: Optional[ExpenseForm] = None
        self.saved_expense: Optional[Expense] = None

    @property
    def is_uploading(self) -> bool:
        return self.state == UploadState.UPLOADING

    @property
    def is_saving(self) -> bool:
        return self.state == UploadState.SAVING

    @property
    def is_busy(self) -> bool:
        return self.is_uploading or self.is_saving

    def select_file(self, file: UploadedFile) -> bool:
        """Accept a PDF/JPEG/PNG file up to the size limit; rejections keep the current file."""
        if self.is_busy:
            return False

        valid, error = validate_upload_file(file.content_type, file.size, self.max_bytes)
        if not valid:
            logger.info("File rejected", filename=file.filename, content_type=file.content_type, size=file.size)
            self.notifier.error(error)
            return False

        self.file = file
        self.form = None
        self.state = UploadState.FILE_SELECTED
        return True

    def clear_file(self) -> bool:
        if self.is_uploading:
            return False
        self.file = None
        self.form = None
        self.state = UploadState.IDLE
        return True

    async def upload(self) -> bool:
        """Send the selected file for extraction and open the preview form."""
        if self.file is None or self.is_busy:
            return False

        self.state = UploadState.UPLOADING
        try:
            response = await self.client.parse_invoice(self.file)
        except Exception as e:
            logger.exception("Invoice parsing crashed", filename=self.file.filename, error=str(e))
            self.state = UploadState.FILE_SELECTED
            self.notifier.error(PARSE_UNEXPECTED)
            return False

        if not response.success or response.data is None:
            self.state = UploadState.FILE_SELECTED
            self.notifier.error(response.error or PARSE_FAILED)
            return False

        self.form = ExpenseForm.from_extracted(response.data.extracted)
        self.state = UploadState.PREVIEW
        logger.info("Invoice parsed", filename=self.file.filename)
        self.notifier.success(PARSE_SUCCESS)
        return True

    def restore_preview(self, form: ExpenseForm, file: Optional[UploadedFile] = None) -> None:
        """Re-enter the preview state with a previously extracted form."""
        self.file = file
        self.form = form
        self.state = UploadState.PREVIEW

    def update_field(self, name: str, value: Any) -> None:
        if self.form is None or self.state != UploadState.PREVIEW:
            raise ValueError("No invoice preview to edit")
        self.form.update(name, value)

    async def save(self) -> bool:
        """Save the confirmed preview as a new expense."""
        if self.form is None or self.state != UploadState.PREVIEW:
            return False

        valid, error = self.form.validate()
        if not valid:
            self.notifier.error(error)
            return False

        try:
            data = self.form.to_save_data()
        except ValueError:
            self.notifier.error(INVALID_DATE)
            return False

        self.state = UploadState.SAVING
        try:
            response = await self.client.save_invoice(data)
        except Exception as e:
            logger.exception("Invoice save crashed", error=str(e))
            self.state = UploadState.PREVIEW
            self.notifier.error(SAVE_FAILED)
            return False

        if not response.success:
            self.state = UploadState.PREVIEW
            self.notifier.error(response.error or SAVE_FAILED)
            return False

        self.saved_expense = expense_from_response(response)
        logger.info(
            "Invoice saved",
            expense_id=self.saved_expense.id if self.saved_expense else None,
        )
        self.file = None
        self.form = None
        self.state = UploadState.IDLE
        self.notifier.success(SAVE_SUCCESS)
        await run_callback(self.on_success)
        return True

    def cancel(self) -> bool:
        """Discard the preview and the selected file."""
        if self.state != UploadState.PREVIEW:
            return False
        self.file = None
        self.form = None
        self.state = UploadState.IDLE
        return True
