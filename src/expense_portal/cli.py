"""
Expense Portal CLI

Command-line client for the expense backend. The session token is kept in
a local file so it survives between invocations.

Usage:
    expense-portal login --email me@example.com
    expense-portal upload invoice.pdf
    expense-portal list --category FOOD --min 100
    expense-portal delete <id>
    expense-portal serve --port 8000
"""
import asyncio
import mimetypes
from pathlib import Path
from typing import List, Optional, Tuple

import aiofiles
import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .api.client import ExpenseApiClient
from .api.models import ExpenseFilters
from .config import Settings, get_settings
from .core.enums import CATEGORY_LABELS, NotificationLevel
from .core.formatters import category_label, doc_type_label, format_currency, format_date, or_dash
from .core.notifications import Notifier
from .core.storage import FileStorage
from .core.types import Notification, UploadedFile
from .flows.expenses import ExpenseList, filters_from_mapping
from .flows.forms import ExpenseForm
from .flows.upload import UploadFlow
from .logging_config import configure_logging
from .session.forms import LoginForm, RegisterForm
from .session.store import SessionStore

app = typer.Typer(
    name="expense-portal",
    help="לקוח שורת פקודה למערכת ניהול ההוצאות",
    add_completion=False,
)

console = Console()

LEVEL_STYLES = {
    NotificationLevel.SUCCESS: ("green", "✓"),
    NotificationLevel.ERROR: ("red", "✗"),
    NotificationLevel.INFO: ("blue", "i"),
}

NOT_LOGGED_IN = "לא מחובר - הרץ תחילה: expense-portal login"


def print_notification(notification: Notification) -> None:
    style, mark = LEVEL_STYLES[notification.level]
    line = f"[{style}]{mark} {notification.title}[/{style}]"
    if notification.description:
        line += f" [dim]{notification.description}[/dim]"
    console.print(line)


def build_session(settings: Optional[Settings] = None) -> Tuple[Settings, SessionStore]:
    """Settings plus a session store backed by the CLI session file."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    client = ExpenseApiClient(
        FileStorage(settings.CLI_SESSION_FILE),
        base_url=settings.API_BASE_URL,
        timeout=settings.REQUEST_TIMEOUT,
    )
    return settings, SessionStore(client, notifier=Notifier(on_push=print_notification))


def require_login(store: SessionStore) -> None:
    if not store.is_authenticated:
        console.print(f"[red]✗ {NOT_LOGGED_IN}[/red]")
        raise typer.Exit(1)


def parse_assignments(assignments: List[str]) -> List[Tuple[str, str]]:
    """Split "field=value" options."""
    pairs = []
    for item in assignments:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"expected field=value, got {item!r}", param_hint="--set")
        pairs.append((name.strip(), value))
    return pairs


async def read_upload(path: Path) -> UploadedFile:
    async with aiofiles.open(path, "rb") as f:
        content = await f.read()
    content_type, _ = mimetypes.guess_type(path.name)
    return UploadedFile(filename=path.name, content_type=content_type or "", content=content)


def preview_table(form: ExpenseForm) -> Table:
    table = Table(title="פרטים שחולצו")
    table.add_column("שדה", style="cyan")
    table.add_column("ערך", style="green")
    table.add_row("שם העסק (business_name)", or_dash(form.business_name))
    table.add_row("ח\"פ (business_id)", or_dash(form.business_id))
    table.add_row("מספר חשבונית (invoice_number)", or_dash(form.invoice_number))
    table.add_row("תאריך (transaction_date)", or_dash(form.transaction_date))
    table.add_row("לפני מע״מ (amount_before_vat)", format_currency(form.amount_before_vat))
    table.add_row("אחרי מע״מ (amount_after_vat)", format_currency(form.amount_after_vat))
    table.add_row("סוג מסמך (doc_type)", doc_type_label(form.doc_type))
    table.add_row("תיאור (service_desc)", or_dash(form.service_desc))
    return table


# =============================================================================
# Session commands
# =============================================================================

@app.command("login")
def login(
    email: str = typer.Option(..., "--email", "-e", prompt="אימייל", help="כתובת אימייל"),
    password: str = typer.Option(..., "--password", "-p", prompt="סיסמה", hide_input=True, help="סיסמה"),
):
    """Log in and keep the session for later commands."""
    _, store = build_session()
    result = asyncio.run(LoginForm(store).submit(email, password))
    if not result.success:
        raise typer.Exit(1)


@app.command("register")
def register(
    email: str = typer.Option(..., "--email", "-e", prompt="אימייל", help="כתובת אימייל"),
    password: str = typer.Option(..., "--password", "-p", prompt="סיסמה", hide_input=True, help="סיסמה"),
    confirm_password: str = typer.Option(
        ..., "--confirm-password", prompt="אימות סיסמה", hide_input=True, help="אימות סיסמה"
    ),
):
    """Create an account and log in with it."""
    _, store = build_session()
    result = asyncio.run(RegisterForm(store).submit(email, password, confirm_password))
    if not result.success:
        raise typer.Exit(1)


@app.command("logout")
def logout():
    """Forget the stored session."""
    _, store = build_session()
    store.logout()


@app.command("whoami")
def whoami():
    """Show the logged-in user."""
    _, store = build_session()
    require_login(store)
    console.print(f"[cyan]{store.user.email}[/cyan] [dim]({store.user.id})[/dim]")


# =============================================================================
# Invoices
# =============================================================================

@app.command("upload")
def upload(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="קובץ PDF/JPG/PNG"),
    assignments: List[str] = typer.Option(
        [], "--set", "-s", help="תיקון שדה לפני שמירה, למשל amount_after_vat=117"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="שמור ללא אישור"),
):
    """Upload an invoice, review the extracted fields and save it."""
    settings, store = build_session()
    require_login(store)
    corrections = parse_assignments(assignments)

    async def run() -> bool:
        flow = UploadFlow(store.client, store.notifier, max_bytes=settings.max_upload_bytes)
        if not flow.select_file(await read_upload(file)):
            return False

        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
            progress.add_task("מעלה ומעבד...", total=None)
            uploaded = await flow.upload()
        if not uploaded:
            return False

        for name, value in corrections:
            try:
                flow.update_field(name, value)
            except ValueError as e:
                console.print(f"[red]✗ {e}[/red]")
                return False

        console.print(preview_table(flow.form))
        if not yes and not typer.confirm("לשמור את החשבונית?", default=True):
            flow.cancel()
            return True

        saved = await flow.save()
        if saved and flow.saved_expense:
            console.print(f"[dim]id: {flow.saved_expense.id}[/dim]")
        return saved

    if not asyncio.run(run()):
        raise typer.Exit(1)


# =============================================================================
# Expenses
# =============================================================================

@app.command("list")
def list_expenses(
    date_from: Optional[str] = typer.Option(None, "--from", help="מתאריך (YYYY-MM-DD)"),
    date_to: Optional[str] = typer.Option(None, "--to", help="עד תאריך (YYYY-MM-DD)"),
    min_amount: Optional[float] = typer.Option(None, "--min", help="סכום מינימלי"),
    max_amount: Optional[float] = typer.Option(None, "--max", help="סכום מקסימלי"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="קטגוריה: " + ", ".join(c.value for c in CATEGORY_LABELS)),
    business: Optional[str] = typer.Option(None, "--business", "-b", help="שם עסק"),
    page: int = typer.Option(1, "--page", min=1, help="עמוד"),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1, help="גודל עמוד"),
):
    """List expenses, optionally filtered."""
    settings, store = build_session()
    require_login(store)

    filters: ExpenseFilters = filters_from_mapping({
        "from": date_from,
        "to": date_to,
        "min": min_amount,
        "max": max_amount,
        "category": category,
        "business": business,
    })
    expenses = ExpenseList(
        store.client,
        store.notifier,
        filters=filters,
        page=page,
        page_size=page_size or settings.DEFAULT_PAGE_SIZE,
    )
    if not asyncio.run(expenses.load()):
        raise typer.Exit(1)

    if not expenses.items:
        console.print("[dim]אין הוצאות להצגה[/dim]")
        return

    table = Table(title=f"{expenses.total_count} הוצאות נמצאו")
    table.add_column("ID", style="dim")
    table.add_column("שם עסק", style="cyan")
    table.add_column("תאריך")
    table.add_column("לפני מע״מ", justify="right")
    table.add_column("אחרי מע״מ", justify="right", style="bold")
    table.add_column("מספר חשבונית")
    table.add_column("סוג מסמך")
    table.add_column("קטגוריה", style="green")
    for expense in expenses.items:
        table.add_row(
            expense.id,
            or_dash(expense.business_name),
            format_date(expense.transaction_date),
            format_currency(expense.amount_before_vat),
            format_currency(expense.amount_after_vat),
            or_dash(expense.invoice_number),
            doc_type_label(expense.doc_type.value),
            category_label(expense.category.value),
        )
    console.print(table)
    console.print(f"[dim]עמוד {expenses.page} מתוך {expenses.total_pages}[/dim]")


@app.command("set-category")
def set_category(
    expense_id: str = typer.Argument(..., help="מזהה ההוצאה"),
    category: str = typer.Argument(..., help="קטגוריה: " + ", ".join(c.value for c in CATEGORY_LABELS)),
):
    """Reassign the category of an expense."""
    _, store = build_session()
    require_login(store)
    expenses = ExpenseList(store.client, store.notifier, refresh_after_mutation=False)
    try:
        changed = asyncio.run(expenses.change_category(expense_id, category.upper()))
    except ValueError:
        raise typer.BadParameter(f"unknown category {category!r}", param_hint="CATEGORY")
    if not changed:
        raise typer.Exit(1)


@app.command("delete")
def delete(
    expense_id: str = typer.Argument(..., help="מזהה ההוצאה"),
    yes: bool = typer.Option(False, "--yes", "-y", help="מחק ללא אישור"),
):
    """Delete an expense after confirmation."""
    _, store = build_session()
    require_login(store)
    expenses = ExpenseList(store.client, store.notifier, refresh_after_mutation=False)

    def confirm(message: str) -> bool:
        return yes or typer.confirm(message, default=False)

    if not asyncio.run(expenses.delete(expense_id, confirm)):
        raise typer.Exit(1)


# =============================================================================
# Web client
# =============================================================================

@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="כתובת האזנה"),
    port: int = typer.Option(8000, "--port", "-p", help="פורט"),
    reload: bool = typer.Option(False, "--reload", help="טעינה מחדש בשינוי קוד"),
):
    """Run the web client."""
    import uvicorn

    settings = get_settings()
    console.print(Panel.fit(
        "[bold]Expense Portal[/bold]\n"
        f"http://{host}:{port}\n"
        f"Backend: {settings.API_BASE_URL}",
        border_style="blue",
    ))
    uvicorn.run(
        "expense_portal.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def main():
    app()


if __name__ == "__main__":
    main()
