"""
Unit Tests - Command-line client
"""
import json
from functools import partial

import pytest
import typer
from typer.testing import CliRunner

from expense_portal import cli
from expense_portal.api.client import ExpenseApiClient
from expense_portal.core.storage import AUTH_TOKEN_KEY, USER_KEY, FileStorage

from ..conftest import TEST_EMAIL, TEST_PASSWORD, TEST_TOKEN

runner = CliRunner()


@pytest.fixture
def session_file(tmp_path):
    return tmp_path / "session.json"


@pytest.fixture
def cli_env(monkeypatch, settings, backend, session_file):
    cli_settings = settings.model_copy(update={"CLI_SESSION_FILE": session_file})
    monkeypatch.setattr(cli, "get_settings", lambda: cli_settings)
    monkeypatch.setattr(cli, "ExpenseApiClient", partial(ExpenseApiClient, transport=backend.transport))
    return backend


@pytest.fixture
def logged_in(cli_env, session_file):
    storage = FileStorage(session_file)
    storage.set_item(AUTH_TOKEN_KEY, TEST_TOKEN)
    storage.set_item(USER_KEY, json.dumps({"id": "u-1", "email": TEST_EMAIL}))
    return cli_env


class TestParseAssignments:
    """Tests for --set field=value parsing"""

    @pytest.mark.unit
    def test_pairs(self):
        assert cli.parse_assignments(["amount_after_vat=117", "service_desc=a=b"]) == [
            ("amount_after_vat", "117"),
            ("service_desc", "a=b"),
        ]

    @pytest.mark.unit
    @pytest.mark.parametrize("item", ["amount", "=5"])
    def test_malformed(self, item):
        with pytest.raises(typer.BadParameter):
            cli.parse_assignments([item])


class TestSessionCommands:
    """Tests for login, whoami and logout"""

    @pytest.mark.unit
    def test_whoami_without_session(self, cli_env):
        result = runner.invoke(cli.app, ["whoami"])
        assert result.exit_code == 1
        assert cli.NOT_LOGGED_IN in result.output

    @pytest.mark.unit
    def test_login_persists_session(self, cli_env, session_file):
        result = runner.invoke(cli.app, ["login", "--email", TEST_EMAIL, "--password", TEST_PASSWORD])

        assert result.exit_code == 0
        stored = json.loads(session_file.read_text(encoding="utf-8"))
        assert stored[AUTH_TOKEN_KEY] == TEST_TOKEN

        result = runner.invoke(cli.app, ["whoami"])
        assert result.exit_code == 0
        assert TEST_EMAIL in result.output

    @pytest.mark.unit
    def test_login_failure(self, cli_env, session_file):
        result = runner.invoke(cli.app, ["login", "--email", TEST_EMAIL, "--password", "wrong"])
        assert result.exit_code == 1
        assert "Invalid credentials" in result.output
        assert not session_file.exists()

    @pytest.mark.unit
    def test_logout_clears_session(self, logged_in, session_file):
        result = runner.invoke(cli.app, ["logout"])
        assert result.exit_code == 0
        assert json.loads(session_file.read_text(encoding="utf-8")) == {}


class TestExpenseCommands:
    """Tests for list, set-category, delete and upload"""

    @pytest.mark.unit
    def test_commands_require_login(self, cli_env):
        result = runner.invoke(cli.app, ["list"])
        assert result.exit_code == 1
        assert cli_env.requests == []

    @pytest.mark.unit
    def test_list_sends_only_given_filters(self, logged_in):
        result = runner.invoke(cli.app, ["list", "--category", "FOOD", "--min", "100"])

        assert result.exit_code == 0
        params = dict(logged_in.requests_to("GET", "/expenses")[0].url.params)
        assert params == {"category": "FOOD", "min": "100", "page": "1", "pageSize": "20"}

    @pytest.mark.unit
    def test_set_category(self, logged_in):
        result = runner.invoke(cli.app, ["set-category", "e2", "it"])
        assert result.exit_code == 0
        assert logged_in.expenses["e2"]["category"] == "IT"

    @pytest.mark.unit
    def test_set_category_unknown(self, logged_in):
        result = runner.invoke(cli.app, ["set-category", "e2", "TOYS"])
        assert result.exit_code == 2
        assert logged_in.requests == []

    @pytest.mark.unit
    def test_delete_with_yes(self, logged_in):
        result = runner.invoke(cli.app, ["delete", "e1", "--yes"])

        assert result.exit_code == 0
        assert len(logged_in.requests_to("DELETE", "/expenses/e1")) == 1
        assert "e1" not in logged_in.expenses

    @pytest.mark.unit
    def test_delete_declined(self, logged_in):
        result = runner.invoke(cli.app, ["delete", "e1"], input="n\n")

        assert result.exit_code == 1
        assert logged_in.requests == []
        assert "e1" in logged_in.expenses

    @pytest.mark.unit
    def test_delete_backend_failure(self, logged_in):
        logged_in.override("DELETE", "/expenses/e1", 500, {"error": "locked"})

        result = runner.invoke(cli.app, ["delete", "e1", "--yes"])

        assert result.exit_code == 1
        assert "locked" in result.output

    @pytest.mark.unit
    def test_upload_with_corrections(self, logged_in, tmp_path):
        invoice = tmp_path / "invoice.pdf"
        invoice.write_bytes(b"%PDF-1.4 test")

        result = runner.invoke(cli.app, ["upload", str(invoice), "--set", "amount_after_vat=200", "--yes"])

        assert result.exit_code == 0
        body = json.loads(logged_in.requests_to("POST", "/invoices/save")[0].content)
        assert body["amountAfterVat"] == 200
        assert body["transactionDate"] == "2025-01-15T00:00:00.000Z"

    @pytest.mark.unit
    def test_upload_rejects_unsupported_file(self, logged_in, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("not an invoice")

        result = runner.invoke(cli.app, ["upload", str(notes), "--yes"])

        assert result.exit_code == 1
        assert logged_in.requests == []

    @pytest.mark.unit
    def test_upload_unknown_field(self, logged_in, tmp_path):
        invoice = tmp_path / "invoice.png"
        invoice.write_bytes(b"\x89PNG")

        result = runner.invoke(cli.app, ["upload", str(invoice), "--set", "color=red", "--yes"])

        assert result.exit_code == 1
        assert logged_in.requests_to("POST", "/invoices/save") == []
