# ruff: noqa: I001
"""CLI for the ``statement_import`` package.

Command handlers (``cmd_*``) hold the logic and return an exit status; the
Typer commands below wrap them. Environment variables (``DATABASE_URL``,
``STATEMENT_IMPORT_LOG_LEVEL``, ``STATEMENT_IMPORT_PENDING_TTL_MINUTES``) are
loaded from a local ``.env`` via ``python-dotenv`` before any command runs.
"""

from __future__ import annotations

import json
import sys
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging

if TYPE_CHECKING:
    from .parsing import ParseResult


# ---- Small module-level helpers used by CLI commands -------------------------


def _resolve_ttl() -> timedelta:
    """Pending-import lifetime; ``STATEMENT_IMPORT_PENDING_TTL_MINUTES`` overrides 30."""

    import os

    from .pending_imports import DEFAULT_TTL

    raw = os.getenv("STATEMENT_IMPORT_PENDING_TTL_MINUTES")
    try:
        minutes = float(raw) if raw else None
    except ValueError:
        minutes = None
    if minutes is not None and minutes > 0:
        return timedelta(minutes=minutes)
    return DEFAULT_TTL


def _read_text(csv_path: str) -> str | None:
    """Read an uploaded file as UTF-8, reporting failures on stderr."""

    try:
        with open(csv_path, encoding="utf-8", newline="") as f:
            return f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
    except UnicodeDecodeError as e:
        print(f"Error: {csv_path} is not valid UTF-8: {e}", file=sys.stderr)
    return None


def _print_result(result: ParseResult, *, as_json: bool) -> int:
    """Emit parsed rows on stdout and diagnostics on stderr."""

    mismatch = result.header_mismatch
    if mismatch is not None:
        print(
            "Warning: header mismatch. "
            f"Expected: {', '.join(mismatch.expected) or '(none)'}; "
            f"found: {', '.join(mismatch.actual) or '(none)'}",
            file=sys.stderr,
        )

    for row in result.rows:
        if as_json:
            print(json.dumps(row.as_dict(), ensure_ascii=False))
        else:
            d = row.as_dict()
            print(f"{d['posted_date']}\t{d['reference_number']}\t{d['payee']}\t{d['amount']}")

    for err in result.errors:
        print(f"Error: {err}", file=sys.stderr)
    return 0 if result.success else 1


# ---- Command handlers ----------------------------------------------------------


def cmd_formats() -> int:
    """List the registered format keys with their display names."""

    from .formats.registry import REGISTRY, format_key

    for inst in REGISTRY.institutions:
        for acct in inst.account_types:
            print(f"{format_key(inst.code, acct.code)}\t{inst.name} {acct.name}")
    return 0


def cmd_preview(csv_path: str, *, rows: int = 3) -> int:
    """Print the header row and the first ``rows`` data rows of a CSV."""

    from .csv_line import format_csv_line
    from .pending_imports import parse_headers_and_preview

    content = _read_text(csv_path)
    if content is None:
        return 1
    preview = parse_headers_and_preview(content, rows)
    if not preview.headers:
        print("Error: CSV file is empty", file=sys.stderr)
        return 1
    print(format_csv_line(preview.headers))
    for r in preview.preview_rows:
        print(format_csv_line(r))
    return 0


def cmd_parse(csv_path: str, *, format_key: str, as_json: bool = False) -> int:
    """Parse a CSV with a registered format and print canonical rows."""

    from .formats.registry import FormatNotFound, get_format_config
    from .parsing import parse_with_config

    try:
        config = get_format_config(format_key)
    except FormatNotFound as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    content = _read_text(csv_path)
    if content is None:
        return 1
    return _print_result(parse_with_config(content, config), as_json=as_json)


def cmd_init_db(*, database_url: str | None) -> int:
    from .db.client import create_schema, get_engine

    try:
        create_schema(get_engine(database_url=database_url))
    except Exception as e:
        print(f"Error: failed to initialize database: {e}", file=sys.stderr)
        return 1
    print("Database initialized.")
    return 0


def cmd_add_account(
    *, institution: str, account_type: str, name: str, database_url: str | None
) -> int:
    from .accounts import DuplicateAccountName, create_account
    from .db.client import session_scope
    from .formats.registry import FormatNotFound

    try:
        with session_scope(database_url=database_url) as session:
            account = create_account(
                session,
                institution_code=institution,
                account_type_code=account_type,
                name=name,
            )
            account_id = account.id
    except (FormatNotFound, DuplicateAccountName, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to create account: {e}", file=sys.stderr)
        return 1
    print(f"{account_id}\t{name}")
    return 0


def cmd_accounts(*, database_url: str | None) -> int:
    from .accounts import list_accounts
    from .db.client import session_scope
    from .formats.registry import REGISTRY

    try:
        with session_scope(database_url=database_url) as session:
            for a in list_accounts(session):
                custom = " (custom format)" if a.custom_format_config else ""
                print(
                    f"{a.id}\t{a.name}\t{REGISTRY.institution_name(a.institution_code)} "
                    f"{REGISTRY.account_type_name(a.institution_code, a.account_type_code)}"
                    f"{custom}"
                )
    except Exception as e:
        print(f"Error: failed to list accounts: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_import(
    csv_path: str,
    *,
    account_id: int,
    period: str,
    database_url: str | None,
    assume_yes: bool = False,
    as_json: bool = False,
) -> int:
    """Stage a file, show its preview, and parse it after confirmation.

    The staging store lives only for this process; it exercises the same
    stage/confirm path a web handler uses across two requests.
    """

    from .accounts import AccountNotFound, resolve_account_format
    from .api import confirm_import, stage_import
    from .csv_line import format_csv_line
    from .db.client import session_scope
    from .formats.registry import FormatNotFound
    from .pending_imports import PendingImportStore

    content = _read_text(csv_path)
    if content is None:
        return 1

    store = PendingImportStore(ttl=_resolve_ttl())
    try:
        with session_scope(database_url=database_url) as session:
            import_id = stage_import(
                store,
                csv_content=content,
                account_id=account_id,
                period=period,
                session=session,
            )
            config = resolve_account_format(session, account_id)
    except (AccountNotFound, FormatNotFound, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to stage import: {e}", file=sys.stderr)
        return 1

    pending = store.get(import_id)
    assert pending is not None  # just staged
    print(f"Staged {import_id} for period {pending.period!r}", file=sys.stderr)
    print(format_csv_line(pending.headers), file=sys.stderr)
    for r in pending.preview_rows:
        print(format_csv_line(r), file=sys.stderr)

    if not assume_yes and not typer.confirm("Import this file?", default=True, err=True):
        store.delete(import_id)
        print("Import cancelled.", file=sys.stderr)
        return 1

    result = confirm_import(store, import_id, format_config=config)
    if result is None:
        print("Error: pending import expired; upload the file again.", file=sys.stderr)
        return 1
    return _print_result(result, as_json=as_json)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Import bank statement CSV exports into canonical transaction rows.",
)

# Module-level option objects to satisfy ruff B008 (no calls in defaults).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a bank CSV export",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    "--database-url", help="Override DATABASE_URL (falls back to env var)."
)


@app.command("formats")
def formats_cmd() -> None:
    """List the supported bank formats."""

    raise typer.Exit(cmd_formats())


@app.command("preview")
def preview_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    rows: int = typer.Option(3, min=0, help="Number of data rows to show."),
) -> None:
    """Show the header row and the first few rows of a CSV."""

    raise typer.Exit(cmd_preview(str(csv_path), rows=rows))


@app.command("parse")
def parse_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    format_key: str = typer.Option(..., "--format", help="Format key, e.g. bofa/checking."),
    as_json: bool = typer.Option(False, "--json", help="Emit one JSON object per row."),
) -> None:
    """Parse a CSV with a registered format."""

    raise typer.Exit(cmd_parse(str(csv_path), format_key=format_key, as_json=as_json))


@app.command("init-db")
def init_db_cmd(database_url: Annotated[str | None, DATABASE_URL_OPTION] = None) -> None:
    """Create the accounts table."""

    raise typer.Exit(cmd_init_db(database_url=database_url))


@app.command("add-account")
def add_account_cmd(
    institution: str = typer.Option(..., help="Institution code, e.g. bofa."),
    account_type: str = typer.Option(..., help="Account type code, e.g. checking."),
    name: str = typer.Option(..., help="Unique display name."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Register a destination account."""

    raise typer.Exit(
        cmd_add_account(
            institution=institution,
            account_type=account_type,
            name=name,
            database_url=database_url,
        )
    )


@app.command("accounts")
def accounts_cmd(database_url: Annotated[str | None, DATABASE_URL_OPTION] = None) -> None:
    """List destination accounts."""

    raise typer.Exit(cmd_accounts(database_url=database_url))


@app.command("import")
def import_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    account_id: int = typer.Option(..., help="Destination account id."),
    period: str = typer.Option(..., help='Statement period, e.g. "January 2024".'),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    as_json: bool = typer.Option(False, "--json", help="Emit one JSON object per row."),
) -> None:
    """Stage, preview and import a statement for an account."""

    raise typer.Exit(
        cmd_import(
            str(csv_path),
            account_id=account_id,
            period=period,
            database_url=database_url,
            assume_yes=yes,
            as_json=as_json,
        )
    )


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
