"""Upload → stage → confirm workflow used by request handlers and the CLI.

The two halves of an import run in separate requests:

- :func:`stage_import` validates the destination, extracts headers and a
  preview, and parks the raw content in a :class:`PendingImportStore`.
- :func:`confirm_import` (or :func:`confirm_with_mapping` when the user built
  a column mapping) re-parses the full content with a :class:`FormatConfig`.
  A successful parse consumes the staged entry; a failed one leaves it in
  place so the user can correct the mapping and retry.

A missing or expired staging entry is reported as ``None``; callers should
ask the user to upload again.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from .accounts import require_account, set_custom_format_config
from .formats.mapping import ColumnMappingSelection, build_format_config
from .formats.models import FormatConfig
from .logging_setup import get_logger
from .parsing import ParseResult, parse_with_config
from .pending_imports import (
    DEFAULT_PREVIEW_ROWS,
    PendingImportStore,
    parse_headers_and_preview,
)

_logger = get_logger("statement_import.api")


def stage_import(
    store: PendingImportStore,
    *,
    csv_content: str,
    account_id: int,
    period: str,
    session: Session | None = None,
    preview_row_count: int = DEFAULT_PREVIEW_ROWS,
) -> str:
    """Stage an upload and return its pending-import id.

    When ``session`` is given the account must exist (``AccountNotFound``).
    Raises ``ValueError`` for a blank period or an upload with no content.
    """

    period = period.strip()
    if not period:
        raise ValueError("Period is required")
    if session is not None:
        require_account(session, account_id)

    preview = parse_headers_and_preview(csv_content, preview_row_count)
    if not preview.headers:
        raise ValueError("The uploaded CSV file is empty")

    import_id = store.create(
        csv_content=csv_content,
        account_id=account_id,
        period=period,
        headers=preview.headers,
        preview_rows=preview.preview_rows,
    )
    _logger.info(
        "staged import %s: account=%s period=%r columns=%d",
        import_id,
        account_id,
        period,
        len(preview.headers),
    )
    return import_id


def confirm_import(
    store: PendingImportStore, import_id: str, *, format_config: FormatConfig
) -> ParseResult | None:
    """Parse the staged content with ``format_config``.

    Returns ``None`` when the entry is unknown or expired. The entry is
    deleted only when the parse produced rows without errors.
    """

    pending = store.get(import_id)
    if pending is None:
        _logger.info("pending import %s not found or expired", import_id)
        return None

    result = parse_with_config(pending.csv_content, format_config)
    if result.success and result.rows:
        store.delete(import_id)
        _logger.info("confirmed import %s: %d rows", import_id, len(result.rows))
    else:
        _logger.info(
            "import %s kept for correction: %d rows, %d errors",
            import_id,
            len(result.rows),
            len(result.errors),
        )
    return result


def confirm_with_mapping(
    store: PendingImportStore,
    import_id: str,
    selection: ColumnMappingSelection,
    *,
    session: Session | None = None,
    save_mapping: bool = False,
) -> ParseResult | None:
    """Build a format from the user's column choices and confirm with it.

    Raises :class:`~statement_import.formats.mapping.MappingError` for an
    invalid selection. With ``save_mapping`` the format is stored on the
    destination account (requires ``session``), but only once it has parsed
    the staged file into rows without errors.
    """

    pending = store.get(import_id)
    if pending is None:
        return None

    if save_mapping and session is None:
        raise ValueError("save_mapping requires a database session")

    config = build_format_config(selection, pending.headers)
    result = confirm_import(store, import_id, format_config=config)
    parsed_ok = result is not None and result.success and bool(result.rows)
    if save_mapping and session is not None and parsed_ok:
        set_custom_format_config(session, pending.account_id, config)
        _logger.info("saved custom format for account %s", pending.account_id)
    return result


__all__ = ["confirm_import", "confirm_with_mapping", "stage_import"]
