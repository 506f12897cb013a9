"""Parse a bank CSV export with a :class:`FormatConfig`.

``parse_with_config`` is the full-pipeline entry point:

1. strip a UTF-8 BOM and run the format's preprocessing steps;
2. read the first line as the header row and compare it to
   ``expected_headers`` (a difference is reported as a :class:`HeaderMismatch`
   diagnostic, never raised);
3. if every column the format needs is present, parse each data line into a
   :class:`~statement_import.ctv.StatementRow`.

Row-level problems (bad date, missing payee, unparseable amount) are
collected as ``"Row N: <message>"`` strings; the remaining rows still parse.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from .csv_line import parse_csv_line
from .ctv import StatementRow
from .formats.models import (
    AbsoluteWithType,
    AmountHandling,
    ColumnReference,
    FormatConfig,
    ReferenceNumberStrategy,
    SeparateColumns,
    SignedAmount,
)
from .logging_setup import get_logger
from .preprocessors import normalize_line_endings, run_preprocessing_pipeline, strip_bom

_logger = get_logger("statement_import.parsing")

_DATE_TOKEN_RE = re.compile(r"YYYY|YY|MM|M|DD|D")
_DATE_TOKENS = {"YYYY": "%Y", "YY": "%y", "MM": "%m", "M": "%m", "DD": "%d", "D": "%d"}


class RowError(ValueError):
    """A single data row could not be converted; reported, not raised."""


@dataclass(frozen=True, slots=True)
class HeaderMismatch:
    """Parsed header row differs from the format's ``expected_headers``.

    ``missing`` lists the columns the format actually needs that are absent;
    when it is empty the difference is cosmetic and rows were still parsed.
    """

    expected: tuple[str, ...]
    actual: tuple[str, ...]
    missing: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ParseResult:
    rows: list[StatementRow]
    errors: list[str]
    headers: tuple[str, ...] = ()
    header_mismatch: HeaderMismatch | None = None
    skipped: int = 0

    @property
    def success(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Field-level helpers
# ---------------------------------------------------------------------------


def to_decimal(raw: str | None) -> Decimal:
    """Parse a bank amount such as ``-1,000.00``, ``$54.32`` or ``($89.99)``."""

    if raw is None:
        raise RowError("Missing amount")
    s = raw.strip()
    if not s:
        raise RowError("Missing amount")
    negative = False

    # Strip leading sign, currency symbol and surrounding parentheses until
    # stable so any ordering like "-($1,234.56)" is accepted.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s.startswith("$"):
            s = s[1:].lstrip()
            changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    s = s.replace(",", "").replace(" ", "")
    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise RowError(f'Invalid amount "{raw}"') from exc
    if not d.is_finite():
        raise RowError(f'Invalid amount "{raw}"')
    return -abs(d) if negative else d


def _strptime_format(pattern: str) -> str:
    pattern = pattern.upper().replace("%", "%%")
    return _DATE_TOKEN_RE.sub(lambda m: _DATE_TOKENS[m.group(0)], pattern)


def parse_date(value: str, pattern: str) -> date:
    """Parse ``value`` laid out as ``pattern`` (``MM/DD/YYYY``, ``YYYY-MM-DD``...)."""

    try:
        return datetime.strptime(value.strip(), _strptime_format(pattern)).date()
    except ValueError as exc:
        raise RowError(f'Date "{value}" does not match format "{pattern}"') from exc


def parse_amount(values: Mapping[str, str], handling: AmountHandling) -> Decimal:
    """Derive a signed amount (debits negative) using ``handling``."""

    match handling:
        case SignedAmount(column=column, invert=invert):
            amount = to_decimal(values.get(column, ""))
            return -amount if invert else amount
        case SeparateColumns(debit_column=debit_col, credit_column=credit_col):
            debit_raw = values.get(debit_col, "")
            credit_raw = values.get(credit_col, "")
            if not debit_raw and not credit_raw:
                raise RowError("Missing amount")
            debit = to_decimal(debit_raw) if debit_raw else Decimal(0)
            if debit != 0:
                return -abs(debit)
            credit = to_decimal(credit_raw) if credit_raw else Decimal(0)
            return abs(credit)
        case AbsoluteWithType(amount_column=amount_col, type_column=type_col, debit_value=dv):
            amount = to_decimal(values.get(amount_col, ""))
            is_debit = dv.lower() in values.get(type_col, "").lower()
            return -abs(amount) if is_debit else abs(amount)
    raise ValueError(f"unknown amount handling: {handling!r}")


def synthetic_reference(
    posted_date: date, amount: Decimal, payee: str, row_index: int
) -> str:
    """Stable ``fin_<12 hex>`` id; ``row_index`` keeps identical rows distinct."""

    data = f"{posted_date.isoformat()}|{amount}|{payee}|{row_index}"
    return "fin_" + hashlib.sha256(data.encode("utf-8")).hexdigest()[:12]


def resolve_reference(
    values: Mapping[str, str],
    strategy: ReferenceNumberStrategy,
    *,
    posted_date: date,
    amount: Decimal,
    payee: str,
    row_index: int,
) -> str:
    if isinstance(strategy, ColumnReference):
        ref = values.get(strategy.column, "")
        if not ref:
            raise RowError("Missing reference number")
        return ref
    return synthetic_reference(posted_date, amount, payee, row_index)


# ---------------------------------------------------------------------------
# Row / document parsing
# ---------------------------------------------------------------------------


def _parse_row(
    values: Mapping[str, str], config: FormatConfig, *, idx: int, row_index: int
) -> StatementRow:
    mappings = config.column_mappings

    raw_date = values.get(mappings.date, "")
    if not raw_date:
        raise RowError("Missing date")
    posted_date = parse_date(raw_date, config.date_format.pattern)

    payee = values.get(mappings.counterparty_name, "")
    if not payee:
        raise RowError("Missing counterparty name")

    address = values.get(mappings.address, "") if mappings.address else ""
    amount = parse_amount(values, config.amount_handling)
    reference = resolve_reference(
        values,
        config.reference_number_strategy,
        posted_date=posted_date,
        amount=amount,
        payee=payee,
        row_index=row_index,
    )
    return StatementRow(
        idx=idx,
        posted_date=posted_date,
        reference_number=reference,
        payee=payee,
        address=address,
        amount=amount,
    )


def _row_values(headers: Sequence[str], fields: Sequence[str]) -> dict[str, str]:
    # First occurrence wins for duplicated header names.
    values: dict[str, str] = {}
    for i, name in enumerate(headers):
        if name not in values:
            values[name] = fields[i].strip() if i < len(fields) else ""
    return values


def parse_with_config(content: str, config: FormatConfig) -> ParseResult:
    """Preprocess ``content`` per ``config`` and parse it into statement rows."""

    cleaned = run_preprocessing_pipeline(strip_bom(content), config.preprocessing)
    lines = normalize_line_endings(cleaned).strip().split("\n")

    if len(lines) < 2:
        return ParseResult(
            rows=[],
            errors=["CSV file must have a header row and at least one data row"],
        )

    headers = tuple(parse_csv_line(lines[0]))
    expected = config.expected_headers
    missing = tuple(c for c in dict.fromkeys(config.required_columns()) if c not in headers)

    mismatch: HeaderMismatch | None = None
    if (expected and headers != expected) or missing:
        mismatch = HeaderMismatch(expected=expected, actual=headers, missing=missing)
        _logger.info("header mismatch: expected=%s actual=%s missing=%s", expected, headers, missing)

    if missing:
        return ParseResult(
            rows=[],
            errors=[f"Missing required columns: {', '.join(missing)}"],
            headers=headers,
            header_mismatch=mismatch,
        )

    rows: list[StatementRow] = []
    errors: list[str] = []
    skipped = 0
    for i, raw_line in enumerate(lines[1:], start=1):
        line = raw_line.strip()
        if not line:
            skipped += 1
            continue
        values = _row_values(headers, parse_csv_line(line))
        try:
            rows.append(_parse_row(values, config, idx=len(rows), row_index=i))
        except RowError as exc:
            errors.append(f"Row {i + 1}: {exc}")

    _logger.debug("parsed %d rows (%d errors, %d blank)", len(rows), len(errors), skipped)
    return ParseResult(
        rows=rows,
        errors=errors,
        headers=headers,
        header_mismatch=mismatch,
        skipped=skipped,
    )


__all__ = [
    "HeaderMismatch",
    "ParseResult",
    "RowError",
    "parse_amount",
    "parse_date",
    "parse_with_config",
    "resolve_reference",
    "synthetic_reference",
    "to_decimal",
]
