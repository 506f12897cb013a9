"""Build a :class:`FormatConfig` from a user's column-mapping choices.

When an upload does not match a built-in format, the user maps each canonical
field to one of the staged file's headers. :func:`build_format_config` turns
those choices into an ordinary ``FormatConfig`` so that the confirmed import
goes through exactly the same parser as the registered formats, and so the
result can be saved on the account for the next upload.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, TypeAlias

from pydantic import ValidationError

from .models import (
    AbsoluteWithType,
    ColumnMappings,
    ColumnReference,
    DateFormat,
    FormatConfig,
    NormalizeLineEndings,
    RemoveEmptyRows,
    SeparateColumns,
    SignedAmount,
    SyntheticReference,
)

# Date layouts offered to the user, in display order.
DATE_FORMATS: tuple[str, ...] = (
    "MM/DD/YYYY",
    "M/D/YYYY",
    "YYYY-MM-DD",
    "DD/MM/YYYY",
    "MM-DD-YYYY",
)

AmountStyle: TypeAlias = Literal["signed", "separate", "withType"]


class MappingError(ValueError):
    """The submitted mapping is incomplete or references unknown columns."""

    def __init__(self, problems: Sequence[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


@dataclass(frozen=True, slots=True)
class ColumnMappingSelection:
    """Raw column choices as submitted by the mapping form.

    Empty strings mean "not selected" and are treated like ``None``.
    """

    date_column: str | None
    counterparty_column: str | None
    date_format: str = "MM/DD/YYYY"
    amount_style: AmountStyle = "signed"
    amount_column: str | None = None
    invert_amount: bool = False
    debit_column: str | None = None
    credit_column: str | None = None
    type_column: str | None = None
    debit_value: str | None = "Debit"
    reference_column: str | None = None
    address_column: str | None = None


def _blank(v: str | None) -> str | None:
    if v is None:
        return None
    s = v.strip()
    return s or None


def build_format_config(
    selection: ColumnMappingSelection, headers: Sequence[str]
) -> FormatConfig:
    """Validate ``selection`` against ``headers`` and return a FormatConfig.

    Raises :class:`MappingError` listing every problem found (missing required
    choices, columns that are not among ``headers``, unknown date format).
    """

    header_set = set(headers)
    problems: list[str] = []

    def required(label: str, value: str | None) -> str:
        col = _blank(value)
        if col is None:
            problems.append(f"{label} column is required")
            return ""
        if col not in header_set:
            problems.append(f"{label} column {col!r} is not in the file")
        return col

    def optional(label: str, value: str | None) -> str | None:
        col = _blank(value)
        if col is not None and col not in header_set:
            problems.append(f"{label} column {col!r} is not in the file")
        return col

    date_col = required("Date", selection.date_column)
    payee_col = required("Counterparty", selection.counterparty_column)
    address_col = optional("Address", selection.address_column)
    reference_col = optional("Reference number", selection.reference_column)

    if selection.date_format not in DATE_FORMATS:
        problems.append(f"unsupported date format {selection.date_format!r}")

    amount: SignedAmount | SeparateColumns | AbsoluteWithType | None = None
    match selection.amount_style:
        case "signed":
            amount = SignedAmount(
                column=required("Amount", selection.amount_column),
                invert=selection.invert_amount,
            )
        case "separate":
            amount = SeparateColumns(
                debit_column=required("Debit", selection.debit_column),
                credit_column=required("Credit", selection.credit_column),
            )
        case "withType":
            amount_col = required("Amount", selection.amount_column)
            type_col = required("Type", selection.type_column)
            debit_value = _blank(selection.debit_value)
            if debit_value is None:
                problems.append("debit indicator value is required")
            else:
                amount = AbsoluteWithType(
                    amount_column=amount_col, type_column=type_col, debit_value=debit_value
                )
        case other:
            problems.append(f"unknown amount style {other!r}")

    if problems:
        raise MappingError(problems)

    try:
        return FormatConfig(
            expected_headers=tuple(headers),
            column_mappings=ColumnMappings(
                date=date_col, counterparty_name=payee_col, address=address_col
            ),
            amount_handling=amount,
            reference_number_strategy=(
                ColumnReference(column=reference_col) if reference_col else SyntheticReference()
            ),
            date_format=DateFormat(pattern=selection.date_format),
            preprocessing=(NormalizeLineEndings(), RemoveEmptyRows()),
        )
    except ValidationError as exc:
        raise MappingError([str(e["msg"]) for e in exc.errors()]) from exc


__all__ = [
    "DATE_FORMATS",
    "AmountStyle",
    "ColumnMappingSelection",
    "MappingError",
    "build_format_config",
]
