"""Declarative bank CSV format configuration.

A :class:`FormatConfig` is plain data: adding a new bank dialect means adding
a new config instance, never a new parser class. The two strategy fields are
tagged unions discriminated by their ``type`` literal:

- ``amount_handling``: ``signedAmount`` | ``separateColumns`` |
  ``absoluteWithType``
- ``reference_number_strategy``: ``column`` | ``synthetic``

``preprocessing`` is an ordered tuple of step descriptors, likewise tagged by
``type`` (see :mod:`statement_import.preprocessors`).

All models are frozen and reject unknown fields, so a config loaded from JSON
(e.g., a per-account custom format) is validated exactly like a built-in one.
"""

from __future__ import annotations

import re
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_FROZEN = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)


# ---------------------------------------------------------------------------
# Amount handling
# ---------------------------------------------------------------------------


class SignedAmount(BaseModel):
    """Single amount column carrying its own sign."""

    model_config = _FROZEN

    type: Literal["signedAmount"] = "signedAmount"
    column: str
    # Flip the sign when the bank reports debits as positive numbers.
    invert: bool = False


class SeparateColumns(BaseModel):
    """Debit and credit amounts in two columns; one of them is blank per row."""

    model_config = _FROZEN

    type: Literal["separateColumns"] = "separateColumns"
    debit_column: str
    credit_column: str


class AbsoluteWithType(BaseModel):
    """Unsigned amount plus an indicator column naming the direction."""

    model_config = _FROZEN

    type: Literal["absoluteWithType"] = "absoluteWithType"
    amount_column: str
    type_column: str
    debit_value: str = Field(min_length=1)


AmountHandling = Annotated[
    SignedAmount | SeparateColumns | AbsoluteWithType, Field(discriminator="type")
]


# ---------------------------------------------------------------------------
# Reference numbers
# ---------------------------------------------------------------------------


class ColumnReference(BaseModel):
    model_config = _FROZEN

    type: Literal["column"] = "column"
    column: str


class SyntheticReference(BaseModel):
    """Generate ``fin_<hash>`` from date, amount, payee and row position."""

    model_config = _FROZEN

    type: Literal["synthetic"] = "synthetic"


ReferenceNumberStrategy = Annotated[
    ColumnReference | SyntheticReference, Field(discriminator="type")
]


# ---------------------------------------------------------------------------
# Preprocessing steps
# ---------------------------------------------------------------------------


class NormalizeLineEndings(BaseModel):
    model_config = _FROZEN

    type: Literal["normalizeLineEndings"] = "normalizeLineEndings"


class SkipLines(BaseModel):
    model_config = _FROZEN

    type: Literal["skipLines"] = "skipLines"
    count: int = Field(ge=0)


class SkipUntilHeader(BaseModel):
    """Drop everything above the first line matching ``header_pattern``."""

    model_config = _FROZEN

    type: Literal["skipUntilHeader"] = "skipUntilHeader"
    header_pattern: str

    @field_validator("header_pattern")
    @classmethod
    def _pattern_compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid header_pattern {v!r}: {exc}") from exc
        return v


class TsvToCsv(BaseModel):
    model_config = _FROZEN

    type: Literal["tsvToCsv"] = "tsvToCsv"


class TrimWhitespace(BaseModel):
    model_config = _FROZEN

    type: Literal["trimWhitespace"] = "trimWhitespace"


class RemoveEmptyRows(BaseModel):
    model_config = _FROZEN

    type: Literal["removeEmptyRows"] = "removeEmptyRows"


PreprocessingStep = Annotated[
    NormalizeLineEndings | SkipLines | SkipUntilHeader | TsvToCsv | TrimWhitespace | RemoveEmptyRows,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Column mapping / date format / top-level config
# ---------------------------------------------------------------------------


class ColumnMappings(BaseModel):
    """Source column names for the canonical text fields.

    ``address`` is optional; several banks do not export one.
    """

    model_config = _FROZEN

    date: str
    counterparty_name: str
    address: str | None = None


class DateFormat(BaseModel):
    """Date layout such as ``MM/DD/YYYY`` or ``YYYY-MM-DD``."""

    model_config = _FROZEN

    pattern: str

    @field_validator("pattern")
    @classmethod
    def _has_all_parts(cls, v: str) -> str:
        upper = v.upper()
        if not all(part in upper for part in ("Y", "M", "D")):
            raise ValueError(f"date pattern {v!r} must contain year, month and day")
        return v


class FormatConfig(BaseModel):
    """Complete description of one bank/account CSV dialect."""

    model_config = _FROZEN

    expected_headers: tuple[str, ...]
    column_mappings: ColumnMappings
    amount_handling: AmountHandling
    reference_number_strategy: ReferenceNumberStrategy
    date_format: DateFormat
    preprocessing: tuple[PreprocessingStep, ...] = ()

    def required_columns(self) -> list[str]:
        """Columns that must exist in the header row for rows to be parsed."""

        required = [self.column_mappings.date, self.column_mappings.counterparty_name]
        match self.amount_handling:
            case SignedAmount(column=column):
                required.append(column)
            case SeparateColumns(debit_column=debit, credit_column=credit):
                required.extend((debit, credit))
            case AbsoluteWithType(amount_column=amount, type_column=typ):
                required.extend((amount, typ))
        if isinstance(self.reference_number_strategy, ColumnReference):
            required.append(self.reference_number_strategy.column)
        return required

    @model_validator(mode="after")
    def _columns_declared(self) -> FormatConfig:
        if not self.expected_headers:
            return self
        referenced = self.required_columns()
        if self.column_mappings.address:
            referenced.append(self.column_mappings.address)
        undeclared = [c for c in referenced if c not in self.expected_headers]
        if undeclared:
            raise ValueError(
                "columns referenced but missing from expected_headers: "
                + ", ".join(undeclared)
            )
        return self


__all__ = [
    "AbsoluteWithType",
    "AmountHandling",
    "ColumnMappings",
    "ColumnReference",
    "DateFormat",
    "FormatConfig",
    "NormalizeLineEndings",
    "PreprocessingStep",
    "ReferenceNumberStrategy",
    "RemoveEmptyRows",
    "SeparateColumns",
    "SignedAmount",
    "SkipLines",
    "SkipUntilHeader",
    "SyntheticReference",
    "TrimWhitespace",
    "TsvToCsv",
]
