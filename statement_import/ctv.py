"""Canonical transaction row produced by the format-driven parser.

Field order (exact):
    - idx: 0-based position among successfully parsed rows
    - posted_date: ``datetime.date``
    - reference_number: bank-provided or synthetic (``fin_<12 hex>``)
    - payee: counterparty name, never empty
    - address: empty string when the format has no address column
    - amount: signed ``Decimal`` (debits negative, credits positive)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal


@dataclass(frozen=True, slots=True)
class StatementRow:
    """A single canonicalized statement transaction."""

    idx: int
    posted_date: date
    reference_number: str
    payee: str
    address: str
    amount: Decimal

    def as_dict(self) -> dict[str, object]:
        """JSON-friendly view: ISO date and a two-decimal amount string."""

        q = self.amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return {
            "idx": self.idx,
            "posted_date": self.posted_date.isoformat(),
            "reference_number": self.reference_number,
            "payee": self.payee,
            "address": self.address,
            "amount": f"{q:.2f}",
        }


__all__ = ["StatementRow"]
