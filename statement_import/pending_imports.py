"""In-memory staging of uploaded CSVs between upload and column mapping.

An upload is parsed just enough to show the user its headers and a few rows;
the full content is parked in a :class:`PendingImportStore` under a random
id until the user confirms the column mapping (or the entry expires).

Entries are immutable. Expiry is enforced lazily on :meth:`get`; ``sweep``
reclaims memory for entries nobody asks for again and is safe to call from a
background thread (see :mod:`statement_import.sweeper`).
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from .csv_line import parse_csv_line
from .logging_setup import get_logger
from .preprocessors import normalize_line_endings, strip_bom

DEFAULT_TTL = timedelta(minutes=30)
DEFAULT_PREVIEW_ROWS = 3

_logger = get_logger("statement_import.pending_imports")


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class PendingImport:
    """A staged upload awaiting confirmation.

    Attributes
    ----------
    csv_content:
        The full raw text as uploaded.
    account_id:
        Destination account (validated by the caller before staging).
    period:
        Human-readable statement period, e.g. ``"January 2024"``.
    headers:
        Column names from the first non-blank line.
    preview_rows:
        The first few data rows, for display only.
    expires_at:
        The entry is dead once the store's clock passes this instant.
    """

    csv_content: str
    account_id: int
    period: str
    headers: tuple[str, ...]
    preview_rows: tuple[tuple[str, ...], ...]
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class HeaderPreview:
    headers: list[str]
    preview_rows: list[list[str]]


def parse_headers_and_preview(
    csv_content: str, preview_row_count: int = DEFAULT_PREVIEW_ROWS
) -> HeaderPreview:
    """Return the header row and up to ``preview_row_count`` following rows.

    Blank lines are ignored. Entirely blank input yields empty headers and no
    preview rows.
    """

    text = normalize_line_endings(strip_bom(csv_content))
    lines = [ln for ln in text.split("\n") if ln.strip()]
    if not lines:
        return HeaderPreview(headers=[], preview_rows=[])

    headers = parse_csv_line(lines[0])
    preview_rows = [parse_csv_line(ln) for ln in lines[1 : 1 + max(preview_row_count, 0)]]
    return HeaderPreview(headers=headers, preview_rows=preview_rows)


class PendingImportStore:
    """Thread-safe, TTL-bound map of pending imports keyed by a uuid string.

    Parameters
    ----------
    ttl:
        Lifetime of each entry, measured from :meth:`create`.
    clock:
        Zero-argument callable returning an aware ``datetime``; tests inject a
        controllable clock here.
    """

    def __init__(
        self,
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, PendingImport] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def create(
        self,
        *,
        csv_content: str,
        account_id: int,
        period: str,
        headers: Sequence[str],
        preview_rows: Sequence[Sequence[str]],
    ) -> str:
        """Stage a new entry expiring ``ttl`` from now and return its id."""

        import_id = str(uuid.uuid4())
        entry = PendingImport(
            csv_content=csv_content,
            account_id=account_id,
            period=period,
            headers=tuple(headers),
            preview_rows=tuple(tuple(r) for r in preview_rows),
            expires_at=self._clock() + self._ttl,
        )
        with self._lock:
            if import_id in self._entries:
                raise RuntimeError(f"pending import id collision: {import_id}")
            self._entries[import_id] = entry
        _logger.debug("staged pending import %s for account %s", import_id, account_id)
        return import_id

    def get(self, import_id: str) -> PendingImport | None:
        """Return the entry, or ``None`` when unknown or expired.

        An expired entry is removed as part of the same locked step.
        """

        with self._lock:
            entry = self._entries.get(import_id)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[import_id]
                _logger.debug("pending import %s expired on read", import_id)
                return None
            return entry

    def delete(self, import_id: str) -> None:
        with self._lock:
            self._entries.pop(import_id, None)

    def sweep(self) -> int:
        """Remove every expired entry and return how many were removed."""

        with self._lock:
            now = self._clock()
            expired = [k for k, v in self._entries.items() if now > v.expires_at]
            for k in expired:
                del self._entries[k]
        if expired:
            _logger.info("swept %d expired pending import(s)", len(expired))
        return len(expired)


__all__ = [
    "DEFAULT_PREVIEW_ROWS",
    "DEFAULT_TTL",
    "HeaderPreview",
    "PendingImport",
    "PendingImportStore",
    "parse_headers_and_preview",
    "utc_now",
]
