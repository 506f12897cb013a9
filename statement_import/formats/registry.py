"""Registry of supported institutions and their CSV formats.

Each institution exposes one or more account types, each bound to a
:class:`FormatConfig`. Formats are addressed by a ``"<institution>/<type>"``
key (e.g. ``"bofa/checking"``). The registry is populated once at import time
from the statically declared configs and is never mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from .bofa_checking import BOFA_CHECKING_FORMAT
from .models import FormatConfig

KEY_SEPARATOR = "/"


class FormatNotFound(KeyError):
    """No format is registered under the requested key."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"no CSV format registered for {self.key!r}"


@dataclass(frozen=True, slots=True)
class AccountType:
    code: str
    name: str
    format: FormatConfig


@dataclass(frozen=True, slots=True)
class Institution:
    code: str
    name: str
    account_types: tuple[AccountType, ...]


def format_key(institution_code: str, account_type_code: str) -> str:
    return f"{institution_code}{KEY_SEPARATOR}{account_type_code}"


class FormatRegistry:
    """Read-only lookup over a fixed tuple of institutions."""

    def __init__(self, institutions: tuple[Institution, ...]) -> None:
        self._institutions = institutions
        self._by_key: dict[str, AccountType] = {}
        for inst in institutions:
            for acct in inst.account_types:
                key = format_key(inst.code, acct.code)
                if key in self._by_key:
                    raise ValueError(f"duplicate format key: {key!r}")
                self._by_key[key] = acct

    @property
    def institutions(self) -> tuple[Institution, ...]:
        return self._institutions

    def keys(self) -> list[str]:
        return list(self._by_key)

    def __iter__(self) -> Iterator[tuple[str, FormatConfig]]:
        for key, acct in self._by_key.items():
            yield key, acct.format

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get_institution(self, code: str) -> Institution | None:
        return next((i for i in self._institutions if i.code == code), None)

    def find_account_type(
        self, institution_code: str, account_type_code: str
    ) -> AccountType | None:
        """Return the account type, or ``None`` when either code is unknown."""

        return self._by_key.get(format_key(institution_code, account_type_code))

    def get_format_config(self, key: str) -> FormatConfig:
        """Exact-key lookup; raises :class:`FormatNotFound` for unknown keys."""

        acct = self._by_key.get(key)
        if acct is None:
            raise FormatNotFound(key)
        return acct.format

    def institution_name(self, code: str) -> str:
        inst = self.get_institution(code)
        return inst.name if inst else code

    def account_type_name(self, institution_code: str, account_type_code: str) -> str:
        acct = self.find_account_type(institution_code, account_type_code)
        return acct.name if acct else account_type_code


INSTITUTIONS: tuple[Institution, ...] = (
    Institution(
        code="bofa",
        name="Bank of America",
        account_types=(
            AccountType(code="checking", name="Checking", format=BOFA_CHECKING_FORMAT),
        ),
    ),
)

REGISTRY = FormatRegistry(INSTITUTIONS)


def get_format_config(key: str) -> FormatConfig:
    """Look up a built-in format by ``"<institution>/<account type>"`` key."""

    return REGISTRY.get_format_config(key)


__all__ = [
    "INSTITUTIONS",
    "REGISTRY",
    "AccountType",
    "FormatNotFound",
    "FormatRegistry",
    "Institution",
    "format_key",
    "get_format_config",
]
