"""Account directory: the collaborator that validates import destinations.

Accounts link a user-chosen name to an institution/account-type pair from the
format registry, and may carry a custom :class:`FormatConfig` saved from a
column mapping. All functions take an open SQLAlchemy ``Session``; committing
is left to the caller (see :func:`statement_import.db.client.session_scope`).
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db.models import Account
from .formats.models import FormatConfig
from .formats.registry import REGISTRY, FormatNotFound, FormatRegistry, format_key
from .logging_setup import get_logger

_logger = get_logger("statement_import.accounts")


class AccountNotFound(LookupError):
    def __init__(self, account_id: int) -> None:
        super().__init__(f"account {account_id} not found")
        self.account_id = account_id


class DuplicateAccountName(ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(f'An account with the name "{name}" already exists')
        self.name = name


def get_account(session: Session, account_id: int) -> Account | None:
    return session.get(Account, account_id)


def require_account(session: Session, account_id: int) -> Account:
    """Return the account or raise :class:`AccountNotFound`."""

    account = session.get(Account, account_id)
    if account is None:
        raise AccountNotFound(account_id)
    return account


def get_account_by_name(session: Session, name: str) -> Account | None:
    return session.execute(select(Account).where(Account.name == name)).scalar_one_or_none()


def list_accounts(session: Session) -> list[Account]:
    return list(session.execute(select(Account).order_by(Account.name)).scalars())


def create_account(
    session: Session,
    *,
    institution_code: str,
    account_type_code: str,
    name: str,
    registry: FormatRegistry = REGISTRY,
) -> Account:
    """Insert a new account bound to a registered format.

    Raises :class:`FormatNotFound` for an unknown institution/type pair and
    :class:`DuplicateAccountName` when ``name`` is taken.
    """

    name = name.strip()
    if not name:
        raise ValueError("account name must be non-empty")
    key = format_key(institution_code, account_type_code)
    if key not in registry:
        raise FormatNotFound(key)
    if get_account_by_name(session, name) is not None:
        raise DuplicateAccountName(name)

    account = Account(
        institution_code=institution_code,
        account_type_code=account_type_code,
        name=name,
    )
    session.add(account)
    session.flush()
    _logger.info("created account %s (%s) id=%s", name, key, account.id)
    return account


def rename_account(session: Session, account_id: int, new_name: str) -> Account:
    account = require_account(session, account_id)
    new_name = new_name.strip()
    existing = get_account_by_name(session, new_name)
    if existing is not None and existing.id != account_id:
        raise DuplicateAccountName(new_name)
    account.name = new_name
    session.flush()
    return account


def get_custom_format_config(session: Session, account_id: int) -> FormatConfig | None:
    """Return the account's saved custom format, or ``None`` if none is saved."""

    account = get_account(session, account_id)
    if account is None or not account.custom_format_config:
        return None
    return FormatConfig.model_validate_json(account.custom_format_config)


def set_custom_format_config(
    session: Session, account_id: int, config: FormatConfig | None
) -> None:
    """Save ``config`` on the account; ``None`` clears it."""

    account = require_account(session, account_id)
    account.custom_format_config = config.model_dump_json() if config is not None else None
    session.flush()


def resolve_account_format(
    session: Session, account_id: int, *, registry: FormatRegistry = REGISTRY
) -> FormatConfig:
    """Pick the format to parse uploads for ``account_id``.

    A saved custom format wins; otherwise the registry entry for the account's
    institution/type is used (``FormatNotFound`` if it has been removed).
    """

    account = require_account(session, account_id)
    if account.custom_format_config:
        return FormatConfig.model_validate_json(account.custom_format_config)
    return registry.get_format_config(
        format_key(account.institution_code, account.account_type_code)
    )


__all__ = [
    "AccountNotFound",
    "DuplicateAccountName",
    "create_account",
    "get_account",
    "get_account_by_name",
    "get_custom_format_config",
    "list_accounts",
    "rename_account",
    "require_account",
    "resolve_account_format",
    "set_custom_format_config",
]
