"""db: account storage for the importer (SQLAlchemy).

Public exports
--------------
- ``Base`` and ``metadata``
- the ``Account`` ORM model
- engine/session helpers in ``statement_import.db.client``
"""

from __future__ import annotations

from .models import Account, Base

metadata = Base.metadata

__all__ = [
    "Account",
    "Base",
    "metadata",
]
