"""Logging for the ``statement_import`` package.

Library modules call ``get_logger("statement_import.<module>")`` and never add
handlers themselves. Until an entrypoint calls :func:`configure_logging`, the
package logger carries only a ``NullHandler`` and stays silent.

The CLI configures logging in its root callback; a host web application should
call :func:`configure_logging` once at startup. ``STATEMENT_IMPORT_LOG_LEVEL``
sets the level when none is passed explicitly.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

LOG_LEVEL_ENV = "STATEMENT_IMPORT_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_PKG_LOGGER_NAME = "statement_import"
_CONFIGURED = False


def _level_from(value: int | str | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    name = value.strip().upper()
    if name.isdigit():
        return int(name)
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else None


def resolve_level(level: int | str | None = None) -> int:
    """Explicit ``level`` first, then the environment, then ``INFO``."""

    for candidate in (level, os.getenv(LOG_LEVEL_ENV)):
        resolved = _level_from(candidate)
        if resolved is not None:
            return resolved
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach one ``StreamHandler`` to the package logger; later calls are no-ops.

    Parameters
    ----------
    level:
        ``int`` or level name such as ``"DEBUG"``; see :func:`resolve_level`.
    fmt:
        Format string, :data:`DEFAULT_FORMAT` when omitted.
    stream:
        Destination stream, ``sys.stderr`` by default.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(pkg_logger.handlers):
        if isinstance(h, logging.NullHandler):
            pkg_logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    pkg_logger.setLevel(resolved)
    pkg_logger.addHandler(handler)
    # Records stop here; the root logger never sees them twice.
    pkg_logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, silencing the package until configured."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
