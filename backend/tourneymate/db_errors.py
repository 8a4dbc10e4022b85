"""Helpers for working with database/SQLAlchemy errors."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

_UNIQUE_VIOLATION_SQLSTATES = {"23505"}
_CONNECTION_SQLSTATE_PREFIX = "08"


def is_unique_violation(exc: SQLAlchemyError) -> bool:
    """Return ``True`` if ``exc`` reports a duplicate primary or unique key."""

    if not isinstance(exc, IntegrityError):
        return False

    orig = getattr(exc, "orig", None)
    if orig is None:
        return False

    sqlstate = getattr(orig, "sqlstate", None)
    if sqlstate in _UNIQUE_VIOLATION_SQLSTATES:
        return True

    message = str(orig).lower()
    return "unique constraint" in message or "duplicate key" in message


def is_connection_error(exc: BaseException) -> bool:
    """Return ``True`` if ``exc`` indicates the database could not be reached.

    Parameters
    ----------
    exc:
        Any exception raised while opening or using a connection. Plain
        ``OSError`` subclasses (refused sockets, DNS failures) count as
        connection errors, as do SQLAlchemy wrappers flagged as invalidated
        connections and driver errors in SQLSTATE class ``08``.
    """

    if isinstance(exc, OSError):
        return True

    if not isinstance(exc, SQLAlchemyError):
        return False

    if getattr(exc, "connection_invalidated", False):
        return True

    orig = getattr(exc, "orig", None)
    if isinstance(orig, OSError):
        return True

    sqlstate = getattr(orig, "sqlstate", None)
    return isinstance(sqlstate, str) and sqlstate.startswith(
        _CONNECTION_SQLSTATE_PREFIX
    )
