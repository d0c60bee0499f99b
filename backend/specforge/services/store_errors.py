"""Translate document store failures into user-facing errors."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from specforge.errors import StoreError, StorePermissionError

logger = logging.getLogger(__name__)

# SQLSTATE insufficient_privilege
PERMISSION_DENIED_SQLSTATE = "42501"


def is_permission_error(exc: BaseException) -> bool:
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == PERMISSION_DENIED_SQLSTATE:
        return True
    return "permission denied" in str(orig).lower()


def translate_store_error(exc: SQLAlchemyError, context: str) -> StoreError | StorePermissionError:
    logger.error(f"Store error while {context}: {exc}", exc_info=exc)
    if is_permission_error(exc):
        return StorePermissionError(operation=context)
    detail = str(getattr(exc, "orig", None) or exc).strip()
    return StoreError(f"Could not complete '{context}': {detail}")


@contextmanager
def store_errors(context: str) -> Iterator[None]:
    """
    Re-raise SQLAlchemy failures inside the block as StoreError or
    StorePermissionError.

        with store_errors("saving spec"):
            await db.flush()
    """
    try:
        yield
    except SQLAlchemyError as e:
        raise translate_store_error(e, context) from e
