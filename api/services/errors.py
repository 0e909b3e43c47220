"""Service-layer error taxonomy.

Two levels:
- ValidationError: caused by the client (bad input, unknown reference,
  ownership mismatch, duplicate key). Routes map ``code`` to the HTTP status.
- DatabaseError: any other persistence failure, wrapping the original message.

Every service operation re-raises ValidationError unchanged and wraps
everything else in DatabaseError at its boundary (see ``service_boundary``).
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import IntegrityError, NoResultFound
from sqlalchemy.orm.exc import StaleDataError

from core.logger import get_logger

logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

_UNIQUE_VIOLATION_SQLSTATE = "23505"


class ValidationError(Exception):
    """Client-caused failure. ``code`` is the suggested 4xx status."""

    def __init__(self, message: str, *, code: int = 400):
        self.message = message
        self.code = code
        super().__init__(message)


class DatabaseError(Exception):
    """Persistence-layer failure not otherwise classified."""

    code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the integrity failure comes from a UNIQUE constraint."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "sqlstate", None) == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    text = str(orig if orig is not None else exc).lower()
    return "unique" in text or "duplicate key" in text


def service_boundary(
    operation: str,
    failure_message: str,
    *,
    duplicate_message: str | None = None,
    missing_message: str | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Classify failures escaping a service coroutine.

    - ValidationError passes through untouched.
    - IntegrityError on a unique constraint becomes ValidationError(409)
      when ``duplicate_message`` is given.
    - Rows vanishing between check and write (NoResultFound, StaleDataError)
      become ValidationError(404) when ``missing_message`` is given.
    - Anything else is logged and wrapped as DatabaseError.

    Usage:
        @service_boundary("project.details", "Failed to fetch project")
        async def get_project_details(db, project_id): ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)
            except ValidationError:
                raise
            except IntegrityError as e:
                if duplicate_message and is_unique_violation(e):
                    logger.info(f"{operation}.duplicate", error=str(e.orig))
                    raise ValidationError(duplicate_message, code=409) from e
                logger.exception(f"{operation}.failed")
                raise DatabaseError(f"{failure_message}: {e}") from e
            except (NoResultFound, StaleDataError) as e:
                if missing_message:
                    raise ValidationError(missing_message, code=404) from e
                logger.exception(f"{operation}.failed")
                raise DatabaseError(f"{failure_message}: {e}") from e
            except Exception as e:
                logger.exception(f"{operation}.failed")
                raise DatabaseError(f"{failure_message}: {e}") from e

        return wrapper

    return decorator
