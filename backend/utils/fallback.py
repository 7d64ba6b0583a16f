import logging
from contextlib import contextmanager
from typing import Awaitable, Callable, TypeVar
from sqlalchemy.exc import DBAPIError
from exceptions import AuthorizationDenied




logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE for insufficient_privilege (PostgreSQL row level security, revoked grants)
PERMISSION_DENIED_SQLSTATE = "42501"


def is_permission_error(exc: DBAPIError) -> bool:
    original = exc.orig
    code = getattr(original, "pgcode", None) or getattr(original, "sqlstate", None)
    if code == PERMISSION_DENIED_SQLSTATE:
        return True
    return "permission denied" in str(original).lower()


@contextmanager
def translate_permission_errors():
    """Re-raise store privilege failures as AuthorizationDenied, everything else untouched"""
    try:
        yield
    except DBAPIError as exc:
        if is_permission_error(exc):
            raise AuthorizationDenied(str(exc.orig)) from exc
        raise


async def with_fallback(
    primary: Callable[[], Awaitable[T]],
    secondary: Callable[[], Awaitable[T]],
    *,
    label: str,
) -> T:
    """Run the primary query; when the store denies it, degrade to the secondary one"""
    try:
        return await primary()
    except AuthorizationDenied as exc:
        logger.warning("%s: primary query denied (%s), using fallback", label, exc.message)
        return await secondary()
