"""Shared API dependencies — single import point for all routers.

Re-exports database session and authentication dependencies so that router
modules can import everything they need from one place::

    from bookhaven.api.deps import get_db, get_caller_id
"""

from bookhaven.auth.dependencies import (
    get_caller_id,
    get_current_user,
    get_current_vendor,
    get_optional_caller_id,
)
from bookhaven.database import get_db, get_session_factory

__all__ = [
    "get_db",
    "get_session_factory",
    "get_caller_id",
    "get_optional_caller_id",
    "get_current_user",
    "get_current_vendor",
]
