"""
utils/validators.py - Request Validation Helpers

Helpers shared by the routers:
- 404 lookups
- Password checks for password-guarded resources (groups, posts, comments)
"""

from typing import Optional, TypeVar

from fastapi import HTTPException

import crud
from config import WRONG_PASSWORD_MSG

T = TypeVar("T")


def require_found(record: Optional[T], resource: str, record_id: int) -> T:
    """
    Return the record or raise 404.

    Args:
        record: Result of a lookup (None when missing)
        resource: Resource name used in the error message ("Group", "Post", ...)
        record_id: ID that was looked up

    Raises:
        HTTPException: 404 if the record is None
    """
    if record is None:
        raise HTTPException(status_code=404, detail=f"{resource} with ID {record_id} not found")
    return record


def require_password(plain_password: str, hashed_password: str, status_code: int = 403) -> None:
    """
    Check a resource password.

    Edits and deletions answer a wrong password with 403; the
    verify-password endpoints use 401.

    Raises:
        HTTPException: If the password does not match
    """
    if not crud.verify_password(plain_password, hashed_password):
        raise HTTPException(status_code=status_code, detail=WRONG_PASSWORD_MSG)
