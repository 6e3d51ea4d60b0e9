"""Caller identity for dashboard endpoints.

Sessions are issued by the dashboard front end; this API only trusts the
user id it forwards in the ``X-User-Id`` header.
"""
from typing import Optional

from fastapi import Header, HTTPException, status


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return x_user_id.strip()
