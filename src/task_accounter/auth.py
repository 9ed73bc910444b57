from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from .models import User, UserRole


# PUBLIC_INTERFACE
async def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    x_user_name: str = Header(default=""),
    x_user_email: str = Header(default=""),
) -> User:
    """
    Resolve the requesting user from identity headers.

    Credentials are checked by the gateway in front of this service, which
    forwards the authenticated identity as:
    - X-User-Id: user identifier (required)
    - X-User-Role: 'manager' or 'technician' (required)
    - X-User-Name / X-User-Email: optional, used in audit records

    Raises:
        HTTPException(401) if id or role is missing.
        HTTPException(400) if the role is unknown.
    """
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        role = UserRole(x_user_role.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown role: {x_user_role}",
        )

    return User(id=x_user_id, role=role, name=x_user_name, email=x_user_email)
