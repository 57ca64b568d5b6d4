"""
Caller identity.

Authentication happens upstream; the gateway forwards the authenticated
user id in the X-User-Id header.
"""

from typing import Optional

from fastapi import Header

from ...core.constants import USER_ID_HEADER
from ...core.exceptions import UnauthorizedException


def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
) -> str:
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedException(
            "Missing caller identity",
            code="MISSING_USER_ID",
            details={"header": USER_ID_HEADER},
        ).to_http_exception()
    return x_user_id.strip()


def get_optional_user_id(
    x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
) -> Optional[str]:
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None
