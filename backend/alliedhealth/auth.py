"""Request authentication and caller identity.

Identity is resolved by the upstream gateway. The gateway presents the
shared API key and forwards the resolved user as headers:

    X-User-Id:        UUID of the staff member
    X-User-Role:      assistant | professional | admin
    X-Department-Ids: comma-separated department UUIDs
"""

import logging
import secrets
import uuid

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import APIKeyHeader

from alliedhealth.config import settings
from alliedhealth.identity import CallerContext
from alliedhealth.models.catalog import UserRole

logger = logging.getLogger(__name__)

api_key_scheme = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str | None = Depends(api_key_scheme)) -> str:
    """Validate the X-API-Key header against the configured key.

    Returns:
        The API key.

    Raises:
        HTTPException: 401 if the key is missing or wrong.
    """
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
        )
    if not secrets.compare_digest(api_key.encode(), settings.api_key.encode()):
        logger.warning("Rejected request with invalid API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
    return api_key


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def get_caller(
    _api_key: str = Depends(verify_api_key),
    x_user_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
    x_department_ids: str | None = Header(None),
) -> CallerContext:
    """Build the caller context from the forwarded identity headers.

    Raises:
        HTTPException: 401 if any identity header is missing or malformed.
    """
    if not x_user_id or not x_user_role:
        raise _unauthorized("Missing caller identity")

    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise _unauthorized("Invalid X-User-Id header") from None

    try:
        role = UserRole(x_user_role.strip().lower())
    except ValueError:
        raise _unauthorized("Invalid X-User-Role header") from None

    try:
        department_ids = frozenset(
            uuid.UUID(part.strip()) for part in (x_department_ids or "").split(",") if part.strip()
        )
    except ValueError:
        raise _unauthorized("Invalid X-Department-Ids header") from None

    return CallerContext(user_id=user_id, role=role, department_ids=department_ids)
