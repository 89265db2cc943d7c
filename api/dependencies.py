"""
Shared FastAPI dependencies.

Authentication of contributors is handled upstream; the only check made
here is the shared admin token guarding the admin routes.
"""

import hmac
from typing import Optional

from fastapi import Header, HTTPException, Request

from core.logging import get_logger
from core.services import Services

logger = get_logger(__name__)


def get_services(request: Request) -> Services:
    """Services created by the app lifespan."""
    return request.app.state.services


def require_admin(
    request: Request,
    x_admin_token: Optional[str] = Header(None),
) -> None:
    """Raise 403 unless the request carries the configured admin token."""
    expected = get_services(request).settings.admin_token
    if not expected or not x_admin_token or not hmac.compare_digest(x_admin_token.encode(), expected.encode()):
        logger.warning("Rejected admin request", extra={"path": request.url.path})
        raise HTTPException(status_code=403, detail="Admin access required")
