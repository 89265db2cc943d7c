"""
Admin database routes

Both routes require the ``X-Admin-Token`` header.

Example usage:
    GET  /api/admin/database - Monitoring stats
    POST /api/admin/database - {"action": "reset"} deletes every submission and ledger entry
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.dependencies import get_services, require_admin
from core.errors import ValidationError
from core.logging import get_logger
from core.models import AdminActionRequest
from core.services import Services

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)

RESET_ACTION = "reset"


@router.get("/database")
async def get_database_stats(services: Services = Depends(get_services)) -> Dict[str, Any]:
    stats = await services.queries.get_database_stats()
    return {"success": True, "stats": stats.model_dump()}


@router.post("/database")
async def run_database_action(
    body: AdminActionRequest,
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Run an admin action. Only ``reset`` is supported."""
    if body.action != RESET_ACTION:
        raise ValidationError(
            f"Invalid action. Supported actions: {RESET_ACTION}",
            constraint="action"
        )

    await services.coordinator.reset_all()
    logger.warning("Database reset via admin API")
    return {
        "success": True,
        "message": "Database reset successfully. All data has been deleted.",
    }
