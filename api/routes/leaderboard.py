"""
Leaderboard route

Example usage:
    GET /api/leaderboard?limit=10 - Top contributors plus overall totals
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.dependencies import get_services
from core.services import Services

router = APIRouter(prefix="/api", tags=["leaderboard"])


@router.get("/leaderboard")
async def get_leaderboard(
    limit: int = 10,
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """
    Return contributors who have not opted out, highest count first.

    ``limit`` must be between 1 and 100; anything else is a 400.
    """
    leaderboard = await services.ledger.get_leaderboard(limit)
    stats = await services.queries.get_total_stats()
    return {
        "success": True,
        "data": {
            "leaderboard": [
                {"identity": row.identity, "contributionCount": row.contribution_count}
                for row in leaderboard
            ],
            "stats": stats.model_dump(),
        }
    }
