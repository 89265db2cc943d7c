"""
Pattern submission route

Example usage:
    POST /api/submit-pattern - Store a drawn pattern and optionally credit its contributor
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.dependencies import get_services
from core.logging import get_logger
from core.models import SubmitRequest
from core.services import Services

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["patterns"])


@router.post("/submit-pattern")
async def submit_pattern(
    body: SubmitRequest,
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """
    Validate a pattern, compute its features and store it anonymously.

    Example:
        POST /api/submit-pattern
        {"coordinates": [{"x": 3, "y": 4}, ...], "optedInForCredit": true,
         "contributorIdentity": "octocat"}

        Response:
        {"success": true, "message": "Pattern submitted successfully!",
         "pointsSubmitted": 120}
    """
    result = await services.coordinator.submit(
        body.coordinates,
        opted_in_for_credit=body.opted_in_for_credit,
        contributor=body.contributor_identity,
        opted_out=body.opted_out,
    )
    return {
        "success": True,
        "message": "Pattern submitted successfully!",
        "pointsSubmitted": result.record.features.n_points,
    }
