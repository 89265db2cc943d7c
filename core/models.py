"""
DotPrint Core Models

Pydantic v2 models for the data contracts shared by the feature extractor,
the stores and the HTTP layer. Database tables live in ``core.models_sql``;
these models are what the rest of the code passes around.

Example usage:
    from core.features import compute_features

    features = compute_features([(0, 0), (0, 1), (1, 0), (1, 1)])
    print(features.cluster_count, features.bounding_box_density)
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """A single grid cell."""
    model_config = ConfigDict(frozen=True)

    x: int = Field(..., ge=0, description="Column index")
    y: int = Field(..., ge=0, description="Row index")


class FeatureVector(BaseModel):
    """
    Fixed set of descriptors computed from one pattern.

    Integer fields are exact counts or extents; float fields are rounded to
    three decimals so persisted values are stable.
    """
    model_config = ConfigDict(frozen=True)

    n_points: int = 0
    adjacency_rate: float = 0.0
    singleton_ratio: float = 0.0
    mean_nn_distance: float = 0.0
    std_nn_distance: float = 0.0
    row_variance: float = 0.0
    column_variance: float = 0.0
    cluster_count: int = 0
    mean_cluster_size: float = 0.0
    max_cluster_size: int = 0
    bounding_box_density: float = 0.0
    radial_symmetry_score: float = 0.0
    center_of_mass_x: float = 0.0
    center_of_mass_y: float = 0.0
    width: int = 0
    height: int = 0
    coverage_area: int = 0
    min_x: int = 0
    max_x: int = 0
    min_y: int = 0
    max_y: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump()


FEATURE_NAMES: List[str] = list(FeatureVector.model_fields)


class SubmissionRecord(BaseModel):
    """An anonymous stored pattern. Carries no contributor identity."""
    model_config = ConfigDict(frozen=True)

    id: int
    points: List[Coordinate]
    label: str = "human"
    grid_size: str = "32x32"
    features: FeatureVector
    timestamp_bucket: str
    opted_in_for_credit: bool
    created_at: datetime


class LedgerEntry(BaseModel):
    """Per-contributor count. Carries no submission reference."""
    model_config = ConfigDict(frozen=True)

    username: str
    contribution_count: int
    opted_out: bool
    updated_at: datetime


class LeaderboardRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    identity: str
    contribution_count: int


class TotalStats(BaseModel):
    total_submissions: int = 0
    total_contributors: int = 0
    recent_submissions: int = 0


class DatabaseStats(BaseModel):
    """Administrative monitoring view."""
    total_submissions: int = 0
    total_contributors: int = 0
    database_size_kb: int = 0
    oldest_submission: Optional[str] = None
    newest_submission: Optional[str] = None


class SubmissionResult(BaseModel):
    """Outcome of the combined submit path."""
    record: SubmissionRecord
    ledger_entry: Optional[LedgerEntry] = None


class SubmitRequest(BaseModel):
    """
    Body of ``POST /api/submit-pattern``.

    Coordinates are accepted loosely here and checked by
    ``core.validation.validate_pattern`` so every failure carries a
    constraint name.
    """
    model_config = ConfigDict(populate_by_name=True)

    coordinates: List[Any]
    opted_in_for_credit: bool = Field(True, alias="optedInForCredit")
    contributor_identity: Optional[str] = Field(None, alias="contributorIdentity")
    opted_out: bool = Field(False, alias="optedOut")


class AdminActionRequest(BaseModel):
    action: str = Field(..., min_length=1, max_length=32)
