"""
Input validation for submitted patterns and query parameters.

Every check raises ``core.errors.ValidationError`` with a ``constraint`` name;
nothing is silently corrected.
"""

from numbers import Integral, Real
from typing import Any, Iterable, List, Mapping, Tuple

from core.config import DEFAULT_GRID_SIZE, MAX_POINTS, MIN_POINTS
from core.errors import ValidationError
from core.models import Coordinate

LEADERBOARD_MIN_LIMIT = 1
LEADERBOARD_MAX_LIMIT = 100
MAX_IDENTITY_LENGTH = 255


def _coerce_int(value: Any) -> int:
    """Accept ints and integral floats; reject bools and everything else."""
    if isinstance(value, bool):
        raise TypeError("bool is not a coordinate")
    if isinstance(value, Integral):
        return int(value)
    if isinstance(value, Real) and float(value).is_integer():
        return int(value)
    raise TypeError(f"{type(value).__name__} is not an integer")


def _split_point(point: Any) -> Tuple[Any, Any]:
    if isinstance(point, Coordinate):
        return point.x, point.y
    if isinstance(point, Mapping):
        if "x" not in point or "y" not in point:
            raise ValidationError(
                "Invalid coordinate format. Each point needs 'x' and 'y'.",
                constraint="shape"
            )
        return point["x"], point["y"]
    if isinstance(point, (tuple, list)) and len(point) == 2:
        return point[0], point[1]
    raise ValidationError(
        "Invalid coordinate format. Must be an {x, y} object or an (x, y) pair.",
        constraint="shape"
    )


def normalize_points(points: Iterable[Any]) -> List[Tuple[int, int]]:
    """
    Convert any accepted point representation to ``(x, y)`` int tuples.

    Only shape and integer type are checked here; bounds and duplicates are
    the job of ``validate_pattern``.
    """
    if points is None or isinstance(points, (str, bytes, Mapping)):
        raise ValidationError(
            "Invalid coordinates format. Must be an array.", constraint="shape"
        )

    normalized = []
    for point in points:
        raw_x, raw_y = _split_point(point)
        try:
            normalized.append((_coerce_int(raw_x), _coerce_int(raw_y)))
        except TypeError:
            raise ValidationError(
                f"Invalid coordinate {point!r}. Coordinates must be integers.",
                constraint="coordinate_type"
            )
    return normalized


def validate_pattern(
    points: Iterable[Any],
    grid_size: int = DEFAULT_GRID_SIZE,
    min_points: int = MIN_POINTS,
    max_points: int = MAX_POINTS,
) -> List[Tuple[int, int]]:
    """
    Check a submitted pattern and return it as ``(x, y)`` tuples.

    Raises:
        ValidationError: with constraint ``shape``, ``coordinate_type``,
            ``length``, ``coordinate_range`` or ``duplicate``.
    """
    normalized = normalize_points(points)

    if not min_points <= len(normalized) <= max_points:
        raise ValidationError(
            f"Invalid coordinates count. Must be between {min_points} and "
            f"{max_points} points. Received: {len(normalized)}",
            constraint="length"
        )

    seen = set()
    for x, y in normalized:
        if not (0 <= x < grid_size and 0 <= y < grid_size):
            raise ValidationError(
                f"Coordinate ({x}, {y}) is outside the {grid_size}x{grid_size} grid.",
                constraint="coordinate_range"
            )
        if (x, y) in seen:
            raise ValidationError(
                f"Duplicate coordinate ({x}, {y}) detected.",
                constraint="duplicate"
            )
        seen.add((x, y))

    return normalized


def validate_limit(limit: Any) -> int:
    """Leaderboard size must be an integer in [1, 100]."""
    if isinstance(limit, bool) or not isinstance(limit, Integral):
        raise ValidationError("Limit must be an integer", constraint="limit")
    if not LEADERBOARD_MIN_LIMIT <= limit <= LEADERBOARD_MAX_LIMIT:
        raise ValidationError(
            f"Limit must be between {LEADERBOARD_MIN_LIMIT} and {LEADERBOARD_MAX_LIMIT}",
            constraint="limit"
        )
    return int(limit)


def validate_identity(identity: Any) -> str:
    """
    Contributor identities are non-empty strings of bounded length.

    The identity is an opaque key and is returned exactly as given.
    """
    if not isinstance(identity, str) or not identity.strip():
        raise ValidationError("Contributor identity must be a non-empty string", constraint="identity")
    if len(identity) > MAX_IDENTITY_LENGTH:
        raise ValidationError(
            f"Contributor identity must be at most {MAX_IDENTITY_LENGTH} characters",
            constraint="identity"
        )
    return identity
