"""
DotPrint Test Helper Utilities

Pattern builders and a controllable clock shared across the test suite.

Example usage:
    points = row_major_pattern(100)
    clock = FakeClock(datetime(2025, 8, 15, tzinfo=timezone.utc))
    clock.advance(seconds=5)
"""

from datetime import datetime, timedelta
from typing import Dict, List, Tuple

GRID = 32


def row_major_pattern(n: int, grid_size: int = GRID) -> List[Tuple[int, int]]:
    """First ``n`` cells of the grid, filled row by row (one dense blob)."""
    return [(i % grid_size, i // grid_size) for i in range(n)]


def sparse_pattern(n: int) -> List[Tuple[int, int]]:
    """``n`` isolated points on even coordinates (at most 256)."""
    assert n <= 256
    return [(2 * (i % 16), 2 * (i // 16)) for i in range(n)]


def as_payload(points: List[Tuple[int, int]]) -> List[Dict[str, int]]:
    """Points in the ``{x, y}`` shape the HTTP API expects."""
    return [{"x": x, "y": y} for x, y in points]


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value
