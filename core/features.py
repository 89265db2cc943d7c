"""
Feature extraction for hand-drawn dot patterns.

Turns a set of grid coordinates into a ``FeatureVector`` of geometric and
statistical descriptors. The function is pure and deterministic: stored
feature values are treated as ground truth for a training dataset, so the
definitions below must not drift.

Pairwise quantities (adjacency, nearest neighbours, clusters) are computed
from dense n x n matrices. With at most 1024 points that is about a million
cells, which numpy handles in a few milliseconds.

Example usage:
    >>> from core.features import compute_features
    >>> fv = compute_features([(0, 0), (0, 1), (1, 0), (1, 1)])
    >>> fv.cluster_count, fv.bounding_box_density
    (1, 1.0)
"""

import math
from typing import Any, Iterable, List

import numpy as np

from core.config import DEFAULT_GRID_SIZE
from core.models import FEATURE_NAMES, FeatureVector
from core.validation import normalize_points

__all__ = ["compute_features", "FEATURE_NAMES"]

SCALE = 1000


def _round(value: float) -> float:
    """Three decimals, ties rounded up (2/32 -> 0.063, not 0.062)."""
    return math.floor(float(value) * SCALE + 0.5) / SCALE


def _adjacency_matrix(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """
    Boolean matrix of 8-connected neighbours.

    Two points are neighbours when both coordinate deltas are at most 1.
    A point is never its own neighbour, and neither is an exact duplicate.
    """
    chebyshev = np.maximum(
        np.abs(xs[:, None] - xs[None, :]),
        np.abs(ys[:, None] - ys[None, :]),
    )
    return (chebyshev <= 1) & (chebyshev > 0)


def _nearest_neighbor_distances(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Euclidean distance from each point to its closest other point."""
    if len(xs) < 2:
        return np.empty(0, dtype=np.float64)
    dx = (xs[:, None] - xs[None, :]).astype(np.float64)
    dy = (ys[:, None] - ys[None, :]).astype(np.float64)
    squared = dx * dx + dy * dy
    np.fill_diagonal(squared, np.inf)
    return np.sqrt(squared.min(axis=1))


def _cluster_sizes(adjacency: np.ndarray) -> List[int]:
    """
    Sizes of connected components, in order of their lowest point index.

    Uses an explicit stack so depth is bounded regardless of pattern shape.
    """
    n = adjacency.shape[0]
    neighbors = [np.flatnonzero(row) for row in adjacency]
    visited = np.zeros(n, dtype=bool)
    sizes = []

    for start in range(n):
        if visited[start]:
            continue
        visited[start] = True
        stack = [start]
        size = 0
        while stack:
            current = stack.pop()
            size += 1
            for neighbor in neighbors[current]:
                if not visited[neighbor]:
                    visited[neighbor] = True
                    stack.append(neighbor)
        sizes.append(size)

    return sizes


def _occupancy_variance(values: np.ndarray) -> float:
    """Population variance of how many points share each distinct value."""
    _, counts = np.unique(values, return_counts=True)
    return float(counts.var())


def compute_features(points: Iterable[Any], grid_size: int = DEFAULT_GRID_SIZE) -> FeatureVector:
    """
    Compute the feature vector for a pattern.

    Args:
        points: Coordinates as ``(x, y)`` pairs, ``{"x", "y"}`` mappings or
            ``Coordinate`` models.
        grid_size: Side length of the square grid; fixes the centre used by
            the radial symmetry score.

    Returns:
        FeatureVector with floats rounded to three decimals. The empty
        pattern gives every feature its zero value.
    """
    coords = normalize_points(points)
    n_points = len(coords)
    if n_points == 0:
        return FeatureVector()

    arr = np.asarray(coords, dtype=np.int64)
    xs = arr[:, 0]
    ys = arr[:, 1]

    # --- Bounding box ---
    min_x, max_x = int(xs.min()), int(xs.max())
    min_y, max_y = int(ys.min()), int(ys.max())
    width = max_x - min_x + 1
    height = max_y - min_y + 1
    coverage_area = width * height

    # --- Adjacency ---
    adjacency = _adjacency_matrix(xs, ys)
    adjacent_count = int(adjacency.any(axis=1).sum())
    adjacency_rate = adjacent_count / n_points
    singleton_ratio = (n_points - adjacent_count) / n_points

    # --- Nearest neighbours ---
    nn = _nearest_neighbor_distances(xs, ys)
    mean_nn = float(nn.mean()) if nn.size else 0.0
    std_nn = float(nn.std()) if nn.size else 0.0

    # --- Row / column occupancy ---
    row_variance = _occupancy_variance(ys)
    column_variance = _occupancy_variance(xs)

    # --- Clusters ---
    sizes = _cluster_sizes(adjacency)
    cluster_count = len(sizes)
    mean_cluster_size = sum(sizes) / cluster_count
    max_cluster_size = max(sizes)

    bounding_box_density = n_points / coverage_area if coverage_area > 0 else 0.0

    center_of_mass_x = float(xs.mean())
    center_of_mass_y = float(ys.mean())

    # --- Radial symmetry around the fixed grid centre ---
    center = grid_size / 2 - 0.5
    radial = np.hypot(xs - center, ys - center)
    radial_variance = float(radial.var())
    radial_symmetry_score = 1.0 / (1.0 + radial_variance)

    return FeatureVector(
        n_points=n_points,
        adjacency_rate=_round(adjacency_rate),
        singleton_ratio=_round(singleton_ratio),
        mean_nn_distance=_round(mean_nn),
        std_nn_distance=_round(std_nn),
        row_variance=_round(row_variance),
        column_variance=_round(column_variance),
        cluster_count=cluster_count,
        mean_cluster_size=_round(mean_cluster_size),
        max_cluster_size=max_cluster_size,
        bounding_box_density=_round(bounding_box_density),
        radial_symmetry_score=_round(radial_symmetry_score),
        center_of_mass_x=_round(center_of_mass_x),
        center_of_mass_y=_round(center_of_mass_y),
        width=width,
        height=height,
        coverage_area=coverage_area,
        min_x=min_x,
        max_x=max_x,
        min_y=min_y,
        max_y=max_y,
    )
