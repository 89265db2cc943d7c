"""
Property-based tests for feature extraction invariants.

Tests determinism, order independence and the structural relationships
between features across random patterns.
"""
import numpy as np
from hypothesis import given, settings, strategies as st

from core.features import _adjacency_matrix, _cluster_sizes, compute_features

GRID = 32


@st.composite
def patterns(draw, min_size=1, max_size=200, grid_size=GRID):
    """Lists of distinct grid coordinates."""
    cells = draw(st.sets(
        st.tuples(st.integers(0, grid_size - 1), st.integers(0, grid_size - 1)),
        min_size=min_size,
        max_size=max_size,
    ))
    return draw(st.permutations(sorted(cells)))


@settings(max_examples=60, deadline=None)
@given(points=patterns())
def test_counts_and_ratios(points):
    fv = compute_features(points)

    assert fv.n_points == len(points)
    assert abs(fv.singleton_ratio + fv.adjacency_rate - 1.0) <= 0.0011
    assert 0.0 <= fv.adjacency_rate <= 1.0


@settings(max_examples=60, deadline=None)
@given(points=patterns())
def test_cluster_structure(points):
    fv = compute_features(points)

    assert 1 <= fv.cluster_count <= fv.n_points
    assert 1 <= fv.max_cluster_size <= fv.n_points

    arr = np.asarray(points)
    sizes = _cluster_sizes(_adjacency_matrix(arr[:, 0], arr[:, 1]))
    assert sum(sizes) == fv.n_points
    assert len(sizes) == fv.cluster_count
    assert max(sizes) == fv.max_cluster_size


@settings(max_examples=60, deadline=None)
@given(points=patterns())
def test_bounding_box(points):
    fv = compute_features(points)

    assert 0.0 < fv.bounding_box_density <= 1.0
    assert fv.coverage_area == fv.width * fv.height
    assert fv.n_points <= fv.coverage_area
    assert 0 <= fv.min_x <= fv.center_of_mass_x <= fv.max_x < GRID
    assert 0 <= fv.min_y <= fv.center_of_mass_y <= fv.max_y < GRID


@settings(max_examples=60, deadline=None)
@given(points=patterns())
def test_scores_in_range(points):
    fv = compute_features(points)

    assert 0.0 <= fv.radial_symmetry_score <= 1.0
    assert fv.mean_nn_distance >= (1.0 if fv.n_points > 1 else 0.0)
    assert fv.std_nn_distance >= 0.0
    assert fv.row_variance >= 0.0
    assert fv.column_variance >= 0.0


@settings(max_examples=40, deadline=None)
@given(points=patterns(min_size=2), data=st.data())
def test_deterministic_and_order_independent(points, data):
    first = compute_features(points)
    again = compute_features(list(points))
    shuffled = compute_features(data.draw(st.permutations(points)))

    assert first.as_dict() == again.as_dict()
    assert first.as_dict() == shuffled.as_dict()
