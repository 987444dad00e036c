"""Tests for GridTerrain (cell resolution, ground fallback, mesh assembly)."""

from __future__ import annotations

import itertools
import logging
import math

import numpy as np
import pytest

from domain.terrain.elements import Plane, Step
from domain.terrain.errors import InvalidGridError, TerrainError
from domain.terrain.grid import DEFAULT_EXTENSION_M, GridTerrain, build_grid_terrain
from domain.terrain.value_objects import MeshRole


def make_step(**kwargs) -> Step:
    return Step(size=10.0, height=2.0, **kwargs)


def create_plane_step_grid() -> GridTerrain:
    """One row: Plane at column 0, Step at column 1; 10 m cells."""
    return build_grid_terrain([[Plane(size=10.0), make_step()]], (10.0, 10.0))


# ===========================================================================
# TC-001: Ground Fallback
# ===========================================================================
def test_negative_coordinates_fall_back_to_ground(step_terrain):
    """TC-001: x < 0 or y < 0 is ground regardless of the grid."""
    hit = step_terrain.interference((-1.0, 5.0, -0.5))

    assert hit is not None
    assert hit.magnitude == pytest.approx(0.5)
    np.testing.assert_allclose(hit.position, [-1.0, 5.0, 0.0])
    np.testing.assert_allclose(hit.normal, [0.0, 0.0, 1.0])


def test_fallback_above_or_on_ground_is_none(step_terrain):
    """TC-001b: The fallback needs strictly negative z."""
    assert step_terrain.interference((-1.0, 5.0, 0.5)) is None
    assert step_terrain.interference((5.0, -1.0, 0.0)) is None


def test_beyond_grid_falls_back_to_ground(step_terrain):
    """TC-001c: Past the last column and row, the ground continues."""
    hit = step_terrain.interference((35.0, 45.0, -2.0))

    assert hit is not None
    assert hit.magnitude == pytest.approx(2.0)
    assert step_terrain.interference((35.0, 45.0, 1.0)) is None


def test_non_finite_query_raises(step_terrain):
    with pytest.raises(ValueError, match="finite"):
        step_terrain.interference((math.nan, 1.0, 0.0))
    with pytest.raises(ValueError, match="finite"):
        step_terrain.interference((1.0, 1.0, math.inf))


# ===========================================================================
# TC-002: Cell Resolution and Offsets
# ===========================================================================
def test_query_resolves_to_second_cell():
    """TC-002: World (12, 5) lands in column 1, local (2, 5)."""
    terrain = create_plane_step_grid()

    hit = terrain.interference((12.0, 5.0, -1.0))

    assert hit is not None
    assert hit.magnitude == pytest.approx(1.0)
    np.testing.assert_allclose(hit.position, [12.0, 5.0, 0.0])


def test_plateau_in_second_cell_is_offset():
    terrain = create_plane_step_grid()

    hit = terrain.interference((18.0, 5.0, 1.5))

    assert hit is not None
    assert hit.magnitude == pytest.approx(0.5)
    np.testing.assert_allclose(hit.position, [18.0, 5.0, 2.0])


def test_cell_boundary_belongs_to_next_cell():
    """TC-002b: x = i*dx is the first coordinate of cell i."""
    terrain = create_plane_step_grid()

    assert terrain.cell_index(10.0, 0.0) == (1, 0)
    assert terrain.cell_index(9.999, 9.999) == (0, 0)


def test_grid_offset_round_trip():
    """TC-002c: Grid results equal the element's result shifted by the cell origin."""
    rows = [
        [make_step(), make_step(rotate=90)],
        [make_step(mirror="yz"), make_step(rotate=180)],
    ]
    terrain = build_grid_terrain(rows, (10.0, 10.0))
    locals_ = [np.array([6.5, 3.0, 1.2]), np.array([3.0, 6.5, 1.2])]

    for local, (j, row) in itertools.product(locals_, enumerate(rows)):
        for i, element in enumerate(row):
            expected = element.interference(local)
            world = local + np.array([i * 10.0, j * 10.0, 0.0])

            hit = terrain.interference(world)

            if expected is None:
                assert hit is None or hit.magnitude == pytest.approx(0.0)
                continue
            assert hit.magnitude == pytest.approx(expected.magnitude)
            np.testing.assert_allclose(
                hit.position, expected.position + [i * 10.0, j * 10.0, 0.0]
            )
            np.testing.assert_allclose(hit.normal, expected.normal)


def test_accepts_numpy_query(step_terrain):
    hit = step_terrain.interference(np.array([8.0, 5.0, 1.5]))

    assert hit is not None
    np.testing.assert_allclose(hit.position, [8.0, 5.0, 2.0])


# ===========================================================================
# TC-003: Ragged Rows and Undersized Elements
# ===========================================================================
def test_ragged_missing_cell_is_ground(ragged_terrain):
    """TC-003: The missing cell (1, 1) behaves as flat ground."""
    assert ragged_terrain.interference((18.0, 15.0, 1.0)) is None

    hit = ragged_terrain.interference((18.0, 15.0, -1.0))
    assert hit is not None
    assert hit.magnitude == pytest.approx(1.0)


def test_ragged_existing_cell_still_answers(ragged_terrain):
    hit = ragged_terrain.interference((18.0, 5.0, 1.0))

    assert hit is not None
    assert hit.magnitude == pytest.approx(1.0)
    np.testing.assert_allclose(hit.position, [18.0, 5.0, 2.0])


def test_ragged_rows_log_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="domain.terrain.grid"):
        build_grid_terrain([[make_step(), make_step()], [make_step()]], (10.0, 10.0))

    assert "Ragged grid" in caplog.text


def test_undersized_element_leaves_ground_around_it(caplog):
    """TC-003b: Outside a smaller element's footprint the cell is ground."""
    with caplog.at_level(logging.WARNING, logger="domain.terrain.grid"):
        terrain = build_grid_terrain([[Plane(size=5.0)]], (10.0, 10.0))

    hit = terrain.interference((7.0, 2.0, -1.0))

    assert hit is not None
    assert hit.magnitude == pytest.approx(1.0)
    np.testing.assert_allclose(hit.position, [7.0, 2.0, 0.0])
    assert "smaller than" in caplog.text


def test_undersized_element_remainder_is_meshed_as_ground():
    """TC-003c: Ground strips fill the cell around a smaller element."""
    terrain = build_grid_terrain([[Plane(size=5.0)]], (10.0, 10.0), extension=50.0)

    placements = terrain.mesh()
    inside = [
        p
        for p in placements
        if p.role is MeshRole.GROUND
        and p.world_positions()[:, :2].min() >= 0.0
        and p.world_positions()[:, :2].max() <= 10.0
    ]

    assert len(placements) == 1 + 2 + 8
    assert len(inside) == 2
    for x, y in [(7.0, 7.0), (7.0, 2.0), (2.0, 7.0)]:
        assert terrain.interference((x, y, -1.0)).position[2] == 0.0
        covered = False
        for p in inside:
            world = p.world_positions()
            lo, hi = world.min(axis=0), world.max(axis=0)
            if lo[0] <= x <= hi[0] and lo[1] <= y <= hi[1]:
                covered = True
        assert covered, (x, y)


def test_grid_shape_properties(ragged_terrain):
    assert ragged_terrain.rows == 2
    assert ragged_terrain.columns == 2
    assert ragged_terrain.element_count == 3
    assert ragged_terrain.extent == (20.0, 20.0)
    assert ragged_terrain.element_at(1, 1) is None
    assert ragged_terrain.element_at(0, 1) is not None


# ===========================================================================
# TC-004: Construction Errors
# ===========================================================================
@pytest.mark.parametrize(
    "step",
    [(0.0, 10.0), (10.0, -1.0), (math.inf, 10.0), (10.0, math.nan)],
)
def test_rejects_bad_step(step):
    with pytest.raises(InvalidGridError, match="step"):
        build_grid_terrain([[make_step()]], step)


@pytest.mark.parametrize("rows", [[], [[]], [[], []]])
def test_rejects_empty_grid(rows):
    with pytest.raises(InvalidGridError, match="at least one element"):
        build_grid_terrain(rows, (10.0, 10.0))


def test_rejects_element_larger_than_cell():
    with pytest.raises(InvalidGridError, match="larger than the cell step"):
        build_grid_terrain([[Step(size=20.0, height=1.0)]], (10.0, 10.0))


def test_rejects_non_positive_extension():
    with pytest.raises(InvalidGridError):
        build_grid_terrain([[make_step()]], (10.0, 10.0), extension=0.0)


def test_invalid_grid_error_is_terrain_error():
    with pytest.raises(TerrainError):
        build_grid_terrain([], (10.0, 10.0))


def test_build_accepts_generators():
    terrain = build_grid_terrain((iter([make_step()]) for _ in range(2)), (10.0, 10.0))

    assert terrain.rows == 2
    assert terrain.extension == DEFAULT_EXTENSION_M


def test_grid_is_frozen(step_terrain):
    with pytest.raises(Exception):  # ValidationError
        step_terrain.step = (1.0, 1.0)


# ===========================================================================
# TC-005: Mesh Assembly
# ===========================================================================
def test_mesh_counts_for_ragged_grid(ragged_terrain):
    """TC-005: 3 cells + 1 filler + 8 extension patches."""
    placements = ragged_terrain.mesh()

    assert len(placements) == 12
    terrain_parts = [p for p in placements if p.role is MeshRole.TERRAIN]
    ground_parts = [p for p in placements if p.role is MeshRole.GROUND]
    assert len(terrain_parts) == 3
    assert len(ground_parts) == 9
    assert sorted(p.cell for p in terrain_parts) == [(0, 0), (0, 1), (1, 0)]


def test_mesh_filler_covers_missing_cell(ragged_terrain):
    placements = ragged_terrain.mesh()

    fillers = [
        p for p in placements if p.role is MeshRole.GROUND and p.offset == (10.0, 10.0)
    ]

    assert len(fillers) == 1
    _, high = fillers[0].mesh.bounds()
    np.testing.assert_allclose(high, [10.0, 10.0, 0.0])


def test_mesh_terrain_placed_at_cell_origin():
    terrain = create_plane_step_grid()

    step_part = next(p for p in terrain.mesh() if p.cell == (1, 0))
    world = step_part.world_positions()

    assert step_part.offset == (10.0, 0.0)
    assert world[:, 0].min() == pytest.approx(10.0)
    assert world[:, 0].max() == pytest.approx(20.0)


def test_mesh_extension_surrounds_grid():
    """TC-005b: Extension patches reach `extension` beyond every edge."""
    terrain = build_grid_terrain([[make_step()]], (10.0, 10.0), extension=50.0)

    ground = [p for p in terrain.mesh() if p.role is MeshRole.GROUND]
    world = np.vstack([p.world_positions() for p in ground])

    assert len(ground) == 8
    assert world[:, 0].min() == pytest.approx(-50.0)
    assert world[:, 0].max() == pytest.approx(60.0)
    assert world[:, 1].min() == pytest.approx(-50.0)
    assert world[:, 1].max() == pytest.approx(60.0)
    np.testing.assert_allclose(world[:, 2], 0.0)


def test_mesh_extension_skips_grid_rectangle():
    terrain = build_grid_terrain([[make_step()]], (10.0, 10.0), extension=50.0)

    ground = [p for p in terrain.mesh() if p.role is MeshRole.GROUND]

    assert (0.0, 0.0) not in [p.offset for p in ground]
