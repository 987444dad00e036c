"""Root pytest configuration for all tests.

Shared fixtures build small terrains directly from shape instances; no test
needs files on disk except the exporter tests, which use ``tmp_path``.
"""

from __future__ import annotations

import pytest


@pytest.fixture
def step_terrain():
    """Single 10 m Step (height 2) in a 10 m grid."""
    from domain.terrain.elements import Step
    from domain.terrain.grid import build_grid_terrain

    return build_grid_terrain([[Step(size=10.0, height=2.0)]], (10.0, 10.0))


@pytest.fixture
def ragged_terrain():
    """Two rows of Steps; the second row is one cell short."""
    from domain.terrain.elements import Step
    from domain.terrain.grid import build_grid_terrain

    rows = [
        [Step(size=10.0, height=2.0), Step(size=10.0, height=2.0)],
        [Step(size=10.0, height=2.0)],
    ]
    return build_grid_terrain(rows, (10.0, 10.0))
