"""Ready-made terrain layouts for the driving demo.

Each layout returns rows of shapes (``rows[j][i]`` is column i of row j) so
that layouts can be stacked before building a single GridTerrain.
"""

from __future__ import annotations

import logging
from typing import Sequence

from domain.terrain.elements import (
    Function,
    GridElement,
    HeightComponent,
    Plane,
    Step,
    StepSlope,
    cosine_wave,
    ramp_down,
    ramp_up,
)
from domain.terrain.grid import GridTerrain, build_grid_terrain
from domain.terrain.value_objects import Mirror, Rotate

logger = logging.getLogger(__name__)

Rows = list[list[GridElement]]

# ---------------------------------------------------------------------------
# Demo environment parameters
# ---------------------------------------------------------------------------
DEMO_CELL_SIZE_M = 20.0
DEMO_TABLE_HEIGHT_M = 2.0
DEMO_WAVE_HEIGHT_M = 0.3
DEMO_WAVE_LENGTH_M = 4.0
DEMO_STEP_HEIGHTS_M = (0.2, 0.4, 0.6)


def table_top(size: float, height: float) -> Rows:
    """Raised 2 x 3 table reached by ramps on both short ends."""
    return [
        [
            StepSlope(size=size, height=height, rotate=Rotate.NINETY),
            Step(size=size, height=height, rotate=Rotate.NINETY),
            StepSlope(size=size, height=height, mirror=Mirror.YZ, rotate=Rotate.TWO_SEVENTY),
        ],
        [
            StepSlope(size=size, height=height, mirror=Mirror.YZ, rotate=Rotate.NINETY),
            Step(size=size, height=height, rotate=Rotate.TWO_SEVENTY),
            StepSlope(size=size, height=height, rotate=Rotate.TWO_SEVENTY),
        ],
    ]


def steps(size: float, heights: Sequence[float]) -> Rows:
    """One row per height: step up, step down, flat."""
    return [
        [
            Step(size=size, height=height),
            Step(size=size, height=height, rotate=Rotate.ONE_EIGHTY),
            Plane(size=size),
        ]
        for height in heights
    ]


def wave(size: float, height: float, wave_length: float) -> Rows:
    """3 x 3 block of cosine ripples along x.

    The outer ring of cells is multiplied by linear ramps so the ripples fade
    to zero at the block's border.
    """
    ripple = cosine_wave(height, wave_length, axis="x")
    x_in, x_out = ramp_up(size, "x"), ramp_down(size, "x")
    y_in, y_out = ramp_up(size, "y"), ramp_down(size, "y")

    def cell(*tapers: HeightComponent) -> Function:
        return Function(size=size, components=(ripple, *tapers))

    return [
        [cell(x_in, y_in), cell(y_in), cell(x_out, y_in)],
        [cell(x_in), cell(), cell(x_out)],
        [cell(x_in, y_out), cell(y_out), cell(x_out, y_out)],
    ]


def build_demo_environment(size: float = DEMO_CELL_SIZE_M) -> GridTerrain:
    """Table top, then wave field, then step rows, stacked along y."""
    rows: Rows = []
    rows.extend(table_top(size, DEMO_TABLE_HEIGHT_M))
    rows.extend(wave(size, DEMO_WAVE_HEIGHT_M, DEMO_WAVE_LENGTH_M))
    rows.extend(steps(size, DEMO_STEP_HEIGHTS_M))

    terrain = build_grid_terrain(rows, (size, size))
    logger.info(
        "Demo environment: %d rows x %d columns of %.1f m cells",
        terrain.rows,
        terrain.columns,
        size,
    )
    return terrain
