"""Terrain Bounded Context - Grid Terrain Aggregate.

A rectangular arrangement of shape cells over the ground plane:

    cell (i, j) covers [i*dx, (i+1)*dx) x [j*dy, (j+1)*dy)

``elements[j][i]`` is the shape in column i of row j. Rows may differ in
length; a missing cell (and any query outside the grid) behaves as flat
ground at z = 0.

Built once and never mutated. Queries are pure, so a single GridTerrain can
serve any number of concurrent readers.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.terrain.elements.base import GridElement, ground_contact
from domain.terrain.elements.plane import flat_patch
from domain.terrain.errors import InvalidGridError
from domain.terrain.value_objects import Interference, MeshPlacement, MeshRole

# Module-level logger
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_EXTENSION_M = 500.0  # Flat ground drawn around the grid rectangle


class GridTerrain(BaseModel):
    """Grid of terrain shapes answering point-penetration queries (Aggregate).

    Invariants:
        - step (dx, dy) is finite and > 0
        - at least one element overall
        - no element is larger than the cell it sits in
        - extension is finite and > 0
    """

    elements: tuple[tuple[GridElement, ...], ...]
    step: tuple[float, float]
    extension: float = Field(default=DEFAULT_EXTENSION_M, gt=0, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_grid(self) -> "GridTerrain":
        dx, dy = self.step
        if not (math.isfinite(dx) and math.isfinite(dy)) or dx <= 0 or dy <= 0:
            raise ValueError(f"step must be finite and positive, got {self.step}")

        if self.element_count == 0:
            raise ValueError("Grid must contain at least one element")

        for j, row in enumerate(self.elements):
            for i, element in enumerate(row):
                if element.size > dx or element.size > dy:
                    raise ValueError(
                        f"Element at column {i}, row {j} has size {element.size} "
                        f"larger than the cell step {self.step}"
                    )

        lengths = {len(row) for row in self.elements}
        if len(lengths) > 1:
            logger.warning(
                "Ragged grid: row lengths %s; missing cells fall back to ground",
                [len(row) for row in self.elements],
            )

        undersized = sum(
            1
            for row in self.elements
            for element in row
            if element.size < dx or element.size < dy
        )
        if undersized:
            logger.warning(
                "%d element(s) smaller than the %.3f x %.3f cell; "
                "the remainder of those cells is ground",
                undersized,
                dx,
                dy,
            )

        return self

    # ------------------------------------------------------------------
    # Shape of the grid
    # ------------------------------------------------------------------

    @property
    def rows(self) -> int:
        return len(self.elements)

    @property
    def columns(self) -> int:
        """Length of the longest row."""
        return max((len(row) for row in self.elements), default=0)

    @property
    def element_count(self) -> int:
        return sum(len(row) for row in self.elements)

    @property
    def extent(self) -> tuple[float, float]:
        """World (width, depth) of the grid's bounding rectangle."""
        return self.columns * self.step[0], self.rows * self.step[1]

    def cell_index(self, x: float, y: float) -> tuple[int, int]:
        """(column, row) of the cell containing world (x, y)."""
        return math.floor(x / self.step[0]), math.floor(y / self.step[1])

    def cell_origin(self, i: int, j: int) -> tuple[float, float]:
        return i * self.step[0], j * self.step[1]

    def element_at(self, i: int, j: int) -> GridElement | None:
        """Shape in column i of row j, or None for a missing cell."""
        if i < 0 or j < 0 or j >= len(self.elements):
            return None
        row = self.elements[j]
        if i >= len(row):
            return None
        return row[i]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def interference(
        self, point: Sequence[float] | NDArray[np.float64]
    ) -> Interference | None:
        """Contact of a world point with the terrain, or None.

        Args:
            point: World (x, y, z)

        Returns:
            Interference in world coordinates, or None above the surface

        Raises:
            ValueError: If any coordinate is NaN or infinite
        """
        x, y, z = (float(v) for v in point)
        if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
            raise ValueError(f"Query point must be finite: ({x}, {y}, {z})")

        if x >= 0.0 and y >= 0.0:
            i, j = self.cell_index(x, y)
            element = self.element_at(i, j)
            if element is not None:
                ox, oy = self.cell_origin(i, j)
                hit = element.interference((x - ox, y - oy, z))
                if hit is not None:
                    return hit.translated(ox, oy)

        if z < 0.0:
            return ground_contact(x, y, z)
        return None

    def mesh(self) -> list[MeshPlacement]:
        """Renderable geometry of the whole terrain.

        Returns one TERRAIN placement per element, GROUND strips around any
        element smaller than its cell, one GROUND filler per missing cell
        inside the bounding rectangle, and eight GROUND patches extending the
        ground around the rectangle by ``extension``.
        """
        dx, dy = self.step
        placements: list[MeshPlacement] = []
        filler_count = 0

        for j in range(self.rows):
            for i in range(self.columns):
                element = self.element_at(i, j)
                offset = self.cell_origin(i, j)
                if element is None:
                    placements.append(
                        MeshPlacement(
                            mesh=flat_patch(dx, dy), offset=offset, role=MeshRole.GROUND
                        )
                    )
                    filler_count += 1
                else:
                    placements.append(
                        MeshPlacement(
                            mesh=element.mesh(),
                            offset=offset,
                            role=MeshRole.TERRAIN,
                            cell=(i, j),
                        )
                    )
                    remainder = self._remainder_patches(element.size, offset)
                    placements.extend(remainder)
                    filler_count += len(remainder)

        extension = self._extension_patches()
        placements.extend(extension)

        logger.debug(
            "Built terrain mesh: %d placements (%d cells, %d fillers, %d extension)",
            len(placements),
            self.element_count,
            filler_count,
            len(extension),
        )
        return placements

    def _remainder_patches(
        self, size: float, offset: tuple[float, float]
    ) -> list[MeshPlacement]:
        """Ground covering the part of a cell outside a smaller element.

        The strip right of the element spans the full cell depth; the strip
        above it spans only the element's width.
        """
        dx, dy = self.step
        ox, oy = offset
        patches: list[MeshPlacement] = []
        if size < dx:
            patches.append(
                MeshPlacement(
                    mesh=flat_patch(dx - size, dy),
                    offset=(ox + size, oy),
                    role=MeshRole.GROUND,
                )
            )
        if size < dy:
            patches.append(
                MeshPlacement(
                    mesh=flat_patch(size, dy - size),
                    offset=(ox, oy + size),
                    role=MeshRole.GROUND,
                )
            )
        return patches

    def _extension_patches(self) -> list[MeshPlacement]:
        """Ground patches for the eight regions around the grid rectangle."""
        width, depth = self.extent
        e = self.extension
        spans_x = ((-e, e), (0.0, width), (width, e))
        spans_y = ((-e, e), (0.0, depth), (depth, e))

        patches: list[MeshPlacement] = []
        for iy, (oy, sy) in enumerate(spans_y):
            for ix, (ox, sx) in enumerate(spans_x):
                if ix == 1 and iy == 1:
                    continue  # The grid itself
                patches.append(
                    MeshPlacement(
                        mesh=flat_patch(sx, sy), offset=(ox, oy), role=MeshRole.GROUND
                    )
                )
        return patches


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------
def build_grid_terrain(
    rows: Iterable[Iterable[GridElement]],
    step: tuple[float, float],
    *,
    extension: float = DEFAULT_EXTENSION_M,
) -> GridTerrain:
    """Build a validated GridTerrain from nested rows of shapes.

    Args:
        rows: Row-major shapes; ``rows[j][i]`` lands in column i of row j
        step: Cell size (dx, dy) in metres
        extension: Width of the flat ground drawn around the grid

    Returns:
        Frozen GridTerrain

    Raises:
        InvalidGridError: If the configuration is rejected
    """
    elements = tuple(tuple(row) for row in rows)
    try:
        terrain = GridTerrain(elements=elements, step=step, extension=extension)
    except ValueError as e:
        raise InvalidGridError(f"Invalid grid terrain: {e}") from e

    logger.debug(
        "Grid terrain: %d rows x %d columns, %d elements, step=(%.3f, %.3f)",
        terrain.rows,
        terrain.columns,
        terrain.element_count,
        terrain.step[0],
        terrain.step[1],
    )
    return terrain
