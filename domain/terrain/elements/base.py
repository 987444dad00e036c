"""Base class for grid elements (terrain shapes).

Each shape defines its surface once, in a canonical frame over the square
footprint [0, size] x [0, size], and owns its Mirror/Rotate tags. The base
class runs every query through the tags exactly once:

    cell-frame point -> to_local -> local_interference -> to_world

and builds meshes the same way (local_mesh -> transform_mesh), so collision
results and rendered geometry always agree.

Shapes are frozen pydantic models and hold no mutable state; any number of
readers may query the same instance concurrently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from domain.terrain.transforms import to_local, to_world, transform_mesh
from domain.terrain.value_objects import UNIT_Z, Interference, MeshData, Mirror, Rotate


class GridElement(BaseModel, ABC):
    """Abstract base for all terrain shapes held by grid cells."""

    size: float = Field(gt=0, allow_inf_nan=False)  # Footprint edge length
    mirror: Mirror = Mirror.NONE
    rotate: Rotate = Rotate.ZERO

    model_config = ConfigDict(frozen=True)

    # ------------------------------------------------------------------
    # Public capability set
    # ------------------------------------------------------------------

    def interference(
        self, point: Sequence[float] | NDArray[np.float64]
    ) -> Interference | None:
        """Contact of a cell-frame point with this shape, or None.

        Args:
            point: Query point relative to the cell origin

        Returns:
            Interference in the cell frame, or None without penetration
        """
        local = to_local(point, self.size, self.mirror, self.rotate)
        hit = self.local_interference(local)
        if hit is None:
            return None
        return to_world(hit, self.size, self.mirror, self.rotate)

    def mesh(self) -> MeshData:
        """Geometry in the cell frame, consistent with ``interference``."""
        return transform_mesh(self.local_mesh(), self.size, self.mirror, self.rotate)

    # ------------------------------------------------------------------
    # Canonical-frame definition (implemented per shape)
    # ------------------------------------------------------------------

    @abstractmethod
    def local_interference(self, point: NDArray[np.float64]) -> Interference | None:
        """Contact test for a point already mapped into the canonical frame."""

    @abstractmethod
    def local_mesh(self) -> MeshData:
        """Untransformed geometry over the canonical footprint."""

    def in_footprint(self, x: float, y: float) -> bool:
        """Inclusive check against [0, size] x [0, size]."""
        return 0.0 <= x <= self.size and 0.0 <= y <= self.size


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------
def ground_contact(x: float, y: float, z: float) -> Interference:
    """Contact with the z = 0 ground plane for a point at or below it."""
    return Interference(magnitude=-z, position=(x, y, 0.0), normal=UNIT_Z)


def grid_triangles(columns: int, rows: int) -> NDArray[np.int64]:
    """Counter-clockwise (seen from +z) triangles over a vertex lattice.

    Vertices are expected row-major: index = row * (columns + 1) + column.
    """
    stride = columns + 1
    column_index, row_index = np.meshgrid(
        np.arange(columns), np.arange(rows), indexing="xy"
    )
    v00 = (row_index * stride + column_index).reshape(-1)
    v10 = v00 + 1
    v01 = v00 + stride
    v11 = v01 + 1
    lower = np.stack([v00, v10, v01], axis=1)
    upper = np.stack([v11, v01, v10], axis=1)
    return np.stack([lower, upper], axis=1).reshape(-1, 3)
