"""Single inclined plane across the whole footprint."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from pydantic import Field

from domain.terrain.elements.base import GridElement
from domain.terrain.value_objects import Interference, MeshData, unit_vector


class Slope(GridElement):
    """Plane rising from z = 0 at y = 0 to z = ``height`` at y = size.

    No side walls: points outside the footprint or above the surface do not
    interfere.
    """

    height: float = Field(gt=0, allow_inf_nan=False)

    @property
    def surface_normal(self) -> NDArray[np.float64]:
        return unit_vector(0.0, -self.height, self.size)

    def local_interference(self, point: NDArray[np.float64]) -> Interference | None:
        x, y, z = (float(v) for v in point)
        if z > self.height or not self.in_footprint(x, y):
            return None

        normal = self.surface_normal
        top_point = np.array([0.0, self.size, self.height])
        depth = -float(normal @ (point - top_point))
        if depth < 0.0:
            return None

        return Interference(
            magnitude=depth, position=point + depth * normal, normal=normal
        )

    def local_mesh(self) -> MeshData:
        s = self.size
        h = self.height
        normal = self.surface_normal.tolist()

        return MeshData(
            positions=[[0.0, 0.0, 0.0], [s, 0.0, 0.0], [s, s, h], [0.0, s, h]],
            normals=[normal] * 4,
            uvs=[[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]],
            triangles=[[0, 1, 3], [2, 3, 1]],
        )
