"""Step whose high half is a ramp instead of a plateau."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from pydantic import Field

from domain.terrain.elements.base import GridElement, ground_contact
from domain.terrain.value_objects import UNIT_X, Interference, MeshData, unit_vector


class StepSlope(GridElement):
    """Ground for x < size/2, ramp for x >= size/2.

    The ramp runs along y: it starts at ``height`` on the y = 0 edge and
    descends to the ground at y = size. The riser at x = size/2 is therefore a
    triangle, tallest at y = 0.
    """

    height: float = Field(gt=0, allow_inf_nan=False)

    @property
    def ramp_normal(self) -> NDArray[np.float64]:
        return unit_vector(0.0, self.height, self.size)

    def local_interference(self, point: NDArray[np.float64]) -> Interference | None:
        x, y, z = (float(v) for v in point)
        size = self.size
        height = self.height

        if z > height or not self.in_footprint(x, y):
            return None

        half = size / 2.0
        if x < half:
            if z > 0.0:
                return None
            return ground_contact(x, y, z)

        normal = self.ramp_normal
        corner = np.array([half, 0.0, height])
        depth = -float(normal @ (point - corner))
        if depth < 0.0:
            # Above the ramp
            return None

        riser = x - half
        if riser < depth:
            return Interference(magnitude=riser, position=(half, y, z), normal=-UNIT_X)
        return Interference(
            magnitude=depth, position=point + depth * normal, normal=normal
        )

    def local_mesh(self) -> MeshData:
        s = self.size
        h = self.height
        half = s / 2.0

        up = [0.0, 0.0, 1.0]
        back = [-1.0, 0.0, 0.0]
        ramp = self.ramp_normal.tolist()
        third = 1.0 / 3.0

        positions = [
            # Ground
            [0.0, 0.0, 0.0], [half, 0.0, 0.0], [half, s, 0.0], [0.0, s, 0.0],
            # Riser (triangle)
            [half, 0.0, 0.0], [half, 0.0, h], [half, s, 0.0],
            # Ramp
            [half, 0.0, h], [s, 0.0, h], [s, s, 0.0], [half, s, 0.0],
        ]
        normals = [up] * 4 + [back] * 3 + [ramp] * 4
        uvs = [
            [0.0, 0.0], [third, 0.0], [third, 1.0], [0.0, 1.0],
            [third, 0.0], [2 * third, 0.0], [third, 1.0],
            [2 * third, 0.0], [1.0, 0.0], [1.0, 1.0], [2 * third, 1.0],
        ]
        triangles = [
            [0, 1, 3], [2, 3, 1],
            [4, 5, 6],
            [7, 8, 10], [9, 10, 8],
        ]

        return MeshData(
            positions=positions, normals=normals, uvs=uvs, triangles=triangles
        )
