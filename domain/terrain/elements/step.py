"""Step: ground on the low half, flat plateau on the high half."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from pydantic import Field

from domain.terrain.elements.base import GridElement, ground_contact
from domain.terrain.value_objects import UNIT_X, UNIT_Y, UNIT_Z, Interference, MeshData


class Step(GridElement):
    """Ground for x < size/2, plateau of ``height`` for x >= size/2.

    The plateau is bounded by a vertical riser at x = size/2 (facing -x) and
    two side walls at y = 0 (facing -y) and y = size (facing +y).
    """

    height: float = Field(gt=0, allow_inf_nan=False)

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

        # Margins to each face of the plateau block
        top = height - z
        riser = x - half
        wall_pos = size - y  # Distance to the +y wall
        wall_neg = y  # Distance to the -y wall

        # Nearest face by strict priority: top, then riser, then the walls
        if top < riser and top < wall_pos and top < wall_neg:
            return Interference(magnitude=top, position=(x, y, height), normal=UNIT_Z)

        if riser < wall_pos and riser < wall_neg:
            return Interference(magnitude=riser, position=(half, y, z), normal=-UNIT_X)

        if wall_neg < wall_pos:
            return Interference(magnitude=wall_neg, position=(x, 0.0, z), normal=-UNIT_Y)
        return Interference(magnitude=wall_pos, position=(x, size, z), normal=UNIT_Y)

    def local_mesh(self) -> MeshData:
        s = self.size
        h = self.height
        half = s / 2.0

        up = [0.0, 0.0, 1.0]
        back = [-1.0, 0.0, 0.0]
        side_py = [0.0, 1.0, 0.0]
        side_ny = [0.0, -1.0, 0.0]
        third = 1.0 / 3.0

        positions = [
            # Ground
            [0.0, 0.0, 0.0], [half, 0.0, 0.0], [half, s, 0.0], [0.0, s, 0.0],
            # Riser
            [half, 0.0, 0.0], [half, 0.0, h], [half, s, h], [half, s, 0.0],
            # Plateau
            [half, 0.0, h], [s, 0.0, h], [s, s, h], [half, s, h],
            # -y wall
            [s, 0.0, 0.0], [s, 0.0, h], [half, 0.0, h], [half, 0.0, 0.0],
            # +y wall
            [s, s, 0.0], [half, s, 0.0], [half, s, h], [s, s, h],
        ]
        normals = [up] * 4 + [back] * 4 + [up] * 4 + [side_ny] * 4 + [side_py] * 4
        uvs = [
            [0.0, 0.0], [third, 0.0], [third, 1.0], [0.0, 1.0],
            [third, 0.0], [2 * third, 0.0], [2 * third, 1.0], [third, 1.0],
            [2 * third, 0.0], [1.0, 0.0], [1.0, 1.0], [2 * third, 1.0],
            [1.0, 0.0], [1.0, 1.0], [2 * third, 1.0], [2 * third, 0.0],
            [third, 0.0], [third, 1.0], [2 * third, 1.0], [2 * third, 0.0],
        ]
        triangles = [
            [0, 1, 3], [2, 3, 1],
            [4, 5, 7], [6, 7, 5],
            [8, 9, 11], [10, 11, 9],
            [12, 13, 15], [14, 15, 13],
            [16, 17, 19], [18, 19, 17],
        ]

        return MeshData(
            positions=positions, normals=normals, uvs=uvs, triangles=triangles
        )
