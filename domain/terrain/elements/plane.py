"""Flat ground patch at z = 0."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from pydantic import Field

from domain.terrain.elements.base import GridElement, ground_contact, grid_triangles
from domain.terrain.value_objects import Interference, MeshData


class Plane(GridElement):
    """Zero-height ground bounded by its footprint.

    Mirror and rotate are accepted for uniformity; a flat square is invariant
    under both.
    """

    subdivisions: int = Field(default=1, ge=1)  # Mesh quads per edge

    def local_interference(self, point: NDArray[np.float64]) -> Interference | None:
        x, y, z = (float(v) for v in point)
        if not self.in_footprint(x, y) or z > 0.0:
            return None
        return ground_contact(x, y, z)

    def local_mesh(self) -> MeshData:
        return flat_patch(self.size, self.size, self.subdivisions)


def flat_patch(width: float, depth: float, subdivisions: int = 1) -> MeshData:
    """Upward-facing rectangle [0, width] x [0, depth] at z = 0.

    Also used for the ground that surrounds and fills a grid, which is why the
    patch may be rectangular.
    """
    if width <= 0 or depth <= 0:
        raise ValueError(f"Patch extent must be positive, got {width} x {depth}")
    if subdivisions < 1:
        raise ValueError(f"subdivisions must be >= 1, got {subdivisions}")

    u = np.linspace(0.0, 1.0, subdivisions + 1)
    uu, vv = np.meshgrid(u, u, indexing="xy")
    uu, vv = uu.reshape(-1), vv.reshape(-1)

    positions = np.column_stack([uu * width, vv * depth, np.zeros_like(uu)])
    normals = np.tile([0.0, 0.0, 1.0], (len(uu), 1))
    uvs = np.column_stack([uu, vv])

    return MeshData(
        positions=positions,
        normals=normals,
        uvs=uvs,
        triangles=grid_triangles(subdivisions, subdivisions),
    )
