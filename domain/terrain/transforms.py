"""Terrain Bounded Context - Mirror/Rotate transforms.

Pure functions mapping query points, contact results and mesh buffers between
a shape's canonical frame and its cell frame. The same planar rules act on all
three so that collision and rendering can never disagree:

    mirror XZ:   (x, y) -> (x, size - y)
    mirror YZ:   (x, y) -> (size - x, y)
    rotate  90:  (x, y) -> (size - y, x)      (one forward quarter turn)
    rotate 180:  (x, y) -> (size - x, size - y)
    rotate 270:  (x, y) -> (y, size - x)

Directions (normals) use the same rules with size = 0; UVs use size = 1.
Queries go in with ``to_local`` (un-rotate, then un-mirror) and results come
out with ``to_world`` (mirror, then rotate).
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from domain.terrain.value_objects import (
    Interference,
    MeshData,
    Mirror,
    Rotate,
    RotationDirection,
)


# ---------------------------------------------------------------------------
# Planar kernels (work on floats and numpy arrays alike)
# ---------------------------------------------------------------------------
def _reflect_xy(x: Any, y: Any, size: float, mirror: Mirror) -> tuple[Any, Any]:
    if mirror is Mirror.XZ:
        return x, size - y
    if mirror is Mirror.YZ:
        return size - x, y
    return x, y


def _turn_xy(x: Any, y: Any, size: float, turns: int) -> tuple[Any, Any]:
    turns %= 4
    if turns == 1:
        return size - y, x
    if turns == 2:
        return size - x, size - y
    if turns == 3:
        return y, size - x
    return x, y


def _turns(rotate: Rotate, direction: RotationDirection) -> int:
    if direction is RotationDirection.FORWARD:
        return rotate.quarter_turns
    return (4 - rotate.quarter_turns) % 4


def _planar(
    buffer: NDArray[np.float64], kernel: Any, *args: Any
) -> NDArray[np.float64]:
    """Apply a planar kernel to the first two columns of an (n, k) buffer."""
    result = buffer.copy()
    # Columns are copied so the kernel never reads a column it already rewrote.
    x, y = kernel(buffer[:, 0].copy(), buffer[:, 1].copy(), *args)
    result[:, 0] = x
    result[:, 1] = y
    return result


def _as_point(point: Sequence[float] | NDArray[np.float64]) -> NDArray[np.float64]:
    vector = np.array(point, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"Point must be a 3-vector, got shape {vector.shape}")
    return vector


# ---------------------------------------------------------------------------
# Points
# ---------------------------------------------------------------------------
def mirror_point(
    point: Sequence[float] | NDArray[np.float64], size: float, mirror: Mirror
) -> NDArray[np.float64]:
    """Reflect a point inside a footprint of edge ``size``; z is untouched."""
    result = _as_point(point)
    result[0], result[1] = _reflect_xy(result[0], result[1], size, mirror)
    return result


def rotate_point(
    point: Sequence[float] | NDArray[np.float64],
    size: float,
    rotate: Rotate,
    direction: RotationDirection,
) -> NDArray[np.float64]:
    """Rotate a point about the footprint centre; z is untouched."""
    result = _as_point(point)
    result[0], result[1] = _turn_xy(
        result[0], result[1], size, _turns(rotate, direction)
    )
    return result


def to_local(
    point: Sequence[float] | NDArray[np.float64],
    size: float,
    mirror: Mirror,
    rotate: Rotate,
) -> NDArray[np.float64]:
    """Map a cell-frame query point into the shape's canonical frame.

    Mirror and rotate do not commute: the inverse of "mirror then rotate" is
    "un-rotate then un-mirror".
    """
    rotated = rotate_point(point, size, rotate, RotationDirection.REVERSE)
    return mirror_point(rotated, size, mirror)


# ---------------------------------------------------------------------------
# Interference results
# ---------------------------------------------------------------------------
def mirror_interference(
    interference: Interference, size: float, mirror: Mirror
) -> Interference:
    """Reflect a contact: the position moves, the normal component flips."""
    if mirror is Mirror.NONE:
        return interference
    position = interference.position.copy()
    normal = interference.normal.copy()
    position[0], position[1] = _reflect_xy(position[0], position[1], size, mirror)
    normal[0], normal[1] = _reflect_xy(normal[0], normal[1], 0.0, mirror)
    return Interference(
        magnitude=interference.magnitude, position=position, normal=normal
    )


def rotate_interference(
    interference: Interference,
    size: float,
    rotate: Rotate,
    direction: RotationDirection,
) -> Interference:
    """Rotate a contact's position and normal by the same quarter turns."""
    turns = _turns(rotate, direction)
    if turns == 0:
        return interference
    position = interference.position.copy()
    normal = interference.normal.copy()
    position[0], position[1] = _turn_xy(position[0], position[1], size, turns)
    normal[0], normal[1] = _turn_xy(normal[0], normal[1], 0.0, turns)
    return Interference(
        magnitude=interference.magnitude, position=position, normal=normal
    )


def to_world(
    interference: Interference, size: float, mirror: Mirror, rotate: Rotate
) -> Interference:
    """Map a canonical-frame contact back out to the cell frame."""
    mirrored = mirror_interference(interference, size, mirror)
    return rotate_interference(mirrored, size, rotate, RotationDirection.FORWARD)


# ---------------------------------------------------------------------------
# Mesh buffers
# ---------------------------------------------------------------------------
def mirror_mesh(mesh: MeshData, size: float, mirror: Mirror) -> MeshData:
    """Reflect a mesh and restore counter-clockwise winding.

    A reflection flips handedness, so the second and third index of every
    triangle are swapped; otherwise faces would point into the terrain.
    """
    if mirror is Mirror.NONE:
        return mesh
    return MeshData(
        positions=_planar(mesh.positions.astype(np.float64), _reflect_xy, size, mirror),
        normals=_planar(mesh.normals.astype(np.float64), _reflect_xy, 0.0, mirror),
        uvs=mesh.uvs,
        triangles=mesh.triangles[:, [0, 2, 1]],
    )


def rotate_mesh(mesh: MeshData, size: float, rotate: Rotate) -> MeshData:
    """Rotate mesh positions, normals and UVs forward; winding is preserved."""
    turns = rotate.quarter_turns
    if turns == 0:
        return mesh
    return MeshData(
        positions=_planar(mesh.positions.astype(np.float64), _turn_xy, size, turns),
        normals=_planar(mesh.normals.astype(np.float64), _turn_xy, 0.0, turns),
        uvs=_planar(mesh.uvs.astype(np.float64), _turn_xy, 1.0, turns),
        triangles=mesh.triangles,
    )


def transform_mesh(
    mesh: MeshData, size: float, mirror: Mirror, rotate: Rotate
) -> MeshData:
    """Apply a shape's transform tags to its canonical mesh (mirror, then rotate)."""
    return rotate_mesh(mirror_mesh(mesh, size, mirror), size, rotate)
