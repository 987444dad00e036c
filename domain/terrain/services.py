"""Terrain Bounded Context - Domain Services.

Pure terrain-following logic built on GridTerrain.interference: marching rays
into the terrain, snapping points onto the surface, and draping a straight
segment over it. NO I/O operations - exporting geometry is implemented by
infrastructure adapters under `src/infrastructure/terrain/` via domain ports.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from domain.terrain.errors import InvalidPathError
from domain.terrain.grid import GridTerrain
from domain.terrain.value_objects import SurfaceHit, SurfacePath, SurfaceSample, Vec3

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
MAX_RAY_DISTANCE_M = 200.0  # Rays give up beyond this distance
RAY_STEP_M = 0.05  # March increment
SURFACE_OFFSET_M = 0.01  # Lift of returned points above the surface
SNAP_LIFT_M = 2.0  # Snapping starts this far above the query point
SNAP_DEPTH_M = 10.0  # ...and searches this far below the start
DEFAULT_PATH_SUBDIVISIONS = 100

_DOWN = (0.0, 0.0, -1.0)
_MISS: Vec3 = (float("nan"), float("nan"), float("nan"))


def _as_vec3(value: Sequence[float], name: str) -> np.ndarray:
    vector = np.asarray(value, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"{name} must be a 3-vector, got shape {vector.shape}")
    if not np.all(np.isfinite(vector)):
        raise ValueError(f"{name} must be finite: {vector.tolist()}")
    return vector


# ---------------------------------------------------------------------------
# Raycast
# ---------------------------------------------------------------------------
def raycast_terrain(
    terrain: GridTerrain,
    origin: Sequence[float],
    direction: Sequence[float],
    max_distance: float = MAX_RAY_DISTANCE_M,
    step: float = RAY_STEP_M,
    offset: float = SURFACE_OFFSET_M,
) -> SurfaceHit | None:
    """March a ray until it first penetrates the terrain.

    Samples ``origin + k * step * direction`` for k = 0, 1, ... while the
    distance stays below ``max_distance``. The first sample that interferes
    is pushed back onto the surface along the contact normal and lifted by
    ``offset``.

    Args:
        terrain: Grid terrain to query
        origin: Ray start in world coordinates
        direction: Ray direction (any non-zero length; normalized here)
        max_distance: Maximum march distance in metres
        step: March increment in metres
        offset: Lift applied to the returned position along the normal

    Returns:
        SurfaceHit for the first contact, or None if the ray never touches

    Raises:
        ValueError: If direction is zero or max_distance/step is not positive
    """
    start = _as_vec3(origin, "origin")
    heading = _as_vec3(direction, "direction")
    length = float(np.linalg.norm(heading))
    if length == 0.0:
        raise ValueError("direction must be non-zero")
    if max_distance <= 0:
        raise ValueError("max_distance must be positive")
    if step <= 0:
        raise ValueError("step must be positive")
    heading = heading / length

    k = 0
    distance = 0.0
    while distance < max_distance:
        test = start + heading * distance
        hit = terrain.interference(test)
        if hit is not None:
            contact = test + hit.penetration_vector
            lifted = contact + hit.normal * offset
            return SurfaceHit(
                distance_m=distance,
                position=tuple(float(v) for v in lifted),
                normal=tuple(float(v) for v in hit.normal),
            )
        k += 1
        distance = k * step

    return None


def snap_to_terrain(
    terrain: GridTerrain,
    point: Sequence[float],
    lift: float = SNAP_LIFT_M,
    depth: float = SNAP_DEPTH_M,
    step: float = RAY_STEP_M,
) -> SurfaceHit | None:
    """Drop a point vertically onto the terrain surface.

    The downward ray starts ``lift`` above the point so that points slightly
    below the surface still snap to it.
    """
    x, y, z = (float(v) for v in _as_vec3(point, "point"))
    return raycast_terrain(
        terrain, (x, y, z + lift), _DOWN, max_distance=lift + depth, step=step
    )


# ---------------------------------------------------------------------------
# Main Service: terrain_path
# ---------------------------------------------------------------------------
def terrain_path(
    terrain: GridTerrain,
    start: Sequence[float],
    end: Sequence[float],
    subdivisions: int = DEFAULT_PATH_SUBDIVISIONS,
) -> SurfacePath:
    """Drape the segment start -> end over the terrain.

    Splits the segment into ``subdivisions`` equal parts and snaps each of the
    ``subdivisions + 1`` points onto the surface. Points that find no surface
    are kept as misses with a NaN position.

    Args:
        terrain: Grid terrain to follow
        start: Segment start in world coordinates
        end: Segment end in world coordinates
        subdivisions: Number of equal parts (>= 1)

    Returns:
        SurfacePath with one sample per snapped point

    Raises:
        InvalidPathError: If start equals end (zero length)
        ValueError: If subdivisions is below 1

    Example:
        >>> path = terrain_path(terrain, (0, 5, 0), (40, 5, 0), subdivisions=40)
        >>> print(f"Misses: {path.miss_count()} of {len(path.samples)}")
    """
    a = _as_vec3(start, "start")
    b = _as_vec3(end, "end")

    # PRE-1: non-zero length
    if np.array_equal(a, b):
        raise InvalidPathError("Start equals end")

    # PRE-2: at least one segment
    if subdivisions < 1:
        raise ValueError("subdivisions must be >= 1")

    total_distance = float(np.linalg.norm(b - a))

    samples: list[SurfaceSample] = []
    has_misses = False

    for i in range(subdivisions + 1):
        if i == subdivisions:
            distance = total_distance
            point = b
        else:
            distance = i * total_distance / subdivisions
            point = a + (b - a) * (i / subdivisions)

        hit = snap_to_terrain(terrain, point)
        if hit is None:
            has_misses = True
            samples.append(SurfaceSample(distance_m=distance, position=_MISS, is_miss=True))
        else:
            samples.append(SurfaceSample(distance_m=distance, position=hit.position))

    return SurfacePath(
        start=tuple(float(v) for v in a),
        end=tuple(float(v) for v in b),
        samples=tuple(samples),
        total_distance_m=total_distance,
        has_misses=has_misses,
    )


def path_length(path: SurfacePath) -> float:
    """Length of the draped polyline, skipping segments that touch a miss."""
    length = 0.0
    positions = path.positions()
    for p, q in zip(positions, positions[1:]):
        if any(math.isnan(v) for v in p + q):
            continue
        length += math.dist(p, q)
    return length
