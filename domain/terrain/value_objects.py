"""Terrain Bounded Context - Value Objects.

Immutable data structures shared by the terrain shapes, the grid and the
terrain-following services. All validation occurs at construction time via
Pydantic; numpy buffers are copied and flagged read-only so a constructed
value can never change underneath a concurrent reader.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

import numpy as np
from affine import Affine
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Numeric Constants
# ---------------------------------------------------------------------------
NORMAL_TOLERANCE = 1e-6  # Allowed deviation of a contact normal from unit length
DISTANCE_TOLERANCE_M = 1e-6  # For path distance invariants

Vec3 = tuple[float, float, float]


def _frozen_array(value: Any, dtype: type[np.generic]) -> NDArray[Any]:
    """Return an owned, contiguous, read-only copy of ``value``."""
    array = np.array(value, dtype=dtype, copy=True, order="C")
    array.flags.writeable = False
    return array


def unit_vector(x: float, y: float, z: float) -> NDArray[np.float64]:
    """Normalize (x, y, z) into a read-only float64 vector."""
    vector = np.array([x, y, z], dtype=np.float64)
    length = float(np.linalg.norm(vector))
    if length == 0.0:
        raise ValueError("Cannot normalize a zero-length vector")
    return _frozen_array(vector / length, np.float64)


UNIT_X = unit_vector(1.0, 0.0, 0.0)
UNIT_Y = unit_vector(0.0, 1.0, 0.0)
UNIT_Z = unit_vector(0.0, 0.0, 1.0)


# ---------------------------------------------------------------------------
# Transform Tags
# ---------------------------------------------------------------------------
class Mirror(str, Enum):
    """Reflection applied to a shape inside its square footprint.

    XZ reflects across the XZ plane (y -> size - y); YZ reflects across the
    YZ plane (x -> size - x). Every mirror is its own inverse.
    """

    NONE = "none"
    XZ = "xz"
    YZ = "yz"


class Rotate(int, Enum):
    """Quarter-turn rotation of a shape about the centre of its footprint."""

    ZERO = 0
    NINETY = 90
    ONE_EIGHTY = 180
    TWO_SEVENTY = 270

    @property
    def quarter_turns(self) -> int:
        return self.value // 90


class RotationDirection(str, Enum):
    """FORWARD maps canonical-frame results out; REVERSE maps queries in."""

    FORWARD = "forward"
    REVERSE = "reverse"


# ---------------------------------------------------------------------------
# Interference
# ---------------------------------------------------------------------------
class Interference(BaseModel):
    """Contact between a query point and the terrain surface (Value Object).

    Built fresh for every query; never cached or shared.

    Invariants:
        - magnitude is finite and >= 0 (penetration depth)
        - position is a finite 3-vector (contact point on the surface)
        - normal is a unit 3-vector pointing out of the terrain

    Note: numpy-backed fields make pydantic's generated ``__eq__`` ambiguous;
    compare fields with ``np.allclose`` instead of comparing instances.
    """

    magnitude: float = Field(ge=0, allow_inf_nan=False)
    position: NDArray[np.float64]
    normal: NDArray[np.float64]

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @field_validator("position", "normal", mode="before")
    @classmethod
    def _as_vector(cls, value: Any) -> NDArray[np.float64]:
        return _frozen_array(value, np.float64)

    @model_validator(mode="after")
    def validate_interference(self) -> "Interference":
        for name in ("position", "normal"):
            vector = getattr(self, name)
            if vector.shape != (3,):
                raise ValueError(f"{name} must be a 3-vector, got shape {vector.shape}")
            if not np.all(np.isfinite(vector)):
                raise ValueError(f"{name} must be finite: {vector.tolist()}")
        length = float(np.linalg.norm(self.normal))
        if abs(length - 1.0) > NORMAL_TOLERANCE:
            raise ValueError(f"normal must be a unit vector, got length {length:.6f}")
        return self

    @property
    def penetration_vector(self) -> NDArray[np.float64]:
        """Displacement that pushes the query point back onto the surface."""
        return self.normal * self.magnitude

    def translated(self, dx: float, dy: float, dz: float = 0.0) -> "Interference":
        """Return a copy whose position is shifted; the normal is unchanged."""
        return Interference(
            magnitude=self.magnitude,
            position=self.position + np.array([dx, dy, dz]),
            normal=self.normal,
        )


# ---------------------------------------------------------------------------
# Mesh Geometry
# ---------------------------------------------------------------------------
class MeshData(BaseModel):
    """Renderable triangle list with per-vertex attributes (Value Object).

    Triangles are counter-clockwise when seen from the side the vertex
    normals point to.

    Invariants:
        - positions and normals have shape (n, 3), uvs has shape (n, 2)
        - triangles has shape (m, 3) with m >= 1 and every index < n
        - all attribute values are finite
    """

    positions: NDArray[np.float32]
    normals: NDArray[np.float32]
    uvs: NDArray[np.float32]
    triangles: NDArray[np.uint32]

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @field_validator("positions", "normals", "uvs", mode="before")
    @classmethod
    def _as_float32(cls, value: Any) -> NDArray[np.float32]:
        return _frozen_array(value, np.float32)

    @field_validator("triangles", mode="before")
    @classmethod
    def _as_indices(cls, value: Any) -> NDArray[np.uint32]:
        raw = np.asarray(value, dtype=np.int64)
        if raw.size and np.any(raw < 0):
            raise ValueError("Triangle indices must be non-negative")
        return _frozen_array(raw, np.uint32)

    @model_validator(mode="after")
    def validate_mesh(self) -> "MeshData":
        if self.positions.ndim != 2 or self.positions.shape[1] != 3:
            raise ValueError(
                f"positions must have shape (n, 3), got {self.positions.shape}"
            )
        n_vertices = self.positions.shape[0]
        if self.normals.shape != self.positions.shape:
            raise ValueError(
                f"normals shape {self.normals.shape} does not match positions "
                f"{self.positions.shape}"
            )
        if self.uvs.shape != (n_vertices, 2):
            raise ValueError(f"uvs must have shape ({n_vertices}, 2), got {self.uvs.shape}")
        if self.triangles.ndim != 2 or self.triangles.shape[1] != 3:
            raise ValueError(
                f"triangles must have shape (m, 3), got {self.triangles.shape}"
            )
        if self.triangles.shape[0] == 0:
            raise ValueError("Mesh must contain at least one triangle")
        if int(self.triangles.max()) >= n_vertices:
            raise ValueError(
                f"Triangle index {int(self.triangles.max())} out of range for "
                f"{n_vertices} vertices"
            )
        for name in ("positions", "normals", "uvs"):
            if not np.all(np.isfinite(getattr(self, name))):
                raise ValueError(f"{name} must be finite")
        return self

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.triangles.shape[0])

    def indices(self) -> NDArray[np.uint32]:
        """Flat index list (three entries per triangle) for GPU upload."""
        return self.triangles.reshape(-1)

    def face_normals(self) -> NDArray[np.float64]:
        """Unit normals implied by triangle winding (zero for degenerate faces)."""
        corners = self.positions.astype(np.float64)[self.triangles]
        cross = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])
        lengths = np.linalg.norm(cross, axis=1, keepdims=True)
        return np.divide(cross, lengths, out=np.zeros_like(cross), where=lengths > 0)

    def bounds(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Axis-aligned (min, max) corners of the vertex positions."""
        positions = self.positions.astype(np.float64)
        return positions.min(axis=0), positions.max(axis=0)


class MeshRole(str, Enum):
    """What a placed mesh represents, so renderers can pick a material."""

    TERRAIN = "terrain"  # Geometry of a grid cell's shape
    GROUND = "ground"  # Flat ground matching the fallback outside shapes


class MeshPlacement(BaseModel):
    """A mesh together with its world transform (Value Object).

    The transform is a translation in the ground plane; z is never shifted.
    """

    mesh: MeshData
    offset: tuple[float, float]  # World (x, y) of the mesh's local origin
    role: MeshRole
    cell: tuple[int, int] | None = None  # (column, row) for TERRAIN placements

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_placement(self) -> "MeshPlacement":
        if not all(math.isfinite(v) for v in self.offset):
            raise ValueError(f"offset must be finite: {self.offset}")
        if self.role is MeshRole.TERRAIN and self.cell is None:
            raise ValueError("TERRAIN placements must name their grid cell")
        return self

    @property
    def transform(self) -> Affine:
        return Affine.translation(*self.offset)

    def world_positions(self) -> NDArray[np.float64]:
        """Vertex positions with the placement transform applied."""
        t = self.transform
        local = self.mesh.positions.astype(np.float64)
        world = local.copy()
        world[:, 0] = t.a * local[:, 0] + t.b * local[:, 1] + t.c
        world[:, 1] = t.d * local[:, 0] + t.e * local[:, 1] + t.f
        return world


# ---------------------------------------------------------------------------
# Terrain-following results
# ---------------------------------------------------------------------------
class SurfaceHit(BaseModel):
    """Point where a marched ray met the terrain (Value Object).

    position is the surface contact lifted slightly along the normal so that
    anything drawn there does not z-fight with the terrain mesh.
    """

    distance_m: float = Field(ge=0)  # Distance marched from the ray origin
    position: Vec3
    normal: Vec3

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_hit(self) -> "SurfaceHit":
        if not all(math.isfinite(v) for v in self.position):
            raise ValueError(f"position must be finite: {self.position}")
        length = math.sqrt(sum(v * v for v in self.normal))
        if abs(length - 1.0) > NORMAL_TOLERANCE:
            raise ValueError(f"normal must be a unit vector, got length {length:.6f}")
        return self


class SurfaceSample(BaseModel):
    """Single snapped point along a terrain path (Value Object).

    Invariants:
        - distance_m >= 0
        - is_miss == True requires every position coordinate to be NaN
        - is_miss == False requires a finite position
    """

    distance_m: float = Field(ge=0)  # Distance from path start along the segment
    position: Vec3  # Snapped position (NaN when the snap missed)
    is_miss: bool = False

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_miss_consistency(self) -> "SurfaceSample":
        if self.is_miss and not all(math.isnan(v) for v in self.position):
            raise ValueError("is_miss=True requires a NaN position")
        if not self.is_miss and not all(math.isfinite(v) for v in self.position):
            raise ValueError("is_miss=False requires a finite position")
        return self


class SurfacePath(BaseModel):
    """Terrain-hugging polyline between two points (Value Object).

    Invariants:
        - at least 2 samples
        - the first sample is at distance 0
        - samples strictly ordered by distance_m
        - the last sample distance equals total_distance_m (within tolerance)
        - has_misses matches the samples
    """

    start: Vec3
    end: Vec3
    samples: tuple[SurfaceSample, ...]
    total_distance_m: float = Field(gt=0)
    has_misses: bool

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_path(self) -> "SurfacePath":
        if len(self.samples) < 2:
            raise ValueError(f"Path must have >= 2 samples, got {len(self.samples)}")

        if self.samples[0].distance_m != 0:
            raise ValueError(
                f"First sample must be at distance 0, got {self.samples[0].distance_m}"
            )

        for i in range(1, len(self.samples)):
            if self.samples[i].distance_m <= self.samples[i - 1].distance_m:
                raise ValueError("Samples must be strictly ordered by distance")

        if (
            abs(self.samples[-1].distance_m - self.total_distance_m)
            > DISTANCE_TOLERANCE_M
        ):
            raise ValueError(
                f"Last sample distance ({self.samples[-1].distance_m:.6f}) must equal "
                f"total_distance_m ({self.total_distance_m:.6f})"
            )

        actual_has_misses = any(s.is_miss for s in self.samples)
        if self.has_misses != actual_has_misses:
            raise ValueError(
                f"has_misses={self.has_misses} but samples say {actual_has_misses}"
            )

        return self

    def distances(self) -> tuple[float, ...]:
        """Return cumulative distance values."""
        return tuple(s.distance_m for s in self.samples)

    def positions(self) -> tuple[Vec3, ...]:
        """Return snapped positions (misses are NaN)."""
        return tuple(s.position for s in self.samples)

    def heights(self) -> tuple[float, ...]:
        """Return snapped z values (may contain NaN)."""
        return tuple(s.position[2] for s in self.samples)

    def miss_count(self) -> int:
        """Return number of samples whose snap found no terrain."""
        return sum(1 for s in self.samples if s.is_miss)

    def miss_ratio(self) -> float:
        """Return fraction of samples that missed (0.0 to 1.0)."""
        return self.miss_count() / len(self.samples)
