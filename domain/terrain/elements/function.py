"""Height-field shape defined as a product of analytic components.

    h(x, y) = f1(x, y) * f2(x, y) * ... * fn(x, y)

Each component carries its own gradient, so the surface normal is exact
(product rule) rather than finite-differenced. Component callables are
evaluated on numpy arrays as well as on scalars, which lets the mesh sample
the whole lattice in one pass.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Literal

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from domain.terrain.elements.base import GridElement, grid_triangles
from domain.terrain.value_objects import Interference, MeshData, unit_vector

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_FUNCTION_SUBDIVISIONS = 50  # Mesh quads per edge

Axis = Literal["x", "y"]
ScalarField = Callable[[Any, Any], Any]
GradientField = Callable[[Any, Any], tuple[Any, Any]]


class HeightComponent(BaseModel):
    """One factor of a Function height field (Value Object).

    ``value(x, y)`` returns the factor, ``gradient(x, y)`` returns its
    (d/dx, d/dy) pair. Both must broadcast over numpy arrays.
    """

    name: str
    value: ScalarField
    gradient: GradientField

    model_config = ConfigDict(frozen=True)


def _check_axis(axis: str) -> None:
    if axis not in ("x", "y"):
        raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")


def _along(axis: Axis, x: Any, y: Any) -> NDArray[np.float64]:
    return np.asarray(x if axis == "x" else y, dtype=np.float64)


def _axis_gradient(axis: Axis, t: NDArray[np.float64], dt: Any) -> tuple[Any, Any]:
    """Place a derivative along ``axis`` and zero on the other one."""
    along = np.broadcast_to(np.asarray(dt, dtype=np.float64), t.shape)
    zero = np.zeros_like(t)
    if axis == "x":
        return along, zero
    return zero, along


def cosine_wave(amplitude: float, wave_length: float, axis: Axis = "x") -> HeightComponent:
    """``amplitude * cos(2*pi*t / wave_length)`` along one axis."""
    if wave_length <= 0:
        raise ValueError(f"wave_length must be positive, got {wave_length}")
    k = 2.0 * math.pi / wave_length
    _check_axis(axis)

    def value(x: Any, y: Any) -> Any:
        return amplitude * np.cos(k * _along(axis, x, y))

    def gradient(x: Any, y: Any) -> tuple[Any, Any]:
        t = _along(axis, x, y)
        return _axis_gradient(axis, t, -amplitude * k * np.sin(k * t))

    return HeightComponent(name=f"cosine_{axis}", value=value, gradient=gradient)


def ramp_up(size: float, axis: Axis = "x") -> HeightComponent:
    """Linear taper ``t / size``: 0 at the low edge, 1 at the far edge."""
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")
    _check_axis(axis)

    def value(x: Any, y: Any) -> Any:
        return _along(axis, x, y) / size

    def gradient(x: Any, y: Any) -> tuple[Any, Any]:
        return _axis_gradient(axis, _along(axis, x, y), 1.0 / size)

    return HeightComponent(name=f"ramp_up_{axis}", value=value, gradient=gradient)


def ramp_down(size: float, axis: Axis = "x") -> HeightComponent:
    """Linear taper ``1 - t / size``: 1 at the low edge, 0 at the far edge."""
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")
    _check_axis(axis)

    def value(x: Any, y: Any) -> Any:
        return 1.0 - _along(axis, x, y) / size

    def gradient(x: Any, y: Any) -> tuple[Any, Any]:
        return _axis_gradient(axis, _along(axis, x, y), -1.0 / size)

    return HeightComponent(name=f"ramp_down_{axis}", value=value, gradient=gradient)


def constant(level: float) -> HeightComponent:
    """Flat factor; on its own it describes a plateau at ``level``."""

    def value(x: Any, y: Any) -> Any:
        return np.full(np.shape(x), level, dtype=np.float64)

    def gradient(x: Any, y: Any) -> tuple[Any, Any]:
        zero = np.zeros(np.shape(x), dtype=np.float64)
        return zero, zero.copy()

    return HeightComponent(name="constant", value=value, gradient=gradient)


class Function(GridElement):
    """Analytic height field over the footprint.

    A point inside the footprint at or below the surface interferes; the
    contact is measured against the tangent plane at (x, y).
    """

    components: tuple[HeightComponent, ...] = Field(min_length=1)
    subdivisions: int = Field(default=DEFAULT_FUNCTION_SUBDIVISIONS, ge=1)

    def evaluate(self, x: Any, y: Any) -> tuple[Any, Any, Any]:
        """Height and its (d/dx, d/dy) gradient at canonical-frame (x, y)."""
        values = [np.asarray(c.value(x, y), dtype=np.float64) for c in self.components]
        gradients = [
            tuple(np.asarray(g, dtype=np.float64) for g in c.gradient(x, y))
            for c in self.components
        ]

        height = np.ones(np.broadcast_shapes(*(v.shape for v in values)))
        for v in values:
            height = height * v

        # Product rule: each gradient times the product of the other factors
        dx = np.zeros_like(height)
        dy = np.zeros_like(height)
        for i, (gx, gy) in enumerate(gradients):
            others = np.ones_like(height)
            for j, v in enumerate(values):
                if j != i:
                    others = others * v
            dx = dx + gx * others
            dy = dy + gy * others

        return height, dx, dy

    def height(self, x: float, y: float) -> float:
        h, _, _ = self.evaluate(x, y)
        return float(h)

    def local_interference(self, point: NDArray[np.float64]) -> Interference | None:
        x, y, z = (float(v) for v in point)
        if not self.in_footprint(x, y):
            return None

        h, dx, dy = (float(v) for v in self.evaluate(x, y))
        if z > h:
            return None

        normal = unit_vector(-dx, -dy, 1.0)
        magnitude = float(normal[2]) * (h - z)
        return Interference(
            magnitude=magnitude, position=point + magnitude * normal, normal=normal
        )

    def local_mesh(self) -> MeshData:
        n = self.subdivisions
        u = np.linspace(0.0, 1.0, n + 1)
        uu, vv = np.meshgrid(u, u, indexing="xy")
        uu, vv = uu.reshape(-1), vv.reshape(-1)
        xs, ys = uu * self.size, vv * self.size

        heights, dx, dy = self.evaluate(xs, ys)
        heights = np.broadcast_to(heights, xs.shape)
        normals = np.column_stack(
            [
                np.broadcast_to(-dx, xs.shape),
                np.broadcast_to(-dy, xs.shape),
                np.ones_like(xs),
            ]
        )
        normals /= np.linalg.norm(normals, axis=1, keepdims=True)

        return MeshData(
            positions=np.column_stack([xs, ys, heights]),
            normals=normals,
            uvs=np.column_stack([uu, vv]),
            triangles=grid_triangles(n, n),
        )
