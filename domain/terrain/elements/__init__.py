"""Terrain shapes that occupy one grid cell each."""

from domain.terrain.elements.base import GridElement
from domain.terrain.elements.function import (
    DEFAULT_FUNCTION_SUBDIVISIONS,
    Function,
    HeightComponent,
    constant,
    cosine_wave,
    ramp_down,
    ramp_up,
)
from domain.terrain.elements.plane import Plane, flat_patch
from domain.terrain.elements.slope import Slope
from domain.terrain.elements.step import Step
from domain.terrain.elements.step_slope import StepSlope

__all__ = [
    "DEFAULT_FUNCTION_SUBDIVISIONS",
    "Function",
    "GridElement",
    "HeightComponent",
    "Plane",
    "Slope",
    "Step",
    "StepSlope",
    "constant",
    "cosine_wave",
    "flat_patch",
    "ramp_down",
    "ramp_up",
]
