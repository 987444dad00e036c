"""Example terrain layouts built from the terrain domain."""

from .layouts import build_demo_environment, steps, table_top, wave

__all__ = ["build_demo_environment", "steps", "table_top", "wave"]
