"""Grid Terrain Domain Layer.

This package contains the core logic organized by bounded contexts:
- terrain: Shapes, grid partitioning, collision queries, terrain following
"""

from domain import terrain

__all__ = ["terrain"]
