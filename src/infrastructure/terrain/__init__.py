"""Infrastructure adapters for the terrain bounded context.

This module provides the infrastructure layer implementations for terrain
operations, including exporting terrain meshes as Wavefront OBJ.
"""

from .obj_exporter import ObjTerrainExporter

__all__ = ["ObjTerrainExporter"]
