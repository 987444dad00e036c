"""Domain Port(s) for Terrain I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

from .value_objects import MeshPlacement


class TerrainMeshExporter(Protocol):
    """Port for handing terrain geometry to renderers and external tools.

    Implementations live in infrastructure (e.g., Wavefront OBJ adapter).
    """

    def export(self, placements: Sequence[MeshPlacement], file_path: Path | str) -> Path:
        """Write placed meshes to ``file_path`` and return the written path."""
        ...
