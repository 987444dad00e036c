"""Terrain Bounded Context - Error Hierarchy.

Custom exceptions for terrain operations.

Absence of contact is never an error: queries return None. These exceptions
cover construction-time misconfiguration, invalid service parameters, and
export failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class TerrainError(Exception):
    """Base error for terrain operations."""


class InvalidGridError(TerrainError):
    """Grid terrain configuration is malformed (step, cells, element sizes)."""


# ---------------------------------------------------------------------------
# Terrain-following services
# ---------------------------------------------------------------------------
class InvalidPathError(TerrainError):
    """Path parameters are invalid."""

    pass


# ---------------------------------------------------------------------------
# Mesh export
# ---------------------------------------------------------------------------
class MeshExportError(TerrainError):
    """Terrain geometry could not be written."""


class UnsupportedExportFormatError(MeshExportError):
    """Export target has a file format the exporter does not write.

    Attributes:
        path: The rejected destination path
    """

    def __init__(self, path: "Path") -> None:
        self.path = path
        super().__init__(f"Unsupported export file extension: {path.suffix or '<none>'}")
