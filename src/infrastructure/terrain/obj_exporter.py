"""Wavefront OBJ adapter for TerrainMeshExporter.

Writes placed terrain meshes as a single .obj file (plus an optional .mtl
with one material per placement role) so they can be opened in any DCC tool
or engine importer.

Conventions:
1) Terrain is Z-up; OBJ is Y-up. World (x, y, z) is written as (x, z, -y),
   a proper rotation, so triangle winding and facing are preserved
2) Each placement becomes its own ``o`` object, named after its cell
3) Positions are written in world space (placement transform applied)
4) Indices are 1-based and shared between v/vt/vn
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import numpy as np

from domain.terrain.errors import MeshExportError, UnsupportedExportFormatError
from domain.terrain.value_objects import MeshPlacement, MeshRole

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

# Diffuse colours per role, 0-255
_ROLE_COLOURS: dict[MeshRole, tuple[int, int, int]] = {
    MeshRole.TERRAIN: (100, 100, 100),
    MeshRole.GROUND: (140, 120, 100),
}


def _to_y_up(vectors: np.ndarray) -> np.ndarray:
    """(x, y, z) Z-up -> (x, z, -y) Y-up, row-wise."""
    return np.column_stack([vectors[:, 0], vectors[:, 2], -vectors[:, 1]])


def _object_name(placement: MeshPlacement, index: int) -> str:
    if placement.cell is not None:
        i, j = placement.cell
        return f"{placement.role.value}_{i}_{j}"
    return f"{placement.role.value}_{index}"


class ObjTerrainExporter:
    """Infrastructure adapter writing terrain placements as Wavefront OBJ.

    Parameters
    ----------
    write_materials: bool
        Also write a sibling .mtl file and reference it from the .obj.
    precision: int
        Decimal places for coordinates.
    """

    def __init__(self, write_materials: bool = True, precision: int = 4) -> None:
        if precision < 0:
            raise ValueError(f"precision must be >= 0, got {precision}")
        self.write_materials = write_materials
        self.precision = precision

    def export(self, placements: Sequence[MeshPlacement], file_path: Path | str) -> Path:
        """Write placements to ``file_path`` and return the written path.

        Raises:
            UnsupportedExportFormatError: If the extension is not .obj
            MeshExportError: If there is nothing to write or writing fails
        """
        path = Path(file_path)

        # Extension allowlist
        if path.suffix.lower() != ".obj":
            raise UnsupportedExportFormatError(path)

        if not placements:
            raise MeshExportError("No placements to export")

        mtl_path = path.with_suffix(".mtl")
        obj_text = self._render_obj(placements, mtl_path.name)

        try:
            path.write_text(obj_text, encoding="utf-8")
            if self.write_materials:
                mtl_path.write_text(self._render_mtl(placements), encoding="utf-8")
        except OSError as e:
            # Log only the file name, not the absolute path
            logger.error(
                "Failed to write %s (errno=%s, strerror=%s)",
                path.name,
                getattr(e, "errno", "unknown"),
                getattr(e, "strerror", "unknown"),
            )
            raise MeshExportError(f"Could not write {path.name}") from e

        logger.info(
            "Exported %d placements (%d vertices, %d triangles) to %s",
            len(placements),
            sum(p.mesh.vertex_count for p in placements),
            sum(p.mesh.triangle_count for p in placements),
            path.name,
        )
        return path

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render_obj(self, placements: Sequence[MeshPlacement], mtl_name: str) -> str:
        fmt = f"{{:.{self.precision}f}}"
        vertex_total = sum(p.mesh.vertex_count for p in placements)
        triangle_total = sum(p.mesh.triangle_count for p in placements)

        lines = [
            "# Grid terrain OBJ export",
            f"# {vertex_total} vertices, {triangle_total} faces",
        ]
        if self.write_materials:
            lines.append(f"mtllib {mtl_name}")
        lines.append("")

        base = 0
        for index, placement in enumerate(placements):
            mesh = placement.mesh
            positions = _to_y_up(placement.world_positions())
            normals = _to_y_up(mesh.normals.astype(np.float64))

            lines.append(f"o {_object_name(placement, index)}")
            if self.write_materials:
                lines.append(f"usemtl {placement.role.value}")
            for x, y, z in positions:
                lines.append(f"v {fmt.format(x)} {fmt.format(y)} {fmt.format(z)}")
            for u, v in mesh.uvs:
                lines.append(f"vt {fmt.format(u)} {fmt.format(v)}")
            for x, y, z in normals:
                lines.append(f"vn {fmt.format(x)} {fmt.format(y)} {fmt.format(z)}")
            for a, b, c in mesh.triangles.astype(np.int64) + base + 1:
                lines.append(f"f {a}/{a}/{a} {b}/{b}/{b} {c}/{c}/{c}")
            lines.append("")
            base += mesh.vertex_count

        return "\n".join(lines)

    def _render_mtl(self, placements: Sequence[MeshPlacement]) -> str:
        roles = sorted({p.role for p in placements}, key=lambda r: r.value)
        lines = ["# Grid terrain MTL", ""]
        for role in roles:
            r, g, b = (c / 255.0 for c in _ROLE_COLOURS[role])
            lines.append(f"newmtl {role.value}")
            lines.append("Ka 0.2 0.2 0.2")
            lines.append(f"Kd {r:.4f} {g:.4f} {b:.4f}")
            lines.append("Ks 0.0 0.0 0.0")
            lines.append("d 1.0")
            lines.append("")
        return "\n".join(lines)
