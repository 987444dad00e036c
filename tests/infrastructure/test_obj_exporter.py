import logging
from pathlib import Path

import pytest

from domain.terrain.elements import Step, flat_patch
from domain.terrain.errors import MeshExportError, UnsupportedExportFormatError
from domain.terrain.grid import build_grid_terrain
from domain.terrain.repositories import TerrainMeshExporter
from domain.terrain.value_objects import MeshPlacement, MeshRole

# Use infrastructure.* (not src.infrastructure.*) for consistency with domain.* imports.
from infrastructure.terrain.obj_exporter import ObjTerrainExporter


def make_patch_placements() -> list[MeshPlacement]:
    """Two 2 x 3 ground patches, the first offset to (10, 20)."""
    return [
        MeshPlacement(mesh=flat_patch(2.0, 3.0), offset=(10.0, 20.0), role=MeshRole.GROUND),
        MeshPlacement(
            mesh=flat_patch(2.0, 3.0), offset=(0.0, 0.0), role=MeshRole.TERRAIN, cell=(0, 0)
        ),
    ]


def lines_starting(text: str, prefix: str) -> list[str]:
    return [line for line in text.splitlines() if line.startswith(prefix)]


def test_export_writes_obj_and_mtl(tmp_path):
    exporter: TerrainMeshExporter = ObjTerrainExporter()

    written = exporter.export(make_patch_placements(), tmp_path / "scene.obj")

    assert written == tmp_path / "scene.obj"
    text = written.read_text()
    assert "mtllib scene.mtl" in text
    assert (tmp_path / "scene.mtl").exists()
    assert len(lines_starting(text, "v ")) == 8
    assert len(lines_starting(text, "vt ")) == 8
    assert len(lines_starting(text, "vn ")) == 8
    assert len(lines_starting(text, "f ")) == 4


def test_export_converts_to_y_up_world_space(tmp_path):
    path = ObjTerrainExporter().export(make_patch_placements(), tmp_path / "scene.obj")

    vertices = lines_starting(path.read_text(), "v ")
    normals = lines_starting(path.read_text(), "vn ")

    # Local (0, 0, 0) placed at (10, 20): x stays, z -> y, y -> -z
    assert vertices[0] == "v 10.0000 0.0000 -20.0000"
    assert vertices[3] == "v 12.0000 0.0000 -23.0000"
    assert normals[0].startswith("vn 0.0000 1.0000 ")


def test_export_faces_are_one_based_and_offset_per_object(tmp_path):
    path = ObjTerrainExporter().export(make_patch_placements(), tmp_path / "scene.obj")

    faces = lines_starting(path.read_text(), "f ")

    assert faces[0] == "f 1/1/1 2/2/2 3/3/3"
    assert faces[2] == "f 5/5/5 6/6/6 7/7/7"


def test_export_names_objects_by_role_and_cell(tmp_path):
    path = ObjTerrainExporter().export(make_patch_placements(), tmp_path / "scene.obj")

    objects = lines_starting(path.read_text(), "o ")

    assert objects == ["o ground_0", "o terrain_0_0"]


def test_export_mtl_colours_per_role(tmp_path):
    ObjTerrainExporter().export(make_patch_placements(), tmp_path / "scene.obj")

    mtl = (tmp_path / "scene.mtl").read_text()

    assert "newmtl ground" in mtl
    assert "newmtl terrain" in mtl
    assert "Kd 0.5490 0.4706 0.3922" in mtl
    assert "Kd 0.3922 0.3922 0.3922" in mtl


def test_export_without_materials(tmp_path):
    exporter = ObjTerrainExporter(write_materials=False)

    path = exporter.export(make_patch_placements(), tmp_path / "plain.obj")

    assert "mtllib" not in path.read_text()
    assert "usemtl" not in path.read_text()
    assert not (tmp_path / "plain.mtl").exists()


def test_export_precision(tmp_path):
    path = ObjTerrainExporter(precision=1).export(
        make_patch_placements(), tmp_path / "scene.obj"
    )

    assert lines_starting(path.read_text(), "v ")[0] == "v 10.0 0.0 -20.0"


def test_export_terrain_grid(tmp_path, step_terrain):
    placements = step_terrain.mesh()

    path = ObjTerrainExporter().export(placements, tmp_path / "grid.OBJ")

    text = path.read_text()
    assert len(lines_starting(text, "v ")) == sum(p.mesh.vertex_count for p in placements)
    assert len(lines_starting(text, "f ")) == sum(p.mesh.triangle_count for p in placements)
    assert "o terrain_0_0" in text


@pytest.mark.parametrize("name", ["scene.stl", "scene.obj.bak", "scene"])
def test_unsupported_extension_raises(tmp_path, name):
    with pytest.raises(UnsupportedExportFormatError) as exc_info:
        ObjTerrainExporter().export(make_patch_placements(), tmp_path / name)

    assert exc_info.value.path == tmp_path / name
    assert not (tmp_path / name).exists()


def test_empty_placements_raise(tmp_path):
    with pytest.raises(MeshExportError, match="No placements"):
        ObjTerrainExporter().export([], tmp_path / "scene.obj")


def test_missing_directory_raises_export_error(tmp_path, caplog):
    target = tmp_path / "missing" / "scene.obj"

    with caplog.at_level(logging.ERROR, logger="infrastructure.terrain.obj_exporter"):
        with pytest.raises(MeshExportError) as exc_info:
            ObjTerrainExporter().export(make_patch_placements(), target)

    assert isinstance(exc_info.value.__cause__, OSError)
    assert "Failed to write scene.obj" in caplog.text
    # Only the file name is logged
    assert str(tmp_path) not in caplog.text


def test_permission_error_raises_export_error(tmp_path, monkeypatch):
    def _raise_permission_error(self, *args, **kwargs):
        raise PermissionError(13, "permission denied")

    monkeypatch.setattr(Path, "write_text", _raise_permission_error)

    with pytest.raises(MeshExportError, match="Could not write scene.obj"):
        ObjTerrainExporter().export(make_patch_placements(), tmp_path / "scene.obj")


def test_export_logs_summary(tmp_path, caplog):
    with caplog.at_level(logging.INFO, logger="infrastructure.terrain.obj_exporter"):
        ObjTerrainExporter().export(make_patch_placements(), tmp_path / "scene.obj")

    assert "Exported 2 placements (8 vertices, 4 triangles)" in caplog.text


def test_negative_precision_rejected():
    with pytest.raises(ValueError, match="precision"):
        ObjTerrainExporter(precision=-1)


def test_export_step_mesh_round_numbers(tmp_path):
    terrain = build_grid_terrain([[Step(size=10.0, height=2.0)]], (10.0, 10.0), extension=5.0)

    path = ObjTerrainExporter().export(terrain.mesh(), tmp_path / "step.obj")

    vertices = lines_starting(path.read_text(), "v ")
    heights = {float(line.split()[2]) for line in vertices}
    assert heights == {0.0, 2.0}
