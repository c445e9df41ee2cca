"""
Unit tests for mesh exporters.
"""

import sys
from pathlib import Path
import base64
import json
import struct
import tempfile
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from image_mesh.exceptions import ExportError
from image_mesh.extrusion import ExtrusionConfig, empty_mesh
from image_mesh.generator import build_mesh
from image_mesh.exporters import (
    OBJExporter,
    export_mesh,
    format_id_for_path,
    texture_path_for,
)


def sample_raster(size=16, seed=0):
    rng = np.random.default_rng(seed)
    rgba = rng.integers(0, 256, size=(size, size, 4), dtype=np.uint8)
    rgba[:, :, 3] = 255
    return rgba


def read_glb_json(path):
    data = Path(path).read_bytes()
    magic, version, length = struct.unpack_from('<III', data, 0)
    chunk_length, chunk_type = struct.unpack_from('<II', data, 12)
    assert chunk_type == 0x4E4F534A
    return magic, version, length, json.loads(data[20:20 + chunk_length]), data


def read_ply_header(path):
    data = Path(path).read_bytes()
    end = data.index(b"end_header\n") + len(b"end_header\n")
    return data[:end].decode('ascii').splitlines(), data[end:]


class TestFormatSelection(unittest.TestCase):
    """Tests for extension-to-format mapping."""

    def test_known_extensions(self):
        assert format_id_for_path("a.obj") == "obj"
        assert format_id_for_path("a.stl") == "stl"
        assert format_id_for_path("a.ply") == "ply"
        assert format_id_for_path("a.fbx") == "fbx"
        assert format_id_for_path("a.dae") == "collada"
        assert format_id_for_path("a.gltf") == "gltf2"
        assert format_id_for_path("a.glb") == "glb2"

    def test_case_insensitive(self):
        assert format_id_for_path("MODEL.GLB") == "glb2"
        assert format_id_for_path("Model.Obj") == "obj"

    def test_unknown_defaults_to_obj(self):
        assert format_id_for_path("model.xyz") == "obj"
        assert format_id_for_path("model") == "obj"

    def test_texture_sidecar_name(self):
        assert texture_path_for("out/relief.glb") == Path("out/relief_texture.png")


class TestExportErrors(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.mesh = build_mesh(sample_raster())

    def tearDown(self):
        self.tmp.cleanup()

    def test_unwritable_formats(self):
        """FBX and COLLADA are recognised but cannot be written."""
        for name in ("model.fbx", "model.dae"):
            with self.assertRaises(ExportError):
                export_mesh(self.mesh, self.dir / name)
            assert not (self.dir / name).exists()

    def test_empty_mesh(self):
        with self.assertRaises(ExportError):
            export_mesh(empty_mesh(), self.dir / "empty.obj")
        assert not (self.dir / "empty.obj").exists()

    def test_missing_directory(self):
        """I/O failures surface as ExportError."""
        with self.assertRaises(ExportError):
            export_mesh(self.mesh, self.dir / "missing" / "model.stl")
        with self.assertRaises(ExportError):
            export_mesh(self.mesh, self.dir / "missing" / "model.obj", texture=sample_raster())


class TestOBJExporter(unittest.TestCase):
    """Tests for Wavefront OBJ export."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_textured_export(self):
        """Geometry, material and texture are all written."""
        rgba = sample_raster()
        mesh = build_mesh(rgba)
        export_mesh(mesh, self.dir / "relief.obj", texture=rgba)

        obj = (self.dir / "relief.obj").read_text()
        mtl = (self.dir / "relief.mtl").read_text()
        assert (self.dir / "relief_texture.png").exists()

        assert "mtllib relief.mtl" in obj
        assert "usemtl ImageMaterial" in obj
        assert "newmtl ImageMaterial" in mtl
        assert "map_Kd relief_texture.png" in mtl
        assert "Ns 96.0" in mtl

        lines = obj.splitlines()
        assert sum(line.startswith("v ") for line in lines) == mesh.vertex_count
        assert sum(line.startswith("vt ") for line in lines) == mesh.vertex_count
        assert sum(line.startswith("vn ") for line in lines) == mesh.vertex_count
        assert sum(line.startswith("f ") for line in lines) == mesh.triangle_count

    def test_v_flipped(self):
        """The first sample (uv 0, 0) is written with v = 1."""
        export_mesh(build_mesh(sample_raster()), self.dir / "flip.obj")
        lines = (self.dir / "flip.obj").read_text().splitlines()
        first_vt = next(line for line in lines if line.startswith("vt "))
        assert first_vt == "vt 0.000000 1.000000"

    def test_faces_are_one_based(self):
        mesh = build_mesh(sample_raster())
        export_mesh(mesh, self.dir / "faces.obj")
        lines = (self.dir / "faces.obj").read_text().splitlines()
        first_face = next(line for line in lines if line.startswith("f "))

        i0, i1, i2 = (int(v) + 1 for v in mesh.indices[:3])
        assert first_face == f"f {i0}/{i0}/{i0} {i1}/{i1}/{i1} {i2}/{i2}/{i2}"

    def test_without_normals(self):
        mesh = build_mesh(sample_raster())
        OBJExporter(include_normals=False).export(mesh, self.dir / "bare.obj")
        obj = (self.dir / "bare.obj").read_text()

        assert "vn " not in obj
        assert "f 1/1 " in obj

    def test_no_texture_no_map(self):
        export_mesh(build_mesh(sample_raster()), self.dir / "plain.obj")
        assert "map_Kd" not in (self.dir / "plain.mtl").read_text()
        assert not (self.dir / "plain_texture.png").exists()

    def test_point_cloud(self):
        """Contour meshes are written as point elements."""
        mesh = build_mesh(sample_raster(), ExtrusionConfig(method="contour_based"))
        export_mesh(mesh, self.dir / "cloud.obj")
        lines = (self.dir / "cloud.obj").read_text().splitlines()

        points = [line for line in lines if line.startswith("p ")]
        assert not any(line.startswith("f ") for line in lines)
        assert points[0].startswith("p 1 2 3")
        assert sum(len(line.split()) - 1 for line in points) == mesh.vertex_count


class TestGLTFExporter(unittest.TestCase):
    """Tests for glTF 2.0 export."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_glb_structure(self):
        mesh = build_mesh(sample_raster())
        path = export_mesh(mesh, self.dir / "model.glb", texture=sample_raster())
        magic, version, length, gltf, data = read_glb_json(path)

        assert magic == 0x46546C67
        assert version == 2
        assert length == len(data)

        primitive = gltf["meshes"][0]["primitives"][0]
        accessors = gltf["accessors"]
        assert primitive["mode"] == 4
        assert accessors[primitive["indices"]]["count"] == len(mesh.indices)
        assert accessors[primitive["indices"]]["componentType"] == 5123
        assert accessors[primitive["attributes"]["POSITION"]]["count"] == mesh.vertex_count
        assert accessors[primitive["attributes"]["NORMAL"]]["count"] == mesh.vertex_count
        assert accessors[primitive["attributes"]["TEXCOORD_0"]]["count"] == mesh.vertex_count
        assert gltf["images"][0]["uri"] == "model_texture.png"

    def test_buffer_views_aligned(self):
        path = export_mesh(build_mesh(sample_raster(size=20)), self.dir / "aligned.glb")
        _, _, _, gltf, _ = read_glb_json(path)
        for view in gltf["bufferViews"]:
            assert view["byteOffset"] % 4 == 0

    def test_point_cloud_mode(self):
        mesh = build_mesh(sample_raster(), ExtrusionConfig(method="contour_based"))
        path = export_mesh(mesh, self.dir / "cloud.glb")
        _, _, _, gltf, _ = read_glb_json(path)

        primitive = gltf["meshes"][0]["primitives"][0]
        assert primitive["mode"] == 0
        assert "indices" not in primitive
        assert "images" not in gltf

    def test_gltf_embedded_buffer(self):
        mesh = build_mesh(sample_raster())
        path = export_mesh(mesh, self.dir / "model.gltf")
        gltf = json.loads(Path(path).read_text())

        buffer = gltf["buffers"][0]
        prefix = "data:application/octet-stream;base64,"
        assert buffer["uri"].startswith(prefix)
        assert len(base64.b64decode(buffer["uri"][len(prefix):])) == buffer["byteLength"]

    def test_positions_preserved(self):
        mesh = build_mesh(sample_raster())
        path = export_mesh(mesh, self.dir / "pos.glb")
        _, _, _, gltf, data = read_glb_json(path)

        json_length = struct.unpack_from('<I', data, 12)[0]
        binary = data[20 + json_length + 8:]
        accessor = gltf["accessors"][gltf["meshes"][0]["primitives"][0]["attributes"]["POSITION"]]
        view = gltf["bufferViews"][accessor["bufferView"]]
        positions = np.frombuffer(
            binary, dtype='<f4', count=3 * accessor["count"], offset=view["byteOffset"]
        ).reshape(-1, 3)

        assert np.allclose(positions, mesh.vertices, atol=1e-5)


class TestSTLExporter(unittest.TestCase):
    """Tests for binary STL export."""

    def test_file_size(self):
        """80-byte header, face count, 50 bytes per facet."""
        mesh = build_mesh(sample_raster())
        with tempfile.TemporaryDirectory() as tmp:
            path = export_mesh(mesh, Path(tmp) / "print.stl", texture=sample_raster())
            data = path.read_bytes()

            assert len(data) == 84 + 50 * mesh.triangle_count
            assert struct.unpack_from('<I', data, 80)[0] == mesh.triangle_count
            assert (Path(tmp) / "print_texture.png").exists()

    def test_facet_normal_unit(self):
        mesh = build_mesh(sample_raster())
        with tempfile.TemporaryDirectory() as tmp:
            data = export_mesh(mesh, Path(tmp) / "n.stl").read_bytes()
            normal = np.array(struct.unpack_from('<3f', data, 84))
            assert np.isclose(np.linalg.norm(normal), 1.0, atol=1e-5)


class TestPLYExporter(unittest.TestCase):
    """Tests for binary PLY export."""

    def test_header_and_size(self):
        mesh = build_mesh(sample_raster())
        with tempfile.TemporaryDirectory() as tmp:
            path = export_mesh(mesh, Path(tmp) / "scan.ply", texture=sample_raster())
            header, body = read_ply_header(path)

            assert header[0] == "ply"
            assert header[1] == "format binary_little_endian 1.0"
            assert "comment TextureFile scan_texture.png" in header
            assert f"element vertex {mesh.vertex_count}" in header
            assert f"element face {mesh.triangle_count}" in header
            assert "property float nx" in header
            assert "property float t" in header

            # 8 floats per vertex, 1 + 3 * 4 bytes per face
            assert len(body) == 32 * mesh.vertex_count + 13 * mesh.triangle_count


if __name__ == "__main__":
    unittest.main(verbosity=2)
