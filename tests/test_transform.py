"""
Unit tests for mirroring and combining meshes.
"""

import sys
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from image_mesh.extrusion import ExtrusionConfig, DepthMapStrategy, ContourStrategy, empty_mesh
from image_mesh.normals import apply_normals, compute_smooth_normals
from image_mesh.transform import (
    MirrorAxis,
    combine_meshes,
    mirror_and_combine,
    mirror_mesh,
    parse_axis,
)


def relief(seed=0, size=24, smooth=True):
    rgba = np.random.default_rng(seed).integers(0, 256, size=(size, size, 4), dtype=np.uint8)
    mesh = DepthMapStrategy().generate(rgba, ExtrusionConfig(detail="high", depth=2.0))
    return apply_normals(mesh, smooth=smooth)


class TestMirror(unittest.TestCase):
    """Tests for mesh reflection."""

    def test_double_mirror_is_identity(self):
        mesh = relief()
        for axis in (MirrorAxis.X, MirrorAxis.Y, MirrorAxis.Z):
            twice = mirror_mesh(mirror_mesh(mesh, axis), axis)
            assert np.array_equal(twice.vertices, mesh.vertices)
            assert np.array_equal(twice.normals, mesh.normals)
            assert np.array_equal(twice.uvs, mesh.uvs)
            assert np.array_equal(twice.indices, mesh.indices)

    def test_negates_axis_column(self):
        mesh = relief()
        mirrored = mirror_mesh(mesh, "y")

        assert np.array_equal(mirrored.vertices[:, 1], -mesh.vertices[:, 1])
        assert np.array_equal(mirrored.vertices[:, [0, 2]], mesh.vertices[:, [0, 2]])
        assert np.array_equal(mirrored.normals[:, 1], -mesh.normals[:, 1])
        assert np.array_equal(mirrored.uvs, mesh.uvs)

    def test_winding_reversed(self):
        """Triangle (a, b, c) becomes (a, c, b)."""
        mesh = relief()
        mirrored = mirror_mesh(mesh, MirrorAxis.Z)

        original = mesh.indices.reshape(-1, 3)
        flipped = mirrored.indices.reshape(-1, 3)
        assert np.array_equal(flipped[:, 0], original[:, 0])
        assert np.array_equal(flipped[:, 1], original[:, 2])
        assert np.array_equal(flipped[:, 2], original[:, 1])

    def test_mirrored_normals_match_geometry(self):
        """Reflected normals agree with normals recomputed on the reflection."""
        mesh = relief(seed=3)
        for axis in ("x", "y", "z"):
            mirrored = mirror_mesh(mesh, axis)
            recomputed = compute_smooth_normals(mirrored.vertices, mirrored.indices)
            assert np.allclose(recomputed, mirrored.normals)

    def test_input_untouched(self):
        mesh = relief()
        before = [array.copy() for array in mesh]
        mirror_mesh(mesh, "x")
        for array, saved in zip(mesh, before):
            assert np.array_equal(array, saved)

    def test_point_cloud(self):
        """Meshes without normals or faces can be mirrored."""
        rgba = np.full((16, 16, 4), 255, dtype=np.uint8)
        cloud = ContourStrategy().generate(rgba, ExtrusionConfig())
        mirrored = mirror_mesh(cloud, "z")
        assert mirrored.vertex_count == cloud.vertex_count
        assert mirrored.triangle_count == 0
        assert len(mirrored.normals) == 0

    def test_none_axis_rejected(self):
        with self.assertRaises(ValueError):
            mirror_mesh(relief(), MirrorAxis.NONE)

    def test_parse_axis(self):
        assert parse_axis(None) == MirrorAxis.NONE
        assert parse_axis("X") == MirrorAxis.X
        assert parse_axis(MirrorAxis.Z) == MirrorAxis.Z
        with self.assertRaises(ValueError):
            parse_axis("w")


class TestCombine(unittest.TestCase):
    """Tests for mesh concatenation."""

    def test_counts_add(self):
        first = relief(seed=1)
        second = relief(seed=2, size=16)
        combined = combine_meshes(first, second)

        assert combined.vertex_count == first.vertex_count + second.vertex_count
        assert combined.triangle_count == first.triangle_count + second.triangle_count
        assert len(combined.normals) == combined.vertex_count
        assert len(combined.uvs) == combined.vertex_count

    def test_second_indices_rebased(self):
        first = relief(seed=1)
        second = relief(seed=2, size=16)
        combined = combine_meshes(first, second)

        head = combined.indices[:len(first.indices)]
        tail = combined.indices[len(first.indices):]
        assert combined.indices.dtype == np.uint32
        assert np.array_equal(head, first.indices)
        assert np.array_equal(tail, second.indices + first.vertex_count)
        assert tail.min() >= first.vertex_count
        assert combined.indices.max() < combined.vertex_count

    def test_inputs_untouched(self):
        first = relief(seed=1)
        second = relief(seed=2)
        saved = second.indices.copy()
        combine_meshes(first, second)
        assert np.array_equal(second.indices, saved)

    def test_mixed_normals_rejected(self):
        with_normals = relief(seed=1)
        without = with_normals._replace(normals=np.zeros((0, 3)))
        with self.assertRaises(ValueError):
            combine_meshes(with_normals, without)

    def test_empty_operand(self):
        mesh = relief()
        combined = combine_meshes(empty_mesh(), mesh)
        assert combined.vertex_count == mesh.vertex_count
        assert np.array_equal(combined.indices, mesh.indices)

    def test_mirror_and_combine(self):
        mesh = relief()
        merged = mirror_and_combine(mesh, "x")

        assert merged.vertex_count == 2 * mesh.vertex_count
        assert merged.triangle_count == 2 * mesh.triangle_count
        assert np.array_equal(merged.vertices[mesh.vertex_count:, 0], -mesh.vertices[:, 0])

    def test_mirror_and_combine_none(self):
        mesh = relief()
        assert mirror_and_combine(mesh, MirrorAxis.NONE) is mesh
        assert mirror_and_combine(mesh, None) is mesh


if __name__ == "__main__":
    unittest.main(verbosity=2)
