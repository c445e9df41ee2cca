"""
Unit tests for per-vertex normal computation.
"""

import sys
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from image_mesh.normals import apply_normals, compute_flat_normals, compute_smooth_normals
from image_mesh.extrusion import ExtrusionConfig, DepthMapStrategy


# Two triangles sharing the edge (1, 2)
VERTICES = np.array([
    [0.0, 0.0, 0.0],
    [1.0, 0.0, 0.0],
    [0.0, 1.0, 0.0],
    [1.0, 1.0, 1.0],
])
INDICES = np.array([0, 1, 2, 2, 1, 3], dtype=np.uint32)

UP = np.array([0.0, 0.0, 1.0])
SLANTED = np.array([-1.0, -1.0, 1.0]) / np.sqrt(3.0)


class TestFlatNormals(unittest.TestCase):
    """Tests for first-writer-wins flat normals."""

    def test_first_triangle_wins(self):
        """Shared vertices keep the first triangle's normal."""
        normals = compute_flat_normals(VERTICES, INDICES)

        assert normals.shape == (4, 3)
        assert np.allclose(normals[0], UP)
        assert np.allclose(normals[1], UP)
        assert np.allclose(normals[2], UP)
        assert np.allclose(normals[3], SLANTED)

    def test_order_dependence(self):
        """Reordering triangles changes which normal shared vertices get."""
        reordered = np.array([2, 1, 3, 0, 1, 2], dtype=np.uint32)
        normals = compute_flat_normals(VERTICES, reordered)

        assert np.allclose(normals[0], UP)
        assert np.allclose(normals[1], SLANTED)
        assert np.allclose(normals[2], SLANTED)
        assert np.allclose(normals[3], SLANTED)


class TestSmoothNormals(unittest.TestCase):
    """Tests for area-weighted smooth normals."""

    def test_shared_vertices_blend(self):
        """Shared vertices get the normalized sum of raw face normals."""
        normals = compute_smooth_normals(VERTICES, INDICES)
        blended = np.array([-1.0, -1.0, 2.0]) / np.sqrt(6.0)

        assert np.allclose(normals[0], UP)
        assert np.allclose(normals[1], blended)
        assert np.allclose(normals[2], blended)
        assert np.allclose(normals[3], SLANTED)

    def test_unit_length_on_heightfield(self):
        """Every normal of a generated surface has unit length."""
        rng = np.random.default_rng(42)
        rgba = rng.integers(0, 256, size=(32, 32, 4), dtype=np.uint8)
        mesh = DepthMapStrategy().generate(rgba, ExtrusionConfig(detail="high", depth=2.0))

        for compute in (compute_smooth_normals, compute_flat_normals):
            normals = compute(mesh.vertices, mesh.indices)
            assert normals.shape == mesh.vertices.shape
            assert np.allclose(np.linalg.norm(normals, axis=1), 1.0)

    def test_flat_surface_points_up(self):
        """A flat heightfield faces +Z."""
        rgba = np.full((16, 16, 4), 100, dtype=np.uint8)
        mesh = apply_normals(DepthMapStrategy().generate(rgba, ExtrusionConfig()))
        assert np.allclose(mesh.normals, UP)


class TestDegenerateInput(unittest.TestCase):
    """Tests for orphan vertices and zero-area faces."""

    def setUp(self):
        self.vertices = np.vstack([
            VERTICES,
            [[2.0, 0.0, 0.0], [3.0, 0.0, 0.0], [4.0, 0.0, 0.0]],  # collinear
            [[9.0, 9.0, 9.0]],  # referenced by nothing
        ])
        self.indices = np.concatenate([INDICES, [4, 5, 6]]).astype(np.uint32)

    def test_zero_normals_not_nan(self):
        """Orphans and degenerate faces give zero vectors."""
        for compute in (compute_smooth_normals, compute_flat_normals):
            normals = compute(self.vertices, self.indices)

            assert normals.shape == (8, 3)
            assert np.all(np.isfinite(normals))
            assert np.all(normals[4:] == 0.0)

    def test_no_triangles(self):
        """A point cloud gets one zero normal per vertex."""
        normals = compute_smooth_normals(VERTICES, np.zeros(0, dtype=np.uint32))
        assert normals.shape == (4, 3)
        assert np.all(normals == 0.0)

    def test_index_out_of_range(self):
        with self.assertRaises(ValueError):
            compute_smooth_normals(VERTICES, np.array([0, 1, 4], dtype=np.uint32))

    def test_partial_triangle(self):
        with self.assertRaises(ValueError):
            compute_flat_normals(VERTICES, np.array([0, 1], dtype=np.uint32))


class TestApplyNormals(unittest.TestCase):

    def test_replaces_only_normals(self):
        """Positions, uvs and indices pass through unchanged."""
        rgba = np.random.default_rng(0).integers(0, 256, size=(16, 16, 4), dtype=np.uint8)
        raw = DepthMapStrategy().generate(rgba, ExtrusionConfig())
        finished = apply_normals(raw, smooth=False)

        assert finished.vertices is raw.vertices
        assert finished.uvs is raw.uvs
        assert finished.indices is raw.indices
        assert len(raw.normals) == 0
        assert finished.normals.shape == raw.vertices.shape


if __name__ == "__main__":
    unittest.main(verbosity=2)
