"""
Per-Vertex Normal Computation with Numba JIT Compilation

Two modes:
1. Smooth - each vertex gets the normalized sum of the raw cross products of
   every triangle touching it (larger triangles weigh more)
2. Flat - each vertex takes the unit face normal of the FIRST triangle that
   references it; later triangles never overwrite a claimed slot

Both kernels work on an owned (N, 3) buffer sized to the vertex count, so the
result always holds exactly one normal per vertex. Vertices referenced by no
triangle, and degenerate faces, yield zero vectors.
"""

import numpy as np
from numba import njit

from .extrusion import MeshData


@njit(cache=True)
def _face_normal(vertices: np.ndarray, i0: int, i1: int, i2: int):
    """Unnormalized cross((p1 - p0), (p2 - p0))."""
    ax = vertices[i1, 0] - vertices[i0, 0]
    ay = vertices[i1, 1] - vertices[i0, 1]
    az = vertices[i1, 2] - vertices[i0, 2]
    bx = vertices[i2, 0] - vertices[i0, 0]
    by = vertices[i2, 1] - vertices[i0, 1]
    bz = vertices[i2, 2] - vertices[i0, 2]
    return (ay * bz - az * by,
            az * bx - ax * bz,
            ax * by - ay * bx)


@njit(cache=True)
def _smooth_normals(vertices: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Accumulate raw face normals per vertex, then normalize."""
    normals = np.zeros((vertices.shape[0], 3), dtype=np.float64)

    # Pass 1: accumulate
    for t in range(indices.shape[0] // 3):
        i0 = indices[3 * t]
        i1 = indices[3 * t + 1]
        i2 = indices[3 * t + 2]
        nx, ny, nz = _face_normal(vertices, i0, i1, i2)

        normals[i0, 0] += nx
        normals[i0, 1] += ny
        normals[i0, 2] += nz
        normals[i1, 0] += nx
        normals[i1, 1] += ny
        normals[i1, 2] += nz
        normals[i2, 0] += nx
        normals[i2, 1] += ny
        normals[i2, 2] += nz

    # Pass 2: normalize
    for v in range(normals.shape[0]):
        length = np.sqrt(normals[v, 0] ** 2 + normals[v, 1] ** 2 + normals[v, 2] ** 2)
        if length > 0.0:
            normals[v, 0] /= length
            normals[v, 1] /= length
            normals[v, 2] /= length

    return normals


@njit(cache=True)
def _flat_normals(vertices: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Assign unit face normals, first triangle to reference a vertex wins."""
    normals = np.zeros((vertices.shape[0], 3), dtype=np.float64)
    claimed = np.zeros(vertices.shape[0], dtype=np.bool_)

    for t in range(indices.shape[0] // 3):
        i0 = indices[3 * t]
        i1 = indices[3 * t + 1]
        i2 = indices[3 * t + 2]
        nx, ny, nz = _face_normal(vertices, i0, i1, i2)

        length = np.sqrt(nx * nx + ny * ny + nz * nz)
        if length > 0.0:
            nx /= length
            ny /= length
            nz /= length

        for idx in (i0, i1, i2):
            if not claimed[idx]:
                normals[idx, 0] = nx
                normals[idx, 1] = ny
                normals[idx, 2] = nz
                claimed[idx] = True

    return normals


def _prepare(vertices: np.ndarray, indices: np.ndarray):
    vertices = np.ascontiguousarray(vertices, dtype=np.float64)
    indices = np.ascontiguousarray(indices, dtype=np.int64)

    if vertices.ndim != 2 or vertices.shape[1] != 3:
        raise ValueError("Vertices must have shape (N, 3)")
    if len(indices) % 3 != 0:
        raise ValueError("Index count must be a multiple of 3")
    if len(indices) > 0 and (indices.min() < 0 or indices.max() >= len(vertices)):
        raise ValueError("Triangle index out of range")

    return vertices, indices


def compute_smooth_normals(vertices: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """
    Compute smooth (shared) vertex normals.

    Args:
        vertices: (N, 3) positions
        indices: (M,) flat triangle indices

    Returns:
        (N, 3) float64 normals; unit length wherever a vertex is touched by
        a non-degenerate triangle, zero otherwise
    """
    vertices, indices = _prepare(vertices, indices)
    return _smooth_normals(vertices, indices)


def compute_flat_normals(vertices: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """
    Compute flat vertex normals with first-writer-wins assignment.

    Vertices shared by several triangles keep the face normal of the
    triangle that appears first in the index buffer, which produces hard
    shading steps across shared vertices.

    Args:
        vertices: (N, 3) positions
        indices: (M,) flat triangle indices

    Returns:
        (N, 3) float64 normals; zero for vertices no triangle references
    """
    vertices, indices = _prepare(vertices, indices)
    return _flat_normals(vertices, indices)


def apply_normals(mesh: MeshData, smooth: bool = True) -> MeshData:
    """
    Return the mesh with its normal buffer recomputed.

    Args:
        mesh: Mesh with positions and indices
        smooth: Smooth normals if True, flat normals otherwise

    Returns:
        MeshData sharing positions, uvs and indices with the input
    """
    if smooth:
        normals = compute_smooth_normals(mesh.vertices, mesh.indices)
    else:
        normals = compute_flat_normals(mesh.vertices, mesh.indices)
    return mesh._replace(normals=normals)
