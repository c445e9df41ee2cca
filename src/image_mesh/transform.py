"""
Mesh Transformations

Pure functions: every operation returns a new MeshData and leaves its inputs
untouched.

- mirror_mesh: reflect across an axis plane, reversing triangle winding so
  the reflected surface still faces outwards
- combine_meshes: concatenate two meshes, re-basing the second mesh's indices
"""

from enum import Enum
from typing import Union
import numpy as np

from .extrusion import MeshData


class MirrorAxis(Enum):
    """Axis whose coordinate is negated when mirroring."""
    NONE = "none"
    X = "x"
    Y = "y"
    Z = "z"


AXIS_COLUMNS = {
    MirrorAxis.X: 0,
    MirrorAxis.Y: 1,
    MirrorAxis.Z: 2,
}


def parse_axis(axis: Union[str, MirrorAxis, None]) -> MirrorAxis:
    """Convert a string (or None) to a MirrorAxis."""
    if axis is None:
        return MirrorAxis.NONE
    if isinstance(axis, MirrorAxis):
        return axis
    return MirrorAxis(axis.lower())


def mirror_mesh(mesh: MeshData, axis: Union[str, MirrorAxis]) -> MeshData:
    """
    Reflect a mesh across the plane orthogonal to an axis.

    Positions and normals have the axis component negated; texture
    coordinates are copied unchanged. Each triangle (a, b, c) becomes
    (a, c, b). Mirroring twice across the same axis restores the input.

    Args:
        mesh: Source mesh
        axis: MirrorAxis.X, Y or Z

    Returns:
        New mirrored MeshData
    """
    axis = parse_axis(axis)
    if axis == MirrorAxis.NONE:
        raise ValueError("Cannot mirror across MirrorAxis.NONE")

    column = AXIS_COLUMNS[axis]

    vertices = mesh.vertices.copy()
    vertices[:, column] = -vertices[:, column]

    normals = mesh.normals.copy()
    if len(normals) > 0:
        normals[:, column] = -normals[:, column]

    indices = mesh.indices.reshape(-1, 3)[:, [0, 2, 1]].ravel().copy()

    return MeshData(
        vertices=vertices,
        normals=normals,
        uvs=mesh.uvs.copy(),
        indices=indices
    )


def combine_meshes(first: MeshData, second: MeshData) -> MeshData:
    """
    Concatenate two meshes into one.

    The first mesh's buffers are kept as-is; the second mesh's indices are
    shifted by the first mesh's vertex count.

    Args:
        first: Mesh placed first
        second: Mesh appended after it

    Returns:
        New combined MeshData
    """
    if first.has_normals != second.has_normals and first.vertex_count and second.vertex_count:
        raise ValueError("Cannot combine a mesh with normals and a mesh without")

    offset = len(first.vertices)

    if first.has_normals or second.has_normals:
        normals = np.vstack([first.normals, second.normals])
    else:
        normals = np.zeros((0, 3), dtype=np.float64)

    indices = np.concatenate([
        first.indices.astype(np.uint32),
        second.indices.astype(np.uint32) + np.uint32(offset),
    ])

    return MeshData(
        vertices=np.vstack([first.vertices, second.vertices]),
        normals=normals,
        uvs=np.vstack([first.uvs, second.uvs]),
        indices=indices
    )


def mirror_and_combine(mesh: MeshData, axis: Union[str, MirrorAxis, None]) -> MeshData:
    """
    Merge a mesh with its mirror image.

    Args:
        mesh: Source mesh
        axis: Mirror axis; NONE returns the mesh unchanged

    Returns:
        Combined mesh (twice the vertices and triangles) or the input mesh
    """
    axis = parse_axis(axis)
    if axis == MirrorAxis.NONE:
        return mesh
    return combine_meshes(mesh, mirror_mesh(mesh, axis))
