"""
STL Format Exporter (binary)

STL stores bare triangles: no shared vertices, no texture coordinates.
Each facet carries its own unit normal, recomputed from the winding.
"""

from pathlib import Path
from typing import Union
import struct
import numpy as np

from ..exceptions import ExportError
from ..extrusion import MeshData


HEADER = b"ImageMesh binary STL"

FACET_DTYPE = np.dtype([
    ("normal", "<f4", (3,)),
    ("vertices", "<f4", (3, 3)),
    ("attribute", "<u2"),
])


def facet_normals(vertices: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Unit face normals, zero for degenerate triangles."""
    tris = vertices[indices.reshape(-1, 3)]
    normals = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    return np.divide(normals, lengths, out=np.zeros_like(normals), where=lengths > 0)


class STLExporter:
    """Export mesh triangles to binary STL."""

    def export(self, mesh: MeshData, output_path: Union[str, Path]):
        """
        Export mesh to STL file.

        Args:
            mesh: Finished MeshData
            output_path: Output file path (.stl)
        """
        output_path = Path(output_path)

        if len(mesh.vertices) == 0:
            raise ExportError("Cannot export empty mesh")

        num_faces = len(mesh.indices) // 3
        facets = np.zeros(num_faces, dtype=FACET_DTYPE)
        if num_faces > 0:
            facets["normal"] = facet_normals(mesh.vertices, mesh.indices)
            facets["vertices"] = mesh.vertices[mesh.indices.reshape(-1, 3)]

        with open(output_path, 'wb') as f:
            f.write(HEADER.ljust(80, b'\x00'))
            f.write(struct.pack('<I', num_faces))
            f.write(facets.tobytes())
