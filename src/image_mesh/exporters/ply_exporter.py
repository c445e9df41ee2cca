"""
PLY Format Exporter (Stanford Polygon File Format)

Binary little-endian PLY with per-vertex normals and texture coordinates
(s, t). Blender and MeshLab read the "TextureFile" comment to find the
diffuse texture.
"""

from pathlib import Path
from typing import Union, Optional
import numpy as np

from ..exceptions import ExportError
from ..extrusion import MeshData


class PLYExporter:
    """Export mesh data to binary PLY."""

    def export(
        self,
        mesh: MeshData,
        output_path: Union[str, Path],
        texture_name: Optional[str] = None
    ):
        """
        Export mesh to PLY file.

        Args:
            mesh: Finished MeshData
            output_path: Output file path (.ply)
            texture_name: Relative path of the diffuse texture, if any
        """
        output_path = Path(output_path)

        if len(mesh.vertices) == 0:
            raise ExportError("Cannot export empty mesh")

        with_normals = len(mesh.normals) > 0
        num_vertices = len(mesh.vertices)
        num_faces = len(mesh.indices) // 3

        fields = [("x", "<f4"), ("y", "<f4"), ("z", "<f4")]
        if with_normals:
            fields += [("nx", "<f4"), ("ny", "<f4"), ("nz", "<f4")]
        fields += [("s", "<f4"), ("t", "<f4")]

        vertex_data = np.zeros(num_vertices, dtype=np.dtype(fields))
        vertex_data["x"] = mesh.vertices[:, 0]
        vertex_data["y"] = mesh.vertices[:, 1]
        vertex_data["z"] = mesh.vertices[:, 2]
        if with_normals:
            vertex_data["nx"] = mesh.normals[:, 0]
            vertex_data["ny"] = mesh.normals[:, 1]
            vertex_data["nz"] = mesh.normals[:, 2]
        vertex_data["s"] = mesh.uvs[:, 0]
        vertex_data["t"] = 1.0 - mesh.uvs[:, 1]

        face_data = np.zeros(num_faces, dtype=np.dtype([("n", "u1"), ("v", "<i4", (3,))]))
        face_data["n"] = 3
        face_data["v"] = mesh.indices.reshape(-1, 3)

        # Build header
        header_lines = ["ply", "format binary_little_endian 1.0"]
        if texture_name is not None:
            header_lines.append(f"comment TextureFile {texture_name}")
        header_lines.append(f"element vertex {num_vertices}")
        for name, _ in fields:
            header_lines.append(f"property float {name}")
        header_lines.append(f"element face {num_faces}")
        header_lines.append("property list uchar int vertex_indices")
        header_lines.append("end_header")
        header = '\n'.join(header_lines) + '\n'

        with open(output_path, 'wb') as f:
            f.write(header.encode('ascii'))
            f.write(vertex_data.tobytes())
            f.write(face_data.tobytes())
