"""
Wavefront OBJ Format Exporter

OBJ is a universal text-based format supported by virtually all 3D software.
Every export writes:
- The .obj geometry (v / vt / vn / f records)
- A .mtl material library with a single material, mapping the diffuse
  texture when one is given

OBJ puts the texture origin at the bottom-left, so v is flipped on write.
Meshes without triangles are written as point elements (p records).
"""

from pathlib import Path
from typing import Union, Optional, List
import numpy as np

from ..exceptions import ExportError
from ..extrusion import MeshData


# Number of vertex references per point element line
POINTS_PER_LINE = 16


class OBJExporter:
    """
    Export mesh data to Wavefront OBJ format.

    Supports:
    - Positions, texture coordinates and normals
    - MTL material with optional diffuse texture
    """

    def __init__(self, include_normals: bool = True):
        """
        Initialize the exporter.

        Args:
            include_normals: Whether to include vertex normals
        """
        self.include_normals = include_normals

    def export(
        self,
        mesh: MeshData,
        output_path: Union[str, Path],
        texture_name: Optional[str] = None,
        model_name: str = "ImageMesh",
        material_name: str = "ImageMaterial"
    ):
        """
        Export mesh to OBJ file.

        Args:
            mesh: Finished MeshData
            output_path: Output file path (.obj)
            texture_name: Relative path of the diffuse texture, if any
            model_name: Name for the model/object
            material_name: Name for the material
        """
        output_path = Path(output_path)

        if len(mesh.vertices) == 0:
            raise ExportError("Cannot export empty mesh")

        mtl_path = output_path.with_suffix('.mtl')
        with_normals = self.include_normals and len(mesh.normals) > 0

        lines = []
        lines.append("# Image Mesh OBJ Export")
        lines.append(f"# Vertices: {len(mesh.vertices)}")
        lines.append(f"# Triangles: {len(mesh.indices) // 3}")
        lines.append("")
        lines.append(f"mtllib {mtl_path.name}")
        lines.append(f"o {model_name}")
        lines.append("")

        for v in mesh.vertices:
            lines.append(f"v {v[0]:.6f} {v[1]:.6f} {v[2]:.6f}")
        lines.append("")

        for uv in mesh.uvs:
            lines.append(f"vt {uv[0]:.6f} {1.0 - uv[1]:.6f}")
        lines.append("")

        if with_normals:
            for n in mesh.normals:
                lines.append(f"vn {n[0]:.6f} {n[1]:.6f} {n[2]:.6f}")
            lines.append("")

        lines.append(f"usemtl {material_name}")

        if len(mesh.indices) > 0:
            self._write_faces(lines, mesh.indices, with_normals)
        else:
            self._write_points(lines, len(mesh.vertices))

        lines.append("")

        with open(output_path, 'w') as f:
            f.write('\n'.join(lines))

        self._write_mtl(mtl_path, material_name, texture_name)

    def _write_faces(self, lines: List[str], indices: np.ndarray, with_normals: bool):
        """Append triangle records (1-based, position/uv[/normal])."""
        for i0, i1, i2 in indices.reshape(-1, 3).astype(np.int64) + 1:
            if with_normals:
                lines.append(f"f {i0}/{i0}/{i0} {i1}/{i1}/{i1} {i2}/{i2}/{i2}")
            else:
                lines.append(f"f {i0}/{i0} {i1}/{i1} {i2}/{i2}")

    def _write_points(self, lines: List[str], vertex_count: int):
        """Append point records for a mesh without faces."""
        for start in range(1, vertex_count + 1, POINTS_PER_LINE):
            stop = min(start + POINTS_PER_LINE, vertex_count + 1)
            lines.append("p " + " ".join(str(i) for i in range(start, stop)))

    def _write_mtl(
        self,
        mtl_path: Path,
        material_name: str,
        texture_name: Optional[str]
    ):
        """Write MTL material file."""
        lines = []
        lines.append("# Image Mesh MTL Export")
        lines.append("")
        lines.append(f"newmtl {material_name}")
        lines.append("Kd 1.0000 1.0000 1.0000")  # Diffuse color
        lines.append("Ka 0.2000 0.2000 0.2000")  # Ambient
        lines.append("Ks 0.5000 0.5000 0.5000")  # Specular
        lines.append("Ns 96.0")  # Specular exponent
        lines.append("d 1.0")  # Opacity
        lines.append("illum 2")  # Illumination model
        if texture_name is not None:
            lines.append(f"map_Kd {texture_name}")
        lines.append("")

        with open(mtl_path, 'w') as f:
            f.write('\n'.join(lines))
