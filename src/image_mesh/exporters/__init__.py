"""
Export modules for various 3D formats.

Supported formats:
- Wavefront (.obj + .mtl) - Universal legacy support
- Stanford (.ply) - Normals and UVs, binary
- STL (.stl) - Bare triangles for printing/CAD
- glTF 2.0 (.gltf / .glb) - Optimal for game engines and the web

The format is chosen from the file extension. FBX and COLLADA (.dae) are
recognised but have no writer.
"""

import logging
from pathlib import Path
from typing import Optional, Union
import numpy as np

from ..exceptions import ExportError
from ..extrusion import MeshData
from ..ingestion import save_texture
from .gltf_exporter import GLTFExporter
from .obj_exporter import OBJExporter
from .ply_exporter import PLYExporter
from .stl_exporter import STLExporter

logger = logging.getLogger(__name__)

FORMAT_IDS = {
    "obj": "obj",
    "stl": "stl",
    "ply": "ply",
    "fbx": "fbx",
    "dae": "collada",
    "gltf": "gltf2",
    "glb": "glb2",
}

DEFAULT_FORMAT_ID = "obj"

# Format ids with a writer; fbx and collada have none
WRITABLE_FORMATS = ("obj", "stl", "ply", "gltf2", "glb2")


def format_id_for_path(path: Union[str, Path]) -> str:
    """
    Map a file extension to an export format id.

    Args:
        path: Target file path

    Returns:
        Format id; unknown extensions map to "obj"
    """
    extension = Path(path).suffix.lstrip(".").lower()
    return FORMAT_IDS.get(extension, DEFAULT_FORMAT_ID)


def texture_path_for(path: Union[str, Path]) -> Path:
    """Sidecar texture path: <basename>_texture.png next to the model."""
    path = Path(path)
    return path.with_name(f"{path.stem}_texture.png")


def export_mesh(
    mesh: MeshData,
    output_path: Union[str, Path],
    texture: Optional[np.ndarray] = None
) -> Path:
    """
    Write a finished mesh, and optionally its texture, to disk.

    Args:
        mesh: Finished MeshData
        output_path: Target file; its extension selects the format
        texture: Optional RGBA raster saved as <basename>_texture.png

    Returns:
        The output path
    """
    output_path = Path(output_path)
    format_id = format_id_for_path(output_path)

    if format_id not in WRITABLE_FORMATS:
        raise ExportError(f"Unsupported export format: {format_id}")
    if len(mesh.vertices) == 0:
        raise ExportError("Cannot export empty mesh")

    texture_name = None

    try:
        if texture is not None:
            texture_path = texture_path_for(output_path)
            save_texture(texture, texture_path)
            texture_name = texture_path.name
            logger.info("Wrote texture %s", texture_path)

        if format_id == "obj":
            OBJExporter().export(mesh, output_path, texture_name=texture_name)
        elif format_id == "ply":
            PLYExporter().export(mesh, output_path, texture_name=texture_name)
        elif format_id == "stl":
            STLExporter().export(mesh, output_path)
        else:
            GLTFExporter(binary=(format_id == "glb2")).export(
                mesh, output_path, texture_name=texture_name
            )
    except OSError as exc:
        raise ExportError(f"Failed to write {output_path}: {exc}") from exc

    logger.info(
        "Exported %s (%s): %d vertices, %d triangles",
        output_path, format_id, len(mesh.vertices), len(mesh.indices) // 3
    )
    return output_path


__all__ = [
    "GLTFExporter",
    "OBJExporter",
    "PLYExporter",
    "STLExporter",
    "export_mesh",
    "format_id_for_path",
    "texture_path_for",
]
