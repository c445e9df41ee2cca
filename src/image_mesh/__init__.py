"""
Image Mesh
==========

Converts 2D images into textured 3D triangle meshes.

The image is sampled on a uniform grid and every sample is lifted into 3D
by one of three extrusion strategies, then finished with smooth or flat
vertex normals. The result can be merged with its own mirror image and
exported with the source image as its diffuse texture.

Key Features:
- Depth map, edge based (Sobel) and contour based extrusion
- Smooth and flat per-vertex normals with Numba JIT kernels
- Axis mirroring and mesh merging
- Export to Wavefront (.obj), Stanford (.ply), STL and glTF 2.0 (.gltf/.glb)

Example Usage:
    from image_mesh import MeshGenerator

    generator = MeshGenerator(method="depth_map", detail="high", depth=2.0)
    generator.load_image("photo.png")
    generator.generate()
    generator.export("relief.glb")
"""

__version__ = "1.0.0"
__author__ = "Image Mesh Team"

from .generator import MeshGenerator, BatchProcessor, build_mesh
from .extrusion import (
    DetailLevel,
    ExtrusionConfig,
    ExtrusionMethod,
    MeshData,
    get_strategy,
)
from .normals import compute_flat_normals, compute_smooth_normals
from .transform import MirrorAxis, combine_meshes, mirror_mesh
from .exporters import export_mesh, format_id_for_path
from .exceptions import ImageMeshError, InvalidInputError, GenerationError, ExportError

__all__ = [
    "MeshGenerator",
    "BatchProcessor",
    "build_mesh",
    "DetailLevel",
    "ExtrusionConfig",
    "ExtrusionMethod",
    "MeshData",
    "get_strategy",
    "compute_flat_normals",
    "compute_smooth_normals",
    "MirrorAxis",
    "combine_meshes",
    "mirror_mesh",
    "export_mesh",
    "format_id_for_path",
    "ImageMeshError",
    "InvalidInputError",
    "GenerationError",
    "ExportError",
]
