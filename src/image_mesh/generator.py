"""
Main MeshGenerator Class

This is the primary interface for the image-to-mesh pipeline.
It orchestrates:
1. Image loading
2. Extrusion (depth map, edge based or contour based)
3. Normal computation (smooth or flat)
4. Optional mirroring (the mirror image is merged into the exported mesh)
5. Export to various formats

Example Usage:
    generator = MeshGenerator(method="depth_map", detail="high", depth=2.0)
    generator.load_image("photo.png")
    generator.generate()
    generator.export("relief.obj")
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Union, Optional
import numpy as np

from .exceptions import GenerationError
from .extrusion import ExtrusionConfig, MeshData, get_strategy, sample_grid
from .ingestion import ImageLoader, as_raster
from .normals import apply_normals
from .transform import MirrorAxis, mirror_and_combine, parse_axis
from .exporters import export_mesh

logger = logging.getLogger(__name__)


def build_mesh(raster: np.ndarray, config: Optional[ExtrusionConfig] = None) -> MeshData:
    """
    Generate a finished mesh (positions, normals, uvs, indices) from a raster.

    Generation is all-or-nothing: any numeric failure raises GenerationError
    and no mesh is returned.

    Args:
        raster: Image array, converted with as_raster() if needed
        config: Extrusion parameters (defaults if None)

    Returns:
        MeshData with one normal per vertex
    """
    config = config or ExtrusionConfig()
    raster = as_raster(raster)
    strategy = get_strategy(config.method)

    try:
        with np.errstate(over="raise", invalid="raise", divide="raise"):
            mesh = strategy.generate(raster, config)
            mesh = apply_normals(mesh, smooth=config.smooth_normals)
    except ArithmeticError as exc:
        raise GenerationError(f"Numeric failure during {config.method.value} generation: {exc}") from exc

    if not (np.all(np.isfinite(mesh.vertices)) and np.all(np.isfinite(mesh.normals))):
        raise GenerationError(
            f"Non-finite geometry produced by {config.method.value} generation "
            f"(depth={config.depth})"
        )

    logger.debug(
        "Generated %d vertices, %d triangles",
        mesh.vertex_count, mesh.triangle_count
    )
    return mesh


class MeshGenerator:
    """
    High-level interface for image-to-mesh conversion.

    One generator is one session: it holds the loaded image, the current
    settings and the most recently generated mesh.

    Attributes:
        config: Extrusion settings used by generate()
        mirror_axis: Axis the exported mesh is mirrored across (NONE = off)
    """

    def __init__(
        self,
        method: str = "depth_map",
        detail: str = "medium",
        depth: float = 1.0,
        smooth_normals: bool = True,
        mirror_axis: Union[str, MirrorAxis] = MirrorAxis.NONE
    ):
        """
        Initialize the MeshGenerator.

        Args:
            method: Extrusion method ("depth_map", "edge_based", "contour_based")
            detail: Detail level ("low", "medium", "high")
            depth: Extrusion depth (height scale)
            smooth_normals: Smooth normals if True, flat otherwise
            mirror_axis: Mirror axis ("none", "x", "y", "z")
        """
        self.config = ExtrusionConfig(
            method=method,
            detail=detail,
            depth=depth,
            smooth_normals=smooth_normals
        )
        self.mirror_axis = parse_axis(mirror_axis)

        self._image_loader: Optional[ImageLoader] = None
        self._mesh: Optional[MeshData] = None
        self._generating = False

    def load_image(self, image_path: Union[str, Path]) -> "MeshGenerator":
        """
        Load an image for mesh generation.

        Args:
            image_path: Path to the image

        Returns:
            self for method chaining
        """
        self._image_loader = ImageLoader().load(image_path)
        self._mesh = None
        logger.debug("Loaded %s (%dx%d)", image_path, *self._image_loader.size)
        return self

    def load_array(self, array: np.ndarray) -> "MeshGenerator":
        """
        Load image data from a numpy array.

        Args:
            array: Image array of shape (H, W), (H, W, 3) or (H, W, 4)

        Returns:
            self for method chaining
        """
        self._image_loader = ImageLoader().load_from_array(array)
        self._mesh = None
        return self

    def configure(
        self,
        method: Optional[str] = None,
        detail: Optional[str] = None,
        depth: Optional[float] = None,
        smooth_normals: Optional[bool] = None
    ) -> "MeshGenerator":
        """
        Update extrusion settings. Takes effect on the next generate().

        Returns:
            self for method chaining
        """
        changes = {
            "method": method,
            "detail": detail,
            "depth": depth,
            "smooth_normals": smooth_normals,
        }
        changes = {key: value for key, value in changes.items() if value is not None}
        self.config = replace(self.config, **changes)
        return self

    def set_mirror(self, axis: Union[str, MirrorAxis, None]) -> "MeshGenerator":
        """
        Set the mirror axis applied to the output mesh.

        Returns:
            self for method chaining
        """
        self.mirror_axis = parse_axis(axis)
        return self

    def generate(self) -> "MeshGenerator":
        """
        Generate the mesh from the loaded image.

        Returns:
            self for method chaining
        """
        if self._image_loader is None:
            raise RuntimeError("No image loaded. Call load_image() first.")
        if self._generating:
            raise RuntimeError("A mesh generation is already in progress.")

        self._generating = True
        try:
            self._mesh = build_mesh(self._image_loader.raster, self.config)
        finally:
            self._generating = False

        return self

    def export(
        self,
        output_path: Union[str, Path],
        include_texture: bool = True
    ) -> Path:
        """
        Export the output mesh; the extension selects the format.

        Args:
            output_path: Output file path
            include_texture: Also write <basename>_texture.png from the image

        Returns:
            The output path
        """
        if self._mesh is None:
            raise RuntimeError("No mesh generated. Call generate() first.")

        texture = self._image_loader.raster if include_texture else None
        return export_mesh(self.output_mesh, output_path, texture=texture)

    def export_all(
        self,
        base_path: Union[str, Path],
        formats: Optional[list] = None,
        include_texture: bool = True
    ) -> list:
        """
        Export to multiple formats at once.

        Args:
            base_path: Base file path (without extension)
            formats: List of extensions to export (default: obj)
            include_texture: Also write the texture file

        Returns:
            List of written model paths
        """
        base_path = Path(base_path)
        formats = formats or ["obj"]

        return [
            self.export(base_path.with_suffix(f".{fmt}"), include_texture=include_texture)
            for fmt in formats
        ]

    @property
    def raster(self) -> Optional[np.ndarray]:
        """Get the loaded raster."""
        if self._image_loader is None:
            return None
        return self._image_loader.raster

    @property
    def mesh(self) -> Optional[MeshData]:
        """Get the generated mesh (before mirroring)."""
        return self._mesh

    @property
    def output_mesh(self) -> Optional[MeshData]:
        """Get the mesh as exported: merged with its mirror when enabled."""
        if self._mesh is None:
            return None
        return mirror_and_combine(self._mesh, self.mirror_axis)

    @property
    def vertex_count(self) -> int:
        """Get the number of output mesh vertices."""
        if self._mesh is None:
            return 0
        return self.output_mesh.vertex_count

    @property
    def triangle_count(self) -> int:
        """Get the number of output mesh triangles."""
        if self._mesh is None:
            return 0
        return self.output_mesh.triangle_count

    def get_mesh_stats(self) -> dict:
        """
        Get mesh statistics.

        Returns:
            Dictionary with mesh statistics
        """
        if self._mesh is None:
            return {"error": "No mesh generated"}

        width, height = self._image_loader.size
        step = self.config.step
        grid = sample_grid(width, height, step)
        referenced = len(np.unique(self._mesh.indices))
        output = self.output_mesh

        return {
            "method": self.config.method.value,
            "step": step,
            "grid_size": (grid.cols, grid.rows),
            "vertices": self._mesh.vertex_count,
            "triangles": self._mesh.triangle_count,
            "orphan_vertices": self._mesh.vertex_count - referenced,
            "mirror_axis": self.mirror_axis.value,
            "output_vertices": output.vertex_count,
            "output_triangles": output.triangle_count,
        }

    def preview(self) -> dict:
        """
        Get a preview of the current state.

        Returns:
            Dictionary with current state information
        """
        info = {
            "image_loaded": self._image_loader is not None,
            "generated": self._mesh is not None,
            "method": self.config.method.value,
            "step": self.config.step,
            "depth": self.config.depth,
            "smooth_normals": self.config.smooth_normals,
            "mirror_axis": self.mirror_axis.value,
        }

        if self._image_loader:
            info["image_size"] = self._image_loader.size

        if self._mesh is not None:
            info["vertex_count"] = self.vertex_count
            info["triangle_count"] = self.triangle_count

        return info


class BatchProcessor:
    """
    Batch processing for a directory of images.

    Every image is converted with the same settings.
    """

    def __init__(self, **generator_kwargs):
        """
        Initialize the batch processor.

        Args:
            **generator_kwargs: Arguments passed to MeshGenerator
        """
        self.generator_kwargs = generator_kwargs

    def process_directory(
        self,
        input_dir: Union[str, Path],
        output_dir: Union[str, Path],
        pattern: str = "*.png",
        formats: Optional[list] = None,
        include_texture: bool = True
    ) -> list:
        """
        Process all images in a directory.

        Args:
            input_dir: Input directory
            output_dir: Output directory
            pattern: Glob pattern for input files
            formats: Export formats (extensions)
            include_texture: Also write texture files

        Returns:
            List of output base paths
        """
        input_dir = Path(input_dir)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        outputs = []

        for image_path in sorted(input_dir.glob(pattern)):
            generator = MeshGenerator(**self.generator_kwargs)
            generator.load_image(image_path)
            generator.generate()

            base_path = output_dir / image_path.stem
            generator.export_all(base_path, formats, include_texture=include_texture)
            logger.info("Processed %s", image_path)

            outputs.append(str(base_path))

        return outputs
