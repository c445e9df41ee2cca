"""
Grid Extrusion Strategies

Each strategy samples the raster on a uniform grid and lifts every sample
into 3D:

1. Depth Map - height from pixel luminance
2. Edge Based - height from Sobel gradient magnitude
3. Contour Based - stacked luminance bands at fixed heights (points only)

Grid Layout:
- Sampling stride comes from the detail level (low=8, medium=4, high=2)
- cols = width // step, rows = height // step (floor division)
- Grid point (gx, gy) samples pixel (gx * step, gy * step)
- Vertex index = gy * cols + gx

World Space:
- x = (px - W/2) / (W/2) * 5
- y = -(py - H/2) / (H/2) * 5   (image rows grow downwards, +Y is up)
- Every image covers the same [-5, 5] footprint regardless of resolution
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, NamedTuple, Type, Union
import numpy as np

from .sampling import luminance_grid, sobel_magnitude

logger = logging.getLogger(__name__)

# Half-extent of the generated footprint in world units
WORLD_EXTENT = 5.0


class ExtrusionMethod(Enum):
    """Available extrusion strategies."""
    DEPTH_MAP = "depth_map"          # Luminance heightfield
    EDGE_BASED = "edge_based"        # Sobel magnitude heightfield
    CONTOUR_BASED = "contour_based"  # Luminance bands, point cloud


class DetailLevel(Enum):
    """Coarse sampling density knob."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"
    ULTRA = "ultra"


DETAIL_STEPS = {
    DetailLevel.LOW: 8,
    DetailLevel.MEDIUM: 4,
    DetailLevel.HIGH: 2,
}

# VERY_HIGH and ULTRA have no stride of their own and fall back to this
DEFAULT_STEP = 4


def step_for_detail(detail) -> int:
    """
    Map a detail level to its pixel sampling stride.

    Args:
        detail: DetailLevel member or its string value

    Returns:
        Stride in pixels; unknown levels map to DEFAULT_STEP
    """
    if isinstance(detail, str):
        try:
            detail = DetailLevel(detail.lower())
        except ValueError:
            return DEFAULT_STEP
    if not isinstance(detail, DetailLevel):
        return DEFAULT_STEP
    return DETAIL_STEPS.get(detail, DEFAULT_STEP)


@dataclass
class ExtrusionConfig:
    """
    Parameters of one generation request.

    Attributes:
        method: Extrusion strategy
        detail: Detail level controlling the sampling stride
        depth: Height scale; not range-checked
        smooth_normals: Smooth (area-weighted) or flat normals
    """
    method: ExtrusionMethod = ExtrusionMethod.DEPTH_MAP
    detail: DetailLevel = DetailLevel.MEDIUM
    depth: float = 1.0
    smooth_normals: bool = True

    def __post_init__(self):
        if isinstance(self.method, str):
            self.method = ExtrusionMethod(self.method.lower())
        if isinstance(self.detail, str):
            try:
                self.detail = DetailLevel(self.detail.lower())
            except ValueError:
                pass  # Unknown levels are kept and sample at DEFAULT_STEP
        self.depth = float(self.depth)
        self.smooth_normals = bool(self.smooth_normals)

    @property
    def step(self) -> int:
        """Sampling stride in pixels."""
        return step_for_detail(self.detail)


class MeshData(NamedTuple):
    """Container for mesh geometry data."""
    vertices: np.ndarray     # (N, 3) float64 positions
    normals: np.ndarray      # (N, 3) float64 unit normals, or (0, 3) when absent
    uvs: np.ndarray          # (N, 2) float64 texture coordinates
    indices: np.ndarray      # (M,) uint32 triangle indices

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def has_normals(self) -> bool:
        return len(self.normals) > 0


def empty_mesh() -> MeshData:
    """Return a mesh with no vertices and no triangles."""
    return MeshData(
        vertices=np.zeros((0, 3), dtype=np.float64),
        normals=np.zeros((0, 3), dtype=np.float64),
        uvs=np.zeros((0, 2), dtype=np.float64),
        indices=np.zeros((0,), dtype=np.uint32)
    )


class SampleGrid(NamedTuple):
    """Pixel coordinates of the sampling grid, shape (rows, cols)."""
    px: np.ndarray
    py: np.ndarray
    cols: int
    rows: int

    @property
    def is_empty(self) -> bool:
        return self.cols == 0 or self.rows == 0


def sample_grid(width: int, height: int, step: int) -> SampleGrid:
    """
    Build the uniform sampling grid.

    Trailing pixels that do not fill a whole stride are never sampled.

    Args:
        width: Raster width in pixels
        height: Raster height in pixels
        step: Sampling stride

    Returns:
        SampleGrid in row-major (gy, gx) order
    """
    cols = width // step
    rows = height // step
    px, py = np.meshgrid(
        np.arange(cols, dtype=np.int64) * step,
        np.arange(rows, dtype=np.int64) * step
    )
    return SampleGrid(px=px, py=py, cols=cols, rows=rows)


def grid_to_world(
    px: np.ndarray,
    py: np.ndarray,
    z: np.ndarray,
    width: int,
    height: int
) -> np.ndarray:
    """
    Map pixel coordinates and heights to world-space positions.

    Args:
        px, py: Pixel coordinates (any matching shape)
        z: Heights, same shape as px
        width, height: Raster dimensions

    Returns:
        (N, 3) float64 positions in flattened input order
    """
    half_w = width / 2.0
    half_h = height / 2.0
    x = (px - half_w) / half_w * WORLD_EXTENT
    y = -(py - half_h) / half_h * WORLD_EXTENT
    return np.column_stack([
        np.ravel(x).astype(np.float64),
        np.ravel(y).astype(np.float64),
        np.ravel(z).astype(np.float64),
    ])


def grid_uvs(px: np.ndarray, py: np.ndarray, width: int, height: int) -> np.ndarray:
    """Texture coordinates (px / W, py / H), v growing downwards."""
    return np.column_stack([
        np.ravel(px) / width,
        np.ravel(py) / height,
    ]).astype(np.float64)


def grid_triangles(cols: int, rows: int) -> np.ndarray:
    """
    Triangulate a cols x rows vertex grid.

    Each cell emits (topLeft, bottomLeft, topRight) followed by
    (topRight, bottomLeft, bottomRight). Cells are visited row by row.

    Args:
        cols: Vertices per row
        rows: Number of rows

    Returns:
        (M,) uint32 index array, empty if either dimension is below 2
    """
    if cols < 2 or rows < 2:
        return np.zeros((0,), dtype=np.uint32)

    gx, gy = np.meshgrid(np.arange(cols - 1), np.arange(rows - 1))
    top_left = (gy * cols + gx).ravel()
    top_right = top_left + 1
    bottom_left = ((gy + 1) * cols + gx).ravel()
    bottom_right = bottom_left + 1

    triangles = np.stack([
        top_left, bottom_left, top_right,
        top_right, bottom_left, bottom_right,
    ], axis=1)

    return triangles.ravel().astype(np.uint32)


class ExtrusionStrategy:
    """
    Base class for extrusion strategies.

    Subclasses implement _build(); generate() handles the empty-grid case
    shared by all of them. Normals are left empty for the normal computer.
    """

    method: ExtrusionMethod

    def generate(self, raster: np.ndarray, config: ExtrusionConfig) -> MeshData:
        """
        Generate a raw mesh from a raster.

        Args:
            raster: RGBA raster of shape (H, W, 4)
            config: Extrusion parameters

        Returns:
            MeshData with positions, uvs and indices; normals empty
        """
        height, width = raster.shape[:2]
        step = config.step
        grid = sample_grid(width, height, step)

        if grid.is_empty:
            logger.warning(
                "Sampling grid is empty for %dx%d image at step %d",
                width, height, step
            )
            return empty_mesh()

        logger.debug(
            "%s: sampling %dx%d grid (step %d)",
            self.method.value, grid.cols, grid.rows, step
        )
        return self._build(raster, grid, config)

    def _build(
        self,
        raster: np.ndarray,
        grid: SampleGrid,
        config: ExtrusionConfig
    ) -> MeshData:
        raise NotImplementedError


class HeightfieldStrategy(ExtrusionStrategy):
    """Connected heightfield surface driven by a per-pixel scalar field."""

    def height_field(self, raster: np.ndarray) -> np.ndarray:
        """Return an (H, W) scalar field; z = field * depth."""
        raise NotImplementedError

    def _build(
        self,
        raster: np.ndarray,
        grid: SampleGrid,
        config: ExtrusionConfig
    ) -> MeshData:
        height, width = raster.shape[:2]
        field = self.height_field(raster)
        z = field[grid.py, grid.px] * config.depth

        return MeshData(
            vertices=grid_to_world(grid.px, grid.py, z, width, height),
            normals=np.zeros((0, 3), dtype=np.float64),
            uvs=grid_uvs(grid.px, grid.py, width, height),
            indices=grid_triangles(grid.cols, grid.rows)
        )


class DepthMapStrategy(HeightfieldStrategy):
    """Brighter pixels are raised higher."""

    method = ExtrusionMethod.DEPTH_MAP

    def height_field(self, raster: np.ndarray) -> np.ndarray:
        return luminance_grid(raster)


class EdgeBasedStrategy(HeightfieldStrategy):
    """
    Edges are raised, flat regions stay at z = 0.

    The edge field is computed once at full resolution before sampling.
    Magnitudes are not clamped, so z may exceed the configured depth.
    """

    method = ExtrusionMethod.EDGE_BASED

    def height_field(self, raster: np.ndarray) -> np.ndarray:
        return sobel_magnitude(raster)


class ContourStrategy(ExtrusionStrategy):
    """
    Stacked luminance bands.

    The luminance range is cut into levels + 1 thresholds (level / levels).
    For each threshold, every grid sample at least that bright emits a
    vertex at z = threshold * depth. No triangles are emitted, so the
    result is a stratified point cloud.
    """

    method = ExtrusionMethod.CONTOUR_BASED

    def __init__(self, levels: int = 5):
        self.levels = levels

    def _build(
        self,
        raster: np.ndarray,
        grid: SampleGrid,
        config: ExtrusionConfig
    ) -> MeshData:
        height, width = raster.shape[:2]
        samples = luminance_grid(raster)[grid.py, grid.px].ravel()
        px = grid.px.ravel()
        py = grid.py.ravel()

        all_vertices = []
        all_uvs = []

        for level in range(self.levels + 1):
            threshold = level / self.levels
            selected = samples >= threshold
            if not np.any(selected):
                continue

            z = np.full(int(selected.sum()), threshold * config.depth)
            all_vertices.append(
                grid_to_world(px[selected], py[selected], z, width, height)
            )
            all_uvs.append(grid_uvs(px[selected], py[selected], width, height))

        if not all_vertices:
            return empty_mesh()

        return MeshData(
            vertices=np.vstack(all_vertices),
            normals=np.zeros((0, 3), dtype=np.float64),
            uvs=np.vstack(all_uvs),
            indices=np.zeros((0,), dtype=np.uint32)
        )


STRATEGIES: Dict[ExtrusionMethod, Type[ExtrusionStrategy]] = {
    ExtrusionMethod.DEPTH_MAP: DepthMapStrategy,
    ExtrusionMethod.EDGE_BASED: EdgeBasedStrategy,
    ExtrusionMethod.CONTOUR_BASED: ContourStrategy,
}


def get_strategy(method: Union[str, ExtrusionMethod]) -> ExtrusionStrategy:
    """
    Create the strategy for an extrusion method.

    Args:
        method: Method name or ExtrusionMethod enum

    Returns:
        Strategy instance
    """
    if isinstance(method, str):
        method = ExtrusionMethod(method.lower())
    return STRATEGIES[method]()
