"""
Pixel Sampling and Edge Detection

Luminance follows the ITU-R BT.601 luma weights:

    L = (0.299 * R + 0.587 * G + 0.114 * B) / 255

The edge field is the Sobel gradient magnitude of the luminance grid. Only
interior pixels are filtered; the outermost one-pixel ring keeps a magnitude
of zero, which flattens the border of edge-based meshes.
"""

import numpy as np
from numba import njit
from scipy import ndimage


LUMA_WEIGHTS = (0.299, 0.587, 0.114)

# Sobel kernels, indexed [ky + 1, kx + 1]
SOBEL_X = np.array([
    [-1, 0, 1],
    [-2, 0, 2],
    [-1, 0, 1],
], dtype=np.float64)

SOBEL_Y = np.array([
    [-1, -2, -1],
    [0, 0, 0],
    [1, 2, 1],
], dtype=np.float64)


@njit(cache=True)
def _pixel_luminance(raster: np.ndarray, x: int, y: int) -> float:
    """Luminance of a single RGBA pixel in [0, 1]."""
    return (raster[y, x, 0] * 0.299 +
            raster[y, x, 1] * 0.587 +
            raster[y, x, 2] * 0.114) / 255.0


def sample_luminance(raster: np.ndarray, x: int, y: int) -> float:
    """
    Sample the normalized luminance at a pixel.

    Args:
        raster: RGBA raster of shape (H, W, 4)
        x: Pixel column
        y: Pixel row

    Returns:
        Luminance in [0, 1]
    """
    return float(_pixel_luminance(raster, x, y))


def luminance_grid(raster: np.ndarray) -> np.ndarray:
    """
    Compute the luminance of every pixel.

    Evaluates the same expression as sample_luminance() for every pixel.

    Args:
        raster: RGBA raster of shape (H, W, 4)

    Returns:
        Float64 array of shape (H, W) with values in [0, 1]
    """
    r = raster[:, :, 0].astype(np.float64)
    g = raster[:, :, 1].astype(np.float64)
    b = raster[:, :, 2].astype(np.float64)
    return (r * LUMA_WEIGHTS[0] + g * LUMA_WEIGHTS[1] + b * LUMA_WEIGHTS[2]) / 255.0


def sobel_magnitude(raster: np.ndarray) -> np.ndarray:
    """
    Compute the Sobel gradient magnitude over the full-resolution raster.

    Magnitudes are not normalized and may exceed 1 (the theoretical maximum
    for a luminance step is 4 * sqrt(2)).

    Args:
        raster: RGBA raster of shape (H, W, 4)

    Returns:
        Float64 array of shape (H, W); border pixels are 0
    """
    height, width = raster.shape[:2]
    edges = np.zeros((height, width), dtype=np.float64)

    if width < 3 or height < 3:
        return edges

    luminance = luminance_grid(raster)

    # Correlation (not convolution) so the kernels apply as written
    gx = ndimage.correlate(luminance, SOBEL_X, mode="constant", cval=0.0)
    gy = ndimage.correlate(luminance, SOBEL_Y, mode="constant", cval=0.0)

    # Padded values only reach the border ring, which stays zero
    interior = (slice(1, height - 1), slice(1, width - 1))
    edges[interior] = np.sqrt(gx[interior] ** 2 + gy[interior] ** 2)

    return edges
