"""
Image Ingestion Module

This module handles:
- Loading images of any Pillow-readable format
- Conversion to the 4-channel, byte-per-channel raster layout the
  samplers address directly
- Writing a raster back out as the PNG texture that accompanies an export
"""

from pathlib import Path
from typing import Optional, Tuple, Union
import numpy as np
from PIL import Image, UnidentifiedImageError

from .exceptions import InvalidInputError


def as_raster(array: np.ndarray) -> np.ndarray:
    """
    Convert an image array to an (H, W, 4) uint8 RGBA raster.

    Grayscale (H, W), gray+alpha (H, W, 2), RGB (H, W, 3) and RGBA
    (H, W, 4) inputs are accepted. Float arrays are assumed to be in [0, 1].

    Args:
        array: Image data

    Returns:
        Contiguous RGBA raster of shape (H, W, 4)
    """
    array = np.asarray(array)

    if np.issubdtype(array.dtype, np.floating):
        array = np.clip(np.round(array * 255.0), 0, 255)
    array = array.astype(np.uint8, copy=False)

    if array.ndim == 2:
        opaque = np.full(array.shape, 255, dtype=np.uint8)
        rgba = np.stack([array, array, array, opaque], axis=-1)
    elif array.ndim == 3 and array.shape[2] == 2:
        gray, alpha = array[:, :, 0], array[:, :, 1]
        rgba = np.stack([gray, gray, gray, alpha], axis=-1)
    elif array.ndim == 3 and array.shape[2] == 3:
        opaque = np.full((*array.shape[:2], 1), 255, dtype=np.uint8)
        rgba = np.concatenate([array, opaque], axis=-1)
    elif array.ndim == 3 and array.shape[2] == 4:
        rgba = array
    else:
        raise InvalidInputError(
            f"Cannot interpret array of shape {array.shape} as an image"
        )

    return np.ascontiguousarray(rgba)


def save_texture(raster: np.ndarray, output_path: Union[str, Path]):
    """
    Save a raster as a PNG texture.

    Args:
        raster: RGBA raster of shape (H, W, 4)
        output_path: Destination file path
    """
    Image.fromarray(as_raster(raster)).save(output_path, format="PNG")


class ImageLoader:
    """
    Image loader producing rasters ready for mesh generation.

    The raster is treated as read-only once loaded; generation never
    modifies it.
    """

    def __init__(self):
        self._raster: Optional[np.ndarray] = None
        self._source: Optional[Path] = None

    def load(self, image_path: Union[str, Path]) -> "ImageLoader":
        """
        Load an image file.

        Args:
            image_path: Path to the image (PNG, JPEG, BMP, GIF, ...)

        Returns:
            self for method chaining
        """
        image_path = Path(image_path)
        if not image_path.exists():
            raise FileNotFoundError(f"Image not found: {image_path}")

        try:
            img = Image.open(image_path)
            img.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise InvalidInputError(f"Cannot decode image {image_path}: {exc}") from exc

        # Ensure RGBA format
        if img.mode != "RGBA":
            img = img.convert("RGBA")

        self._raster = np.array(img, dtype=np.uint8)
        self._raster.setflags(write=False)
        self._source = image_path
        return self

    def load_from_array(self, array: np.ndarray) -> "ImageLoader":
        """
        Load from a numpy array instead of a file.

        Args:
            array: Image array, see as_raster() for accepted layouts

        Returns:
            self for method chaining
        """
        raster = as_raster(array).copy()
        raster.setflags(write=False)
        self._raster = raster
        self._source = None
        return self

    @property
    def raster(self) -> np.ndarray:
        """Get the RGBA raster."""
        if self._raster is None:
            raise RuntimeError("No image loaded")
        return self._raster

    @property
    def source(self) -> Optional[Path]:
        """Path the raster was loaded from, if any."""
        return self._source

    @property
    def size(self) -> Tuple[int, int]:
        """Get image size as (width, height)."""
        raster = self.raster
        return (raster.shape[1], raster.shape[0])

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]
