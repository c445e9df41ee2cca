"""Exceptions raised by the image_mesh package."""


class ImageMeshError(Exception):
    """Base exception for image_mesh package."""

    pass


class InvalidInputError(ImageMeshError, ValueError):
    """Raster data cannot be interpreted as an image."""

    pass


class GenerationError(ImageMeshError):
    """Mesh generation failed."""

    pass


class ExportError(ImageMeshError):
    """Writing a mesh to disk failed."""

    pass
