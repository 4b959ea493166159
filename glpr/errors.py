"""Exceptions raised by the glpr recognition pipeline."""


class GLPRError(Exception):
    """Base class for all recognition pipeline errors."""


class InvalidImage(GLPRError, ValueError):
    """The input image is malformed, empty or could not be decoded."""


class ShapeMismatch(GLPRError, ValueError):
    """A probability grid does not match the configured model output shape."""
