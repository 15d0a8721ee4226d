"""Exceptions raised by the glyph rain engine."""


class CharamaskError(Exception):
    """Base class for engine errors."""


class InvalidSurface(CharamaskError):
    """The surface cannot provide a 2D drawing context."""


class InvalidOptions(CharamaskError):
    """Options that cannot be normalized (e.g. unknown option names)."""


class SurfaceLost(CharamaskError):
    """The surface stopped accepting draw calls while the engine was running."""
