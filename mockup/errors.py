class MockupError(Exception):
    """Base error for known mockup pipeline failures."""


class InvalidImageError(MockupError):
    """Raised when pixel data is unreadable, corrupt or has bad dimensions."""


class UnsupportedFormatError(InvalidImageError):
    """Raised when bytes are not in a raster format we can decode."""


class ImageLoadError(MockupError):
    """Raised when the background asset cannot be loaded."""


class LogoDecodeError(MockupError):
    """Raised when a logo cannot be decoded and fallback is disabled."""


class ConfigurationError(MockupError, ValueError):
    """Raised when detection or constraint settings break an invariant."""


class DetectionCancelled(MockupError):
    """Raised when a scan outlives its deadline."""


class ConstraintViolationWarning(UserWarning):
    """Tag type for soft constraint issues; reported, never raised."""
