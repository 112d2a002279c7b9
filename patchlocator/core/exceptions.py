class PatchLocatorError(RuntimeError):
    """Base class for source patch locator failures."""


class DescriptorValidationError(PatchLocatorError):
    """Raised when an element descriptor cannot anchor a patch at all."""


class FallbackResponseError(PatchLocatorError):
    """Raised when a fallback generator returns unusable code."""


class PathResolutionError(PatchLocatorError):
    """Raised when a reported source file cannot be mapped onto the project."""
