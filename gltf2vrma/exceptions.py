"""
Custom exceptions for the glTF to VRMA converter.
"""


class ConverterError(Exception):
    """Base exception for converter errors."""
    pass


class DocumentError(ConverterError):
    """Raised when a glTF document cannot be loaded."""
    pass


class DecoderError(ConverterError):
    """Raised when the external FBX decoder is missing or fails."""
    pass


class AnimationError(ConverterError):
    """Raised when animation data violates a structural invariant."""
    pass


class ContainerError(ConverterError):
    """Raised when a GLB container cannot be written or read consistently."""
    pass
