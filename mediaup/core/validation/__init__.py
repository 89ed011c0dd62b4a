"""
Validation module.

Admission checks for candidate files: size, type and name, plus decoded
image dimensions and video duration.
"""
from .constraints import ConstraintSet, IMAGE_MIME_TYPES, VIDEO_MIME_TYPES
from .probes import ImageDimensions, LocalProbeHost, ProbeHost, materialize
from .validator import FileValidator, UNSAFE_NAME_PATTERN

__all__ = [
    'ConstraintSet',
    'IMAGE_MIME_TYPES',
    'VIDEO_MIME_TYPES',
    'ImageDimensions',
    'LocalProbeHost',
    'ProbeHost',
    'materialize',
    'FileValidator',
    'UNSAFE_NAME_PATTERN',
]
