"""
Conversion pipeline entry points.
"""

from .conversion import (
    convert,
    convert_directory,
    convert_file,
    convert_gltf_file,
    resolve_output_path,
)

__all__ = [
    'convert',
    'convert_directory',
    'convert_file',
    'convert_gltf_file',
    'resolve_output_path',
]
