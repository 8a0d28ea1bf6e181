"""
GLTF2VRMA
=========

Mixamo FBX/glTF to VRM Animation (.vrma) conversion.
"""

__version__ = "1.0.0"

from .pipeline.conversion import (
    convert,
    convert_directory,
    convert_file,
    convert_gltf_file,
    resolve_output_path,
)
from .common import ConversionOptions

__all__ = [
    "convert",
    "convert_directory",
    "convert_file",
    "convert_gltf_file",
    "resolve_output_path",
    "ConversionOptions",
]
