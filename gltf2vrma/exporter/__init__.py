"""
VRMA document assembly and GLB serialization.
"""

from .glb_writer import GLBContainer, pack_glb, read_glb
from .vrma_builder import build_vrma_document

__all__ = ['GLBContainer', 'pack_glb', 'read_glb', 'build_vrma_document']
