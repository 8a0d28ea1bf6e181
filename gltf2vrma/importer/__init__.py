"""
glTF loading, buffer embedding and the external FBX decoder.
"""

from .accessor import AccessorReader
from .buffers import decode_data_uri, embed_buffers, encode_data_uri, load_document
from .decoder import default_decoder_binary_name, run_decoder

__all__ = [
    'AccessorReader',
    'decode_data_uri',
    'embed_buffers',
    'encode_data_uri',
    'load_document',
    'default_decoder_binary_name',
    'run_decoder',
]
