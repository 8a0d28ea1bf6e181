from dataclasses import dataclass
from typing import Optional

DEF_FRAMERATE = 30
DEF_DURATION = 5.0
DEF_DECODER_TIMEOUT = None

VRMA_EXTENSION_NAME = "VRMC_vrm_animation"
VRMA_SPEC_VERSION = "1.0"

# ====== GLB container constants =======
GLB_MAGIC = 0x46546C67  # "glTF"
GLB_VERSION = 2
GLB_HEADER_SIZE = 12
GLB_CHUNK_HEADER_SIZE = 8
CHUNK_TYPE_JSON = 0x4E4F534A  # "JSON"
CHUNK_TYPE_BIN = 0x004E4942  # "BIN\0"


@dataclass
class ConversionOptions:
    """Per-run settings for the file level conversion entry points."""
    framerate: int = DEF_FRAMERATE
    decoder_path: Optional[str] = None
    decoder_timeout: Optional[float] = DEF_DECODER_TIMEOUT
    keep_temp: bool = False

    def __post_init__(self):
        self.framerate = validate_framerate(self.framerate)


def validate_framerate(framerate) -> int:
    """
    Check that the framerate is a positive integer.

    Args:
        framerate: frames per second supplied by the caller

    Returns:
        The framerate unchanged

    Raises:
        ValueError: if the value is not an int or is not positive
    """
    if isinstance(framerate, bool) or not isinstance(framerate, int):
        raise ValueError(f"Framerate must be an integer, got {framerate!r}")
    if framerate <= 0:
        raise ValueError(f"Framerate must be positive, got {framerate}")
    return framerate

