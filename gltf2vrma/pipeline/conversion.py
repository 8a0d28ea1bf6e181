"""
glTF/FBX to VRMA conversion pipeline.

Pipeline:
1. FBX -> glTF with the external FBX2glTF decoder (file inputs only)
2. Buffer embedding: external .bin files become data URIs
3. Timing analysis: duration and frame count from the time accessors
4. Bone retargeting: Mixamo node names -> VRM humanoid bones
5. Channel filtering: drop channels VRMA forbids, compact samplers
6. Assembly: VRMA JSON document packed into a GLB container
"""

import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..animation.channel_filter import filter_animations
from ..animation.timing import analyze_animation_timing, read_animation_metadata
from ..common import DEF_FRAMERATE, ConversionOptions, validate_framerate
from ..exceptions import ConverterError, DecoderError
from ..exporter.glb_writer import pack_glb
from ..exporter.vrma_builder import build_vrma_document
from ..importer.buffers import embed_buffers, load_document
from ..importer.decoder import default_decoder_path, run_decoder
from ..retargeter.bone_map import find_missing_required_bones, retarget

logger = logging.getLogger(__name__)

VRMA_SUFFIX = ".vrma"
FBX_SUFFIX = ".fbx"
GLTF_SUFFIX = ".gltf"


def convert(document: Dict[str, Any], framerate: int = DEF_FRAMERATE) -> bytes:
    """
    Convert a glTF document with embedded buffers into VRMA bytes.

    The caller's document is not modified.

    Args:
        document: Parsed glTF document
        framerate: Frames per second used for the frame count

    Returns:
        The VRMA file contents (GLB container)
    """
    framerate = validate_framerate(framerate)

    timed = analyze_animation_timing(document, framerate)
    metadata = read_animation_metadata(timed)

    human_bones = retarget(timed)
    missing = find_missing_required_bones(human_bones)
    if missing:
        logger.warning(f"Missing required humanoid bones: {missing}")

    animations = filter_animations(timed.get("animations"), human_bones)
    vrma = build_vrma_document(timed, human_bones, animations, metadata)
    return pack_glb(vrma)


def _write_bytes(output_path: Path, data: bytes):
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    logger.info(f"Saved GLB: {len(data)} bytes -> {output_path}")


def convert_gltf_file(
    gltf_path: Union[str, Path],
    output_path: Union[str, Path],
    framerate: int = DEF_FRAMERATE
) -> bool:
    """
    Convert an already decoded .gltf file (plus sibling .bin files) to VRMA.

    Returns:
        True if successful, False otherwise

    Raises:
        ValueError: If the framerate is not a positive int
    """
    framerate = validate_framerate(framerate)
    gltf_path = Path(gltf_path)
    try:
        document = load_document(gltf_path)
        document = embed_buffers(document, gltf_path.parent)
        _write_bytes(Path(output_path), convert(document, framerate))
    except (ConverterError, OSError) as e:
        logger.error(f"Conversion failed: {e}")
        return False
    except Exception as e:
        logger.exception(f"Conversion failed with an unexpected error: {e}")
        return False
    return True


def cleanup_temp_files(*gltf_paths: Path):
    """Remove temporary .gltf files and their .bin siblings."""
    for path in gltf_paths:
        for candidate in (path, path.with_suffix(".bin")):
            if candidate.exists():
                candidate.unlink()
                logger.debug(f"Removed temp file: {candidate}")


def convert_file(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    options: Optional[ConversionOptions] = None
) -> bool:
    """
    Convert an FBX file to VRMA.

    The decoder output is written to a temporary .gltf beside the output file
    and removed afterwards, whether or not the conversion succeeds.

    Args:
        input_path: FBX file
        output_path: VRMA file to write
        options: Framerate and decoder settings

    Returns:
        True if successful, False otherwise
    """
    options = options or ConversionOptions()
    input_path = Path(input_path)
    output_path = Path(output_path)
    temp_gltf = output_path.parent / f"temp_{time.time_ns()}{GLTF_SUFFIX}"

    try:
        if not input_path.exists():
            raise ConverterError(f"Input FBX file not found: {input_path}")

        decoder_path = options.decoder_path or default_decoder_path()
        if not Path(decoder_path).exists():
            raise DecoderError(f"FBX2glTF binary not found: {Path(decoder_path).resolve()}")

        logger.info(f"Converting {input_path} to {output_path}...")
        output_path.parent.mkdir(parents=True, exist_ok=True)

        run_decoder(input_path, temp_gltf, decoder_path, timeout=options.decoder_timeout)
        document = load_document(temp_gltf)
        document = embed_buffers(document, temp_gltf.parent)

        _write_bytes(output_path, convert(document, options.framerate))
        logger.info(f"Successfully converted to {output_path}")
        return True

    except (ConverterError, OSError) as e:
        logger.error(f"Conversion failed: {e}")
        return False
    except Exception as e:
        logger.exception(f"Conversion failed with an unexpected error: {e}")
        return False

    finally:
        if not options.keep_temp:
            cleanup_temp_files(temp_gltf)


def convert_directory(
    input_dir: Union[str, Path],
    output_dir: Union[str, Path],
    options: Optional[ConversionOptions] = None
) -> bool:
    """
    Convert every FBX file in a directory.

    Returns:
        True only if at least one file was found and all conversions succeeded
    """
    input_dir = Path(input_dir)
    output_dir = Path(output_dir)

    fbx_files = sorted(p for p in input_dir.iterdir()
                       if p.is_file() and p.suffix.lower() == FBX_SUFFIX)
    if not fbx_files:
        logger.error(f"No FBX files found in: {input_dir}")
        return False

    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Found {len(fbx_files)} FBX file(s) in {input_dir}")

    success_count = 0
    for i, fbx_file in enumerate(fbx_files, start=1):
        logger.info(f"[{i}/{len(fbx_files)}] {fbx_file.name}")
        output_path = output_dir / (fbx_file.stem + VRMA_SUFFIX)
        if convert_file(fbx_file, output_path, options):
            success_count += 1

    logger.info(f"Batch complete: {success_count}/{len(fbx_files)} succeeded.")
    return success_count == len(fbx_files)


def resolve_output_path(input_path: Union[str, Path], output: Optional[str] = None) -> Path:
    """
    Work out where the VRMA file for ``input_path`` goes.

    - no output: next to the input, with a .vrma suffix
    - an existing directory, or a path ending in a separator: inside it
    - anything else: used as the file path
    """
    input_path = Path(input_path)
    file_name = input_path.stem + VRMA_SUFFIX

    if not output:
        return input_path.parent / file_name

    if Path(output).is_dir() or output.endswith(("/", os.sep)):
        return Path(output) / file_name

    return Path(output)
