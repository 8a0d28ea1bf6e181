"""
Wrapper around the external FBX2glTF decoder.

FBX2glTF writes ``<stem>_out/<stem>.gltf`` (plus ``buffer.bin`` when the
buffers are not embedded) next to the requested output stem. The helpers here
run the binary and move its output to the path the caller asked for.
"""

import json
import logging
import platform
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Union

from ..exceptions import DecoderError

logger = logging.getLogger(__name__)


def default_decoder_binary_name() -> str:
    """Name of the FBX2glTF release binary for the current platform."""
    system = platform.system()
    if system == "Windows":
        return "FBX2glTF-windows-x64.exe"
    if system == "Linux":
        return "FBX2glTF-linux-x64"
    # macOS: the x64 build runs under Rosetta 2 on arm64
    return "FBX2glTF-darwin-x64"


def default_decoder_path() -> str:
    return str(Path.cwd() / default_decoder_binary_name())


def _run(decoder: Path, args, timeout: Optional[float]):
    logger.info(f"Executing: {decoder} {' '.join(args)}")
    try:
        subprocess.run(
            [str(decoder), *args],
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
        raise DecoderError(f"FBX2glTF exited with status {e.returncode}: {stderr}")
    except subprocess.TimeoutExpired:
        raise DecoderError(f"FBX2glTF timed out after {timeout} seconds")
    except OSError as e:
        raise DecoderError(f"Failed to execute FBX2glTF: {e}")


def _output_dir(output_gltf: Path) -> Path:
    return output_gltf.parent / f"{output_gltf.stem}_out"


def _collect_output(output_gltf: Path, move_buffer: bool) -> Path:
    out_dir = _output_dir(output_gltf)
    produced = out_dir / f"{output_gltf.stem}.gltf"

    if not produced.exists():
        raise DecoderError(f"FBX2glTF produced no output at {produced}")

    shutil.move(str(produced), str(output_gltf))
    if move_buffer:
        produced_bin = out_dir / "buffer.bin"
        if produced_bin.exists():
            bin_path = output_gltf.with_suffix(".bin")
            shutil.move(str(produced_bin), str(bin_path))
            _relink_buffer(output_gltf, produced_bin.name, bin_path.name)
    return output_gltf


def _relink_buffer(gltf_path: Path, old_uri: str, new_uri: str):
    """Point buffers that referenced ``old_uri`` at the renamed file."""
    try:
        document = json.loads(gltf_path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise DecoderError(f"FBX2glTF produced invalid glTF: {e}")

    changed = False
    for buffer in document.get("buffers") or []:
        if isinstance(buffer, dict) and buffer.get("uri") == old_uri:
            buffer["uri"] = new_uri
            changed = True
    if changed:
        gltf_path.write_text(json.dumps(document), encoding="utf-8")


def run_decoder(
    input_path: Union[str, Path],
    output_gltf: Union[str, Path],
    decoder_path: Union[str, Path],
    embed: bool = True,
    timeout: Optional[float] = None
) -> Path:
    """
    Convert an FBX file to glTF with FBX2glTF.

    Args:
        input_path: FBX file to convert
        output_gltf: Where the resulting .gltf should be placed
        decoder_path: Path to the FBX2glTF binary
        embed: Ask the decoder to embed buffers as data URIs. If that fails
            the conversion is retried once with external buffers.
        timeout: Seconds to wait for each decoder run

    Returns:
        Path to the .gltf file

    Raises:
        DecoderError: If the binary is missing or the conversion fails
    """
    decoder = Path(decoder_path).resolve()
    if not decoder.exists():
        raise DecoderError(
            f"FBX2glTF binary not found: {decoder}\n"
            f"Download {default_decoder_binary_name()} and pass it with --fbx2gltf."
        )

    output_gltf = Path(output_gltf)
    stem = str(output_gltf.parent / output_gltf.stem)
    args = ["-i", str(input_path), "-o", stem]

    try:
        if embed:
            try:
                _run(decoder, args + ["--embed"], timeout)
                return _collect_output(output_gltf, move_buffer=False)
            except DecoderError as e:
                logger.warning(f"Embed failed ({e}), trying normal conversion...")

        try:
            _run(decoder, args, timeout)
            return _collect_output(output_gltf, move_buffer=True)
        except DecoderError as e:
            raise DecoderError(f"FBX2glTF conversion failed: {e}")
    finally:
        shutil.rmtree(_output_dir(output_gltf), ignore_errors=True)
