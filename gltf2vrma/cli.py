"""
Command line interface for FBX/glTF to VRMA conversion.
"""

import argparse
import logging
from pathlib import Path

from .common import DEF_FRAMERATE, ConversionOptions
from .importer.decoder import default_decoder_binary_name
from .pipeline.conversion import (
    GLTF_SUFFIX,
    convert_directory,
    convert_file,
    convert_gltf_file,
    resolve_output_path,
)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gltf2vrma",
        description="Convert Mixamo FBX/glTF animations to VRM Animation (.vrma)"
    )
    parser.add_argument('-i', '--input', required=True,
                        help='Input FBX or glTF file, or a directory of FBX files')
    parser.add_argument('-o', '--output',
                        help='Output VRMA file or directory (default: next to the input)')
    parser.add_argument('--fbx2gltf', default=f"./{default_decoder_binary_name()}",
                        help='Path to the FBX2glTF binary')
    parser.add_argument('--framerate', type=_positive_int, default=DEF_FRAMERATE,
                        help='Animation framerate')
    parser.add_argument('--timeout', type=float, default=None,
                        help='Seconds to wait for FBX2glTF')
    parser.add_argument('--keep-temp', action='store_true',
                        help='Keep the intermediate glTF files')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    return parser


def main(argv=None) -> int:
    """Command-line interface for VRMA conversion."""
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )

    options = ConversionOptions(
        framerate=args.framerate,
        decoder_path=args.fbx2gltf,
        decoder_timeout=args.timeout,
        keep_temp=args.keep_temp,
    )

    input_path = Path(args.input)
    if input_path.is_dir():
        success = convert_directory(input_path, args.output or input_path, options)
    elif input_path.suffix.lower() == GLTF_SUFFIX:
        output_path = resolve_output_path(input_path, args.output)
        success = convert_gltf_file(input_path, output_path, options.framerate)
    else:
        output_path = resolve_output_path(input_path, args.output)
        success = convert_file(input_path, output_path, options)

    return 0 if success else 1


if __name__ == '__main__':
    raise SystemExit(main())
