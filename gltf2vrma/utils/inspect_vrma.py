#!/usr/bin/env python3
"""
VRMA File Inspector - Show the container layout and animation content of a .vrma
"""

import sys
from pathlib import Path

import numpy as np
from pygltflib import GLTF2

from gltf2vrma.common import VRMA_EXTENSION_NAME
from gltf2vrma.exceptions import ConverterError
from gltf2vrma.exporter.glb_writer import read_glb
from gltf2vrma.importer.accessor import AccessorReader


def _time_range(reader, accessor_idx):
    try:
        times = reader.read_accessor(accessor_idx)
    except ConverterError:
        return None
    if times.size == 0:
        return None
    return float(np.min(times)), float(np.max(times)), int(times.size)


def inspect_vrma(file_path):
    """Inspect a VRMA file and return a summary dictionary."""

    data = Path(file_path).read_bytes()
    # Layout check first; pygltflib does not validate chunk framing
    container = read_glb(data)
    gltf = GLTF2.load_from_bytes(data)
    binary = gltf.binary_blob()

    print(f"\n{'='*70}")
    print(f"VRMA FILE INSPECTION: {Path(file_path).name}")
    print(f"{'='*70}")

    # 1. Container
    bin_size = len(binary) if binary is not None else 0
    print("\n1. CONTAINER:")
    print(f"   GLB version: {container.version}")
    print(f"   Total size: {len(data)} bytes")
    print(f"   BIN chunk: {bin_size} bytes")

    # 2. Humanoid
    extension = (gltf.extensions or {}).get(VRMA_EXTENSION_NAME) or {}
    human_bones = (extension.get('humanoid') or {}).get('humanBones') or {}
    print("\n2. HUMANOID:")
    print(f"   Spec version: {extension.get('specVersion')}")
    print(f"   Human bones: {len(human_bones)}")
    for bone_name, bone in list(human_bones.items())[:5]:
        print(f"      {bone_name} -> node {bone.get('node')}")
    if len(human_bones) > 5:
        print(f"      ... and {len(human_bones) - 5} more")

    # 3. Animations
    reader = AccessorReader(container.json, binary)
    animations = []
    print("\n3. ANIMATIONS:")
    for i, anim in enumerate(gltf.animations):
        paths = sorted({str(ch.target.path) for ch in anim.channels if ch.target})
        print(f"   Animation[{i}]: {anim.name or 'unnamed'}")
        print(f"      Channels: {len(anim.channels)} ({', '.join(paths)})")
        print(f"      Samplers: {len(anim.samplers)}")

        ranges = [r for r in (_time_range(reader, s.input) for s in anim.samplers) if r]
        if ranges:
            start = min(r[0] for r in ranges)
            end = max(r[1] for r in ranges)
            keyframes = max(r[2] for r in ranges)
            print(f"      Time range: {start:.3f}s - {end:.3f}s ({keyframes} keyframes max)")

        animations.append({
            'name': anim.name,
            'channels': len(anim.channels),
            'samplers': len(anim.samplers),
        })

    # 4. Timing extras
    extras = gltf.extras or {}
    print("\n4. TIMING:")
    print(f"   Duration: {extras.get('duration')}s")
    print(f"   Frame count: {extras.get('frameCount')}")
    print(f"   Framerate: {extras.get('framerate')}")

    return {
        'version': container.version,
        'size': len(data),
        'bin_size': bin_size,
        'human_bones': len(human_bones),
        'animations': animations,
        'extras': extras,
    }


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m gltf2vrma.utils.inspect_vrma <file.vrma>")
        sys.exit(1)

    inspect_vrma(sys.argv[1])
