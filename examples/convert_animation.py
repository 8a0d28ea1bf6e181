#!/usr/bin/env python3
"""
Example: Convert a Mixamo FBX animation to VRMA.
"""

import gltf2vrma

options = gltf2vrma.ConversionOptions(
    framerate=30,
    decoder_path="./FBX2glTF-linux-x64",
)

# Convert a single FBX file next to the input
success = gltf2vrma.convert_file(
    input_path="animations/mixamo_idle.fbx",
    output_path="output/mixamo_idle.vrma",
    options=options,
)

if success:
    print("\n✅ Animation converted successfully!")
else:
    print("\n❌ Animation conversion failed!")
