"""
Shared glTF fixtures for the tests.
"""

import base64

import numpy as np


def data_uri(data: bytes) -> str:
    return "data:application/octet-stream;base64," + base64.b64encode(data).decode("ascii")


def make_animated_document(times=(0.0, 0.5, 1.0, 1.5), embed=True):
    """
    A small Mixamo-style glTF document with real buffer data.

    Nodes: 0 Hips, 1 Spine, 2 Prop, 3 Body (mesh + skin)
    Animation channels: hips translation/rotation/scale, spine translation/
    rotation, prop scale. Every channel has its own sampler; all samplers
    share the time accessor 0.
    """
    times = np.array(times, dtype=np.float32)
    vec3 = np.zeros((len(times), 3), dtype=np.float32)
    vec4 = np.tile(np.array([0, 0, 0, 1], dtype=np.float32), (len(times), 1))

    blob = times.tobytes() + vec3.tobytes() + vec4.tobytes()
    n = len(times)

    document = {
        "asset": {"version": "2.0", "generator": "FBX2glTF"},
        "scene": 0,
        "scenes": [{"nodes": [0, 2, 3]}],
        "nodes": [
            {"name": "mixamorig:Hips", "children": [1], "translation": [0, 1, 0],
             "scale": [1, 1, 1]},
            {"name": "mixamorig:Spine", "translation": [0, 0.1, 0], "scale": [1, 1, 1]},
            {"name": "Prop", "scale": [2, 2, 2]},
            {"name": "Body", "mesh": 0, "skin": 0},
        ],
        "meshes": [{"primitives": []}],
        "skins": [{"joints": [0, 1]}],
        "materials": [{"name": "Skin"}],
        "accessors": [
            {"bufferView": 0, "componentType": 5126, "count": n, "type": "SCALAR",
             "min": [float(times.min())], "max": [float(times.max())]},
            {"bufferView": 1, "componentType": 5126, "count": n, "type": "VEC3"},
            {"bufferView": 2, "componentType": 5126, "count": n, "type": "VEC4"},
        ],
        "bufferViews": [
            {"buffer": 0, "byteOffset": 0, "byteLength": times.nbytes},
            {"buffer": 0, "byteOffset": times.nbytes, "byteLength": vec3.nbytes},
            {"buffer": 0, "byteOffset": times.nbytes + vec3.nbytes, "byteLength": vec4.nbytes},
        ],
        "buffers": [{"byteLength": len(blob),
                     "uri": data_uri(blob) if embed else "buffer.bin"}],
        "animations": [{
            "name": "mixamo.com",
            "channels": [
                {"sampler": 0, "target": {"node": 0, "path": "translation"}},
                {"sampler": 1, "target": {"node": 0, "path": "rotation"}},
                {"sampler": 2, "target": {"node": 0, "path": "scale"}},
                {"sampler": 3, "target": {"node": 1, "path": "translation"}},
                {"sampler": 4, "target": {"node": 1, "path": "rotation"}},
                {"sampler": 5, "target": {"node": 2, "path": "scale"}},
            ],
            "samplers": [
                {"input": 0, "output": 1, "interpolation": "LINEAR"},
                {"input": 0, "output": 2, "interpolation": "LINEAR"},
                {"input": 0, "output": 1, "interpolation": "LINEAR"},
                {"input": 0, "output": 1, "interpolation": "LINEAR"},
                {"input": 0, "output": 2, "interpolation": "LINEAR"},
                {"input": 0, "output": 1, "interpolation": "STEP"},
            ],
        }],
    }
    return document, blob
