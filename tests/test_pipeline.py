"""
Unit tests for the conversion pipeline.
"""

import copy
import json
import shutil
import struct
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import numpy as np
from pygltflib import GLTF2

from gltf2vrma.common import ConversionOptions
from gltf2vrma.exceptions import AnimationError, DecoderError, DocumentError
from gltf2vrma.exporter.glb_writer import read_glb
from gltf2vrma.importer.accessor import AccessorReader
from gltf2vrma.pipeline.conversion import (
    cleanup_temp_files,
    convert,
    convert_directory,
    convert_file,
    convert_gltf_file,
    resolve_output_path,
)

from helpers import make_animated_document


class TestConvert(unittest.TestCase):
    """Test the in-memory conversion."""

    def setUp(self):
        self.document, self.blob = make_animated_document()

    def test_full_conversion(self):
        """A Mixamo document becomes a valid VRMA container."""
        data = convert(self.document, 30)
        container = read_glb(data)
        vrma = container.json

        self.assertEqual(container.version, 2)
        self.assertEqual(len(data) % 4, 0)
        self.assertEqual(container.binary[:len(self.blob)], self.blob)
        self.assertNotIn('uri', vrma['buffers'][0])

        bones = vrma['extensions']['VRMC_vrm_animation']['humanoid']['humanBones']
        self.assertEqual(bones, {'hips': {'node': 0}, 'spine': {'node': 1}})

        # Hips translation + rotation, spine rotation, prop scale survive
        channels = vrma['animations'][0]['channels']
        self.assertEqual(
            [(ch['target']['node'], ch['target']['path'], ch['sampler']) for ch in channels],
            [(0, 'translation', 0), (0, 'rotation', 1), (1, 'rotation', 2), (2, 'scale', 3)],
        )
        samplers = vrma['animations'][0]['samplers']
        self.assertEqual(len(samplers), 4)
        self.assertEqual(samplers[3]['interpolation'], 'STEP')

        self.assertEqual(vrma['extras'], {'duration': 1.5, 'frameCount': 45, 'framerate': 30})
        for node in vrma['nodes']:
            for key in ('mesh', 'skin', 'scale'):
                self.assertNotIn(key, node)
        for key in ('meshes', 'skins', 'materials'):
            self.assertNotIn(key, vrma)

    def test_accessors_still_readable(self):
        """The BIN chunk backs the passed-through accessors."""
        container = read_glb(convert(self.document, 30))
        reader = AccessorReader(container.json, container.binary)
        np.testing.assert_allclose(reader.read_accessor(0), [0.0, 0.5, 1.0, 1.5])

    def test_input_not_mutated(self):
        original = copy.deepcopy(self.document)
        convert(self.document, 30)
        self.assertEqual(self.document, original)

    def test_deterministic(self):
        """Two conversions of the same input produce identical bytes."""
        self.assertEqual(convert(self.document, 24), convert(self.document, 24))

    def test_empty_document(self):
        data = convert({}, 30)
        container = read_glb(data)

        self.assertIsNone(container.binary)
        json_length = struct.unpack_from('<I', data, 12)[0]
        self.assertEqual(len(data), 20 + json_length)
        self.assertEqual(container.json['animations'], [])
        self.assertEqual(container.json['extras'], {'duration': 0.0, 'frameCount': 0, 'framerate': 30})

    def test_invalid_framerate(self):
        with self.assertRaises(ValueError):
            convert(self.document, 0)

    def test_invalid_sampler_reference(self):
        self.document['animations'][0]['channels'][1]['sampler'] = 42
        with self.assertRaises(AnimationError):
            convert(self.document, 30)

    def test_missing_bones_warning(self):
        with self.assertLogs('gltf2vrma.pipeline.conversion', level='WARNING') as logs:
            convert(self.document, 30)
        self.assertIn('head', '\n'.join(logs.output))

    def test_loads_with_pygltflib(self):
        """The output is a GLB pygltflib can load."""
        gltf = GLTF2.load_from_bytes(convert(self.document, 30))

        extension = gltf.extensions['VRMC_vrm_animation']
        self.assertEqual(extension['specVersion'], '1.0')
        self.assertEqual(extension['humanoid']['humanBones']['hips'], {'node': 0})
        self.assertEqual([ch.target.path for ch in gltf.animations[0].channels],
                         ['translation', 'rotation', 'rotation', 'scale'])
        self.assertEqual(gltf.binary_blob()[:len(self.blob)], self.blob)
        self.assertEqual(gltf.extras['frameCount'], 45)

    def test_infinite_time_accessor(self):
        """A time accessor whose max is Infinity does not count toward the duration."""
        document = json.loads('{"animations":[{"samplers":[{"input":0}]}],'
                              '"accessors":[{"type":"SCALAR","max":[Infinity]}]}')

        with self.assertLogs('gltf2vrma.exporter.glb_writer', level='WARNING'):
            container = read_glb(convert(document, 30))

        self.assertEqual(container.json['extras'], {'duration': 0.0, 'frameCount': 0, 'framerate': 30})
        self.assertEqual(container.json['accessors'][0]['max'], [None])

    def test_malformed_entries(self):
        container = read_glb(convert({'animations': [None]}, 30))
        self.assertEqual(container.json['animations'], [])

        with self.assertRaises(AnimationError):
            convert({'animations': [{'channels': [None]}]}, 30)
        with self.assertRaises(DocumentError):
            convert({'nodes': [None]}, 30)


class TestConvertGltfFile(unittest.TestCase):
    """Test converting a decoded glTF file with an external buffer."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_external_buffer(self):
        document, blob = make_animated_document(embed=False)
        gltf_path = self.temp_dir / 'walk.gltf'
        gltf_path.write_text(json.dumps(document), encoding='utf-8')
        (self.temp_dir / 'buffer.bin').write_bytes(blob)
        output = self.temp_dir / 'out' / 'walk.vrma'

        self.assertTrue(convert_gltf_file(gltf_path, output, 30))

        container = read_glb(output.read_bytes())
        self.assertEqual(container.binary[:len(blob)], blob)

    def test_missing_file(self):
        self.assertFalse(convert_gltf_file(self.temp_dir / 'missing.gltf',
                                           self.temp_dir / 'out.vrma'))
        self.assertFalse((self.temp_dir / 'out.vrma').exists())

    @patch('gltf2vrma.pipeline.conversion.convert')
    def test_unexpected_error_returns_false(self, mock_convert):
        mock_convert.side_effect = OverflowError('cannot convert float infinity to integer')
        gltf_path = self.temp_dir / 'walk.gltf'
        gltf_path.write_text('{}', encoding='utf-8')

        with self.assertLogs('gltf2vrma.pipeline.conversion', level='ERROR'):
            self.assertFalse(convert_gltf_file(gltf_path, self.temp_dir / 'walk.vrma'))
        self.assertFalse((self.temp_dir / 'walk.vrma').exists())

    def test_invalid_framerate(self):
        with self.assertRaises(ValueError):
            convert_gltf_file(self.temp_dir / 'walk.gltf', self.temp_dir / 'walk.vrma', 0)


class TestConvertFile(unittest.TestCase):
    """Test FBX conversion with a mocked decoder."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.fbx = self.temp_dir / 'walk.fbx'
        self.fbx.write_text('dummy')
        self.decoder = self.temp_dir / 'FBX2glTF'
        self.decoder.write_text('')
        self.options = ConversionOptions(framerate=30, decoder_path=str(self.decoder))
        self.output = self.temp_dir / 'walk.vrma'

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _fake_run_decoder(self, document, blob=None):
        def run(input_path, output_gltf, decoder_path, **kwargs):
            output_gltf = Path(output_gltf)
            output_gltf.write_text(json.dumps(document), encoding='utf-8')
            if blob is not None:
                output_gltf.with_name('buffer.bin').write_bytes(blob)
            return output_gltf
        return run

    def _temp_files(self):
        return sorted(p.name for p in self.temp_dir.glob('temp_*'))

    @patch('gltf2vrma.pipeline.conversion.run_decoder')
    def test_success(self, mock_decoder):
        document, blob = make_animated_document()
        mock_decoder.side_effect = self._fake_run_decoder(document)

        self.assertTrue(convert_file(self.fbx, self.output, self.options))

        container = read_glb(self.output.read_bytes())
        self.assertEqual(container.json['extras']['frameCount'], 45)
        self.assertEqual(self._temp_files(), [])

    @patch('gltf2vrma.pipeline.conversion.run_decoder')
    def test_external_buffer_from_decoder(self, mock_decoder):
        document, blob = make_animated_document(embed=False)
        mock_decoder.side_effect = self._fake_run_decoder(document, blob)

        self.assertTrue(convert_file(self.fbx, self.output, self.options))
        self.assertEqual(read_glb(self.output.read_bytes()).binary[:len(blob)], blob)

    def test_missing_input(self):
        self.assertFalse(convert_file(self.temp_dir / 'missing.fbx', self.output, self.options))
        self.assertFalse(self.output.exists())

    def test_missing_decoder(self):
        options = ConversionOptions(decoder_path=str(self.temp_dir / 'missing'))
        self.assertFalse(convert_file(self.fbx, self.output, options))

    @patch('gltf2vrma.pipeline.conversion.run_decoder')
    def test_decoder_failure_cleans_up(self, mock_decoder):
        def fail(input_path, output_gltf, decoder_path, **kwargs):
            Path(output_gltf).write_text('{}')
            Path(output_gltf).with_suffix('.bin').write_bytes(b'\x00')
            raise DecoderError('boom')
        mock_decoder.side_effect = fail

        with self.assertLogs('gltf2vrma.pipeline.conversion', level='ERROR'):
            self.assertFalse(convert_file(self.fbx, self.output, self.options))
        self.assertEqual(self._temp_files(), [])
        self.assertFalse(self.output.exists())

    @patch('gltf2vrma.pipeline.conversion.run_decoder')
    def test_keep_temp(self, mock_decoder):
        document, _ = make_animated_document()
        mock_decoder.side_effect = self._fake_run_decoder(document)
        options = ConversionOptions(decoder_path=str(self.decoder), keep_temp=True)

        self.assertTrue(convert_file(self.fbx, self.output, options))
        self.assertEqual(len(self._temp_files()), 1)

    def test_cleanup_temp_files(self):
        gltf = self.temp_dir / 'temp_1.gltf'
        gltf.write_text('{}')
        gltf.with_suffix('.bin').write_bytes(b'')

        cleanup_temp_files(gltf, self.temp_dir / 'temp_2.gltf')

        self.assertEqual(self._temp_files(), [])


class TestConvertDirectory(unittest.TestCase):
    """Test batch conversion."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.options = ConversionOptions(decoder_path=str(self.temp_dir / 'FBX2glTF'))

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_no_fbx_files(self):
        (self.temp_dir / 'readme.txt').write_text('dummy')
        self.assertFalse(convert_directory(self.temp_dir, self.temp_dir / 'out', self.options))

    @patch('gltf2vrma.pipeline.conversion.convert_file')
    def test_converts_each_fbx(self, mock_convert):
        mock_convert.return_value = True
        for name in ('motion1.fbx', 'motion2.FBX', 'readme.txt'):
            (self.temp_dir / name).write_text('dummy')
        out_dir = self.temp_dir / 'out'

        self.assertTrue(convert_directory(self.temp_dir, out_dir, self.options))

        self.assertTrue(out_dir.is_dir())
        outputs = sorted(Path(call.args[1]).name for call in mock_convert.call_args_list)
        self.assertEqual(outputs, ['motion1.vrma', 'motion2.vrma'])

    @patch('gltf2vrma.pipeline.conversion.convert_file')
    def test_partial_failure(self, mock_convert):
        mock_convert.side_effect = [True, False]
        for name in ('a.fbx', 'b.fbx'):
            (self.temp_dir / name).write_text('dummy')

        self.assertFalse(convert_directory(self.temp_dir, self.temp_dir, self.options))
        self.assertEqual(mock_convert.call_count, 2)

    @patch('gltf2vrma.pipeline.conversion.convert')
    @patch('gltf2vrma.pipeline.conversion.run_decoder')
    def test_unexpected_error_does_not_stop_batch(self, mock_decoder, mock_convert):
        def run(input_path, output_gltf, decoder_path, **kwargs):
            Path(output_gltf).write_text('{}')
            return Path(output_gltf)
        mock_decoder.side_effect = run
        mock_convert.side_effect = [OverflowError('boom'), b'glTF']
        (self.temp_dir / 'FBX2glTF').write_text('')
        for name in ('a.fbx', 'b.fbx'):
            (self.temp_dir / name).write_text('dummy')
        out_dir = self.temp_dir / 'out'

        with self.assertLogs('gltf2vrma.pipeline.conversion', level='ERROR'):
            self.assertFalse(convert_directory(self.temp_dir, out_dir, self.options))

        self.assertFalse((out_dir / 'a.vrma').exists())
        self.assertEqual((out_dir / 'b.vrma').read_bytes(), b'glTF')
        self.assertEqual(list(out_dir.glob('temp_*')), [])


class TestResolveOutputPath(unittest.TestCase):
    """Test output path resolution."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.input = self.temp_dir / 'motions' / 'walk.fbx'

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_default_next_to_input(self):
        self.assertEqual(resolve_output_path(self.input), self.temp_dir / 'motions' / 'walk.vrma')

    def test_existing_directory(self):
        self.assertEqual(resolve_output_path(self.input, str(self.temp_dir)),
                         self.temp_dir / 'walk.vrma')

    def test_trailing_separator(self):
        target = str(self.temp_dir / 'new') + '/'
        self.assertEqual(resolve_output_path(self.input, target),
                         self.temp_dir / 'new' / 'walk.vrma')

    def test_file_path(self):
        target = str(self.temp_dir / 'custom.vrma')
        self.assertEqual(resolve_output_path(self.input, target), Path(target))


if __name__ == '__main__':
    unittest.main()
