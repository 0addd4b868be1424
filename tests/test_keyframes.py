#!/usr/bin/env python3

import json
import os
import sys
import tempfile
import unittest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

from beatsynclib.core import keyframes
from beatsynclib.core import utils
from beatsynclib.core.errors import ParseError

#============================================

class KeyframeLoadTest(unittest.TestCase):
	#============================================
	def test_load_keeps_order_and_extra_fields(self) -> None:
		"""Ensure unknown fields are carried but do not affect times."""
		payload = '[{"time": 0}, {"time": 1.5, "label": "kick", "x": 42}]'
		loaded = keyframes.load_keyframes(payload)
		self.assertEqual(keyframes.keyframe_times(loaded), [0.0, 1.5])
		self.assertEqual(loaded[1].extra, {'label': 'kick'})

	#============================================
	def test_load_accepts_bytes(self) -> None:
		"""Ensure raw file bytes parse the same as text."""
		loaded = keyframes.load_keyframes(b'[{"time": 0.25}, {"time": 0.75}]')
		self.assertEqual(keyframes.keyframe_times(loaded), [0.25, 0.75])

	#============================================
	def test_duplicate_times_are_legal(self) -> None:
		"""Ensure equal neighbouring times load without error."""
		loaded = keyframes.load_keyframes('[{"time": 1}, {"time": 1}]')
		self.assertEqual(len(loaded), 2)

	#============================================
	def test_malformed_payloads_raise(self) -> None:
		"""Ensure malformed keyframe payloads raise ParseError."""
		bad_payloads = [
			'not json',
			'{"time": 1}',
			'[1, 2, 3]',
			'[{"t": 1}]',
			'[{"time": "1.0"}]',
			'[{"time": true}]',
			'[{"time": -0.5}]',
			'[{"time": 2}, {"time": 1}]',
			'[{"time": NaN}]',
			'[{"time": ' + '9' * 400 + '}]',
			b'\xff\xfe',
		]
		for payload in bad_payloads:
			with self.assertRaises(ParseError):
				keyframes.load_keyframes(payload)

	#============================================
	def test_parse_error_is_runtime_error(self) -> None:
		"""Ensure callers catching RuntimeError see parse failures."""
		with self.assertRaises(RuntimeError):
			keyframes.load_keyframes('[{"time": -1}]')

#============================================

class KeyframeSaveTest(unittest.TestCase):
	#============================================
	def test_dump_strips_transient_fields(self) -> None:
		"""Ensure the editor format only persists time."""
		loaded = keyframes.load_keyframes(
			'[{"time": 0.5, "x": 10.0, "label": "snare"}]')
		data = json.loads(keyframes.dump_keyframes(loaded))
		self.assertEqual(data, [{'time': 0.5}])

	#============================================
	def test_dump_can_echo_unknown_fields(self) -> None:
		"""Ensure unknown fields round-trip when asked to."""
		loaded = keyframes.load_keyframes(
			'[{"time": 0.5, "x": 10.0, "label": "snare"}]')
		data = json.loads(keyframes.dump_keyframes(loaded, keep_extra=True))
		self.assertEqual(data, [{'time': 0.5, 'label': 'snare'}])

	#============================================
	def test_save_and_reload_round_trip(self) -> None:
		"""Ensure saving then reading reproduces the ordered times."""
		times = [0.0, 0.48, 1.02, 1.5, 1.5, 2.013]
		payload = json.dumps([{'time': value, 'x': 3} for value in times])
		loaded = keyframes.load_keyframes(payload)
		with tempfile.TemporaryDirectory() as temp_dir:
			path = os.path.join(temp_dir, "nested", "clip-keyframes.json")
			keyframes.save_keyframes(path, loaded)
			reloaded = keyframes.read_keyframes(path)
		self.assertEqual(keyframes.keyframe_times(reloaded), times)

	#============================================
	def test_read_missing_file_raises(self) -> None:
		"""Ensure a missing keyframe file is a parse failure."""
		with tempfile.TemporaryDirectory() as temp_dir:
			with self.assertRaises(ParseError):
				keyframes.read_keyframes(os.path.join(temp_dir, "missing.json"))

	#============================================
	def test_editor_filename(self) -> None:
		"""Ensure the editor save name follows the video name."""
		self.assertEqual(utils.keyframes_filename("/videos/clip.mp4"),
			"clip-keyframes.json")

#============================================

def main() -> None:
	"""Run the unit tests."""
	unittest.main()

#============================================

if __name__ == "__main__":
	main()
