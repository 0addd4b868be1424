#!/usr/bin/env python3

"""
Keyframe sets: timestamps of events on the source timeline, read from and
written to the editor's JSON format (a bare list of {"time": seconds}).
"""

# Standard Library
import json
import math
import os
from dataclasses import dataclass
from dataclasses import field

# local repo modules
from beatsynclib.core.errors import ParseError

#============================================

# drawing position the editor adds while a keyframe is on screen
TRANSIENT_FIELDS = ('x',)
MAX_KEYFRAME_FILE_BYTES = 10 ** 7

#============================================

@dataclass(frozen=True)
class Keyframe:
	time: float
	extra: dict = field(default_factory=dict, compare=False, hash=False)

#============================================

def parse_time(raw_time, index: int) -> float:
	if isinstance(raw_time, bool) or not isinstance(raw_time, (int, float)):
		raise ParseError(f"keyframe {index}: time must be a number")
	try:
		value = float(raw_time)
	except OverflowError as exc:
		raise ParseError(f"keyframe {index}: time is out of range") from exc
	if not math.isfinite(value):
		raise ParseError(f"keyframe {index}: time must be finite")
	if value < 0:
		raise ParseError(f"keyframe {index}: time must be 0 or greater")
	return value

#============================================

def load_keyframes(payload) -> list:
	"""
	Parse a keyframe payload.

	Args:
		payload: JSON text as bytes or str.

	Returns:
		list: Keyframe records in playback order.
	"""
	if isinstance(payload, (bytes, bytearray)):
		try:
			payload = payload.decode('utf-8')
		except UnicodeDecodeError as exc:
			raise ParseError(f"keyframe data is not utf-8: {exc}") from exc
	try:
		data = json.loads(payload)
	except (TypeError, ValueError) as exc:
		raise ParseError(f"keyframe data is not valid json: {exc}") from exc
	if not isinstance(data, list):
		raise ParseError("keyframe data must be a list of {\"time\": seconds} records")
	keyframes = []
	last_time = None
	for index, record in enumerate(data):
		if not isinstance(record, dict):
			raise ParseError(f"keyframe {index}: record must be an object")
		if 'time' not in record:
			raise ParseError(f"keyframe {index}: missing time")
		time_value = parse_time(record['time'], index)
		if last_time is not None and time_value < last_time:
			raise ParseError(
				f"keyframe {index}: time {time_value} is before {last_time}"
			)
		extra = {}
		for key, value in record.items():
			if key == 'time' or key in TRANSIENT_FIELDS:
				continue
			extra[key] = value
		keyframes.append(Keyframe(time=time_value, extra=extra))
		last_time = time_value
	return keyframes

#============================================

def read_keyframes(filepath: str) -> list:
	if not os.path.isfile(filepath):
		raise ParseError(f"keyframe file not found: {filepath}")
	if os.path.getsize(filepath) > MAX_KEYFRAME_FILE_BYTES:
		raise ParseError("keyframe file is larger than 10MB")
	with open(filepath, 'rb') as handle:
		payload = handle.read()
	return load_keyframes(payload)

#============================================

def dump_keyframes(keyframes: list, keep_extra: bool = False) -> str:
	"""
	Serialize keyframes in the editor's save format.

	Args:
		keyframes: Keyframe records.
		keep_extra: Echo back unknown fields that were loaded with each record.

	Returns:
		str: JSON text, two space indent.
	"""
	records = []
	for keyframe in keyframes:
		record = {'time': keyframe.time}
		if keep_extra:
			for key, value in keyframe.extra.items():
				if key in TRANSIENT_FIELDS:
					continue
				record[key] = value
		records.append(record)
	return json.dumps(records, indent=2)

#============================================

def save_keyframes(filepath: str, keyframes: list, keep_extra: bool = False) -> None:
	text = dump_keyframes(keyframes, keep_extra=keep_extra)
	os.makedirs(os.path.dirname(filepath) or '.', exist_ok=True)
	with open(filepath, 'w', encoding='utf-8') as handle:
		handle.write(text)
		handle.write("\n")
	return

#============================================

def keyframe_times(keyframes: list) -> list:
	return [keyframe.time for keyframe in keyframes]
