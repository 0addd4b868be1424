#!/usr/bin/env python3

import math
from decimal import Decimal

import numpy

from beatsynclib.core import utils
from beatsynclib.core.errors import ConfigError

#============================================

SNAP_RESOLUTIONS = {
	# sub-beat snapping, beat index rounded to 0.01
	'hundredth': Decimal('0.01'),
	'beat': Decimal('1'),
}

#============================================

def beat_duration(bpm: float) -> float:
	if isinstance(bpm, bool) or not isinstance(bpm, (int, float)):
		raise ConfigError("bpm must be a number")
	if not math.isfinite(bpm) or bpm <= 0:
		raise ConfigError(f"bpm must be positive, got {bpm}")
	return 60.0 / bpm

#============================================

def beat_position(time_seconds: float, beat_seconds: float) -> float:
	return time_seconds / beat_seconds

#============================================

def snap_beat_index(time_seconds: float, beat_seconds: float,
	snap: str = 'hundredth') -> float:
	"""
	Round the beat position of a time to the snap resolution.

	Args:
		time_seconds: Time on the source timeline.
		beat_seconds: Length of one beat.
		snap: 'hundredth' or 'beat'.

	Returns:
		float: Snapped beat index.
	"""
	resolution = SNAP_RESOLUTIONS.get(snap)
	if resolution is None:
		raise ConfigError(f"unknown snap mode: {snap}")
	return utils.round_half_away(beat_position(time_seconds, beat_seconds),
		resolution)

#============================================

def nearest_beat(time_seconds: float, beat_seconds: float,
	snap: str = 'hundredth') -> float:
	"""
	Return the beat grid time closest to time_seconds.

	Args:
		time_seconds: Time on the source timeline.
		beat_seconds: Length of one beat.
		snap: 'hundredth' or 'beat'.

	Returns:
		float: Snapped time in seconds.
	"""
	return snap_beat_index(time_seconds, beat_seconds, snap) * beat_seconds

#============================================

def beat_times(bpm: float, duration: float) -> list:
	"""
	List the grid points n * beat_duration in [0, duration).
	"""
	beat_seconds = beat_duration(bpm)
	if duration <= 0:
		return []
	count = int(math.ceil(duration / beat_seconds))
	times = numpy.arange(count, dtype=float) * beat_seconds
	return [float(value) for value in times if value < duration]
