#!/usr/bin/env python3

# PIP3 modules
import numpy

# local repo modules
from beatsynclib.core.keyframes import keyframe_times

#============================================

PLAUSIBLE_MIN_BPM = 50.0
PLAUSIBLE_MAX_BPM = 200.0
# 1 beat, 2 beats (half note), 1 bar of 4/4
METRICAL_MULTIPLIERS = (1, 2, 4)

#============================================

def average_interval(keyframes: list) -> float:
	times = numpy.array(keyframe_times(keyframes), dtype=float)
	if times.size < 2:
		return 0.0
	intervals = numpy.diff(times)
	return float(intervals.mean())

#============================================

def estimate_bpm(keyframes: list, min_bpm: float = PLAUSIBLE_MIN_BPM,
	max_bpm: float = PLAUSIBLE_MAX_BPM, multipliers=METRICAL_MULTIPLIERS,
	quiet: bool = False) -> float:
	"""
	Guess a tempo from the mean spacing of keyframes.

	The mean interval is read as one beat first, then as two beats, then as a
	whole bar, and the first reading that lands in [min_bpm, max_bpm] wins.
	When none does the unmultiplied estimate is returned. This averages the
	intervals rather than tracking beats, so irregular spacing gives a rough
	answer.

	Args:
		keyframes: Keyframe records in playback order.
		min_bpm: Lowest plausible tempo.
		max_bpm: Highest plausible tempo.
		multipliers: Metrical levels to try, in order.
		quiet: Suppress the console notice when no estimate is possible.

	Returns:
		float: Estimated bpm, or 0 when it cannot be estimated.
	"""
	if len(keyframes) < 2:
		if not quiet:
			print("Need at least two keyframes to estimate BPM.")
		return 0.0
	avg_interval = average_interval(keyframes)
	if avg_interval <= 0:
		if not quiet:
			print("Keyframes do not advance in time, cannot estimate BPM.")
		return 0.0
	initial_estimate = 60.0 / avg_interval
	for multiplier in multipliers:
		adjusted_bpm = initial_estimate * multiplier
		if min_bpm <= adjusted_bpm <= max_bpm:
			return adjusted_bpm
	return initial_estimate
