#!/usr/bin/env python3

from dataclasses import dataclass

from beatsynclib.core import beatgrid
from beatsynclib.core import utils
from beatsynclib.core.errors import ConfigError
from beatsynclib.core.errors import PlanError

#============================================

# stand-in target duration when a segment snaps onto its own start;
# bounded timing error instead of an undefined speed factor
TARGET_EPSILON = 0.01

#============================================

@dataclass(frozen=True)
class Segment:
	keyframe_index: int
	source_start: float
	source_end: float
	target_start: float
	target_end: float
	speed_factor: float
	clamped: bool = False

	#============================
	@property
	def source_duration(self) -> float:
		return self.source_end - self.source_start

	#============================
	@property
	def target_duration(self) -> float:
		return self.target_end - self.target_start

	#============================
	def to_dict(self) -> dict:
		return {
			'keyframe': self.keyframe_index,
			'source': [self.source_start, self.source_end],
			'target': [self.target_start, self.target_end],
			'speed': self.speed_factor,
			'clamped': self.clamped,
		}

#============================================

@dataclass(frozen=True)
class Plan:
	bpm: float
	beat_duration: float
	segments: tuple
	snap: str = 'hundredth'
	anchor: str = 'source'

	#============================
	@property
	def order(self) -> tuple:
		return tuple(range(len(self.segments)))

	#============================
	@property
	def source_start(self) -> float:
		return self.segments[0].source_start

	#============================
	@property
	def source_end(self) -> float:
		return self.segments[-1].source_end

	#============================
	def to_dict(self) -> dict:
		return {
			'bpm': self.bpm,
			'beat_duration': self.beat_duration,
			'snap': self.snap,
			'anchor': self.anchor,
			'segments': [segment.to_dict() for segment in self.segments],
		}

#============================================

class RetimePlanner():
	"""
	Walk a keyframe set and cut the source timeline into segments whose speed
	factors move every keyframe onto its nearest beat grid point.

	anchor 'source' measures each target duration from the previous keyframe's
	source time; anchor 'beat' measures it from the previous snapped target,
	so keyframes land exactly on grid points in the output.
	"""
	def __init__(self, epsilon: float = TARGET_EPSILON, snap: str = 'hundredth',
		anchor: str = 'source', debug: bool = False, quiet: bool = False):
		if epsilon <= 0:
			raise ConfigError("epsilon must be positive")
		if snap not in beatgrid.SNAP_RESOLUTIONS:
			raise ConfigError(f"unknown snap mode: {snap}")
		if anchor not in ('source', 'beat'):
			raise ConfigError(f"unknown anchor mode: {anchor}")
		self.epsilon = epsilon
		self.snap = snap
		self.anchor = anchor
		self.debug = debug
		self.quiet = quiet

	#============================
	@classmethod
	def from_settings(cls, settings: dict):
		return cls(epsilon=settings['epsilon'], snap=settings['snap'],
			anchor=settings['anchor'], debug=settings['debug'],
			quiet=settings['quiet'])

	#============================
	def plan(self, keyframes: list, bpm: float) -> Plan:
		beat_seconds = beatgrid.beat_duration(bpm)
		segments = []
		last_time = 0.0
		last_target = 0.0
		for index, keyframe in enumerate(keyframes):
			if index == 0 and keyframe.time == 0.0:
				self._log("Skipping first keyframe at time 0.")
				continue
			segment = self._plan_segment(index, keyframe.time, last_time,
				last_target, beat_seconds)
			if segment is None:
				continue
			segments.append(segment)
			last_time = segment.source_end
			last_target = segment.target_end
		if len(segments) == 0:
			raise PlanError("no segments to process")
		return Plan(bpm=float(bpm), beat_duration=beat_seconds,
			segments=tuple(segments), snap=self.snap, anchor=self.anchor)

	#============================
	def _plan_segment(self, index: int, time_seconds: float, last_time: float,
		last_target: float, beat_seconds: float):
		beat_index = beatgrid.snap_beat_index(time_seconds, beat_seconds, self.snap)
		nearest_beat_time = beat_index * beat_seconds
		source_duration = time_seconds - last_time
		if source_duration <= 0:
			self._log(f"Skipping segment with zero duration at keyframe {index}.")
			return None
		target_start = last_time
		if self.anchor == 'beat':
			target_start = last_target
		target_end = nearest_beat_time
		clamped = False
		if target_end - target_start <= 0:
			self._log(
				f"Adjusted segment duration is zero at keyframe {index}, "
				"adjusting to avoid NaN."
			)
			target_end = target_start + self.epsilon
			clamped = True
		target_duration = target_end - target_start
		if clamped:
			target_duration = self.epsilon
		speed_factor = source_duration / target_duration
		self._log(
			f"Keyframe {index}: {time_seconds:.2f}s/"
			f"{beatgrid.beat_position(time_seconds, beat_seconds):.2f}, "
			f"Nearest Beat: {nearest_beat_time:.2f}s/{beat_index:.2f}, "
			f"Speed Factor = {speed_factor:f}"
		)
		segment = Segment(keyframe_index=index, source_start=last_time,
			source_end=time_seconds, target_start=target_start,
			target_end=target_end, speed_factor=speed_factor, clamped=clamped)
		if self.debug:
			print(f"segment {index}: {format_segment(segment)}")
		return segment

	#============================
	def _log(self, message: str) -> None:
		if not self.quiet:
			print(message)

#============================================

def plan_retime(keyframes: list, bpm: float, **kwargs) -> Plan:
	planner = RetimePlanner(**kwargs)
	return planner.plan(keyframes, bpm)

#============================================

def format_segment(segment: Segment) -> str:
	return (
		f"{segment.source_start:.3f}-{segment.source_end:.3f}s -> "
		f"{segment.target_start:.3f}-{segment.target_end:.3f}s "
		f"x{utils.format_speed(segment.speed_factor)}"
	)
