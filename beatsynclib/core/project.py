#!/usr/bin/env python3

from beatsynclib.core import assembly
from beatsynclib.core import config
from beatsynclib.core import keyframes
from beatsynclib.core import tempo
from beatsynclib.core import utils
from beatsynclib.core.errors import ConfigError
from beatsynclib.core.planner import RetimePlanner
from beatsynclib.core.renderer import Renderer

#============================================

class SyncProject():
	def __init__(self, video_file: str, keyframe_file: str, bpm: float = None,
		audio_file: str = None, output_file: str = None, settings: dict = None,
		dry_run: bool = False):
		if settings is None:
			settings = config.default_settings()
		self.settings = settings
		self.video_file = video_file
		self.keyframe_file = keyframe_file
		self.audio_file = audio_file
		self.dry_run = dry_run
		utils.ensure_file_exists(video_file)
		if audio_file is not None:
			utils.ensure_file_exists(audio_file)
		self.keyframes = keyframes.read_keyframes(keyframe_file)
		self.estimated_bpm = tempo.estimate_bpm(self.keyframes,
			min_bpm=settings['min_bpm'], max_bpm=settings['max_bpm'],
			multipliers=settings['multipliers'], quiet=settings['quiet'])
		self._print(
			f"Estimated original BPM based on keyframes: {self.estimated_bpm:.2f}")
		self.bpm = self._resolve_bpm(bpm)
		if output_file is None:
			output_file = utils.sync_output_path(video_file, self.bpm)
		self.output_file = output_file
		planner = RetimePlanner.from_settings(settings)
		self.plan = planner.plan(self.keyframes, self.bpm)
		self.order = assembly.describe(self.plan)
		self.effects = assembly.build_effects(self.order, video_file,
			output_file, self.bpm, audio_file=audio_file,
			pulse=settings['pulse_enabled'])
		self._renderer = Renderer(settings)

	#============================
	def _resolve_bpm(self, bpm) -> float:
		if bpm is not None:
			return config.validate_bpm(bpm)
		if self.estimated_bpm <= 0:
			raise ConfigError("BPM required: keyframes are too few to estimate one")
		return self.estimated_bpm

	#============================
	def _print(self, message: str) -> None:
		if not self.settings['quiet']:
			print(message)

	#============================
	def describe(self) -> dict:
		return {
			'video': self.video_file,
			'keyframes': self.keyframe_file,
			'bpm': self.bpm,
			'estimated_bpm': self.estimated_bpm,
			'plan': self.plan.to_dict(),
			'assembly': self.order.to_dict(),
			'effects': [effect.to_dict() for effect in self.effects],
		}

	#============================
	def run(self) -> list:
		if self.dry_run:
			self._print("dry run: plan complete")
			return []
		outputs = self._renderer.run(self.effects)
		for output in outputs:
			self._print(f"mpv {output}")
		return outputs
