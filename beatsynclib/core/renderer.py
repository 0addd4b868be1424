#!/usr/bin/env python3

import os
import time
from beatsynclib.core import assembly
from beatsynclib.core import beatgrid
from beatsynclib.core import utils
from beatsynclib.core.errors import CollaboratorError
from beatsynclib.media import ffprobe

#============================================

class Renderer():
	"""
	Run effect descriptors through ffmpeg, one blocking call per effect, in
	list order.
	"""
	def __init__(self, settings: dict):
		self.settings = settings
		self.debug = settings.get('debug', False)
		self.quiet = settings.get('quiet', False)
		self._arg_builders = {
			assembly.EFFECT_SPEED_RETIME: self._speed_retime_args,
			assembly.EFFECT_AUDIO_REMUX: self._audio_remux_args,
			assembly.EFFECT_PULSE_OVERLAY: self._pulse_overlay_args,
		}

	#============================
	def check_dependencies(self, effects: list) -> None:
		utils.check_dependency("ffmpeg")
		for effect in effects:
			if effect.kind == assembly.EFFECT_PULSE_OVERLAY:
				utils.check_dependency("ffprobe")
				break

	#============================
	def run(self, effects: list) -> list:
		"""
		Execute effects in order and return the files they wrote.
		"""
		self.check_dependencies(effects)
		outputs = []
		for effect in effects:
			outputs.append(self.run_effect(effect))
		return outputs

	#============================
	def run_effect(self, effect) -> str:
		t0 = time.time()
		for input_file in effect.inputs:
			if not os.path.isfile(input_file):
				raise CollaboratorError(
					f"{effect.kind} input not found: {input_file}")
		args = self.build_args(effect)
		cmd = ["ffmpeg"] + args
		if self.debug:
			print(f"Running FFmpeg with arguments: {args}")
		utils.run_process(cmd, debug=self.debug, quiet=self.quiet)
		if not os.path.isfile(effect.output_file):
			raise CollaboratorError(
				f"{effect.kind} did not produce {effect.output_file}")
		if not self.quiet:
			print(f"{effect.kind} complete in {int(time.time() - t0)} seconds")
		return effect.output_file

	#============================
	def build_args(self, effect) -> list:
		builder = self._arg_builders.get(effect.kind)
		if builder is None:
			raise RuntimeError(f"unsupported effect kind: {effect.kind}")
		return builder(effect)

	#============================
	def _speed_retime_args(self, effect) -> list:
		order = effect.params['order']
		if len(order.entries) == 0:
			raise RuntimeError("no segments to concatenate")
		filter_complex = assembly.build_filter_complex(order)
		if self.debug:
			print(filter_complex)
		args = [
			"-y",
			"-i", effect.inputs[0],
			"-filter_complex", filter_complex,
			"-map", f"[{order.output_label}]",
			# retimed video only, audio is remuxed separately
			"-an",
			effect.output_file,
		]
		return args

	#============================
	def _audio_remux_args(self, effect) -> list:
		(video_file, audio_file) = effect.inputs
		args = [
			"-y",
			"-i", video_file,
			"-i", audio_file,
			"-c:v", "copy",
			"-c:a", "copy",
			"-strict", "experimental",
			"-map", "0:v:0",
			"-map", "1:a:0",
			effect.output_file,
		]
		return args

	#============================
	def _pulse_overlay_args(self, effect) -> list:
		video_file = effect.inputs[0]
		audio_file = None
		if len(effect.inputs) > 1:
			audio_file = effect.inputs[1]
		total_duration = effect.params.get('duration')
		if total_duration is None:
			total_duration = ffprobe.getDuration(video_file, debug=self.debug,
				quiet=self.quiet)
		dimensions = effect.params.get('dimensions')
		if dimensions is None:
			dimensions = ffprobe.getVideoDimensions(video_file, debug=self.debug,
				quiet=self.quiet)
		(width, height) = dimensions
		beat_seconds = beatgrid.beat_duration(effect.params['bpm'])
		flash_input = 1
		if audio_file is not None:
			flash_input = 2
		filter_complex = self.pulse_filter(flash_input, beat_seconds)
		if self.debug:
			print(filter_complex)
		color_source = (
			f"color=c={self.settings['pulse_color']}:s={width}x{height}:"
			f"d={total_duration:f}:r={self.settings['pulse_frame_rate']:g}"
		)
		args = ["-y", "-i", video_file]
		if audio_file is not None:
			args += ["-i", audio_file]
		args += [
			"-f", "lavfi", "-i", color_source,
			"-filter_complex", filter_complex,
			"-map", "[output]",
		]
		if audio_file is not None:
			args += ["-map", "1:a", "-c:a", "copy"]
		args += [
			"-c:v", self.settings['video_codec'],
			"-preset", self.settings['preset'],
			"-crf", str(self.settings['crf']),
			"-t", f"{total_duration:f}",
			effect.output_file,
		]
		return args

	#============================
	def pulse_filter(self, flash_input: int, beat_seconds: float) -> str:
		flash_seconds = self.settings['pulse_flash_seconds']
		opacity = self.settings['pulse_opacity']
		return (
			f"[0:v]format=yuva420p[base]; "
			f"[base][{flash_input}:v]blend=all_mode=addition:all_opacity={opacity:g}:"
			f"enable='if(lt(mod(t,{beat_seconds:f}),{flash_seconds:g}),1,0)'[output]"
		)
