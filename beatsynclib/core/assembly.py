#!/usr/bin/env python3

"""
Assembly order and effect descriptors.

A plan says which segments exist; the assembly order gives each one the label
the ffmpeg filter graph uses for it, and the effect list says which ffmpeg
steps run, in order, to produce the output files.
"""

# Standard Library
import os
from dataclasses import dataclass
from dataclasses import field

# local repo modules
from beatsynclib.core import utils
from beatsynclib.core.planner import Plan

#============================================

OUTPUT_LABEL = 'outv'

EFFECT_SPEED_RETIME = 'speed_retime'
EFFECT_AUDIO_REMUX = 'audio_remux'
EFFECT_PULSE_OVERLAY = 'pulse_overlay'

AUDIO_PREFIX = 'audio_'

#============================================

@dataclass(frozen=True)
class AssemblyEntry:
	label: str
	segment: object

	#============================
	def trim_filter(self, input_label: str = '0:v') -> str:
		segment = self.segment
		return (
			f"[{input_label}]trim=start={segment.source_start:f}:"
			f"end={segment.source_end:f},"
			f"setpts=(PTS-STARTPTS)/{segment.speed_factor:f}[{self.label}]"
		)

#============================================

@dataclass(frozen=True)
class AssemblyOrder:
	entries: tuple
	output_label: str = OUTPUT_LABEL

	#============================
	@property
	def labels(self) -> list:
		return [entry.label for entry in self.entries]

	#============================
	def to_dict(self) -> dict:
		return {
			'output_label': self.output_label,
			'concat': self.labels,
		}

#============================================

@dataclass(frozen=True)
class Effect:
	kind: str
	inputs: tuple
	output_file: str
	params: dict = field(default_factory=dict, compare=False, hash=False)

	#============================
	def to_dict(self) -> dict:
		data = {
			'kind': self.kind,
			'inputs': list(self.inputs),
			'output': self.output_file,
		}
		for key, value in self.params.items():
			if isinstance(value, AssemblyOrder):
				continue
			data[key] = value
		return data

#============================================

def describe(plan: Plan) -> AssemblyOrder:
	"""
	Tag every planned segment with a unique stream label, in plan order.
	"""
	entries = []
	for segment in plan.segments:
		label = f"v{segment.keyframe_index}"
		entries.append(AssemblyEntry(label=label, segment=segment))
	return AssemblyOrder(entries=tuple(entries))

#============================================

def build_filter_complex(order: AssemblyOrder) -> str:
	"""
	Build the ffmpeg filter graph that trims, retimes, and concatenates the
	segments of an assembly order.

	Args:
		order: Assembly order from describe().

	Returns:
		str: filter_complex text ending in the output label.
	"""
	parts = []
	concat_inputs = ""
	for entry in order.entries:
		parts.append(entry.trim_filter() + "; ")
		concat_inputs += f"[{entry.label}]"
	count = len(order.entries)
	parts.append(f"{concat_inputs}concat=n={count}:v=1:a=0[{order.output_label}]")
	return "".join(parts)

#============================================

def build_effects(order: AssemblyOrder, video_file: str, output_file: str,
	bpm: float, audio_file: str = None, pulse: bool = False,
	pulse_output_file: str = None) -> list:
	"""
	Lay out the ffmpeg steps for one run.

	The retimed video is written first without audio. With an audio file the
	audio is remuxed over a copy of it. The pulse overlay, when requested,
	reads the retimed video and maps the audio file itself.

	Args:
		order: Assembly order from describe().
		video_file: Source video.
		output_file: Retimed output video.
		bpm: Target tempo, used by the pulse overlay.
		audio_file: Optional audio track.
		pulse: Add the pulse overlay step.
		pulse_output_file: Pulse output path, defaults to <stem>_syncPulsed<bpm>.

	Returns:
		list: Effect descriptors in execution order.
	"""
	effects = []
	effects.append(Effect(kind=EFFECT_SPEED_RETIME, inputs=(video_file,),
		output_file=output_file, params={'order': order,
		'segments': len(order.entries)}))
	if audio_file is not None:
		effects.append(Effect(kind=EFFECT_AUDIO_REMUX,
			inputs=(output_file, audio_file),
			output_file=utils.prefixed_path(output_file, AUDIO_PREFIX)))
	if pulse:
		if pulse_output_file is None:
			pulse_output_file = utils.sync_output_path(video_file, bpm,
				tag="syncPulsed", directory=_output_dir(output_file))
		inputs = (output_file,)
		if audio_file is not None:
			inputs = (output_file, audio_file)
		effects.append(Effect(kind=EFFECT_PULSE_OVERLAY, inputs=inputs,
			output_file=pulse_output_file, params={'bpm': bpm}))
	return effects

#============================================

def _output_dir(output_file: str):
	dirname = os.path.dirname(output_file)
	if dirname == "":
		return None
	return dirname
