"""
Pytest coverage for a full beat-sync render through ffmpeg and ffprobe.
"""

# Standard Library
import json
import os
import shutil
import subprocess
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from beatsynclib.core import config
from beatsynclib.core.project import SyncProject
from beatsynclib.media import ffprobe

#============================================

FFPROBE_TOOLS = ("ffmpeg", "ffprobe")
MISSING_FFPROBE_TOOLS = [tool for tool in FFPROBE_TOOLS if shutil.which(tool) is None]
HAVE_FFPROBE_TOOLS = len(MISSING_FFPROBE_TOOLS) == 0
SKIP_FFPROBE_REASON = f"missing tools: {', '.join(MISSING_FFPROBE_TOOLS)}"

#============================================

def _run(cmd: str) -> None:
	"""
	Run a shell command, raising on failure.
	"""
	subprocess.run(cmd, shell=True, check=True,
		stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)

#============================================

def _probe_stream_types(path: str) -> set:
	"""
	Return stream types (video/audio/etc) from ffprobe.
	"""
	cmd = f"ffprobe -v error -show_entries stream=codec_type -of json \"{path}\""
	payload = subprocess.check_output(cmd, shell=True).decode("utf-8")
	data = json.loads(payload)
	return {stream.get("codec_type") for stream in data.get("streams", [])}

#============================================

def _make_inputs(tmp_path, times: list = None, duration: int = 3) -> tuple:
	if times is None:
		times = [0, 1, 2]
	video_path = str(tmp_path / "clip.mkv")
	audio_path = str(tmp_path / "song.wav")
	_run(
		f"ffmpeg -y -f lavfi -i testsrc=size=320x240:rate=25:duration={duration} "
		f"-c:v mpeg4 -q:v 5 \"{video_path}\""
	)
	_run(
		f"ffmpeg -y -f lavfi -i sine=frequency=440:sample_rate=48000:duration={duration} "
		f"\"{audio_path}\""
	)
	keyframe_path = tmp_path / "clip-keyframes.json"
	keyframe_path.write_text(json.dumps([{'time': value} for value in times]))
	return (video_path, audio_path, str(keyframe_path))

#============================================

def _render_settings() -> dict:
	settings = config.default_settings()
	settings['video_codec'] = 'mpeg4'
	settings['quiet'] = True
	return settings

#============================================

@pytest.mark.skipif(not HAVE_FFPROBE_TOOLS, reason=SKIP_FFPROBE_REASON)
def test_retime_render(tmp_path) -> None:
	"""
	On-grid keyframes retime to the span of the keyframes, without audio.
	"""
	(video_path, _, keyframe_path) = _make_inputs(tmp_path)
	output_path = str(tmp_path / "clip_sync60.mkv")
	project = SyncProject(video_path, keyframe_path, bpm=60,
		output_file=output_path, settings=_render_settings())
	outputs = project.run()
	assert outputs == [output_path]
	assert os.path.isfile(output_path)
	duration = ffprobe.getDuration(output_path, quiet=True)
	assert abs(duration - 2.0) < 0.3
	assert _probe_stream_types(output_path) == {"video"}

#============================================

@pytest.mark.skipif(not HAVE_FFPROBE_TOOLS, reason=SKIP_FFPROBE_REASON)
def test_audio_and_pulse_render(tmp_path) -> None:
	"""
	Audio remux and pulse overlay each write their own file.
	"""
	(video_path, audio_path, keyframe_path) = _make_inputs(tmp_path)
	output_path = str(tmp_path / "clip_sync60.mkv")
	settings = _render_settings()
	settings['pulse_enabled'] = True
	project = SyncProject(video_path, keyframe_path, bpm=60,
		audio_file=audio_path, output_file=output_path, settings=settings)
	outputs = project.run()
	remux_path = str(tmp_path / "audio_clip_sync60.mkv")
	pulse_path = str(tmp_path / "clip_syncPulsed60.mkv")
	assert outputs == [output_path, remux_path, pulse_path]
	for path in outputs:
		assert os.path.isfile(path)
	assert _probe_stream_types(remux_path) == {"video", "audio"}
	assert _probe_stream_types(pulse_path) == {"video", "audio"}
	assert ffprobe.getVideoDimensions(pulse_path, quiet=True) == (320, 240)
	pulse_duration = ffprobe.getDuration(pulse_path, quiet=True)
	assert abs(pulse_duration - 2.0) < 0.3

#============================================

@pytest.mark.skipif(not HAVE_FFPROBE_TOOLS, reason=SKIP_FFPROBE_REASON)
@pytest.mark.parametrize("anchor", ["source", "beat"])
def test_off_grid_render_matches_targets(tmp_path, anchor: str) -> None:
	"""
	An off-grid keyframe is stretched so the output runs for the summed
	target durations.
	"""
	(video_path, _, keyframe_path) = _make_inputs(tmp_path, times=[0, 1.5, 3.0],
		duration=4)
	output_path = str(tmp_path / "clip_sync60.mkv")
	settings = _render_settings()
	settings['snap'] = 'beat'
	settings['anchor'] = anchor
	project = SyncProject(video_path, keyframe_path, bpm=60,
		output_file=output_path, settings=settings)
	first = project.plan.segments[0]
	assert first.speed_factor == pytest.approx(0.75)
	expected = sum(seg.target_duration for seg in project.plan.segments)
	if anchor == "beat":
		assert expected == pytest.approx(project.plan.segments[-1].target_end)
		assert expected == pytest.approx(3.0)
	else:
		assert expected == pytest.approx(3.5)
	project.run()
	duration = ffprobe.getDuration(output_path, quiet=True)
	assert abs(duration - expected) < 0.2
