#!/usr/bin/env python3

import os
import shlex
import shutil
import subprocess
from decimal import Decimal
from decimal import ROUND_HALF_UP
from beatsynclib.core.errors import CollaboratorError
from beatsynclib.core.errors import ConfigError

#============================================

def run_process(cmd: list, debug: bool = False,
	quiet: bool = False) -> subprocess.CompletedProcess:
	"""
	Run an external command, raising CollaboratorError on failure.

	Args:
		cmd: Command list to execute.
		debug: Stream the command output to the console instead of capturing it.
		quiet: Do not echo the command line.

	Returns:
		subprocess.CompletedProcess: The completed process.
	"""
	showcmd = shlex.join(cmd)
	if not quiet:
		print(f"CMD: '{showcmd}'")
	capture_output = not debug
	try:
		proc = subprocess.run(cmd, capture_output=capture_output, text=True)
	except OSError as exc:
		raise CollaboratorError(f"could not start {cmd[0]}: {exc}",
			command=showcmd) from exc
	if proc.returncode != 0:
		stderr_text = ""
		if proc.stderr is not None:
			stderr_text = proc.stderr.strip()
		raise CollaboratorError(
			f"{cmd[0]} exited with status {proc.returncode}",
			command=showcmd, stderr=stderr_text)
	return proc

#============================================

def check_dependency(cmd_name: str) -> str:
	"""
	Ensure a required external command exists.

	Args:
		cmd_name: Command to locate.

	Returns:
		str: Full path of the command.
	"""
	cmd_path = shutil.which(cmd_name)
	if cmd_path is None:
		raise CollaboratorError(f"{cmd_name} is not available on PATH")
	return cmd_path

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.isfile(filepath):
		raise ConfigError(f"file not found: {filepath}")
	return

#============================================

def format_speed(speed: float) -> str:
	"""
	Format a speed factor for console and plan output.

	Args:
		speed: Speed value.

	Returns:
		str: Formatted speed string.
	"""
	value = f"{speed:.3f}"
	value = value.rstrip('0').rstrip('.')
	if value == "":
		value = "0"
	return value

#============================================

def round_half_away(value: float, resolution: Decimal) -> float:
	"""
	Round to a multiple of resolution, ties away from zero.

	Args:
		value: Value to round.
		resolution: Step to round to, e.g. Decimal('0.01').

	Returns:
		float: Rounded value.
	"""
	# decimal ROUND_HALF_UP rounds ties away from zero
	steps = (Decimal(str(value)) / resolution).quantize(Decimal(1),
		rounding=ROUND_HALF_UP)
	return float(steps * resolution)

#============================================

def sync_output_path(video_file: str, bpm: float, tag: str = "sync",
	directory: str = None) -> str:
	"""
	Build the output name <stem>_<tag><bpm>.<ext> for a video.

	Args:
		video_file: Source video path.
		bpm: Target tempo, printed without decimals.
		tag: Name tag, 'sync' or 'syncPulsed'.
		directory: Output directory, defaults to the current directory.

	Returns:
		str: Output file path.
	"""
	basename = os.path.basename(video_file)
	(stem, ext) = os.path.splitext(basename)
	filename = f"{stem}_{tag}{bpm:.0f}{ext}"
	if directory is None:
		return filename
	return os.path.join(directory, filename)

#============================================

def prefixed_path(filepath: str, prefix: str) -> str:
	dirname = os.path.dirname(filepath)
	basename = os.path.basename(filepath)
	return os.path.join(dirname, prefix + basename)

#============================================

def keyframes_filename(video_file: str) -> str:
	basename = os.path.basename(video_file)
	stem = os.path.splitext(basename)[0]
	if stem == "":
		stem = basename
	return f"{stem}-keyframes.json"
