#!/usr/bin/env python3

#python wrapper for ffprobe

import json
from beatsynclib.core import utils
from beatsynclib.core.errors import CollaboratorError

#===============================
def probeJson(mediafile: str, entries: list, debug: bool = False,
	quiet: bool = False) -> dict:
	cmd = ["ffprobe", "-v", "error"] + entries + ["-of", "json", mediafile]
	proc = utils.run_process(cmd, debug=False, quiet=quiet or not debug)
	try:
		data = json.loads(proc.stdout)
	except (TypeError, ValueError) as exc:
		raise CollaboratorError(f"could not parse ffprobe output for {mediafile}",
			stderr=str(exc)) from exc
	return data

#===============================
def getDuration(mediafile: str, debug: bool = False, quiet: bool = False) -> float:
	data = probeJson(mediafile, ["-show_entries", "format=duration"],
		debug=debug, quiet=quiet)
	duration = data.get('format', {}).get('duration')
	if duration is None:
		raise CollaboratorError(f"ffprobe reported no duration for {mediafile}")
	try:
		return float(duration)
	except ValueError as exc:
		raise CollaboratorError(
			f"failed to parse duration {duration!r} for {mediafile}") from exc

#===============================
def getVideoDimensions(mediafile: str, debug: bool = False,
	quiet: bool = False) -> tuple:
	data = probeJson(mediafile,
		["-select_streams", "v:0", "-show_entries", "stream=width,height"],
		debug=debug, quiet=quiet)
	streams = data.get('streams', [])
	if len(streams) == 0:
		raise CollaboratorError(f"no video streams found in {mediafile}")
	width = int(streams[0].get('width', 0))
	height = int(streams[0].get('height', 0))
	if width <= 0 or height <= 0:
		raise CollaboratorError(f"invalid video dimensions for {mediafile}")
	return (width, height)
