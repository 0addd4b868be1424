#!/usr/bin/env python3

"""
Error kinds raised by beatsync.

Every kind is a RuntimeError so callers that catch RuntimeError keep working.
"""

#============================================

class BeatSyncError(RuntimeError):
	pass

#============================================

class ParseError(BeatSyncError):
	"""Keyframe input is not a well-formed list of time-bearing records."""
	pass

#============================================

class ConfigError(BeatSyncError):
	"""Invalid bpm, settings value, or missing input file."""
	pass

#============================================

class PlanError(BeatSyncError):
	"""The planner produced no segments."""
	pass

#============================================

class CollaboratorError(BeatSyncError):
	"""
	An external tool (ffmpeg, ffprobe) was missing or failed.
	"""
	def __init__(self, message: str, command: str = None, stderr: str = None):
		self.command = command
		self.stderr = stderr
		text = message
		if command is not None:
			text += f"\nCMD: {command}"
		if stderr:
			text += f"\n{stderr}"
		super().__init__(text)
