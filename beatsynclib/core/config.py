#!/usr/bin/env python3

"""
Settings for a beatsync run: built-in defaults, an optional YAML config file,
and validation of the flattened settings.
"""

# Standard Library
import math
import os

# PIP3 modules
import yaml

# local repo modules
from beatsynclib.core.errors import ConfigError

#============================================

SNAP_MODES = ('hundredth', 'beat')
ANCHOR_MODES = ('source', 'beat')

#============================================

def default_config() -> dict:
	"""
	Build the default config dictionary.

	Returns:
		dict: Default configuration values.
	"""
	return {
		'beatsync': 1,
		'settings': {
			'planner': {
				'epsilon': 0.01,
				'snap': 'hundredth',
				'anchor': 'source',
			},
			'tempo': {
				'min_bpm': 50.0,
				'max_bpm': 200.0,
				'multipliers': [1, 2, 4],
			},
			'encode': {
				'video_codec': 'libx264',
				'preset': 'medium',
				'crf': 22,
			},
			'pulse': {
				'enabled': False,
				'flash_seconds': 0.2,
				'color': 'white',
				'frame_rate': 25,
				'opacity': 1.0,
			},
			'debug': False,
			'quiet': False,
		},
	}

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk.

	Args:
		config_path: Config file path.

	Returns:
		dict: Parsed config dictionary.
	"""
	if not os.path.isfile(config_path):
		raise ConfigError(f"config file not found: {config_path}")
	with open(config_path, 'r', encoding='utf-8') as handle:
		try:
			data = yaml.safe_load(handle)
		except yaml.YAMLError as exc:
			raise ConfigError(f"config file is not valid yaml: {exc}") from exc
	if not isinstance(data, dict):
		raise ConfigError("config file must be a mapping")
	if data.get('beatsync') != 1:
		raise ConfigError("config file must set beatsync: 1")
	return data

#============================================

def coerce_bool(value, config_path: str, key_path: str) -> bool:
	if isinstance(value, bool):
		return value
	if isinstance(value, str):
		lowered = value.strip().lower()
		if lowered in ('true', 'yes', 'on', '1'):
			return True
		if lowered in ('false', 'no', 'off', '0'):
			return False
	raise ConfigError(f"{config_path}: {key_path} must be true or false")

#============================================

def coerce_float(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise ConfigError(f"{config_path}: {key_path} must be a number")
	try:
		number = float(value)
	except (TypeError, ValueError) as exc:
		raise ConfigError(f"{config_path}: {key_path} must be a number") from exc
	if not math.isfinite(number):
		raise ConfigError(f"{config_path}: {key_path} must be finite")
	return number

#============================================

def coerce_int(value, config_path: str, key_path: str) -> int:
	number = coerce_float(value, config_path, key_path)
	if number != int(number):
		raise ConfigError(f"{config_path}: {key_path} must be an integer")
	return int(number)

#============================================

def _section(settings: dict, name: str, config_path: str) -> dict:
	section = settings.get(name, {})
	if section is None:
		return {}
	if not isinstance(section, dict):
		raise ConfigError(f"{config_path}: settings.{name} must be a mapping")
	return section

#============================================

def build_settings(config: dict, config_path: str = "<defaults>") -> dict:
	"""
	Flatten a config dictionary into settings, filling in defaults.

	Args:
		config: Raw config dictionary, as from load_config().
		config_path: Config file path, used in error messages.

	Returns:
		dict: Flat settings dictionary.
	"""
	defaults = default_config()['settings']
	raw = config.get('settings', {})
	if raw is None:
		raw = {}
	if not isinstance(raw, dict):
		raise ConfigError(f"{config_path}: settings must be a mapping")
	planner = dict(defaults['planner'])
	planner.update(_section(raw, 'planner', config_path))
	tempo = dict(defaults['tempo'])
	tempo.update(_section(raw, 'tempo', config_path))
	encode = dict(defaults['encode'])
	encode.update(_section(raw, 'encode', config_path))
	pulse = dict(defaults['pulse'])
	pulse.update(_section(raw, 'pulse', config_path))
	multipliers = tempo['multipliers']
	if not isinstance(multipliers, list) or len(multipliers) == 0:
		raise ConfigError(f"{config_path}: settings.tempo.multipliers must be a list")
	settings = {
		'epsilon': coerce_float(planner['epsilon'], config_path,
			'settings.planner.epsilon'),
		'snap': str(planner['snap']),
		'anchor': str(planner['anchor']),
		'min_bpm': coerce_float(tempo['min_bpm'], config_path,
			'settings.tempo.min_bpm'),
		'max_bpm': coerce_float(tempo['max_bpm'], config_path,
			'settings.tempo.max_bpm'),
		'multipliers': [
			coerce_float(value, config_path, 'settings.tempo.multipliers')
			for value in multipliers
		],
		'video_codec': str(encode['video_codec']),
		'preset': str(encode['preset']),
		'crf': coerce_int(encode['crf'], config_path, 'settings.encode.crf'),
		'pulse_enabled': coerce_bool(pulse['enabled'], config_path,
			'settings.pulse.enabled'),
		'pulse_flash_seconds': coerce_float(pulse['flash_seconds'], config_path,
			'settings.pulse.flash_seconds'),
		'pulse_color': str(pulse['color']),
		'pulse_frame_rate': coerce_float(pulse['frame_rate'], config_path,
			'settings.pulse.frame_rate'),
		'pulse_opacity': coerce_float(pulse['opacity'], config_path,
			'settings.pulse.opacity'),
		'debug': coerce_bool(raw.get('debug', defaults['debug']), config_path,
			'settings.debug'),
		'quiet': coerce_bool(raw.get('quiet', defaults['quiet']), config_path,
			'settings.quiet'),
	}
	validate_settings(settings)
	return settings

#============================================

def default_settings() -> dict:
	return build_settings(default_config())

#============================================

def validate_settings(settings: dict) -> None:
	"""
	Range-check flat settings, raising ConfigError on the first problem.

	Args:
		settings: Flat settings dictionary.
	"""
	if settings['epsilon'] <= 0:
		raise ConfigError("epsilon must be positive")
	if settings['snap'] not in SNAP_MODES:
		raise ConfigError(f"snap must be one of {', '.join(SNAP_MODES)}")
	if settings['anchor'] not in ANCHOR_MODES:
		raise ConfigError(f"anchor must be one of {', '.join(ANCHOR_MODES)}")
	if settings['min_bpm'] <= 0:
		raise ConfigError("min_bpm must be positive")
	if settings['max_bpm'] < settings['min_bpm']:
		raise ConfigError("max_bpm must be >= min_bpm")
	for multiplier in settings['multipliers']:
		if multiplier <= 0:
			raise ConfigError("tempo multipliers must be positive")
	if settings['crf'] < 0:
		raise ConfigError("crf must be 0 or greater")
	if settings['pulse_flash_seconds'] <= 0:
		raise ConfigError("pulse flash_seconds must be positive")
	if settings['pulse_frame_rate'] <= 0:
		raise ConfigError("pulse frame_rate must be positive")
	if settings['pulse_opacity'] < 0 or settings['pulse_opacity'] > 1:
		raise ConfigError("pulse opacity must be between 0 and 1")
	return

#============================================

def validate_bpm(bpm) -> float:
	"""
	Check an explicit tempo value.

	Args:
		bpm: Beats per minute.

	Returns:
		float: The bpm as a float.
	"""
	if isinstance(bpm, bool):
		raise ConfigError("bpm must be a number")
	try:
		value = float(bpm)
	except (TypeError, ValueError) as exc:
		raise ConfigError(f"bpm must be a number, got {bpm!r}") from exc
	if not math.isfinite(value) or value <= 0:
		raise ConfigError(f"bpm must be positive, got {bpm!r}")
	return value
