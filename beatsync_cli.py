#!/usr/bin/env python3

import argparse
import yaml
from beatsynclib.core import config
from beatsynclib.core import keyframes
from beatsynclib.core import utils
from beatsynclib.core.project import SyncProject

#============================================

def parse_args(argv: list = None):
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Retime a video so its keyframes land on the beat")
	parser.add_argument('-i', '--input', dest='video_file', required=True,
		help='source video file')
	parser.add_argument('-k', '--keyframes', dest='keyframe_file', required=True,
		help='keyframe json file, a list of {"time": seconds}')
	parser.add_argument('-b', '--bpm', dest='bpm', type=float, default=None,
		help='target tempo, estimated from the keyframes when omitted')
	parser.add_argument('-a', '--audio', dest='audio_file', default=None,
		help='audio track to remux over the retimed video')
	parser.add_argument('-o', '--output', dest='output_file', default=None,
		help='output file, default <name>_sync<bpm>.<ext>')
	parser.add_argument('-c', '--config', dest='config_file', default=None,
		help='beatsync config yaml')
	parser.add_argument('-p', '--pulse', dest='pulse', action='store_true',
		help='also write a copy with a white flash on every beat')
	parser.add_argument('-P', '--no-pulse', dest='pulse', action='store_false',
		help='do not write the pulse overlay copy')
	parser.add_argument('-s', '--snap', dest='snap', choices=config.SNAP_MODES,
		default=None, help='beat snapping resolution')
	parser.add_argument('-A', '--anchor', dest='anchor',
		choices=config.ANCHOR_MODES, default=None,
		help='measure target durations from the previous source time or beat')
	parser.add_argument('-d', '--debug', dest='debug', action='store_true',
		help='print filter graphs and stream ffmpeg output')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='only report errors')
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help='plan only, do not render')
	parser.add_argument('-D', '--dump-plan', dest='dump_plan', action='store_true',
		help='print the plan as yaml after planning')
	parser.add_argument('-S', '--save-keyframes', dest='save_keyframes',
		nargs='?', const='', default=None,
		help='write the loaded keyframes back out in editor format, default '
		'<videoName>-keyframes.json')
	parser.set_defaults(pulse=None)
	parser.set_defaults(debug=None)
	parser.set_defaults(quiet=None)
	args = parser.parse_args(argv)
	return args

#============================================

def build_run_settings(args) -> dict:
	if args.config_file is not None:
		raw_config = config.load_config(args.config_file)
		settings = config.build_settings(raw_config, args.config_file)
	else:
		settings = config.default_settings()
	if args.pulse is not None:
		settings['pulse_enabled'] = args.pulse
	if args.snap is not None:
		settings['snap'] = args.snap
	if args.anchor is not None:
		settings['anchor'] = args.anchor
	if args.debug is not None:
		settings['debug'] = args.debug
	if args.quiet is not None:
		settings['quiet'] = args.quiet
	config.validate_settings(settings)
	return settings

#============================================

def main(argv: list = None):
	args = parse_args(argv)
	dry_run = args.dry_run or args.dump_plan
	try:
		settings = build_run_settings(args)
		project = SyncProject(args.video_file, args.keyframe_file, bpm=args.bpm,
			audio_file=args.audio_file, output_file=args.output_file,
			settings=settings, dry_run=dry_run)
		if args.save_keyframes is not None:
			save_path = args.save_keyframes
			if save_path == '':
				save_path = utils.keyframes_filename(args.video_file)
			keyframes.save_keyframes(save_path, project.keyframes)
		if args.dump_plan:
			print(yaml.safe_dump(project.describe(), sort_keys=False))
			return
		project.run()
	except RuntimeError as exc:
		print(f"Failed to sync to beat: {exc}")
		raise


if __name__ == '__main__':
	main()
