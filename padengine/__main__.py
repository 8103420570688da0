"""
Command line entry point.

    python -m padengine kick.wav snare.wav --midi
    python -m padengine --state <share string>
"""

import argparse
import logging
import sys

from .core.config import EngineConfig
from .core.errors import ConfigError
from .manager import SamplerManager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="padengine", description="16-pad sample trigger engine")
    parser.add_argument("files", nargs="*", metavar="FILES", help="Audio files to load onto consecutive pads")
    parser.add_argument("--state", help="Share string to restore pads from")
    parser.add_argument("--midi", action="store_true", help="Open all MIDI inputs")
    parser.add_argument("--config", help="JSON engine configuration file")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")
    parser.add_argument("--list-midi", action="store_true", help="List MIDI input ports and exit")
    return parser


def cli_main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = EngineConfig.load(args.config) if args.config else EngineConfig()
    except (OSError, ConfigError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    sampler = SamplerManager(config)

    if args.list_midi:
        for name in sampler.midi.list_input_ports():
            print(name)
        return 0

    if args.state:
        if not sampler.open_shared(args.state):
            print("Ignoring malformed --state", file=sys.stderr)
    if args.files:
        sampler.load_files(args.files)

    if args.midi:
        sampler.midi.enable()

    print("Running. Ctrl+C to stop.")
    try:
        sampler.run()
    except KeyboardInterrupt:
        pass
    finally:
        share = sampler.share_state()
        sampler.stop()

    print(share)
    return 0


if __name__ == "__main__":
    sys.exit(cli_main())
