"""Command-line entry point: `redis-key-copier [--key=<name>] [--config=<path>] [--verbose] [--help]`."""

import argparse
import logging
import sys
from collections.abc import Sequence

from key_copier.connections import ConnectionManager, EndpointFactory
from key_copier.control import HELP_TEXT, ControlLoop
from key_copier.endpoints.redis import RedisEndpoint
from key_copier.errors import ConfigurationError
from key_copier.profiles import ProfileStore, load_profiles
from key_copier.terminal import Terminal

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

FLAGS = frozenset({"--help", "-h", "--verbose", "-v"})

VALUE_OPTIONS = ("--key=", "--config=")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="redis-key-copier", add_help=False, allow_abbrev=False)
    _ = parser.add_argument("--key", default=None)
    _ = parser.add_argument("--config", default=None)
    _ = parser.add_argument("--verbose", "-v", action="store_true")
    _ = parser.add_argument("--help", "-h", action="store_true", dest="show_help")
    return parser


def recognised_args(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split argv into the arguments the parser understands and the ones to ignore.

    Only the exact flags and the `--key=`/`--config=` forms are kept, the first occurrence of an
    option winning, so parsing what is kept cannot fail.
    """
    kept: list[str] = []
    ignored: list[str] = []
    seen: set[str] = set()

    for arg in argv:
        if arg in FLAGS:
            kept.append(arg)
            continue

        option = next((prefix for prefix in VALUE_OPTIONS if arg.startswith(prefix)), None)
        if option is None or option in seen:
            ignored.append(arg)
            continue

        seen.add(option)
        kept.append(arg)

    return kept, ignored


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    """Parse the recognised options; anything else on the command line is ignored."""
    kept, ignored = recognised_args(argv)

    if ignored:
        logger.debug("Ignoring unrecognized arguments: %s", ignored)

    args = build_parser().parse_args(kept)

    # A bare `help` as the first argument is accepted as well.
    if list(argv[:1]) == ["help"]:
        args.show_help = True

    return args


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.ERROR, format=LOG_FORMAT, stream=sys.stderr)


def main(
    argv: Sequence[str] | None = None,
    *,
    terminal: Terminal | None = None,
    endpoint_factory: EndpointFactory = RedisEndpoint.from_profile,
) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(verbose=args.verbose)
    terminal = terminal or Terminal()

    if args.show_help:
        terminal.echo(HELP_TEXT)
        return 0

    profiles = ProfileStore()

    if args.config:
        try:
            profiles.replace(load_profiles(args.config))
        except ConfigurationError as e:
            terminal.error(str(e))
            return 1
        terminal.echo(f"✓ External configuration loaded from: {args.config}")

    key: str | None = args.key
    if key is not None and not key.strip():
        logger.warning("Ignoring empty --key, starting interactive mode")
        key = None

    logger.info("Starting Redis Key Copier")

    manager = ConnectionManager(profiles, endpoint_factory=endpoint_factory, terminal=terminal)
    loop = ControlLoop(manager, terminal=terminal)

    try:
        return loop.run(key=key.strip() if key else None)
    except KeyboardInterrupt:
        terminal.echo()
        return 130
