"""The ``moti`` command line."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Optional

from moti.config import CONFIG_FLAG, DEFAULT_CONFIG_FILE_PATH
from moti.generate import generate_command
from moti.install import install_command
from moti.models import MotiError
from moti.version import system

logger = logging.getLogger("moti")

_CONFIG_HELP = (
    "Specify the absolute or relative path to the configuration file for setting up the application."
)


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser with the install and generate commands."""
    parser = argparse.ArgumentParser(prog="moti", description="moti - description info")
    parser.add_argument("--version", action="version", version=f"moti version {system()}")
    parser.add_argument(f"--{CONFIG_FLAG}", default=DEFAULT_CONFIG_FILE_PATH, help=_CONFIG_HELP)
    parser.set_defaults(command=None)

    config_parent = argparse.ArgumentParser(add_help=False)
    config_parent.add_argument(f"--{CONFIG_FLAG}", default=argparse.SUPPRESS, help=_CONFIG_HELP)

    commands = parser.add_subparsers(title="commands")

    install = commands.add_parser(
        "install",
        aliases=["i"],
        parents=[config_parent],
        help="install dependencies",
        description="install dependencies specified in moti.yaml",
    )
    install.set_defaults(command="install")

    generate = commands.add_parser(
        "generate",
        aliases=["g"],
        parents=[config_parent],
        help="generate code from proto files",
        description="generate code from proto files",
    )
    generate.add_argument("-p", "--path", default=".", help="set path to directory with proto files")
    generate.set_defaults(command="generate")

    return parser


def _configure_logging() -> None:
    logging.basicConfig(
        stream=sys.stdout,
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line and return the exit status."""
    _configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    config_path = getattr(args, CONFIG_FLAG)
    try:
        if args.command == "install":
            install_command(config_path)
        else:
            generate_command(config_path)
    except (MotiError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())