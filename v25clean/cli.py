"""
Command line entry point.

Removes empty files, trailing newlines, incomplete last lines etc. from a
directory of V25 log files.
"""

from __future__ import annotations

import argparse
from typing import List, Optional

from .config import default_config_path, load_policy
from .logging_utils import get_logger
from .osc import OscRewriter
from .runner import RunGuard, clean_directory


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="v25clean",
        description="A tool to clean up V25 log files.",
    )
    parser.add_argument("-d", "--dirname", required=True, help="directory to clean")
    parser.add_argument(
        "-f", "--force", action="store_true",
        help="check files regardless if cleaned before",
    )
    parser.add_argument("--verbose", action="store_true", help="verbose print output")
    parser.add_argument(
        "-c", "--config", default=None,
        help=f"extension config file (default: {default_config_path()})",
    )
    parser.add_argument("--log-dir", default=None, help="also write the log to this directory")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = get_logger(verbose=args.verbose, log_dir=args.log_dir)

    try:
        policy = load_policy(args.config)
        clean_directory(
            args.dirname,
            policy,
            guard=RunGuard(args.dirname, force=args.force),
            rewriter=OscRewriter(),
        )
    except (OSError, ValueError) as e:
        logger.error("cleaning %s failed: %s", args.dirname, e, exc_info=args.verbose)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
