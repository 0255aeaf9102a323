import sys
import asyncio
import logging
import argparse

from diffscan.agents.orchestrator import is_github_actions, run_from_env
from diffscan.core.errors import DiffScanError
from diffscan.utils.logging_config import setup_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="diffscan",
        description="Scan a code-review diff for sensitive data and annotate the findings.",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.debug else logging.INFO,
        github_actions=is_github_actions(),
        log_file=args.log_file,
    )
    try:
        asyncio.run(run_from_env())
    except DiffScanError as e:
        print(f"diffscan: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
