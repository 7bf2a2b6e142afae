"""Build the Groove Library static site.

Fetches every configured Mixcloud playlist, merges manual tracklists where
configured and writes one HTML page per playlist plus the index page. A
playlist that cannot be fetched renders an "unable to load" page instead of
failing the build.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from groove_library.config import (
    LOG_DIR,
    LOG_FILENAME_BUILD_SITE,
    LOG_FORMAT,
    OUTPUT_DIR,
    PLAYLISTS,
)
from groove_library.exceptions import ConfigurationError
from groove_library.pipeline.playlist_loader import LoaderConfig
from groove_library.pipeline.website_generator.runner import run_from_config

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO", enable_file: bool = True) -> None:
    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if enable_file:
        try:
            LOG_DIR.mkdir(exist_ok=True)
            handlers.insert(
                0,
                logging.FileHandler(LOG_DIR / LOG_FILENAME_BUILD_SITE, mode="a"),
            )
        except OSError:
            pass
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build the static playlist site from the Mixcloud API."
    )
    parser.add_argument("-o", "--output", type=Path, default=OUTPUT_DIR)
    parser.add_argument(
        "-p",
        "--playlist",
        action="append",
        choices=sorted(PLAYLISTS),
        help="Build only this playlist (repeatable).",
    )
    parser.add_argument(
        "--log-level", type=str, default=os.environ.get("LOG_LEVEL", "INFO")
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for the site build.

    Returns the process exit code: 0 when the site was written, 1 otherwise.
    """
    args = parse_arguments(argv)
    setup_logging(args.log_level, enable_file=not os.environ.get("DISABLE_FILE_LOGS"))
    try:
        config = LoaderConfig()
    except ConfigurationError:
        logger.exception("Invalid loader configuration")
        return 1
    ok = run_from_config(output_dir=args.output, slugs=args.playlist, config=config)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
