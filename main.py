#!/usr/bin/env python3
"""Command-line entrypoint for autoshrink.

Watches a vault directory and compresses oversized PNG/JPEG files in place
as soon as they are created.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from autoshrink import config
from autoshrink.cli import run_cli
from autoshrink.logging_config import configure_logging

logging.basicConfig(level=logging.INFO, format="[autoshrink] %(message)s")
logger = logging.getLogger(__name__)


def _env_str(name, default=None):
    """Get string environment variable."""
    return os.environ.get(name, default)


def _env_float(name, default=None):
    """Get float environment variable with error handling."""
    v = os.environ.get(name)
    if v is None or v == "":
        return default
    try:
        return float(v)
    except ValueError:
        logger.warning(f"Invalid environment variable {name}={v}; using {default}")
        return default


def build_parser() -> argparse.ArgumentParser:
    # Environment variables provide defaults: AUTOSHRINK_<OPTION_NAME>
    env_root = _env_str("AUTOSHRINK_ROOT", None)
    env_settings = _env_str("AUTOSHRINK_SETTINGS", None)
    env_stable = _env_float("AUTOSHRINK_STABLE_SECONDS", config.DEFAULT_STABLE_SECONDS)
    env_log_file = _env_str(
        "AUTOSHRINK_LOG_FILE", str(Path(config.DEFAULT_LOG_DIR) / config.DEFAULT_LOG_FILENAME)
    )
    env_log_level = _env_str("AUTOSHRINK_LOG_LEVEL", config.DEFAULT_LOG_LEVEL)

    parser = argparse.ArgumentParser(
        description="Compress oversized images as soon as they are added to a vault"
    )
    parser.add_argument(
        "--root",
        "-r",
        type=str,
        default=env_root,
        help="Vault directory to watch (required unless AUTOSHRINK_ROOT is set)",
    )
    parser.add_argument(
        "--settings",
        type=str,
        default=env_settings,
        help="Settings file (default: <root>/.autoshrink/settings.json)",
    )
    parser.add_argument(
        "--stable-seconds",
        type=float,
        default=env_stable,
        help="Time a new file's size must hold before it is processed",
    )
    parser.add_argument(
        "--set",
        action="append",
        metavar="FIELD=VALUE",
        help="Change a setting and save it, e.g. --set quality=0.6 --set max_width=1920. "
        "An empty VALUE unsets optional fields",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        metavar="PATTERN",
        help="Regular expression for vault paths to leave alone; replaces the saved list",
    )
    parser.add_argument(
        "--show-settings",
        action="store_true",
        help="Print the effective settings and exit",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=env_log_file,
        help="Path to log file (optional). Can be set via AUTOSHRINK_LOG_FILE env var",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=env_log_level,
        choices=["debug", "info", "warning", "quiet"],
        help="Logging level (or set AUTOSHRINK_LOG_LEVEL env var)",
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_file, args.log_level)

    if not args.root:
        parser.error(
            "Vault directory not provided. Set --root or AUTOSHRINK_ROOT environment variable to the directory to watch."
        )

    root_path = Path(args.root).resolve()
    if not root_path.exists():
        parser.error(f"Root directory does not exist: {root_path}")
    if not root_path.is_dir():
        parser.error(f"Root path is not a directory: {root_path}")
    args.root = str(root_path)

    try:
        return run_cli(args)
    except ValueError as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
