#!/usr/bin/env python
"""
Watch Config Script.

Opens a configuration file with hot reload enabled and logs the value of
the requested fields every time the configuration changes, until
interrupted with Ctrl+C.

Usage:
    python scripts/watch_config.py config/app.json --field server.port
    python scripts/watch_config.py config/app.yaml --field log.level --field workers --reload-delay 200
    python scripts/watch_config.py config/new.json --create --field foo -v
"""

import argparse
import sys
import time

from loguru import logger

from reactive_config import Config, ConfigEvent, ConfigOptions


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Reactive Config — watch a configuration file for changes"
    )
    parser.add_argument(
        "config",
        type=str,
        help="Path to the configuration file (.json, .yaml or .yml)",
    )
    parser.add_argument(
        "--field", "-f",
        action="append",
        default=[],
        help="Dotted field path to observe (repeatable). Default: the whole payload",
    )
    parser.add_argument(
        "--reload-delay",
        type=int,
        default=500,
        help="Debounce delay of the file watcher in milliseconds (default: 500)",
    )
    parser.add_argument(
        "--create",
        action="store_true",
        help="Create the configuration file if it does not exist",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for the watcher."""
    args = parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO")

    options = ConfigOptions(
        auto_reload=True,
        reload_delay=args.reload_delay,
        create_on_no_entry=args.create,
    )
    cfg = Config(args.config, options)
    cfg.on(ConfigEvent.RELOAD, lambda: logger.info("[Watch] Configuration reloaded"))
    cfg.on(ConfigEvent.ERROR, lambda exc: logger.error(f"[Watch] {exc}"))

    try:
        cfg.read()
    except Exception as e:
        logger.error(f"[Watch] Failed to read {args.config}: {e}")
        return 1

    if args.field:
        for field_path in args.field:
            cfg.observable_of(field_path).subscribe(
                lambda value, path=field_path: logger.info(f"[Watch] {path} => {value!r}"),
                on_complete=lambda path=field_path: logger.info(f"[Watch] {path} completed"),
            )
    else:
        cfg.on(ConfigEvent.RELOAD, lambda: logger.info(f"[Watch] payload => {cfg.payload!r}"))
        logger.info(f"[Watch] payload => {cfg.payload!r}")

    logger.info(f"[Watch] Watching {cfg.config_file} — press Ctrl+C to stop")
    try:
        while True:
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("[Watch] Interrupted")
    finally:
        cfg.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
