from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

import uvicorn

from servicelife.app import create_app
from servicelife.settings import AppSettings

logger = logging.getLogger("servicelife")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="servicelife",
        description="Serve the dependency injection lifetime demonstration.",
    )
    parser.add_argument("--host", help="Interface to bind (default: SERVICELIFE_HOST).")
    parser.add_argument("--port", type=int, help="Port to bind (default: SERVICELIFE_PORT).")
    parser.add_argument(
        "--log-level",
        choices=["critical", "error", "warning", "info", "debug"],
        help="Logging level (default: SERVICELIFE_LOG_LEVEL).",
    )
    parser.add_argument("--debug", action="store_true", default=None, help="Enable debug mode.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    overrides = {
        "host": args.host,
        "port": args.port,
        "log_level": args.log_level,
        "debug": args.debug,
    }
    settings = AppSettings(**{key: value for key, value in overrides.items() if value is not None})

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Listening on http://%s:%d", settings.host, settings.port)

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
