#!/usr/bin/env python3
"""Run the order webhook service.

Reads settings from the environment (and a local .env file), then serves
``POST /webhook`` with uvicorn.

Usage examples:
    # Listen on $PORT (default 3000)
    uv run scripts/serve.py

    # Explicit host/port and debug logging
    uv run scripts/serve.py --host 127.0.0.1 --port 8000 --log-level debug
"""

import argparse
import logging
import sys

import uvicorn
from dotenv import load_dotenv

from fish_order import Settings, create_dispatcher
from fish_order.server import create_app

logger = logging.getLogger("fish_order.serve")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the order webhook service")
    parser.add_argument(
        "--host", default="0.0.0.0",
        help="Interface to bind (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port", type=int, default=None,
        help="Port to listen on (default: $PORT or 3000)",
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--env-file", default=None,
        help="Path to a .env file (default: search from the working directory)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    load_dotenv(args.env_file)

    try:
        settings = Settings.from_env()
        dispatcher = create_dispatcher(settings)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    port = args.port or settings.port

    app = create_app(dispatcher)
    logger.info("Serving webhook on %s:%d", args.host, port)
    uvicorn.run(app, host=args.host, port=port, log_level=level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
