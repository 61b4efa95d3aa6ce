#!/usr/bin/env python3
"""
UTM Connect - student social network and campaign link API.

Main entry point for the application.
"""

import argparse
import os
import sys

from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError as SettingsValidationError

from utm_connect.core.settings import get_settings
from utm_connect.core.logger import setup_structured_logging

DEFAULT_PORT = 5000


def parse_safe_port(value: str) -> int:
    """Parse a TCP port, falling back to the default for garbage or privileged values."""
    try:
        port = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid port {value!r}, using {DEFAULT_PORT}")
        return DEFAULT_PORT
    if not 1024 <= port <= 65535:
        logger.warning(f"Port {port} out of range, using {DEFAULT_PORT}")
        return DEFAULT_PORT
    return port


def main() -> None:
    """Main entry point."""
    # PORT and UVICORN_HOST may live in .env next to the app settings
    load_dotenv()

    parser = argparse.ArgumentParser(description="UTM Connect API server")
    # Default to localhost only. Set UVICORN_HOST=0.0.0.0 to bind to all interfaces.
    parser.add_argument("--host", default=os.getenv("UVICORN_HOST", "127.0.0.1"))
    parser.add_argument("--port", default=os.getenv("PORT", str(DEFAULT_PORT)))
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (defaults to LOG_LEVEL)",
    )
    args = parser.parse_args()

    try:
        settings = get_settings()
    except SettingsValidationError as e:
        # Logging is not configured yet; stderr is all we have
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(1)

    setup_structured_logging(args.log_level or settings.log_level, json_format=settings.log_json)

    import uvicorn

    port = parse_safe_port(args.port)
    logger.info(f"Starting UTM Connect on {args.host}:{port} (env={settings.env})")
    uvicorn.run(
        "web.app:create_app",
        factory=True,
        host=args.host,
        port=port,
        log_level=(args.log_level or settings.log_level).lower(),
    )


if __name__ == "__main__":
    main()
