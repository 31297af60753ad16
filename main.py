# main.py
"""
CLI entry point for the Billbee order gateway.

Usage:
    python main.py
    python main.py --port 8080 --debug
"""

import argparse
import logging
import sys

import config
from app import create_app


def main() -> None:
    """Parse arguments, check credentials, and serve the gateway."""
    parser = argparse.ArgumentParser(
        description="HTTP gateway in front of the Billbee order API."
    )
    parser.add_argument(
        "--host",
        default=config.HOST,
        help=f"Interface to bind (default: {config.HOST})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.PORT,
        help=f"Port to listen on (default: {config.PORT})",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging and the Flask debugger",
    )

    args = parser.parse_args()

    config.setup_logging(level=logging.DEBUG if args.debug else None)
    logger = logging.getLogger(__name__)

    missing = config.missing_credentials()
    if missing:
        logger.error("Missing Billbee credentials: %s", ", ".join(missing))
        print(
            f"Set {', '.join(missing)} in the environment or your .env file.",
            file=sys.stderr,
        )
        sys.exit(1)

    logger.info("Server running on port %d", args.port)
    create_app().run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
