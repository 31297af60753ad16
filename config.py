# file: config.py
"""
Configuration for the Billbee order gateway and logging behavior.
"""

import os
import logging
import sys
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# centralized logging setup
def setup_logging(level=None):
    """Configure logging once. Safe to call multiple times (idempotent)."""
    root = logging.getLogger()
    if root.handlers:
        return
    if level is None:
        level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    root.setLevel(level)
    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    root.addHandler(console)

    if LOG_FILE:
        file_handler = logging.FileHandler(LOG_FILE)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)


# Billbee credentials
BILLBEE_BASE_URL = os.getenv("BILLBEE_BASE_URL", "https://app.billbee.io/api/v1")
BILLBEE_API_KEY = os.getenv("BILLBEE_API_KEY")
BILLBEE_USER = os.getenv("BILLBEE_USER")
BILLBEE_PASSWORD = os.getenv("BILLBEE_PASSWORD")
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "30"))

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

# Pagination (Billbee caps pageSize at 250)
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "250"))
ZERO_VALUE_MAX_PAGES = int(os.getenv("ZERO_VALUE_MAX_PAGES", "20"))
LOOKUP_MAX_PAGES = int(os.getenv("LOOKUP_MAX_PAGES", "100"))

# Comment extraction
COMMENT_MARKER = os.getenv("COMMENT_MARKER", "El zu")
COMMENT_FIELD = os.getenv("COMMENT_FIELD", "SellerComment")
EXTRACTED_FIELD = os.getenv("EXTRACTED_FIELD", "ExtractedReference")
COMMENT_PREFIX_LETTER = os.getenv("COMMENT_PREFIX_LETTER", "D")
COMMENT_PREFIX_ENABLED = _env_bool("COMMENT_PREFIX_ENABLED", False)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")


def missing_credentials() -> list[str]:
    """Names of required Billbee credentials that are not set."""
    required = {
        "BILLBEE_API_KEY": BILLBEE_API_KEY,
        "BILLBEE_USER": BILLBEE_USER,
        "BILLBEE_PASSWORD": BILLBEE_PASSWORD,
    }
    return [name for name, value in required.items() if not value]


if __name__ == "__main__":
    print(f"Base URL: {BILLBEE_BASE_URL}")
    print(f"Port: {PORT}")
    print(f"Missing credentials: {missing_credentials() or 'none'}")
