# errors.py
"""
Exception types for the Billbee order gateway.

Client input problems map to 4xx responses, anything that goes wrong talking
to Billbee maps to a 500 with the upstream message echoed back.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for gateway errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ClientInputError(GatewayError):
    """Raised when request parameters are missing or invalid."""

    status_code = 400


class NotFoundError(ClientInputError):
    """Raised when a requested order does not exist upstream."""

    status_code = 404


class UpstreamError(GatewayError):
    """Raised when a Billbee API call fails or returns an error payload."""

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
