"""
Request-level errors raised before any probe is attempted.

All of them are ValueErrors so callers that only know "bad input" keep
working; status_code is the HTTP status the API answers with.
"""

from typing import Optional


class ScanError(ValueError):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTarget(ScanError):
    pass


class InvalidPorts(ScanError):
    pass


class RateLimited(ScanError):
    status_code = 429

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after
