# errors.py
"""Typed failures for whitelist registration.

Each error carries a short ``kind`` so the presentation layer can pick a
distinct message per failure without parsing text.
"""


class WhitelistError(Exception):
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"ok": False, "error": self.kind, "message": self.message}


class ValidationError(WhitelistError, ValueError):
    kind = "validation"


class NotFoundError(WhitelistError):
    kind = "not_found"


class MismatchError(NotFoundError):
    # candidate exists but its spelling differs; callers treat it as not found
    kind = "mismatch"


class RateLimitError(WhitelistError):
    kind = "rate_limited"


class UpstreamUnavailableError(WhitelistError):
    kind = "upstream_unavailable"


class UpstreamTimeoutError(WhitelistError, TimeoutError):
    kind = "timeout"


class UpstreamError(WhitelistError):
    kind = "upstream_error"


class StoreError(WhitelistError):
    kind = "store_error"


class StoreTimeoutError(StoreError, UpstreamTimeoutError):
    kind = "store_timeout"
