"""
Application errors for clean API error handling.

NetworkError surfaces when the Nutella API is unreachable and no cached copy
exists, so the API can return 502 with a user-facing message. Cache errors
stay inside the cache layer except CacheParseError, which is never treated
as a miss.
"""


class NutellaError(Exception):
    """Base class for errors raised by the Nutella client stack."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NetworkError(NutellaError):
    """Raised when a request to the Nutella API fails (transport or HTTP status)."""


class CacheIOError(NutellaError):
    """Raised when the cache directory cannot be prepared. Callers fall back to a direct fetch."""


class CacheParseError(NutellaError):
    """Raised when a cache file exists but does not contain valid JSON."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Malformed cache file {path}: {reason}")
