"""Application-level exceptions."""


class QuoteDeskError(Exception):
    """Base exception for quote fetching errors."""

    def __init__(self, message: str, code: str = "QUOTEDESK_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigurationError(QuoteDeskError):
    """Raised when the fetch path cannot run at all, e.g. no API credential."""

    def __init__(self, message: str):
        super().__init__(message, code="CONFIGURATION_ERROR")


class CacheReadError(QuoteDeskError):
    """Raised by the cache storage layer on a failed read. Never leaves QuoteCache."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Cache read failed for {key}: {reason}", code="CACHE_READ_ERROR")


class CacheWriteError(QuoteDeskError):
    """Raised by the cache storage layer on a failed write. Never leaves QuoteCache."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Cache write failed for {key}: {reason}", code="CACHE_WRITE_ERROR")
