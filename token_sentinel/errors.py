"""Exception types raised across the sentinel pipeline."""

from typing import Optional


class SentinelError(Exception):
    """Base class for all sentinel errors."""


class ConfigError(SentinelError, ValueError):
    """Raised for invalid configuration values."""


class TokenNotFoundError(SentinelError, LookupError):
    """Requested token is not present in the store."""

    def __init__(self, mint_address: str) -> None:
        super().__init__(f"Token not found: {mint_address}")
        self.mint_address = mint_address


class AnalyzerFailure(SentinelError):
    """An analyzer raised unexpectedly while inspecting a token."""

    def __init__(self, analyzer: str, mint_address: str, reason: Optional[str] = None) -> None:
        message = f"{analyzer} failed for {mint_address}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.analyzer = analyzer
        self.mint_address = mint_address


class InsufficientDataError(SentinelError):
    """Backtest range contains no simulation logs."""


class StoreUnavailableError(SentinelError):
    """The backing token store could not be reached."""
