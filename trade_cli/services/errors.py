"""
Error types for the trade execution CLI.

Service responses with ``success: false`` are returned as values, not raised.
Everything here is either recoverable at the prompt (config, validation) or
aborts a single trade attempt and is caught by the trade executor.
"""

from typing import Optional


class TradeError(Exception):
    """Base class for all trade CLI errors."""


class ConfigError(TradeError):
    """Missing credentials or an unconfigured network."""


class ValidationError(TradeError):
    """User input failed validation."""


class OrderServiceError(TradeError):
    """The trade API answered with something other than a result envelope."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PlaceholderError(TradeError):
    """Calldata holds the signature placeholder more than once."""


class TransactionSigningError(TradeError):
    """An unsigned transaction could not be decoded or signed."""
