"""Utility modules for ValueQuote functions."""

from utils.quote_logger import (
    configure_logging,
    log_quote_breakdown,
)

__all__ = [
    "configure_logging",
    "log_quote_breakdown",
]
