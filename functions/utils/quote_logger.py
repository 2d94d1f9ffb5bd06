"""Quote breakdown logger for ValueQuote.

Provides structlog setup and highly visible, bannered summaries of computed
quotes for local debugging. Banners print only when verbose quote logging
is switched on; the structured event is always emitted.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

import structlog

from config.settings import settings

logger = structlog.get_logger()

# Visual markers
BANNER_WIDTH = 80
QUOTE_BANNER_CHAR = "═"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structlog with timestamps, a level filter and console output."""
    level_name = (level or settings.log_level).upper()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
    )


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _format_json(data: Any, indent: int = 2) -> str:
    """Format data as pretty JSON string."""
    try:
        return json.dumps(data, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


def log_quote_breakdown(
    title: str,
    summary: Dict[str, Any],
    prices: Union[Dict[str, int], int, None] = None
) -> None:
    """Log a computed quote, with a printed banner in verbose mode."""
    if settings.verbose_quote_logging:
        timestamp = datetime.now(timezone.utc).isoformat()

        print("\n")
        print(QUOTE_BANNER_CHAR * BANNER_WIDTH)
        print(_create_banner(QUOTE_BANNER_CHAR, title))
        print(QUOTE_BANNER_CHAR * BANNER_WIDTH)
        print(f"║ Timestamp       : {timestamp}")
        width = max((len(key) for key in summary), default=0)
        for key, value in summary.items():
            print(f"║ {key.ljust(width)} : {value}")
        print(QUOTE_BANNER_CHAR * BANNER_WIDTH)
        print("║ PRICES:")
        for line in _format_json(prices).split('\n'):
            print(f"  {line}")
        print(QUOTE_BANNER_CHAR * BANNER_WIDTH)
        print("\n")

    logger.debug(
        "quote_breakdown_logged",
        title=title,
        summary_keys=list(summary.keys()),
        prices=prices
    )
