"""Logging configuration."""

import logging
import sys

from quotedesk.config.settings import Settings, settings as default_settings


def setup_logging(config: Settings | None = None) -> None:
    """Configure application logging."""
    config = config or default_settings

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("rq.worker").setLevel(logging.INFO)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
