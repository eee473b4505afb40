from __future__ import annotations

import asyncio
import logging

from quotedesk.config.settings import settings
from quotedesk.handler import handle_quote_request
from quotedesk.service import build_orchestrator


logger = logging.getLogger(__name__)


def run_quote_refresh(symbols: list[str] | None = None) -> int:
    """Warm the cache for ``symbols`` (or the defaults). Returns quotes returned."""
    orchestrator = build_orchestrator(settings)
    event = {"symbols": symbols} if symbols is not None else {}
    body = asyncio.run(handle_quote_request(event, orchestrator, settings.default_symbols))
    if not body["success"]:
        logger.error("Scheduled quote refresh failed: %s", body.get("error"))
        return 0
    return len(body["quotes"])
