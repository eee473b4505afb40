from __future__ import annotations

from rq import Queue
from rq.job import Job

from quotedesk.config.settings import settings
from quotedesk.jobs.quote_refresh import run_quote_refresh
from quotedesk.service import get_redis_client


def get_queue(name: str | None = None) -> Queue:
    queue_name = name or settings.quote_queue_name
    return Queue(name=queue_name, connection=get_redis_client(settings.redis_url))


def enqueue_quote_refresh(symbols: list[str] | None = None) -> Job:
    queue = get_queue()
    return queue.enqueue(run_quote_refresh, symbols=symbols)
