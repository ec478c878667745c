"""RQ queues for the reminder scan, sharing one Redis connection per process."""

from functools import lru_cache

import rq
from redis import Redis

from invoice_engine.core.config import get_settings

REMINDER_QUEUE = "reminders"


@lru_cache(maxsize=1)
def redis_connection() -> Redis:
    return Redis.from_url(get_settings().REDIS_URL)


def get_queue(name: str = REMINDER_QUEUE) -> rq.Queue:
    return rq.Queue(name, connection=redis_connection())
