"""
arq-backed task queue.
Separated from business logic for clean architecture.
"""

from typing import Any, Optional

from arq.connections import ArqRedis, RedisSettings

from app.core.config import settings
from app.core.logging import get_logger
from app.services.interfaces.task_queue import TaskQueue

logger = get_logger(__name__)


def get_redis_settings() -> RedisSettings:
    """Redis connection settings for the worker and its queue."""
    return RedisSettings.from_dsn(settings.REDIS_URL)


class ArqTaskQueue(TaskQueue):
    """Enqueues tasks onto the worker's arq queue."""

    def __init__(self, redis: ArqRedis, queue_name: Optional[str] = None):
        self.redis = redis
        self.queue_name = queue_name or settings.TASK_QUEUE_NAME

    async def enqueue(self, task_name: str, payload: dict[str, Any]) -> None:
        job = await self.redis.enqueue_job(task_name, _queue_name=self.queue_name, **payload)
        if job is None:
            # arq refuses a job id that is already queued
            logger.warning("task_not_enqueued", task=task_name, reason="duplicate_job_id")
            return
        logger.debug("task_enqueued", task=task_name, job_id=job.job_id)
