"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .task_queue import ArqTaskQueue, get_redis_settings

__all__ = ['ArqTaskQueue', 'get_redis_settings']
