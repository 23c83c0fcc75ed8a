"""Job queue provider implementations.

Two implementations of IJobQueueProvider:
    1. RedisJobQueue    - durable, shared between API producers and workers.
    2. InMemoryJobQueue - single-process, for tests and local runs.
"""

from src.providers.queue.memory_queue import InMemoryJobQueue
from src.providers.queue.redis_queue import RedisJobQueue

__all__ = ["InMemoryJobQueue", "RedisJobQueue"]
