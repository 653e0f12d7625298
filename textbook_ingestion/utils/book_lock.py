"""
Per-book ingestion lock

Two runs against the same book would interleave their chunk replacement,
so callers hold this lock around IngestionService.process_pdf. Redis locks
cover multiple workers; without Redis the lock is only process-wide.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict

import redis
from redis.exceptions import LockError

from textbook_ingestion.config import settings
from textbook_ingestion.exceptions import IngestionInProgress

logger = logging.getLogger(__name__)


class BookLockService:
    """Redis-backed mutual exclusion per book id"""

    def __init__(self, redis_url: str = None):
        redis_url = settings.REDIS_URL if redis_url is None else redis_url
        self.redis_client = None

        if redis_url:
            try:
                self.redis_client = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=5
                )
                # Test connection
                self.redis_client.ping()
                logger.info("Redis connection established for book locks")
            except Exception as e:
                logger.warning(f"Redis connection failed: {str(e)}. Using in-process book locks.")
                self.redis_client = None

        self._local_locks: Dict[str, threading.Lock] = {}
        self._registry_guard = threading.Lock()

    def lock_key(self, book_id) -> str:
        return f"ingestion:book:{book_id}"

    @contextmanager
    def hold(self, book_id, wait: float = None):
        """
        Hold the book's lock for the duration of the block

        Args:
            book_id: Book being ingested
            wait: Seconds to wait for the lock (default BOOK_LOCK_WAIT)

        Raises:
            IngestionInProgress: lock still held by another run after waiting
        """
        wait = settings.BOOK_LOCK_WAIT if wait is None else wait
        key = self.lock_key(book_id)

        if self.redis_client is not None:
            lock = self.redis_client.lock(
                key,
                timeout=settings.BOOK_LOCK_TIMEOUT,
                blocking_timeout=wait
            )
            acquired = lock.acquire()
        else:
            lock = self._local_lock(key)
            acquired = lock.acquire(timeout=wait)

        if not acquired:
            logger.warning(f"Book lock busy: {key}")
            raise IngestionInProgress(book_id)

        logger.debug(f"Book lock acquired: {key}")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError as e:
                # Redis expired the lock before the run finished
                logger.warning(f"Book lock {key} expired before release: {str(e)}")

    def _local_lock(self, key: str) -> threading.Lock:
        with self._registry_guard:
            if key not in self._local_locks:
                self._local_locks[key] = threading.Lock()
            return self._local_locks[key]


# Global instance
book_lock = BookLockService()
