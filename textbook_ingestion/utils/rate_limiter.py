"""
Rate limiting for the heavy ingestion endpoints
"""
import time
from collections import defaultdict
from fastapi import Request, HTTPException
from typing import Dict, List
import logging

logger = logging.getLogger(__name__)


class IngestionRateLimiter:
    """
    In-memory sliding-window limiter for upload, reprocess and preview

    Extraction of a large PDF is a batch job, so these routes are limited
    per client per hour. Used as a FastAPI dependency.
    """

    WINDOW_SECONDS = 3600

    def __init__(self, requests_per_hour: int = 30):
        self.requests_per_hour = requests_per_hour

        # Storage: {client_id: [timestamps]}
        self.tracker: Dict[str, List[float]] = defaultdict(list)

    def _get_client_id(self, request: Request) -> str:
        """Extract client identifier from request"""
        user_id = getattr(request.state, "user_id", None)
        if user_id is not None:
            return str(user_id)

        # Fallback to IP address
        return request.client.host if request.client else "unknown"

    def _cleanup_old_entries(self, cutoff: float) -> None:
        """Remove timestamps older than the window and clients left with none"""
        for client_id in list(self.tracker.keys()):
            self.tracker[client_id] = [ts for ts in self.tracker[client_id] if ts > cutoff]

            # Remove empty entries
            if not self.tracker[client_id]:
                del self.tracker[client_id]

    def check(self, request: Request) -> None:
        """
        Record one ingestion request for the client

        Raises:
            HTTPException: 429 once the hourly budget is spent
        """
        client_id = self._get_client_id(request)
        now = time.time()
        self._cleanup_old_entries(now - self.WINDOW_SECONDS)

        recent = self.tracker[client_id]

        if len(recent) >= self.requests_per_hour:
            retry_after = int(recent[0] + self.WINDOW_SECONDS - now) + 1
            logger.warning(f"Ingestion rate limit exceeded: {client_id}")
            raise HTTPException(
                status_code=429,
                detail=f"Too many ingestion requests. Limit: {self.requests_per_hour} per hour. "
                       f"Retry in {retry_after}s"
            )

        recent.append(now)

        logger.debug(f"Ingestion rate check passed: {client_id} ({len(recent)}/{self.requests_per_hour})")

    def reset(self) -> None:
        self.tracker.clear()

    async def __call__(self, request: Request) -> None:
        self.check(request)


# Global instance
from textbook_ingestion.config import settings
ingestion_rate_limiter = IngestionRateLimiter(
    requests_per_hour=settings.INGESTION_RATE_LIMIT_PER_HOUR
)
