"""
Rate limiting for the LLM-backed endpoints
"""
import time
from collections import defaultdict, deque
from fastapi import Request, HTTPException
from typing import Deque, Dict, Iterable, Optional
import logging

from app.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding-window rate limiter

    Only paths in `limited_paths` are counted, since those are the ones that
    spend LLM calls. State is per process.
    """

    def __init__(
        self,
        requests_per_minute: int = 30,
        requests_per_hour: int = 500,
        limited_paths: Iterable[str] = ()
    ):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.limited_paths = set(limited_paths)

        # {client_id: timestamps of accepted requests within the last hour}
        self.history: Dict[str, Deque[float]] = defaultdict(deque)

    def applies_to(self, path: str) -> bool:
        return path in self.limited_paths

    def _get_client_id(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"

    def _cleanup_old_entries(self, now: float) -> None:
        """Drop timestamps older than an hour and forget idle clients"""
        cutoff_time = now - 3600

        for client_id in list(self.history.keys()):
            window = self.history[client_id]
            while window and window[0] <= cutoff_time:
                window.popleft()

            if not window:
                del self.history[client_id]

    def check(self, client_id: str, now: Optional[float] = None) -> None:
        """
        Record a request for client_id, or reject it

        Raises:
            HTTPException: 429 if a limit is exceeded
        """
        now = time.time() if now is None else now
        self._cleanup_old_entries(now)
        window = self.history[client_id]

        last_minute = sum(1 for ts in window if ts > now - 60)
        if last_minute >= self.requests_per_minute:
            logger.warning(f"Rate limit exceeded (minute): {client_id}")
            raise HTTPException(
                status_code=429,
                detail=f"Too many requests. Limit: {self.requests_per_minute} requests per minute"
            )

        if len(window) >= self.requests_per_hour:
            logger.warning(f"Rate limit exceeded (hour): {client_id}")
            raise HTTPException(
                status_code=429,
                detail=f"Too many requests. Limit: {self.requests_per_hour} requests per hour"
            )

        window.append(now)

    async def check_rate_limit(self, request: Request) -> None:
        self.check(self._get_client_id(request))


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR,
    limited_paths=["/api/answers", "/admin/questions/generate"]
)
