import threading
import time
from collections import defaultdict
from typing import Any, Dict, Optional
import logging

from fastapi import Depends, HTTPException, Request, status

from app.config import get_rate_limit_config
from app.domain.models import User
from app.auth.dependencies import get_current_active_user

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window, in-memory request counter keyed by user (or client IP)."""

    def __init__(self, policies: Dict[str, Dict[str, int]], cleanup_interval: float = 60):
        self.policies = policies
        self.cleanup_interval = cleanup_interval
        self._last_cleanup = time.time()
        self._lock = threading.Lock()
        self.storage: Dict[str, Dict[str, float]] = defaultdict(lambda: {
            "count": 0,
            "window_start": time.time()
        })

    def _get_client_key(self, policy_name: str, request: Request, user_id: Optional[int] = None) -> str:
        if user_id is not None:
            return f"{policy_name}:user_{user_id}"

        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            client_ip = forwarded_for.split(",")[0].strip()
        else:
            client_ip = request.client.host if request.client else "unknown"
        return f"{policy_name}:ip_{client_ip}"

    def _cleanup_expired(self, now: float):
        """Drop keys whose window has run out. Caller holds the lock."""
        expired = [
            key for key, entry in self.storage.items()
            if now - entry["window_start"] >= self.policies[key.split(":", 1)[0]]["window"]
        ]
        for key in expired:
            del self.storage[key]
        self._last_cleanup = now
        if expired:
            logger.debug(f"Pruned {len(expired)} expired rate limit entries")

    def is_allowed(self, request: Request, policy_name: str, user_id: Optional[int] = None) -> tuple[bool, Dict[str, Any]]:
        policy = self.policies[policy_name]
        key = self._get_client_key(policy_name, request, user_id)
        now = time.time()

        with self._lock:
            if now - self._last_cleanup >= self.cleanup_interval:
                self._cleanup_expired(now)

            entry = self.storage[key]
            if now - entry["window_start"] >= policy["window"]:
                entry["count"] = 0
                entry["window_start"] = now

            entry["count"] += 1
            retry_after = int(entry["window_start"] + policy["window"] - now) + 1
            return entry["count"] <= policy["requests"], {
                "limit": policy["requests"],
                "remaining": max(policy["requests"] - entry["count"], 0),
                "retry_after": retry_after
            }

    def reset(self):
        with self._lock:
            self.storage.clear()


rate_limiter = RateLimiter(get_rate_limit_config())


def write_rate_limit(
    request: Request,
    current_user: User = Depends(get_current_active_user)
) -> User:
    """Limit how fast a user can submit ratings and reviews."""
    allowed, info = rate_limiter.is_allowed(request, "write", user_id=current_user.id)
    if not allowed:
        logger.warning(f"Write rate limit exceeded for user {current_user.id}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many ratings or reviews submitted, please try again later.",
            headers={"Retry-After": str(info["retry_after"])}
        )
    return current_user
