"""
Per-action rate limiting for user initiated operations.

Each action (story submission, commenting, voting, ...) has its own window and
limit. State lives in the Django cache under rate_limit:{action}:{md5(identifier)}.
"""

import time
import hashlib
import logging
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict
from django.core.cache import cache

from apps.core.exceptions import RateLimited

logger = logging.getLogger(__name__)


@dataclass
class RateLimitConfig:
    """
    Configuration for one rate limited action.

    Attributes:
        max_requests: Maximum attempts allowed in the window
        window_seconds: Duration of the window in seconds
    """
    max_requests: int
    window_seconds: int

    def __post_init__(self):
        """Validate configuration values."""
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if self.window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")


ACTION_RATE_LIMITS: Dict[str, RateLimitConfig] = {
    'story_submission': RateLimitConfig(max_requests=5, window_seconds=86400),
    'comment_creation': RateLimitConfig(max_requests=50, window_seconds=3600),
    'voting': RateLimitConfig(max_requests=200, window_seconds=3600),
    'login_attempts': RateLimitConfig(max_requests=5, window_seconds=900),
    'search': RateLimitConfig(max_requests=100, window_seconds=3600),
    'password_reset': RateLimitConfig(max_requests=3, window_seconds=3600),
}


@dataclass
class RateLimitState:
    """
    Attempts counted in the current window.
    """
    count: int = 0
    window_start: float = field(default_factory=time.time)


class RateLimitService:
    """
    Fixed window counter per (action, identifier).

    Unknown actions are never limited.
    """

    CACHE_PREFIX = 'rate_limit'

    def __init__(self, limits: Optional[Dict[str, RateLimitConfig]] = None):
        self.limits = dict(limits if limits is not None else ACTION_RATE_LIMITS)

    def _get_cache_key(self, action: str, identifier: str) -> str:
        digest = hashlib.md5(str(identifier).encode('utf-8')).hexdigest()
        return f'{self.CACHE_PREFIX}:{action}:{digest}'

    def _get_state(self, action: str, identifier: str, config: RateLimitConfig) -> RateLimitState:
        state_dict = cache.get(self._get_cache_key(action, identifier))
        if not state_dict:
            return RateLimitState()

        state = RateLimitState(**state_dict)
        if time.time() >= state.window_start + config.window_seconds:
            return RateLimitState()
        return state

    def _save_state(self, action: str, identifier: str, state: RateLimitState,
                    config: RateLimitConfig) -> None:
        cache.set(
            self._get_cache_key(action, identifier),
            asdict(state),
            timeout=config.window_seconds,
        )

    def get_limit(self, action: str) -> Optional[RateLimitConfig]:
        return self.limits.get(action)

    def is_allowed(self, action: str, identifier: str) -> bool:
        """
        Record an attempt and report whether it is within the limit.

        A refused attempt is not counted.
        """
        config = self.limits.get(action)
        if config is None:
            return True

        state = self._get_state(action, identifier, config)
        if state.count >= config.max_requests:
            return False

        state.count += 1
        self._save_state(action, identifier, state, config)
        return True

    def check(self, action: str, identifier: str) -> None:
        """
        Like is_allowed() but raises RateLimited when the limit is hit.
        """
        if self.is_allowed(action, identifier):
            return

        retry_after = self.get_reset_time(action, identifier)
        logger.info(f'Rate limit hit for {action} ({identifier})')
        raise RateLimited(
            f'Too many {action.replace("_", " ")} attempts. Please try again later.',
            details={
                'action': action,
                'limit': self.limits[action].max_requests,
                'retry_after': retry_after,
            },
        )

    def get_remaining_attempts(self, action: str, identifier: str) -> Optional[int]:
        """Attempts left in the current window, None for unlimited actions."""
        config = self.limits.get(action)
        if config is None:
            return None
        state = self._get_state(action, identifier, config)
        return max(0, config.max_requests - state.count)

    def get_reset_time(self, action: str, identifier: str) -> int:
        """Seconds until the current window ends, 0 when no window is open."""
        config = self.limits.get(action)
        if config is None:
            return 0

        state_dict = cache.get(self._get_cache_key(action, identifier))
        if not state_dict:
            return 0

        remaining = state_dict['window_start'] + config.window_seconds - time.time()
        return max(0, int(remaining + 0.999))

    def reset_limit(self, action: str, identifier: str) -> None:
        cache.delete(self._get_cache_key(action, identifier))


# Create singleton instance
rate_limit_service = RateLimitService()
