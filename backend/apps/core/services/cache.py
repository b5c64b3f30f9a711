"""
Application cache on top of the Django cache backend.

Keys are grouped into namespaces (stories, comments, tags, users). Each
namespace has a version number stored in the cache; bumping the version makes
every key built under the old version unreachable, which is how whole groups
are invalidated without pattern deletes.
"""

import logging
from typing import Any, Callable, Optional
from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

NAMESPACES = ('stories', 'comments', 'tags', 'users', 'recommendations')


class CacheService:
    """
    Thin wrapper adding prefixes, namespaces and hit statistics.
    """

    DEFAULT_TTL = 3600

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix or getattr(settings, 'CACHE_KEY_PREFIX', 'linkboard')
        self.hits = 0
        self.misses = 0

    def _key(self, key: str, namespace: Optional[str] = None) -> str:
        if namespace:
            return f'{self.prefix}:{namespace}:v{self._namespace_version(namespace)}:{key}'
        return f'{self.prefix}:{key}'

    def _namespace_version(self, namespace: str) -> int:
        version_key = f'{self.prefix}:ns:{namespace}'
        version = cache.get(version_key)
        if version is None:
            version = 1
            cache.set(version_key, version, timeout=None)
        return version

    def get(self, key: str, default: Any = None, namespace: Optional[str] = None) -> Any:
        value = cache.get(self._key(key, namespace))
        if value is None:
            self.misses += 1
            return default
        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl: int = DEFAULT_TTL,
            namespace: Optional[str] = None) -> None:
        cache.set(self._key(key, namespace), value, timeout=ttl)

    def delete(self, key: str, namespace: Optional[str] = None) -> None:
        cache.delete(self._key(key, namespace))

    def remember(self, key: str, ttl: int, callback: Callable[[], Any],
                 namespace: Optional[str] = None) -> Any:
        """
        Return the cached value, computing and storing it on a miss.

        None results are not cached.
        """
        value = self.get(key, namespace=namespace)
        if value is not None:
            return value

        value = callback()
        if value is not None:
            self.set(key, value, ttl, namespace=namespace)
        return value

    def invalidate_namespace(self, namespace: str) -> None:
        version_key = f'{self.prefix}:ns:{namespace}'
        try:
            cache.incr(version_key)
        except ValueError:
            cache.set(version_key, 2, timeout=None)
        logger.debug(f'Cache namespace {namespace} invalidated')

    def invalidate_story(self, story_id) -> None:
        self.delete(f'story:{story_id}')
        self.delete(f'story:{story_id}:comments')
        self.invalidate_namespace('stories')
        self.invalidate_namespace('recommendations')

    def invalidate_comment(self, comment_id, story_id=None) -> None:
        self.delete(f'comment:{comment_id}')
        self.invalidate_namespace('comments')
        if story_id is not None:
            self.invalidate_story(story_id)

    def invalidate_user(self, user_id) -> None:
        self.delete(f'user:{user_id}')
        self.invalidate_namespace('users')

    def flush(self) -> None:
        for namespace in NAMESPACES:
            self.invalidate_namespace(namespace)

    def get_stats(self) -> dict:
        total = self.hits + self.misses
        return {
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': round(self.hits / total, 4) if total else 0.0,
            'backend': settings.CACHES['default']['BACKEND'],
        }


# Create singleton instance
cache_service = CacheService()
