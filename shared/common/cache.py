# shared/common/cache.py
"""
Caching Utilities

Read-mostly lookups are cached through Django's cache framework. The
backend behind an alias decides bounds and expiry; the booking service
configures its ``catalog`` alias as a bounded LocMemCache, which evicts
the least recently used entry when full. Never cache values that gate
a write.
"""

import json
import logging
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)


def stable_key(params: Dict[str, Any]) -> str:
    """
    Build a canonical cache key from request parameters.

    Dict keys are sorted recursively and list values are sorted, so
    two requests differing only in parameter order share a key.
    """
    return json.dumps(_canonical(params), sort_keys=True, separators=(',', ':'), default=str)


def _canonical(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return sorted((_canonical(v) for v in value), key=lambda v: json.dumps(v, sort_keys=True, default=str))
    return value


class CacheKeyBuilder:
    """
    Helper class for building consistent cache keys.
    """

    def __init__(self, service_name: str):
        self.service_name = service_name

    def build(self, *parts: str) -> str:
        """Build cache key from parts"""
        return f"{self.service_name}:{':'.join(str(p) for p in parts)}"

    def params(self, resource: str, params: Dict[str, Any]) -> str:
        """Key for a lookup identified by request parameters"""
        return self.build(resource, stable_key(params))

    def room_type(self, hotel_id: str, room_type_id: str) -> str:
        return self.params('room_type', {'hotel_id': hotel_id, 'room_type_id': room_type_id})


class ResponseCache:
    """
    Response cache over a Django cache alias.

    Backend errors are logged and treated as misses, so a broken cache
    only costs an extra upstream call.
    """

    def __init__(self, alias: str = 'catalog', enabled: Optional[bool] = None):
        self.alias = alias
        if enabled is None:
            enabled = getattr(settings, 'CATALOG_CACHE_ENABLED', True)
        self.enabled = enabled

    @property
    def backend(self):
        return caches[self.alias]

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache, or None if missing or expired"""
        if not self.enabled:
            return None
        try:
            return self.backend.get(key)
        except Exception as e:
            logger.error(f"Cache get error: {e}")
            return None

    def set(self, key: str, value: Any) -> bool:
        """Store value with the alias' default timeout"""
        if not self.enabled:
            return False
        try:
            self.backend.set(key, value)
            return True
        except Exception as e:
            logger.error(f"Cache set error: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache"""
        try:
            return bool(self.backend.delete(key))
        except Exception as e:
            logger.error(f"Cache delete error: {e}")
            return False

    def clear(self):
        self.backend.clear()
