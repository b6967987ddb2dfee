"""
Caching utilities for external lookups and merchant dashboard reads.
Uses Redis (django-redis) in production, any Django cache backend otherwise.
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
GEOCODE_CACHE_TTL = 86400  # 24 hours
PLANS_CACHE_TTL = 600  # 10 minutes
STORE_SETTINGS_CACHE_TTL = 900  # 15 minutes

STORE_SETTINGS_KEY_PREFIX = 'store_settings:'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator caching the return value of a function by its arguments.
    None results are not cached.

    Usage:
        @cached_query(cache_ttl=GEOCODE_CACHE_TTL, key_prefix="geocode_search")
        def search_places(query):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            if result is not None:
                cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def get_store_settings_cache_key(store_id) -> str:
    """Cache key for a store's delivery settings"""
    return f"{STORE_SETTINGS_KEY_PREFIX}{store_id}"


def invalidate_store_settings_cache(store_id):
    """Drop cached settings for one store"""
    cache.delete(get_store_settings_cache_key(store_id))
    logger.debug(f"Invalidated store settings cache for store {store_id}")
