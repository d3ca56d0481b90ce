"""
Caching utilities for expensive dashboard queries
Uses Redis for caching when REDIS_URL is configured
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
LIFECYCLE_SUMMARY_CACHE_TTL = 300  # 5 minutes
BADGE_COUNTS_CACHE_TTL = 120  # 2 minutes
COMPLIANCE_REPORT_CACHE_TTL = 600  # 10 minutes

LIFECYCLE_SUMMARY_PREFIX = "lifecycle_summary"
BADGE_COUNTS_PREFIX = "badge_counts"
COMPLIANCE_REPORT_PREFIX = "compliance_report"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=120, key_prefix="lifecycle_summary")
        def get_expensive_data(filters):
            return data
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
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Note: This requires Redis with SCAN command support
    """
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")

        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except Exception as e:
        logger.debug(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_lifecycle_cache():
    """Invalidate lifecycle summary and navigation badges"""
    invalidate_cache_pattern(LIFECYCLE_SUMMARY_PREFIX)
    invalidate_cache_pattern(BADGE_COUNTS_PREFIX)


def invalidate_compliance_cache():
    """Invalidate CE compliance reports"""
    invalidate_cache_pattern(COMPLIANCE_REPORT_PREFIX)
