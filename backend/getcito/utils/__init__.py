"""
Utility modules for GetCito
"""

from .database import (
    get_db,
    get_db_context,
    init_db,
    close_db,
)
from .security import (
    verify_id_token,
    generate_history_digest,
    generate_cache_key,
)
from .cache import (
    analytics_cache,
    AnalyticsCache,
    CacheService,
    get_redis,
    close_redis,
)
from .domains import domain_from_url, normalize_domain

__all__ = [
    # Database
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
    # Security
    "verify_id_token",
    "generate_history_digest",
    "generate_cache_key",
    # Cache
    "analytics_cache",
    "AnalyticsCache",
    "CacheService",
    "get_redis",
    "close_redis",
    # Domains
    "domain_from_url",
    "normalize_domain",
]
