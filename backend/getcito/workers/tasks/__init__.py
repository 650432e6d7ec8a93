"""
Celery Tasks
"""

from .analytics_tasks import refresh_lifetime_analytics, refresh_all_lifetime_analytics

__all__ = [
    "refresh_lifetime_analytics",
    "refresh_all_lifetime_analytics",
]
