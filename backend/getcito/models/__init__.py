"""
Database Models
"""

from .database import Base, Brand, Competitor, QueryResultRecordRow

__all__ = [
    "Base",
    "Brand",
    "Competitor",
    "QueryResultRecordRow",
]
