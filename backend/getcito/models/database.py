"""
GetCito Database Models
PostgreSQL with SQLAlchemy ORM
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, JSON, Index,
    UniqueConstraint, func
)
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# BRANDS & COMPETITORS
# ============================================================================

class Brand(Base):
    """A tracked brand owned by one user"""
    __tablename__ = "brands"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(128), nullable=False, index=True)  # auth provider uid
    name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=False)
    aliases = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    competitors = relationship(
        "Competitor",
        back_populates="brand",
        cascade="all, delete-orphan",
        order_by="Competitor.position",
        lazy="selectin",
    )
    query_results = relationship(
        "QueryResultRecordRow",
        back_populates="brand",
        cascade="all, delete-orphan",
        order_by="QueryResultRecordRow.sequence",
    )


class Competitor(Base):
    """Competitor tracked against a brand"""
    __tablename__ = "competitors"

    id = Column(String(36), primary_key=True, default=_uuid)
    brand_id = Column(String(36), ForeignKey("brands.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=True)
    aliases = Column(JSON, default=list, nullable=False)
    position = Column(Integer, default=0, nullable=False)  # display order

    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)

    brand = relationship("Brand", back_populates="competitors")

    __table_args__ = (
        UniqueConstraint("brand_id", "name", name="uq_competitor_brand_name"),
    )


# ============================================================================
# QUERY HISTORY
# ============================================================================

class QueryResultRecordRow(Base):
    """One processed query with raw per-provider results. Append-only."""
    __tablename__ = "query_result_records"

    id = Column(String(36), primary_key=True, default=_uuid)
    brand_id = Column(String(36), ForeignKey("brands.id", ondelete="CASCADE"), nullable=False)
    sequence = Column(Integer, nullable=False)  # submission order within the brand

    query = Column(String, nullable=False, default="")
    keyword = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    date = Column(DateTime(timezone=True), nullable=True)
    processing_session_id = Column(String(128), nullable=False, default="unknown")
    processing_session_timestamp = Column(DateTime(timezone=True), nullable=True)
    results = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)

    brand = relationship("Brand", back_populates="query_results")

    __table_args__ = (
        UniqueConstraint("brand_id", "sequence", name="uq_query_result_brand_sequence"),
        Index("ix_query_result_brand_session", "brand_id", "processing_session_id"),
    )

    def to_record(self) -> dict:
        """Raw history record as fed to the analytics pipeline"""
        return {
            "id": self.id,
            "query": self.query,
            "keyword": self.keyword,
            "category": self.category,
            "date": self.date,
            "processing_session_id": self.processing_session_id,
            "processing_session_timestamp": self.processing_session_timestamp,
            "results": self.results,
            "sequence": self.sequence,
        }
