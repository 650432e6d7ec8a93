"""
Query History Schemas
Records of processed queries and the raw per-provider results stored with them
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class QueryResultRecord(BaseModel):
    """
    One processed query with raw results keyed by provider
    ("chatgpt", "googleAI", "perplexity").
    """
    id: Optional[str] = None
    query: str = ""
    keyword: Optional[str] = None
    category: Optional[str] = None
    date: Optional[datetime] = None
    processing_session_id: str = Field(
        "unknown",
        validation_alias=AliasChoices("processing_session_id", "processingSessionId"),
    )
    processing_session_timestamp: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices(
            "processing_session_timestamp", "processingSessionTimestamp"
        ),
    )
    results: Dict[str, Any] = {}
    sequence: int = 0  # submission order within the brand history

    @field_validator("date", "processing_session_timestamp")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @property
    def effective_timestamp(self) -> datetime:
        """When the query was processed, for chronological ordering"""
        return self.date or self.processing_session_timestamp or _EPOCH

    @property
    def session_timestamp(self) -> datetime:
        return self.processing_session_timestamp or self.date or _EPOCH

    @property
    def record_key(self) -> str:
        """Stable identifier used in derived citation ids"""
        return self.id or f"q{self.sequence}"


class QueryResultsAppend(BaseModel):
    """A processing session's worth of results to append to a brand history"""
    processing_session_id: Optional[str] = None
    processing_session_timestamp: Optional[datetime] = None
    records: List[QueryResultRecord] = Field(..., min_length=1)

    @field_validator("processing_session_timestamp")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class QueryResultsAppended(BaseModel):
    """Append acknowledgement"""
    brand_id: str
    processing_session_id: str
    records_appended: int
    total_records: int
