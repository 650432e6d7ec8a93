"""
History Service
Brands, competitors and the append-only query result history
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from getcito.models import Brand, Competitor, QueryResultRecordRow
from getcito.schemas.brand import (
    BrandCreate,
    BrandDescriptor,
    CompetitorCreate,
    CompetitorDescriptor,
)
from getcito.schemas.query import QueryResultsAppend, QueryResultsAppended

logger = logging.getLogger(__name__)


class BrandNotFoundError(Exception):
    """Brand does not exist or belongs to another user"""
    pass


class DuplicateCompetitorError(Exception):
    """A competitor with the same name is already tracked for the brand"""
    pass


class HistoryConflictError(Exception):
    """A concurrent append took the same history sequence numbers"""
    pass


def to_descriptors(brand: Brand) -> Tuple[BrandDescriptor, List[CompetitorDescriptor]]:
    """Analytics descriptors for a loaded brand"""
    descriptor = BrandDescriptor(
        id=brand.id,
        user_id=brand.user_id,
        name=brand.name,
        domain=brand.domain,
        aliases=brand.aliases or [],
    )
    competitors = [
        CompetitorDescriptor(id=c.id, name=c.name, domain=c.domain, aliases=c.aliases or [])
        for c in brand.competitors
    ]
    return descriptor, competitors


class HistoryRepository:
    """Reads and appends brand history for one database session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_brand(self, user_id: str, data: BrandCreate) -> Brand:
        names = [c.name.lower() for c in data.competitors]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise DuplicateCompetitorError(f"Duplicate competitor names: {', '.join(sorted(duplicates))}")

        brand = Brand(
            user_id=user_id,
            name=data.name.strip(),
            domain=data.domain,
            aliases=data.aliases,
            competitors=[
                Competitor(name=c.name, domain=c.domain, aliases=c.aliases, position=i)
                for i, c in enumerate(data.competitors)
            ],
        )
        self.db.add(brand)
        await self.db.flush()

        logger.info("Created brand %s for user %s", brand.id, user_id)
        return brand

    async def list_brands(self, user_id: str) -> List[Brand]:
        result = await self.db.execute(
            select(Brand)
            .where(Brand.user_id == user_id)
            .options(selectinload(Brand.competitors))
            .order_by(Brand.created_at)
        )
        return list(result.scalars().all())

    async def list_brand_ids(self) -> List[str]:
        result = await self.db.execute(select(Brand.id))
        return list(result.scalars().all())

    async def get_brand(self, brand_id: str, user_id: Optional[str] = None, lock: bool = False) -> Brand:
        """
        Load a brand with its competitors.
        With lock, the brand row stays locked until the transaction ends.

        Raises:
            BrandNotFoundError: If missing or owned by another user
        """
        query = select(Brand).where(Brand.id == brand_id).options(selectinload(Brand.competitors))
        if user_id is not None:
            query = query.where(Brand.user_id == user_id)
        if lock:
            query = query.with_for_update(of=Brand)

        result = await self.db.execute(query)
        brand = result.scalar_one_or_none()
        if brand is None:
            raise BrandNotFoundError(brand_id)
        return brand

    async def add_competitor(self, brand_id: str, user_id: str, data: CompetitorCreate) -> Competitor:
        brand = await self.get_brand(brand_id, user_id)

        if any(c.name.lower() == data.name.lower() for c in brand.competitors):
            raise DuplicateCompetitorError(data.name)

        competitor = Competitor(
            name=data.name,
            domain=data.domain,
            aliases=data.aliases,
            position=max((c.position for c in brand.competitors), default=-1) + 1,
        )
        brand.competitors.append(competitor)
        await self.db.flush()

        logger.info("Added competitor %s to brand %s", competitor.name, brand_id)
        return competitor

    async def remove_competitor(self, brand_id: str, user_id: str, competitor_id: str) -> None:
        brand = await self.get_brand(brand_id, user_id)

        competitor = next((c for c in brand.competitors if c.id == competitor_id), None)
        if competitor is None:
            raise BrandNotFoundError(f"{brand_id}/competitors/{competitor_id}")

        brand.competitors.remove(competitor)
        await self.db.flush()

    async def count_records(self, brand_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(QueryResultRecordRow)
            .where(QueryResultRecordRow.brand_id == brand_id)
        )
        return result.scalar_one()

    async def append_records(self, brand_id: str, user_id: str, data: QueryResultsAppend) -> QueryResultsAppended:
        """
        Append one processing session to the brand history.
        Records without their own session id or timestamp take the batch's.
        """
        await self.get_brand(brand_id, user_id, lock=True)

        session_id = data.processing_session_id or str(uuid4())
        session_ts = data.processing_session_timestamp or datetime.now(timezone.utc)

        result = await self.db.execute(
            select(func.max(QueryResultRecordRow.sequence))
            .where(QueryResultRecordRow.brand_id == brand_id)
        )
        last_sequence = result.scalar_one_or_none()
        next_sequence = 0 if last_sequence is None else last_sequence + 1

        for offset, record in enumerate(data.records):
            record_session = record.processing_session_id
            if record_session == "unknown":
                record_session = session_id

            self.db.add(QueryResultRecordRow(
                brand_id=brand_id,
                sequence=next_sequence + offset,
                query=record.query,
                keyword=record.keyword,
                category=record.category,
                date=record.date,
                processing_session_id=record_session,
                processing_session_timestamp=record.processing_session_timestamp or session_ts,
                results=record.results,
            ))

        try:
            await self.db.flush()
        except IntegrityError as e:
            logger.warning("Sequence collision appending to brand %s: %s", brand_id, e.orig)
            raise HistoryConflictError(brand_id) from e

        total = await self.count_records(brand_id)

        logger.info(
            "Appended %d query results to brand %s (session %s)",
            len(data.records), brand_id, session_id,
        )
        return QueryResultsAppended(
            brand_id=brand_id,
            processing_session_id=session_id,
            records_appended=len(data.records),
            total_records=total,
        )

    async def load_records(self, brand_id: str) -> List[dict]:
        """Full history in submission order"""
        result = await self.db.execute(
            select(QueryResultRecordRow)
            .where(QueryResultRecordRow.brand_id == brand_id)
            .order_by(QueryResultRecordRow.sequence)
        )
        return [row.to_record() for row in result.scalars().all()]
