"""
Repository for generation history.

Writes are append-only; reads return the most recent records, newest first.
SQLAlchemy failures are re-raised as PersistenceError.
"""

from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError

from shared.exceptions import PersistenceError

from .models import HistoryRecord
from .session import DatabaseManager

MAX_HISTORY_RECORDS = 20


class HistoryRepository:
    """Repository for history record database operations."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    async def create(
        self,
        material: str,
        optimized_prompt: str,
        image_data_uri: str,
        created_at: Optional[datetime] = None,
    ) -> HistoryRecord:
        """
        Store a new history record.

        Args:
            material: Flooring material that was rendered
            optimized_prompt: Prompt sent to the inpainting provider
            image_data_uri: Generated PNG as a data URI
            created_at: Creation time, defaults to now

        Returns:
            HistoryRecord: The stored database record
        """
        try:
            async with self.db_manager.get_session() as session:
                record = HistoryRecord(
                    material=material,
                    optimized_prompt=optimized_prompt,
                    image_data_uri=image_data_uri,
                )
                if created_at is not None:
                    record.created_at = created_at

                session.add(record)
                await session.flush()
                await session.refresh(record)

        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Failed to store history record: {e}") from e

        logger.info("History record stored", record_id=str(record.id), material=material)
        return record

    async def list_recent(self, limit: int = MAX_HISTORY_RECORDS) -> list[HistoryRecord]:
        """
        List the most recent history records, newest first.

        Args:
            limit: Maximum number of records, capped at MAX_HISTORY_RECORDS

        Returns:
            List of HistoryRecord rows ordered by created_at descending
        """
        limit = min(limit, MAX_HISTORY_RECORDS)
        if limit <= 0:
            return []

        try:
            async with self.db_manager.get_session() as session:
                stmt = (
                    select(HistoryRecord)
                    .order_by(desc(HistoryRecord.created_at))
                    .limit(limit)
                )
                result = await session.execute(stmt)
                records = list(result.scalars().all())

                logger.debug("Retrieved history records", count=len(records), limit=limit)
                return records

        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to list history records", limit=limit, error=str(e))
            raise PersistenceError(f"Failed to list history records: {e}") from e

    async def count(self) -> int:
        """Count all stored history records."""
        try:
            async with self.db_manager.get_session() as session:
                result = await session.execute(select(func.count(HistoryRecord.id)))
                return result.scalar()

        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to count history records", error=str(e))
            raise PersistenceError(f"Failed to count history records: {e}") from e
