"""
Generation history: best-effort recording and the recent-records query.

Recording runs as a background task after the response is built, so a
failing store can only produce a log line.
"""

from database import MAX_HISTORY_RECORDS, HistoryRecord, HistoryRepository
from shared.exceptions import HistoryUnavailableError
from shared.logging import get_logger
from shared.schemas import GenerationResult


class GenerationHistory:
    """History of successful generations, disabled when no repository is set."""

    def __init__(self, repository: HistoryRepository | None = None):
        self.repository = repository

    @property
    def enabled(self) -> bool:
        return self.repository is not None

    async def record(
        self, result: GenerationResult, image_data_uri: str, request_id: str | None = None
    ) -> None:
        """Store a history record; failures are logged and dropped."""
        log = get_logger(request_id)
        if self.repository is None:
            log.debug("History disabled, generation not recorded")
            return

        try:
            record = await self.repository.create(
                material=result.material,
                optimized_prompt=result.prompt_used,
                image_data_uri=image_data_uri,
            )
        except Exception as e:
            log.error(
                f"Failed to store history record: {type(e).__name__}",
                material=result.material,
                error=str(e),
            )
            return

        log.info("Generation recorded in history", record_id=str(record.id))

    async def list_recent(self, limit: int = MAX_HISTORY_RECORDS) -> list[HistoryRecord]:
        """Most recent records, newest first, never more than MAX_HISTORY_RECORDS."""
        if self.repository is None:
            raise HistoryUnavailableError("History is not configured")
        return await self.repository.list_recent(limit)
