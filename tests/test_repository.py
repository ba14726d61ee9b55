"""HistoryRepository and GenerationHistory against SQLite."""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from loguru import logger
from sqlalchemy.exc import OperationalError

from database import MAX_HISTORY_RECORDS, DatabaseManager, HistoryRepository
from orchestrator.history import GenerationHistory
from shared.exceptions import HistoryUnavailableError, PersistenceError
from shared.schemas import GenerationResult
from tests.conftest import FailingRepository

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def db_manager(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'history.db'}")
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def repository(db_manager):
    return HistoryRepository(db_manager)


async def seed(repository: HistoryRepository, count: int) -> None:
    # Inserted out of order so ordering comes from created_at, not insert order
    for i in reversed(range(count)):
        await repository.create(
            material=f"Material {i}",
            optimized_prompt=f"prompt {i}",
            image_data_uri="data:image/png;base64,AAAA",
            created_at=BASE_TIME + timedelta(minutes=i),
        )


@pytest.mark.asyncio
async def test_create_assigns_id_and_timestamp(repository):
    record = await repository.create(
        material="Oak Wood",
        optimized_prompt="Oak Wood floor in soft light",
        image_data_uri="data:image/png;base64,AAAA",
    )

    assert record.id is not None
    assert record.created_at is not None
    assert await repository.count() == 1


@pytest.mark.asyncio
async def test_list_recent_is_newest_first(repository):
    await seed(repository, 5)

    records = await repository.list_recent()

    assert [r.material for r in records] == [f"Material {i}" for i in (4, 3, 2, 1, 0)]
    timestamps = [r.created_at for r in records]
    assert all(a > b for a, b in zip(timestamps, timestamps[1:]))


@pytest.mark.asyncio
async def test_list_recent_never_exceeds_limit(repository):
    await seed(repository, MAX_HISTORY_RECORDS + 5)

    records = await repository.list_recent()
    oversized = await repository.list_recent(limit=100)

    assert len(records) == MAX_HISTORY_RECORDS
    assert len(oversized) == MAX_HISTORY_RECORDS
    assert records[0].material == f"Material {MAX_HISTORY_RECORDS + 4}"
    assert await repository.count() == MAX_HISTORY_RECORDS + 5


@pytest.mark.asyncio
async def test_list_recent_with_small_or_zero_limit(repository):
    await seed(repository, 3)

    assert len(await repository.list_recent(limit=2)) == 2
    assert await repository.list_recent(limit=0) == []


@pytest.mark.asyncio
async def test_to_dict_uses_api_field_names(repository):
    record = await repository.create(
        material="Marble",
        optimized_prompt="Marble floor",
        image_data_uri="data:image/png;base64,AAAA",
    )

    assert set(record.to_dict()) == {"id", "material", "optimizedPrompt", "imageDataURI", "createdAt"}


@pytest.mark.asyncio
async def test_unreachable_database_raises_persistence_error(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'history.db'}")
    repository = HistoryRepository(manager)

    with pytest.raises(PersistenceError):
        await repository.create(
            material="Marble",
            optimized_prompt="Marble floor",
            image_data_uri="data:image/png;base64,AAAA",
        )
    assert await manager.health_check() is False
    await manager.close()


class CommitFailingManager:
    """Session manager whose commit fails after the insert was flushed."""

    class Session:
        def add(self, record):
            pass

        async def flush(self):
            pass

        async def refresh(self, record):
            pass

    @asynccontextmanager
    async def get_session(self):
        yield self.Session()
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))


@pytest.mark.asyncio
async def test_failed_commit_is_not_logged_as_stored():
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]))
    repository = HistoryRepository(CommitFailingManager())

    try:
        with pytest.raises(PersistenceError, match="disk I/O error"):
            await repository.create(
                material="Marble",
                optimized_prompt="Marble floor",
                image_data_uri="data:image/png;base64,AAAA",
            )
    finally:
        logger.remove(handler_id)

    assert "History record stored" not in messages


@pytest.mark.asyncio
async def test_history_record_writes_generation(repository):
    history = GenerationHistory(repository)
    result = GenerationResult(image_bytes=b"png", prompt_used="Oak prompt", material="Oak Wood")

    await history.record(result, "data:image/png;base64,cG5n", request_id="req-1")

    records = await history.list_recent()
    assert len(records) == 1
    assert records[0].material == "Oak Wood"
    assert records[0].optimized_prompt == "Oak prompt"
    assert records[0].image_data_uri == "data:image/png;base64,cG5n"


@pytest.mark.asyncio
async def test_history_record_swallows_store_failures():
    repository = FailingRepository()
    history = GenerationHistory(repository)
    result = GenerationResult(image_bytes=b"png", prompt_used="prompt", material="Marble")

    await history.record(result, "data:image/png;base64,cG5n")

    assert repository.attempts == 1


@pytest.mark.asyncio
async def test_disabled_history_skips_record_and_refuses_queries():
    history = GenerationHistory()
    result = GenerationResult(image_bytes=b"png", prompt_used="prompt", material="Marble")

    await history.record(result, "data:image/png;base64,cG5n")

    assert history.enabled is False
    with pytest.raises(HistoryUnavailableError):
        await history.list_recent()
