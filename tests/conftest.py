"""Shared fixtures: fake providers, in-memory history and test images."""

import io
import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from database import MAX_HISTORY_RECORDS, HistoryRecord
from orchestrator.app import create_app
from orchestrator.history import GenerationHistory
from orchestrator.pipeline import RoomGenerationPipeline
from providers.base import InpaintingProvider, SegmentationProvider, VisionProvider
from shared.config import ServiceSettings
from shared.exceptions import PersistenceError

DEFAULT_DESCRIPTION = (
    "A bright living room with afternoon sunlight from a large window, "
    "soft reflections across the new floor and gentle shadows under the sofa"
)


def make_image_bytes(fmt: str = "JPEG", size: tuple[int, int] = (500, 500)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (181, 163, 132)).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeVision(VisionProvider):
    name = "fake-vision"

    def __init__(self, calls: list[str], text: str = DEFAULT_DESCRIPTION, error: Exception | None = None):
        self.calls = calls
        self.text = text
        self.error = error
        self.requests = []

    async def describe(self, image_bytes, mime_type, instruction):
        self.calls.append("describe")
        self.requests.append((image_bytes, mime_type, instruction))
        if self.error:
            raise self.error
        return self.text


class FakeSegmentation(SegmentationProvider):
    name = "fake-segmentation"

    def __init__(self, calls: list[str], mask: bytes, error: Exception | None = None):
        self.calls = calls
        self.mask = mask
        self.error = error
        self.requests = []

    async def segment(self, image_bytes):
        self.calls.append("segment")
        self.requests.append(image_bytes)
        if self.error:
            raise self.error
        return self.mask


class FakeInpainting(InpaintingProvider):
    name = "fake-inpainting"

    def __init__(self, calls: list[str], output: bytes, error: Exception | None = None):
        self.calls = calls
        self.output = output
        self.error = error
        self.requests = []

    async def inpaint(self, image_bytes, mime_type, mask_bytes, prompt):
        self.calls.append("inpaint")
        self.requests.append(
            {"image": image_bytes, "mime_type": mime_type, "mask": mask_bytes, "prompt": prompt}
        )
        if self.error:
            raise self.error
        return self.output


class RecordingRepository:
    """In-memory stand-in for HistoryRepository."""

    def __init__(self):
        self.records: list[HistoryRecord] = []

    async def create(self, material, optimized_prompt, image_data_uri, created_at=None):
        record = HistoryRecord(
            id=uuid.uuid4(),
            material=material,
            optimized_prompt=optimized_prompt,
            image_data_uri=image_data_uri,
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.records.append(record)
        return record

    async def list_recent(self, limit=MAX_HISTORY_RECORDS):
        ordered = sorted(self.records, key=lambda r: r.created_at, reverse=True)
        return ordered[: max(0, min(limit, MAX_HISTORY_RECORDS))]


class FailingRepository:
    """History store that is unreachable."""

    def __init__(self):
        self.attempts = 0

    async def create(self, material, optimized_prompt, image_data_uri, created_at=None):
        self.attempts += 1
        raise PersistenceError("connection refused")

    async def list_recent(self, limit=MAX_HISTORY_RECORDS):
        raise PersistenceError("connection refused")


class FakeProviders:
    def __init__(self):
        self.calls: list[str] = []
        self.mask = make_image_bytes("PNG", (500, 500))
        self.output = make_image_bytes("PNG", (500, 500))
        self.vision = FakeVision(self.calls)
        self.segmentation = FakeSegmentation(self.calls, self.mask)
        self.inpainting = FakeInpainting(self.calls, self.output)

    def pipeline(self) -> RoomGenerationPipeline:
        return RoomGenerationPipeline(self.vision, self.segmentation, self.inpainting)


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG", (500, 500))


@pytest.fixture
def fakes() -> FakeProviders:
    return FakeProviders()


@pytest.fixture
def settings() -> ServiceSettings:
    return ServiceSettings(log_level="WARNING")


@pytest.fixture
def make_client(settings, fakes):
    """Build a TestClient around injected fakes; history defaults to in-memory."""
    clients = []

    def factory(history: GenerationHistory | None = None, app_settings: ServiceSettings | None = None):
        app = create_app(
            settings=app_settings or settings,
            pipeline=fakes.pipeline(),
            history=history,
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)
