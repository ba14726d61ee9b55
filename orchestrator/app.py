"""
Room Visualizer orchestrator service.

Accepts a room photo and a flooring material, runs the describe / segment /
inpaint pipeline against the upstream AI providers and returns the generated
room. Successful JSON responses are recorded in the optional history store.
"""

import uuid

import httpx
from fastapi import BackgroundTasks, FastAPI, File, Form, UploadFile
from fastapi.responses import PlainTextResponse, Response

from database import DatabaseManager, HistoryRepository
from providers import ProviderSet, build_providers
from shared.base_service import BaseService
from shared.config import ServiceSettings, get_settings, load_provider_config
from shared.logging import get_logger
from shared.schemas import (
    DEFAULT_MATERIAL,
    GenerateRoomResponse,
    HistoryRecordOut,
    ResponseFormat,
)

from .history import GenerationHistory
from .images import read_upload, to_data_uri
from .pipeline import RoomGenerationPipeline

LIVENESS_MESSAGE = "Room Visualizer Backend is Live!"


class RoomVisualizerService(BaseService):
    """Orchestrator for floor replacement requests."""

    upload_fields = ("image",)

    def __init__(
        self,
        settings: ServiceSettings | None = None,
        pipeline: RoomGenerationPipeline | None = None,
        history: GenerationHistory | None = None,
    ):
        settings = settings if settings is not None else get_settings()
        self.client: httpx.AsyncClient | None = None
        self.db_manager: DatabaseManager | None = None
        self.providers: ProviderSet | None = None
        self._owns_history = history is None

        if pipeline is None:
            self.client = httpx.AsyncClient(
                timeout=settings.service_request_timeout,
                limits=httpx.Limits(
                    max_connections=settings.max_concurrent_requests,
                    max_keepalive_connections=10,
                ),
            )
            self.providers = build_providers(
                settings, load_provider_config(settings.provider_config_path), self.client
            )
            pipeline = RoomGenerationPipeline(
                self.providers.vision,
                self.providers.segmentation,
                self.providers.inpainting,
            )

        self.pipeline = pipeline
        self.history = history if history is not None else GenerationHistory()

        super().__init__("room-visualizer", "1.0.0", settings=settings)

    def _add_routes(self, app: FastAPI) -> None:
        """Add orchestrator routes."""

        @app.get("/", response_class=PlainTextResponse)
        async def root() -> str:
            return LIVENESS_MESSAGE

        @app.post("/generate-room", response_model=GenerateRoomResponse)
        async def generate_room(
            background_tasks: BackgroundTasks,
            image: UploadFile | None = File(None),
            material: str = Form(DEFAULT_MATERIAL),
            response_format: ResponseFormat = ResponseFormat.JSON,
        ):
            """
            Replace the floor in a room photo with the given material.

            Returns the JSON envelope with a PNG data URI by default, or the
            raw PNG when ``response_format=png``. Only JSON responses are
            recorded in history.
            """
            request_id = str(uuid.uuid4())
            log = get_logger(request_id)

            generation_request = await read_upload(
                image, material, self.settings.max_upload_size_bytes
            )
            log.info(
                "Room generation request received",
                material=generation_request.material,
                response_format=response_format.value,
            )

            result = await self.pipeline.run(generation_request, request_id=request_id)

            if response_format == ResponseFormat.PNG:
                return Response(content=result.image_bytes, media_type="image/png")

            data_uri = to_data_uri(result.image_bytes, "image/png")
            background_tasks.add_task(self.history.record, result, data_uri, request_id)

            return GenerateRoomResponse(
                data=data_uri,
                prompt_used=result.prompt_used,
                message=f"Room generated with {result.material} flooring",
            )

        @app.get("/history", response_model=list[HistoryRecordOut])
        async def list_history():
            """The 20 most recent generations, newest first."""
            records = await self.history.list_recent()
            return [record.to_dict() for record in records]

    async def _initialize_service(self) -> None:
        """Initialize orchestrator service."""
        missing = self.settings.missing_credentials()
        if missing:
            self.logger.warning("Provider credentials missing", missing=missing)
        self.set_health_detail("missing_credentials", missing)

        if self._owns_history and self.settings.history_enabled:
            db_manager = DatabaseManager(self.settings.get_database_config().url)
            try:
                await db_manager.create_tables()
            except Exception as e:
                # Generation keeps working without history
                self.logger.error(
                    "History store unavailable, history disabled", error=str(e)
                )
                await db_manager.close()
            else:
                self.db_manager = db_manager
                self.history.repository = HistoryRepository(db_manager)

        self.set_health_detail("history_enabled", self.history.enabled)

    async def _cleanup_service(self) -> None:
        """Cleanup orchestrator service."""
        if self.providers is not None:
            await self.providers.vision.aclose()
        if self.client is not None:
            await self.client.aclose()
        if self.db_manager is not None:
            await self.db_manager.close()

    async def _check_service_health(self) -> bool:
        """Healthy unless a configured database stops answering."""
        if self.db_manager is None:
            return True
        database_healthy = await self.db_manager.health_check()
        self.set_health_detail("database_healthy", database_healthy)
        return database_healthy


def create_app(
    settings: ServiceSettings | None = None,
    pipeline: RoomGenerationPipeline | None = None,
    history: GenerationHistory | None = None,
) -> FastAPI:
    """Create the Room Visualizer FastAPI application."""
    service = RoomVisualizerService(settings=settings, pipeline=pipeline, history=history)
    return service.app


def main() -> None:
    """Run the service with settings from the environment."""
    service = RoomVisualizerService()
    service.run()


# For development/testing
if __name__ == "__main__":
    main()
