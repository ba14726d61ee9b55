"""
Base service class for the Room Visualizer.

Provides common functionality including:
- FastAPI application setup
- Health check endpoint
- Logging configuration
- Error handling
- Service lifecycle management
"""

import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import ServiceSettings, get_settings
from .exceptions import (
    HistoryUnavailableError,
    PersistenceError,
    PipelineStageError,
    UploadValidationError,
)
from .logging import get_logger, setup_logging
from .schemas import ErrorResponse, HealthCheck, HealthStatus


class BaseService(ABC):
    """Base class for Room Visualizer services."""

    # Form fields that carry uploads; validation errors on them are bad uploads
    upload_fields: tuple[str, ...] = ()

    def __init__(
        self,
        service_name: str,
        version: str = "1.0.0",
        settings: ServiceSettings | None = None,
    ):
        self.service_name = service_name
        self.version = version
        self.settings = settings if settings is not None else get_settings()

        # Setup logging
        setup_logging(service_name, self.settings)
        self.logger = get_logger()

        # Service state
        self._startup_time = None
        self._is_healthy = True
        self._health_details = {}

        # Create FastAPI app
        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create and configure FastAPI application."""
        app = FastAPI(
            title=f"{self.service_name.replace('-', ' ').title()} Service",
            description=f"{self.service_name} service",
            version=self.version,
            docs_url="/docs",
            redoc_url="/redoc",
            openapi_url="/openapi.json",
            lifespan=self._lifespan,
        )

        # Add CORS middleware
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],  # Configure appropriately for production
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Add exception handlers
        app.add_exception_handler(RequestValidationError, self._request_validation_handler)
        app.add_exception_handler(UploadValidationError, self._upload_error_handler)
        app.add_exception_handler(PipelineStageError, self._pipeline_error_handler)
        app.add_exception_handler(HistoryUnavailableError, self._history_unavailable_handler)
        app.add_exception_handler(PersistenceError, self._persistence_error_handler)
        app.add_exception_handler(Exception, self._global_exception_handler)

        # Add health check endpoint
        app.add_api_route("/health", self.health_check, methods=["GET"])

        # Add service-specific routes
        self._add_routes(app)

        return app

    @abstractmethod
    def _add_routes(self, app: FastAPI) -> None:
        """Add service-specific routes to the FastAPI app."""
        pass

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self._startup_handler()
        try:
            yield
        finally:
            await self._shutdown_handler()

    async def _startup_handler(self) -> None:
        """Handle service startup."""
        self._startup_time = time.time()
        self.logger.info(f"{self.service_name} service starting up")

        try:
            await self._initialize_service()
            self._is_healthy = True
            self.logger.info(f"{self.service_name} service started successfully")
        except Exception as e:
            self._is_healthy = False
            self.logger.error(
                f"Failed to start {self.service_name} service", error=str(e)
            )
            raise

    async def _shutdown_handler(self) -> None:
        """Handle service shutdown."""
        self.logger.info(f"{self.service_name} service shutting down")

        try:
            await self._cleanup_service()
            self.logger.info(f"{self.service_name} service shutdown complete")
        except Exception as e:
            self.logger.error(
                f"Error during {self.service_name} service shutdown", error=str(e)
            )

    async def _upload_error_handler(
        self, request: Request, exc: UploadValidationError
    ) -> JSONResponse:
        self.logger.info("Upload rejected", path=str(request.url.path), reason=str(exc))
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error=str(exc)).model_dump(exclude_none=True),
        )

    async def _request_validation_handler(
        self, request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """A malformed upload field is a missing upload; anything else keeps the 422."""
        for error in exc.errors():
            loc = tuple(error.get("loc", ()))
            if len(loc) >= 2 and loc[0] == "body" and loc[1] in self.upload_fields:
                self.logger.info(
                    "Upload rejected", path=str(request.url.path), reason=error.get("msg")
                )
                return JSONResponse(
                    status_code=400,
                    content=ErrorResponse(error="No image uploaded").model_dump(exclude_none=True),
                )
        return await request_validation_exception_handler(request, exc)

    async def _pipeline_error_handler(
        self, request: Request, exc: PipelineStageError
    ) -> JSONResponse:
        """Upstream detail stays in the logs; the caller gets the failed stage only."""
        self.logger.error(
            "Generation failed",
            path=str(request.url.path),
            stage=exc.stage,
            error=str(exc.cause),
            upstream_payload=exc.upstream_payload,
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Generation Failed", details=f"{exc.stage} stage failed"
            ).model_dump(),
        )

    async def _history_unavailable_handler(
        self, request: Request, exc: HistoryUnavailableError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(error=str(exc)).model_dump(exclude_none=True),
        )

    async def _persistence_error_handler(
        self, request: Request, exc: PersistenceError
    ) -> JSONResponse:
        self.logger.error(
            "History store failure", path=str(request.url.path), error=str(exc)
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="History unavailable").model_dump(exclude_none=True),
        )

    async def _global_exception_handler(self, request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        self.logger.error(
            "Unhandled exception",
            path=str(request.url.path),
            method=request.method,
            error_type=type(exc).__name__,
            error_message=str(exc),
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "service": self.service_name,
                "timestamp": time.time(),
            },
        )

    async def health_check(self) -> HealthCheck:
        """Health check endpoint."""
        try:
            # Perform service-specific health checks
            service_health = await self._check_service_health()

            # Determine overall status
            status = (
                HealthStatus.HEALTHY
                if (self._is_healthy and service_health)
                else HealthStatus.UNHEALTHY
            )

            # Collect health details
            details = {
                "startup_time": self._startup_time,
                "uptime_seconds": time.time() - self._startup_time
                if self._startup_time
                else 0,
                **self._health_details,
            }

            return HealthCheck(
                service=self.service_name,
                status=status,
                version=self.version,
                details=details,
            )

        except Exception as e:
            self.logger.error("Health check failed", error=str(e))
            return HealthCheck(
                service=self.service_name,
                status=HealthStatus.UNHEALTHY,
                version=self.version,
                details={"error": str(e)},
            )

    @abstractmethod
    async def _initialize_service(self) -> None:
        """Initialize service-specific components."""
        pass

    @abstractmethod
    async def _cleanup_service(self) -> None:
        """Cleanup service-specific components."""
        pass

    async def _check_service_health(self) -> bool:
        """
        Perform service-specific health checks.

        Returns:
            True if service is healthy, False otherwise
        """
        return True

    def set_health_detail(self, key: str, value: Any) -> None:
        """Set a health check detail."""
        self._health_details[key] = value

    def run(self, host: str = None, port: int = None) -> None:
        """Run the service."""
        import uvicorn

        # Get configuration
        service_config = self.settings.get_service_config()

        run_host = host or service_config.host
        run_port = port or service_config.port

        self.logger.info(
            f"Starting {self.service_name} service",
            host=run_host,
            port=run_port,
            debug=self.settings.debug,
        )

        uvicorn.run(
            self.app,
            host=run_host,
            port=run_port,
            log_config=None,  # Use our custom logging
            access_log=False,  # Disable uvicorn access logs
        )
