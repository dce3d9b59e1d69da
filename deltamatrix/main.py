"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deltamatrix.config.settings import get_settings
from deltamatrix.core.error_handlers import domain_error_handler
from deltamatrix.core.exceptions import DomainError
from deltamatrix.core.logging import configure_logging, get_logger
from deltamatrix.middleware import RequestIDMiddleware
from deltamatrix.repositories.base import TableGateway
from deltamatrix.repositories.http import HttpTableGateway
from deltamatrix.services.matrix_service import MotionDeltaMatrixService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    yield
    # Shutdown: release the gateway's HTTP client
    await app.state.matrix_service.close()
    logger.info("matrix_service_closed")


def create_app(gateway: TableGateway | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The matrix snapshot loads lazily on the first request that needs it.
    """
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Muscle-score aggregation and motion delta-rule editing",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.matrix_service = MotionDeltaMatrixService(gateway or HttpTableGateway())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainError, domain_error_handler)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    from deltamatrix.api.routes import matrix_router

    app.include_router(matrix_router, prefix="/matrix", tags=["Motion Delta Matrix"])

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("deltamatrix.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=True)
