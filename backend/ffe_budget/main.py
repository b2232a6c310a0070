"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .services.service_factory import get_autosave_service, get_document_session
from .utils import APIError
from .models import ErrorResponse


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Application starting up...")
    logger.info(f"Settings: host={settings.backend_host}, port={settings.backend_port}")
    logger.info(f"Documents directory: {settings.documents_dir}")
    logger.info(f"Recovery directory: {settings.recovery_dir}")

    autosave = get_autosave_service()
    autosave.start()
    draft = autosave.startup_draft
    if draft is not None:
        logger.info(f"Recovery draft available: {draft.project_name!r} (saved {draft.saved_at})")
    logger.info(f"Session stats: {get_document_session().get_stats()}")

    yield

    # Shutdown
    logger.info("Application shutting down...")
    if get_document_session().is_dirty():
        # 關閉前寫入最後一次快照
        autosave.flush()
    autosave.stop()
    logger.info("Application stopped")


# Create FastAPI app
app = FastAPI(
    title="FF&E Budget Service",
    description="家具、軟裝與設備 (FF&E) 預算編列服務",
    version="0.1.0",
    lifespan=lifespan,
)


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error handler for APIError
@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle API errors with proper response format."""
    error_response = ErrorResponse(
        success=False,
        message=exc.message,
        error_code=exc.error_code.value,
        details=exc.details,
    )
    logger.error(f"APIError: {exc.error_code} - {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(mode="json"),
    )


# General exception handler
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general exceptions."""
    error_response = ErrorResponse(
        success=False,
        message="Internal server error",
        error_code="INTERNAL_ERROR",
    )
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_response.model_dump(mode="json"),
    )


# Register API routers
from .api.routes import health, document, categories, files, recovery, export

app.include_router(health.router)
app.include_router(document.router)
app.include_router(categories.router)
app.include_router(files.router)
app.include_router(recovery.router)
app.include_router(export.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.backend_debug,
    )
