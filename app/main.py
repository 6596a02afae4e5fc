"""FastAPI application entry point."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from app.api import router as api_router
from app.core.ai_client import build_ai_client
from app.core.config import get_settings
from app.core.document_extractor import DocumentExtractor
from app.core.logging import get_logger
from app.core.sop_pipeline import PipelineRunStore, SOPPipeline
from app.db.supabase_client import create_supabase

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the backend and AI clients once and share them through app.state."""
    settings = get_settings()
    http_client = httpx.AsyncClient(timeout=settings.AI_TIMEOUT_SECONDS)
    ai_client = build_ai_client(settings, http_client=http_client)
    supabase = create_supabase(settings)
    extractor = DocumentExtractor(ai_client, http_client, settings)

    app.state.settings = settings
    app.state.supabase = supabase
    app.state.extractor = extractor
    app.state.pipeline = SOPPipeline(supabase, extractor, settings)
    app.state.run_store = PipelineRunStore()

    logger.info(
        f"SOP engine started (env={settings.SOP_ENGINE_ENV}, ai_configured={ai_client.is_configured})",
        extra={"provider": settings.AI_PROVIDER},
    )
    try:
        yield
    finally:
        await ai_client.aclose()
        await http_client.aclose()


app = FastAPI(
    title="NABH SOP Engine",
    description="Accreditation SOP extraction, generation and document management service",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])
