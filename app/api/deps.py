"""Request dependencies: clients built in the lifespan, read from app.state."""

from typing import TypeVar

from fastapi import HTTPException, Request
from supabase import Client

from app.core.config import Settings
from app.core.document_extractor import DocumentExtractor
from app.core.sop_pipeline import PipelineRunStore, SOPPipeline
from app.db.results import GatewayResult

T = TypeVar("T")


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_supabase_client(request: Request) -> Client:
    return request.app.state.supabase


def get_extractor(request: Request) -> DocumentExtractor:
    return request.app.state.extractor


def get_pipeline(request: Request) -> SOPPipeline:
    return request.app.state.pipeline


def get_run_store(request: Request) -> PipelineRunStore:
    return request.app.state.run_store


def unwrap(result: GatewayResult[T]) -> T:
    """Return gateway data or raise: 404 for missing records, 502 otherwise."""
    if result.success:
        return result.data
    error = result.error or "Backend request failed"
    status_code = 404 if "not found" in error.lower() else 502
    raise HTTPException(status_code=status_code, detail=error)
