"""API endpoints for historical SOP documents."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from supabase import Client

from app.api.deps import get_supabase_client, unwrap
from app.core.schemas_sop import SOPDocument, SOPDocumentCreate, SOPDocumentUpdate
from app.db.sop_documents import (
    delete_sop_document,
    load_all_sops,
    load_sop_by_id,
    load_sops_by_chapter,
    save_sop_document,
    search_sops,
    update_sop_document,
)

router = APIRouter()

SupabaseDep = Annotated[Client, Depends(get_supabase_client)]


@router.get("/sop-documents")
async def list_sop_documents(
    supabase: SupabaseDep,
    chapter_code: str | None = Query(default=None, description="Filter by chapter code"),
) -> list[SOPDocument]:
    """List SOP documents, optionally for one chapter."""
    if chapter_code:
        return unwrap(load_sops_by_chapter(supabase, chapter_code))
    return unwrap(load_all_sops(supabase))


@router.get("/sop-documents/search")
async def search_sop_documents(
    supabase: SupabaseDep,
    q: str = Query(default="", description="Substring matched against title, description and content"),
) -> list[SOPDocument]:
    return unwrap(search_sops(supabase, q))


@router.get("/sop-documents/{sop_id}")
async def get_sop_document(sop_id: str, supabase: SupabaseDep) -> SOPDocument:
    return unwrap(load_sop_by_id(supabase, sop_id))


@router.post("/sop-documents", status_code=201)
async def create_sop_document(body: SOPDocumentCreate, supabase: SupabaseDep) -> SOPDocument:
    """Register a historical SOP (metadata plus PDF/Drive links)."""
    return unwrap(save_sop_document(supabase, body))


@router.patch("/sop-documents/{sop_id}")
async def patch_sop_document(
    sop_id: str, body: SOPDocumentUpdate, supabase: SupabaseDep
) -> SOPDocument:
    return unwrap(update_sop_document(supabase, sop_id, body))


@router.delete("/sop-documents/{sop_id}")
async def remove_sop_document(sop_id: str, supabase: SupabaseDep) -> dict:
    unwrap(delete_sop_document(supabase, sop_id))
    return {"success": True}
