"""API endpoints for the five-level document hierarchy."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path
from supabase import Client

from app.api.deps import get_supabase_client, unwrap
from app.core.schemas_document_levels import (
    DOCUMENT_LEVELS,
    DocumentLevel,
    DocumentLevelItem,
    DocumentLevelItemCreate,
    DocumentLevelItemUpdate,
)
from app.db.document_levels import (
    delete_document,
    get_document,
    load_all_documents,
    load_documents_by_level,
    save_document,
    update_document,
)

router = APIRouter()

SupabaseDep = Annotated[Client, Depends(get_supabase_client)]


@router.get("/document-levels")
async def list_document_levels() -> list[DocumentLevel]:
    """Static catalogue of the five levels."""
    return DOCUMENT_LEVELS


@router.get("/document-levels/items")
async def list_all_items(supabase: SupabaseDep) -> list[DocumentLevelItem]:
    return unwrap(load_all_documents(supabase))


@router.get("/document-levels/{level}/items")
async def list_level_items(
    supabase: SupabaseDep,
    level: int = Path(..., ge=1, le=5),
) -> list[DocumentLevelItem]:
    return unwrap(load_documents_by_level(supabase, level))


@router.get("/document-levels/items/{document_id}")
async def get_level_item(document_id: str, supabase: SupabaseDep) -> DocumentLevelItem:
    return unwrap(get_document(supabase, document_id))


@router.post("/document-levels/items", status_code=201)
async def create_level_item(body: DocumentLevelItemCreate, supabase: SupabaseDep) -> DocumentLevelItem:
    return unwrap(save_document(supabase, body))


@router.patch("/document-levels/items/{document_id}")
async def patch_level_item(
    document_id: str, body: DocumentLevelItemUpdate, supabase: SupabaseDep
) -> DocumentLevelItem:
    return unwrap(update_document(supabase, document_id, body))


@router.delete("/document-levels/items/{document_id}")
async def remove_level_item(document_id: str, supabase: SupabaseDep) -> dict:
    unwrap(delete_document(supabase, document_id))
    return {"success": True}
