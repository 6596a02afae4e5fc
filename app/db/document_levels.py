"""Database access layer for document level items (nabh_document_levels)."""

from supabase import Client

from app.core.logging import get_logger
from app.core.schemas_document_levels import (
    DocumentLevelItem,
    DocumentLevelItemCreate,
    DocumentLevelItemUpdate,
)
from app.db.results import GatewayResult, gateway_call, utc_now_iso

logger = get_logger(__name__)

TABLE = "nabh_document_levels"


@gateway_call("loading documents", TABLE)
def load_documents_by_level(supabase: Client, level: int) -> GatewayResult[list[DocumentLevelItem]]:
    """Items of one level, newest first."""
    response = (
        supabase.table(TABLE)
        .select("*")
        .eq("level", level)
        .order("created_at", desc=True)
        .execute()
    )
    return GatewayResult.ok([DocumentLevelItem.model_validate(r) for r in response.data or []])


@gateway_call("loading all documents", TABLE)
def load_all_documents(supabase: Client) -> GatewayResult[list[DocumentLevelItem]]:
    """Every item ordered by level, newest first within a level."""
    response = (
        supabase.table(TABLE)
        .select("*")
        .order("level", desc=False)
        .order("created_at", desc=True)
        .execute()
    )
    return GatewayResult.ok([DocumentLevelItem.model_validate(r) for r in response.data or []])


@gateway_call("loading document", TABLE)
def get_document(supabase: Client, document_id: str) -> GatewayResult[DocumentLevelItem]:
    response = supabase.table(TABLE).select("*").eq("id", document_id).limit(1).execute()
    if not response.data:
        return GatewayResult.fail("Document not found")
    return GatewayResult.ok(DocumentLevelItem.model_validate(response.data[0]))


@gateway_call("saving document", TABLE)
def save_document(supabase: Client, doc: DocumentLevelItemCreate) -> GatewayResult[DocumentLevelItem]:
    now = utc_now_iso()
    record = {**doc.model_dump(), "created_at": now, "updated_at": now}

    response = supabase.table(TABLE).insert(record).execute()
    if not response.data:
        return GatewayResult.fail("Failed to save document")

    item = DocumentLevelItem.model_validate(response.data[0])
    logger.info(f"Saved level {item.level} document {item.id}: {item.title}")
    return GatewayResult.ok(item)


@gateway_call("updating document", TABLE)
def update_document(
    supabase: Client, document_id: str, updates: DocumentLevelItemUpdate
) -> GatewayResult[DocumentLevelItem]:
    payload = updates.model_dump(exclude_unset=True)
    payload["updated_at"] = utc_now_iso()

    response = supabase.table(TABLE).update(payload).eq("id", document_id).execute()
    if not response.data:
        return GatewayResult.fail("Document not found")
    return GatewayResult.ok(DocumentLevelItem.model_validate(response.data[0]))


@gateway_call("deleting document", TABLE)
def delete_document(supabase: Client, document_id: str) -> GatewayResult[None]:
    supabase.table(TABLE).delete().eq("id", document_id).execute()
    return GatewayResult.ok()
