"""Database access layer for historical SOP documents (nabh_sop_documents)."""

import re

from supabase import Client

from app.core.logging import get_logger
from app.core.schemas_sop import SOPDocument, SOPDocumentCreate, SOPDocumentUpdate
from app.db.results import GatewayResult, contains_pattern, gateway_call, utc_now_iso

logger = get_logger(__name__)

TABLE = "nabh_sop_documents"

# Characters that would break a PostgREST or() filter expression
_FILTER_UNSAFE = re.compile(r"[,()]")


@gateway_call("saving SOP", TABLE)
def save_sop_document(supabase: Client, sop: SOPDocumentCreate) -> GatewayResult[SOPDocument]:
    """Insert an SOP document and return the stored row."""
    response = supabase.table(TABLE).insert(sop.model_dump()).execute()
    if not response.data:
        return GatewayResult.fail("Failed to save SOP document")

    doc = SOPDocument.model_validate(response.data[0])
    logger.info(f"Saved SOP {doc.id}: {doc.title}", extra={"chapter_code": doc.chapter_code})
    return GatewayResult.ok(doc)


@gateway_call("loading SOPs", TABLE)
def load_all_sops(supabase: Client) -> GatewayResult[list[SOPDocument]]:
    """All SOPs ordered by chapter code, then title."""
    response = (
        supabase.table(TABLE)
        .select("*")
        .order("chapter_code", desc=False)
        .order("title", desc=False)
        .execute()
    )
    return GatewayResult.ok([SOPDocument.model_validate(r) for r in response.data or []])


@gateway_call("loading SOPs by chapter", TABLE)
def load_sops_by_chapter(supabase: Client, chapter_code: str) -> GatewayResult[list[SOPDocument]]:
    """SOPs for one chapter ordered by title."""
    response = (
        supabase.table(TABLE)
        .select("*")
        .eq("chapter_code", chapter_code)
        .order("title", desc=False)
        .execute()
    )
    return GatewayResult.ok([SOPDocument.model_validate(r) for r in response.data or []])


@gateway_call("loading SOP", TABLE)
def load_sop_by_id(supabase: Client, sop_id: str) -> GatewayResult[SOPDocument]:
    response = supabase.table(TABLE).select("*").eq("id", sop_id).limit(1).execute()
    if not response.data:
        return GatewayResult.fail("SOP document not found")
    return GatewayResult.ok(SOPDocument.model_validate(response.data[0]))


@gateway_call("updating SOP", TABLE)
def update_sop_document(
    supabase: Client, sop_id: str, updates: SOPDocumentUpdate
) -> GatewayResult[SOPDocument]:
    """Apply a partial update; only fields set by the caller are written."""
    payload = updates.model_dump(exclude_unset=True)
    payload["updated_at"] = utc_now_iso()

    response = supabase.table(TABLE).update(payload).eq("id", sop_id).execute()
    if not response.data:
        return GatewayResult.fail("SOP document not found")
    return GatewayResult.ok(SOPDocument.model_validate(response.data[0]))


@gateway_call("deleting SOP", TABLE)
def delete_sop_document(supabase: Client, sop_id: str) -> GatewayResult[None]:
    supabase.table(TABLE).delete().eq("id", sop_id).execute()
    logger.info(f"Deleted SOP {sop_id}")
    return GatewayResult.ok()


@gateway_call("searching SOPs", TABLE)
def search_sops(supabase: Client, query: str) -> GatewayResult[list[SOPDocument]]:
    """Case-insensitive substring search over title, description and extracted text."""
    term = _FILTER_UNSAFE.sub(" ", query).strip()
    if not term:
        return load_all_sops(supabase)

    pattern = contains_pattern(term)
    response = (
        supabase.table(TABLE)
        .select("*")
        .or_(
            f"title.ilike.{pattern},"
            f"description.ilike.{pattern},"
            f"extracted_content.ilike.{pattern}"
        )
        .order("title", desc=False)
        .execute()
    )
    return GatewayResult.ok([SOPDocument.model_validate(r) for r in response.data or []])
