"""Saved documentation / final SOP snapshots per chapter (nabh_chapter_data)."""

from supabase import Client

from app.core.schemas_sop import ChapterDataCreate, ChapterDataEntry
from app.db.results import GatewayResult, gateway_call

TABLE = "nabh_chapter_data"


@gateway_call("saving chapter data", TABLE)
def save_chapter_data(supabase: Client, entry: ChapterDataCreate) -> GatewayResult[ChapterDataEntry]:
    response = supabase.table(TABLE).insert(entry.model_dump()).execute()
    if not response.data:
        return GatewayResult.fail("Failed to save chapter data")
    return GatewayResult.ok(ChapterDataEntry.model_validate(response.data[0]))


@gateway_call("loading chapter data", TABLE)
def list_chapter_data(
    supabase: Client,
    chapter_id: str,
    data_type: str | None = None,
    objective_code: str | None = None,
) -> GatewayResult[list[ChapterDataEntry]]:
    """Snapshots for a chapter, newest first."""
    query = supabase.table(TABLE).select("*").eq("chapter_id", chapter_id)
    if data_type:
        query = query.eq("data_type", data_type)
    if objective_code:
        query = query.eq("objective_code", objective_code)

    response = query.order("created_at", desc=True).execute()
    return GatewayResult.ok([ChapterDataEntry.model_validate(r) for r in response.data or []])
