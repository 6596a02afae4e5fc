"""Database access layer for generated SOPs (nabh_generated_sops)."""

from supabase import Client

from app.core.logging import get_logger
from app.core.schemas_sop import GeneratedSOP, GeneratedSOPCreate, GeneratedSOPUpdate
from app.db.results import GatewayResult, contains_pattern, gateway_call, utc_now_iso

logger = get_logger(__name__)

TABLE = "nabh_generated_sops"


@gateway_call("saving generated SOP", TABLE)
def create_generated_sop(supabase: Client, sop: GeneratedSOPCreate) -> GatewayResult[GeneratedSOP]:
    """Insert a generated SOP. HTML is stored exactly as given."""
    response = supabase.table(TABLE).insert(sop.model_dump()).execute()
    if not response.data:
        return GatewayResult.fail("Failed to save generated SOP")

    saved = GeneratedSOP.model_validate(response.data[0])
    logger.info(
        f"Saved generated SOP {saved.id} v{saved.version}",
        extra={
            "sop_id": saved.id,
            "chapter_code": saved.chapter_code,
            "objective_code": saved.objective_code,
        },
    )
    return GatewayResult.ok(saved)


@gateway_call("loading generated SOP", TABLE)
def get_generated_sop(supabase: Client, sop_id: str) -> GatewayResult[GeneratedSOP]:
    response = supabase.table(TABLE).select("*").eq("id", sop_id).limit(1).execute()
    if not response.data:
        return GatewayResult.fail("Generated SOP not found")
    return GatewayResult.ok(GeneratedSOP.model_validate(response.data[0]))


@gateway_call("loading generated SOPs", TABLE)
def list_generated_sops(
    supabase: Client,
    chapter_code: str | None = None,
    objective_code: str | None = None,
    status: str | None = None,
    search: str | None = None,
    limit: int = 100,
) -> GatewayResult[list[GeneratedSOP]]:
    """Generated SOPs newest first, with optional exact-match and title filters."""
    query = supabase.table(TABLE).select("*")

    if chapter_code:
        query = query.eq("chapter_code", chapter_code)
    if objective_code:
        query = query.eq("objective_code", objective_code)
    if status:
        query = query.eq("status", status)
    if search:
        query = query.ilike("title", contains_pattern(search))

    response = query.order("created_at", desc=True).limit(limit).execute()
    return GatewayResult.ok([GeneratedSOP.model_validate(r) for r in response.data or []])


@gateway_call("updating generated SOP", TABLE)
def update_generated_sop(
    supabase: Client, sop_id: str, updates: GeneratedSOPUpdate
) -> GatewayResult[GeneratedSOP]:
    payload = updates.model_dump(exclude_unset=True)
    payload["updated_at"] = utc_now_iso()

    response = supabase.table(TABLE).update(payload).eq("id", sop_id).execute()
    if not response.data:
        return GatewayResult.fail("Generated SOP not found")
    return GatewayResult.ok(GeneratedSOP.model_validate(response.data[0]))


@gateway_call("deleting generated SOP", TABLE)
def delete_generated_sop(supabase: Client, sop_id: str) -> GatewayResult[None]:
    supabase.table(TABLE).delete().eq("id", sop_id).execute()
    logger.info(f"Deleted generated SOP {sop_id}", extra={"sop_id": sop_id})
    return GatewayResult.ok()
