"""Database access layer for SOP prompt templates (nabh_sop_prompts)."""

from supabase import Client

from app.core.schemas_sop import (
    SOPPromptTemplate,
    SOPPromptTemplateCreate,
    SOPPromptTemplateUpdate,
)
from app.db.results import GatewayResult, gateway_call, utc_now_iso

TABLE = "nabh_sop_prompts"


@gateway_call("loading prompt templates", TABLE)
def list_prompt_templates(
    supabase: Client,
    active_only: bool = False,
    category: str | None = None,
) -> GatewayResult[list[SOPPromptTemplate]]:
    query = supabase.table(TABLE).select("*")
    if active_only:
        query = query.eq("is_active", True)
    if category:
        query = query.eq("category", category)

    response = query.order("name", desc=False).execute()
    return GatewayResult.ok([SOPPromptTemplate.model_validate(r) for r in response.data or []])


@gateway_call("loading prompt template", TABLE)
def get_prompt_template(supabase: Client, template_id: str) -> GatewayResult[SOPPromptTemplate]:
    response = supabase.table(TABLE).select("*").eq("id", template_id).limit(1).execute()
    if not response.data:
        return GatewayResult.fail("Prompt template not found")
    return GatewayResult.ok(SOPPromptTemplate.model_validate(response.data[0]))


@gateway_call("saving prompt template", TABLE)
def create_prompt_template(
    supabase: Client, template: SOPPromptTemplateCreate
) -> GatewayResult[SOPPromptTemplate]:
    response = supabase.table(TABLE).insert(template.model_dump()).execute()
    if not response.data:
        return GatewayResult.fail("Failed to save prompt template")
    return GatewayResult.ok(SOPPromptTemplate.model_validate(response.data[0]))


@gateway_call("updating prompt template", TABLE)
def update_prompt_template(
    supabase: Client, template_id: str, updates: SOPPromptTemplateUpdate
) -> GatewayResult[SOPPromptTemplate]:
    payload = updates.model_dump(exclude_unset=True)
    payload["updated_at"] = utc_now_iso()

    response = supabase.table(TABLE).update(payload).eq("id", template_id).execute()
    if not response.data:
        return GatewayResult.fail("Prompt template not found")
    return GatewayResult.ok(SOPPromptTemplate.model_validate(response.data[0]))


@gateway_call("deleting prompt template", TABLE)
def delete_prompt_template(supabase: Client, template_id: str) -> GatewayResult[None]:
    supabase.table(TABLE).delete().eq("id", template_id).execute()
    return GatewayResult.ok()
