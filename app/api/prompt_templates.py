"""API endpoints for stored SOP generation prompts."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from supabase import Client

from app.api.deps import get_supabase_client, unwrap
from app.core.schemas_sop import SOPPromptTemplate, SOPPromptTemplateCreate, SOPPromptTemplateUpdate
from app.db.prompt_templates import (
    create_prompt_template,
    delete_prompt_template,
    get_prompt_template,
    list_prompt_templates,
    update_prompt_template,
)

router = APIRouter()

SupabaseDep = Annotated[Client, Depends(get_supabase_client)]


@router.get("/prompt-templates")
async def get_prompt_templates(
    supabase: SupabaseDep,
    active_only: bool = Query(default=False),
    category: str | None = Query(default=None),
) -> list[SOPPromptTemplate]:
    return unwrap(list_prompt_templates(supabase, active_only=active_only, category=category))


@router.get("/prompt-templates/{template_id}")
async def get_template(template_id: str, supabase: SupabaseDep) -> SOPPromptTemplate:
    return unwrap(get_prompt_template(supabase, template_id))


@router.post("/prompt-templates", status_code=201)
async def create_template(body: SOPPromptTemplateCreate, supabase: SupabaseDep) -> SOPPromptTemplate:
    return unwrap(create_prompt_template(supabase, body))


@router.patch("/prompt-templates/{template_id}")
async def patch_template(
    template_id: str, body: SOPPromptTemplateUpdate, supabase: SupabaseDep
) -> SOPPromptTemplate:
    return unwrap(update_prompt_template(supabase, template_id, body))


@router.delete("/prompt-templates/{template_id}")
async def remove_template(template_id: str, supabase: SupabaseDep) -> dict:
    unwrap(delete_prompt_template(supabase, template_id))
    return {"success": True}
