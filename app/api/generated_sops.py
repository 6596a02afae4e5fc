"""API endpoints for generated SOP records and their PDFs."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from supabase import Client

from app.api.deps import get_app_settings, get_supabase_client, unwrap
from app.core.config import Settings
from app.core.logging import get_logger
from app.core.pdf_renderer import PDFRenderError, pdf_filename, render_pdf
from app.core.schemas_sop import GeneratedSOP, GeneratedSOPCreate, GeneratedSOPUpdate, RecordStatus
from app.core.sop_template import derive_document_number
from app.db.generated_sops import (
    create_generated_sop,
    delete_generated_sop,
    get_generated_sop,
    list_generated_sops,
    update_generated_sop,
)
from app.db.sop_storage import sop_pdf_path, upload_sop_pdf

logger = get_logger(__name__)

router = APIRouter()

SupabaseDep = Annotated[Client, Depends(get_supabase_client)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def _document_number(sop: GeneratedSOP) -> str:
    return sop.document_number or derive_document_number(sop.chapter_code, sop.objective_code)


async def _render(sop: GeneratedSOP) -> bytes:
    try:
        return await render_pdf(sop.html_content)
    except PDFRenderError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.get("/generated-sops")
async def get_generated_sops(
    supabase: SupabaseDep,
    chapter_code: str | None = Query(default=None),
    objective_code: str | None = Query(default=None),
    status: RecordStatus | None = Query(default=None),
    search: str | None = Query(default=None, description="Case-insensitive title match"),
    limit: int = Query(default=100, ge=1, le=500),
) -> list[GeneratedSOP]:
    return unwrap(
        list_generated_sops(
            supabase,
            chapter_code=chapter_code,
            objective_code=objective_code,
            status=status,
            search=search,
            limit=limit,
        )
    )


@router.get("/generated-sops/{sop_id}")
async def get_sop(sop_id: str, supabase: SupabaseDep) -> GeneratedSOP:
    return unwrap(get_generated_sop(supabase, sop_id))


@router.post("/generated-sops", status_code=201)
async def create_sop(body: GeneratedSOPCreate, supabase: SupabaseDep) -> GeneratedSOP:
    """Store an SOP produced outside a pipeline run (e.g. imported HTML)."""
    if not body.document_number:
        body = body.model_copy(
            update={"document_number": derive_document_number(body.chapter_code, body.objective_code)}
        )
    return unwrap(create_generated_sop(supabase, body))


@router.patch("/generated-sops/{sop_id}")
async def patch_sop(sop_id: str, body: GeneratedSOPUpdate, supabase: SupabaseDep) -> GeneratedSOP:
    return unwrap(update_generated_sop(supabase, sop_id, body))


@router.delete("/generated-sops/{sop_id}")
async def remove_sop(sop_id: str, supabase: SupabaseDep) -> dict:
    unwrap(delete_generated_sop(supabase, sop_id))
    return {"success": True}


@router.get("/generated-sops/{sop_id}/pdf")
async def download_sop_pdf(sop_id: str, supabase: SupabaseDep) -> Response:
    """Render the stored SOP and return it as a PDF attachment."""
    sop = unwrap(get_generated_sop(supabase, sop_id))
    pdf_bytes = await _render(sop)
    filename = pdf_filename(_document_number(sop), sop.version)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/generated-sops/{sop_id}/pdf/upload")
async def upload_generated_sop_pdf(
    sop_id: str, supabase: SupabaseDep, settings: SettingsDep
) -> GeneratedSOP:
    """Render the stored SOP, upload it to the PDF bucket and record its URL."""
    sop = unwrap(get_generated_sop(supabase, sop_id))
    pdf_bytes = await _render(sop)

    path = sop_pdf_path(sop.chapter_code, _document_number(sop), sop.version)
    pdf_url = unwrap(upload_sop_pdf(supabase, settings.SOP_PDF_BUCKET, path, pdf_bytes))
    logger.info(f"Uploaded PDF for SOP {sop_id} to {path}", extra={"sop_id": sop_id})

    return unwrap(update_generated_sop(supabase, sop_id, GeneratedSOPUpdate(pdf_url=pdf_url)))
