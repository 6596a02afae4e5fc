"""API endpoints for SOP pipeline runs.

A run holds the staged outputs for one chapter/objective selection. Each
stage endpoint mutates the run and returns its full view. Calling a stage
before its inputs exist is a 400; an adapter or backend failure is a 502
(404 for missing records) and leaves the run's earlier outputs intact.
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import BaseModel, Field
from supabase import Client

from app.api.deps import get_pipeline, get_run_store, get_supabase_client, unwrap
from app.api.extraction import to_source_document
from app.core.logging import get_logger
from app.core.schemas_sop import ChapterDataEntry, ChapterDataType, RecordStatus
from app.core.sop_pipeline import (
    PipelineError,
    PipelineRun,
    PipelineRunStore,
    PipelineStage,
    SOPPipeline,
    StageResult,
)
from app.db.chapter_data import list_chapter_data
from app.graphs.sop_pipeline_graph import run_sop_pipeline

logger = get_logger(__name__)

router = APIRouter()

PipelineDep = Annotated[SOPPipeline, Depends(get_pipeline)]
StoreDep = Annotated[PipelineRunStore, Depends(get_run_store)]
SupabaseDep = Annotated[Client, Depends(get_supabase_client)]


# ============================================================================
# Request/response models
# ============================================================================


class VersionEntryView(BaseModel):
    version: str
    source: str
    instructions: str | None = None
    created_at: str


class PipelineRunView(BaseModel):
    """Serializable snapshot of a pipeline run."""

    run_id: str
    stage: PipelineStage
    chapter_id: str | None = None
    chapter_code: str | None = None
    chapter_name: str | None = None
    objective_code: str | None = None
    document_number: str | None = None
    raw_text: str = ""
    objective_title: str = ""
    objective_interpretation: str = ""
    filtered_text: str = ""
    merged_text: str = ""
    generation_instructions: str = ""
    prompt_template_id: str | None = None
    generated_html: str = ""
    improved_html: str = ""
    current_html: str = ""
    version: str
    version_history: list[VersionEntryView] = Field(default_factory=list)
    saved_sop_id: str | None = None
    pdf_url: str | None = None
    dirty: bool = False
    last_error: str | None = None

    @classmethod
    def from_run(cls, run: PipelineRun) -> "PipelineRunView":
        return cls(
            run_id=run.run_id,
            stage=run.stage,
            chapter_id=run.chapter.id if run.chapter else None,
            chapter_code=run.chapter_code,
            chapter_name=run.chapter.display_name if run.chapter else None,
            objective_code=run.objective_code,
            document_number=run.document_number,
            raw_text=run.raw_text,
            objective_title=run.objective_title,
            objective_interpretation=run.objective_interpretation,
            filtered_text=run.filtered_text,
            merged_text=run.merged_text,
            generation_instructions=run.generation_instructions,
            prompt_template_id=run.prompt_template_id,
            generated_html=run.generated_html,
            improved_html=run.improved_html,
            current_html=run.current_html,
            version=run.version,
            version_history=[
                VersionEntryView(
                    version=entry.version,
                    source=entry.source,
                    instructions=entry.instructions,
                    created_at=entry.created_at,
                )
                for entry in run.version_history
            ],
            saved_sop_id=run.saved_sop_id,
            pdf_url=run.pdf_url,
            dirty=run.dirty,
            last_error=run.last_error,
        )


class StageResponse(BaseModel):
    success: bool = True
    message: str | None = None
    run: PipelineRunView


class CreateRunRequest(BaseModel):
    chapter_code: str = Field(..., min_length=1)
    objective_code: str | None = None
    created_by: str | None = None


class UpdateRunRequest(BaseModel):
    """Manual edits; fields are applied upstream first."""

    chapter_code: str | None = None
    objective_code: str | None = None
    raw_text: str | None = None
    objective_title: str | None = None
    objective_interpretation: str | None = None
    filtered_text: str | None = None
    merged_text: str | None = None
    generation_instructions: str | None = None
    prompt_template_id: str | None = None
    sop_html: str | None = None


class FilterRequest(BaseModel):
    custom_prompt: str | None = None


class GenerateRequest(BaseModel):
    instructions: str | None = None
    prompt_template_id: str | None = None


class ImproveRequest(BaseModel):
    instructions: str | None = None
    source: Literal["ai", "chat"] = "ai"


class SaveRequest(BaseModel):
    status: RecordStatus = "Draft"
    with_pdf: bool = False


class ChapterDataRequest(BaseModel):
    run_id: str
    data_type: ChapterDataType


class OneShotRequest(BaseModel):
    chapter_code: str = Field(..., min_length=1)
    objective_code: str | None = None
    created_by: str | None = None
    include_stored_sops: bool = True
    filter_prompt: str | None = None
    instructions: str | None = None
    prompt_template_id: str | None = None
    improve_sop: bool = False
    improve_instructions: str | None = None
    save_sop: bool = False
    save_status: RecordStatus = "Draft"
    with_pdf: bool = False


class OneShotResponse(BaseModel):
    success: bool
    completed: list[str]
    error: str | None = None
    run: PipelineRunView


# ============================================================================
# Helpers
# ============================================================================


def _get_run(store: PipelineRunStore, run_id: str) -> PipelineRun:
    run = store.get(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Pipeline run not found")
    return run


def _respond(run: PipelineRun, result: StageResult) -> StageResponse:
    if not result.success:
        error = result.error or "Stage failed"
        status_code = 404 if "not found" in error.lower() else 502
        raise HTTPException(status_code=status_code, detail=error)
    return StageResponse(message=result.message, run=PipelineRunView.from_run(run))


async def _stage(run: PipelineRun, call) -> StageResponse:
    try:
        result = call()
        if not isinstance(result, StageResult):
            result = await result
    except PipelineError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _respond(run, result)


# ============================================================================
# Runs
# ============================================================================


@router.post("/pipeline/runs", status_code=201)
async def create_run(body: CreateRunRequest, pipeline: PipelineDep, store: StoreDep) -> StageResponse:
    """Start a run by selecting a chapter and (optionally) an objective."""
    run = PipelineRun(created_by=body.created_by)
    response = await _stage(
        run, lambda: pipeline.select_context(run, body.chapter_code.upper(), body.objective_code)
    )
    store.add(run)
    return response


@router.get("/pipeline/runs/{run_id}")
async def get_run(run_id: str, store: StoreDep) -> PipelineRunView:
    return PipelineRunView.from_run(_get_run(store, run_id))


@router.delete("/pipeline/runs/{run_id}")
async def delete_run(run_id: str, store: StoreDep) -> dict:
    if not store.remove(run_id):
        raise HTTPException(status_code=404, detail="Pipeline run not found")
    return {"success": True}


@router.patch("/pipeline/runs/{run_id}")
async def update_run(
    run_id: str, body: UpdateRunRequest, pipeline: PipelineDep, store: StoreDep
) -> PipelineRunView:
    """Apply manual edits; each changed field clears everything downstream of it."""
    run = _get_run(store, run_id)

    if body.chapter_code is not None or body.objective_code is not None:
        chapter_code = (body.chapter_code or run.chapter_code or "").upper()
        if not chapter_code:
            raise HTTPException(status_code=400, detail="chapter_code is required")
        objective_code = body.objective_code if body.objective_code is not None else run.objective_code
        await _stage(run, lambda: pipeline.select_context(run, chapter_code, objective_code or None))

    if body.raw_text is not None:
        run.set_raw_text(body.raw_text)
    if body.objective_title is not None or body.objective_interpretation is not None:
        run.set_objective_text(body.objective_title, body.objective_interpretation)
    if body.filtered_text is not None:
        run.set_filtered_text(body.filtered_text)
    if body.merged_text is not None:
        run.set_merged_text(body.merged_text)
    if body.generation_instructions is not None or body.prompt_template_id is not None:
        run.set_generation_inputs(body.generation_instructions, body.prompt_template_id)
    if body.sop_html is not None:
        run.edit_sop(body.sop_html)

    return PipelineRunView.from_run(run)


# ============================================================================
# Stages
# ============================================================================


@router.post("/pipeline/runs/{run_id}/extract")
async def extract_stage(
    run_id: str,
    pipeline: PipelineDep,
    store: StoreDep,
    files: list[UploadFile] = File(default=[]),
    include_stored_sops: bool = Form(default=True),
    prompt: str | None = Form(default=None),
) -> StageResponse:
    """Extract uploaded files and/or the chapter's stored SOP PDFs, in order."""
    run = _get_run(store, run_id)
    uploads = [await to_source_document(f) for f in files]
    return await _stage(
        run,
        lambda: pipeline.run_extract(
            run, uploads=uploads, include_stored_sops=include_stored_sops, prompt=prompt
        ),
    )


@router.post("/pipeline/runs/{run_id}/filter")
async def filter_stage(
    run_id: str, pipeline: PipelineDep, store: StoreDep, body: FilterRequest | None = None
) -> StageResponse:
    run = _get_run(store, run_id)
    custom_prompt = body.custom_prompt if body else None
    return await _stage(run, lambda: pipeline.run_filter(run, custom_prompt))


@router.post("/pipeline/runs/{run_id}/merge")
async def merge_stage(run_id: str, pipeline: PipelineDep, store: StoreDep) -> StageResponse:
    run = _get_run(store, run_id)
    return await _stage(run, lambda: pipeline.run_merge(run))


@router.post("/pipeline/runs/{run_id}/generate")
async def generate_stage(
    run_id: str, pipeline: PipelineDep, store: StoreDep, body: GenerateRequest | None = None
) -> StageResponse:
    run = _get_run(store, run_id)
    body = body or GenerateRequest()
    return await _stage(
        run,
        lambda: pipeline.run_generate(
            run, instructions=body.instructions, prompt_template_id=body.prompt_template_id
        ),
    )


@router.post("/pipeline/runs/{run_id}/improve")
async def improve_stage(
    run_id: str, pipeline: PipelineDep, store: StoreDep, body: ImproveRequest | None = None
) -> StageResponse:
    """AI polish (no instructions) or chat-driven edit of the current SOP."""
    run = _get_run(store, run_id)
    body = body or ImproveRequest()
    return await _stage(run, lambda: pipeline.run_improve(run, body.instructions, body.source))


@router.post("/pipeline/runs/{run_id}/save")
async def save_stage(
    run_id: str, pipeline: PipelineDep, store: StoreDep, body: SaveRequest | None = None
) -> StageResponse:
    run = _get_run(store, run_id)
    body = body or SaveRequest()
    return await _stage(run, lambda: pipeline.save(run, status=body.status, with_pdf=body.with_pdf))


# ============================================================================
# Chapter data snapshots
# ============================================================================


@router.post("/pipeline/chapter-data", status_code=201)
async def save_chapter_data_snapshot(
    body: ChapterDataRequest, pipeline: PipelineDep, store: StoreDep
) -> StageResponse:
    """Save a run's documentation text or final SOP to the chapter's records."""
    run = _get_run(store, body.run_id)
    return await _stage(run, lambda: pipeline.save_chapter_snapshot(run, body.data_type))


@router.get("/pipeline/chapter-data")
async def get_chapter_data(
    supabase: SupabaseDep,
    chapter_id: str = Query(...),
    data_type: ChapterDataType | None = Query(default=None),
    objective_code: str | None = Query(default=None),
) -> list[ChapterDataEntry]:
    return unwrap(list_chapter_data(supabase, chapter_id, data_type, objective_code))


# ============================================================================
# One-shot
# ============================================================================


@router.post("/pipeline/oneshot")
async def run_oneshot(body: OneShotRequest, pipeline: PipelineDep, store: StoreDep) -> OneShotResponse:
    """Run select -> extract -> filter -> merge -> generate (-> improve -> save) in one call.

    The run is kept in the store even on failure so its partial outputs can
    be inspected and later stages retried.
    """
    run = store.add(PipelineRun(created_by=body.created_by))
    completed, error = await run_sop_pipeline(
        pipeline,
        run,
        body.chapter_code.upper(),
        body.objective_code,
        include_stored_sops=body.include_stored_sops,
        filter_prompt=body.filter_prompt,
        instructions=body.instructions,
        prompt_template_id=body.prompt_template_id,
        improve_sop=body.improve_sop,
        improve_instructions=body.improve_instructions,
        save_sop=body.save_sop,
        save_status=body.save_status,
        with_pdf=body.with_pdf,
    )
    return OneShotResponse(
        success=error is None,
        completed=completed,
        error=error,
        run=PipelineRunView.from_run(run),
    )
