"""API endpoints for accreditation chapters and objectives (read-only)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from supabase import Client

from app.api.deps import get_supabase_client, unwrap
from app.core.schemas_reference import ChapterObjective, ChapterRecord, ObjectiveRecord
from app.db.chapters import find_chapter_by_code, get_objective, list_chapters, list_objectives_by_chapter

router = APIRouter()

SupabaseDep = Annotated[Client, Depends(get_supabase_client)]


@router.get("/chapters")
async def get_chapters(supabase: SupabaseDep) -> list[ChapterRecord]:
    return unwrap(list_chapters(supabase))


@router.get("/chapters/{chapter_code}")
async def get_chapter_by_code(chapter_code: str, supabase: SupabaseDep) -> ChapterRecord:
    return unwrap(find_chapter_by_code(supabase, chapter_code.upper()))


@router.get("/chapters/{chapter_code}/objectives")
async def get_chapter_objectives(chapter_code: str, supabase: SupabaseDep) -> list[ObjectiveRecord]:
    """Objectives of a chapter with their (edited) interpretations."""
    return unwrap(list_objectives_by_chapter(supabase, chapter_code.upper()))


@router.get("/chapters/{chapter_code}/objectives/{objective_code}")
async def get_chapter_objective(
    chapter_code: str, objective_code: str, supabase: SupabaseDep
) -> ChapterObjective:
    """One objective joined with its chapter, as the pipeline sees it."""
    chapter = unwrap(find_chapter_by_code(supabase, chapter_code.upper()))
    objective = unwrap(get_objective(supabase, chapter.code, objective_code))
    return ChapterObjective(chapter=chapter, objective=objective)
