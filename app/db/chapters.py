"""Database access layer for chapters and objective interpretations."""

from pydantic import ValidationError
from supabase import Client

from app.core.logging import get_logger
from app.core.schemas_reference import ChapterRecord, ObjectiveRecord
from app.db.results import GatewayResult, gateway_call

logger = get_logger(__name__)

CHAPTERS_TABLE = "nabh_chapters"
OBJECTIVES_TABLE = "nabh_objective_edits"


def _valid_chapters(rows: list[dict]) -> list[ChapterRecord]:
    chapters = []
    for row in rows:
        try:
            chapters.append(ChapterRecord.model_validate(row))
        except ValidationError:
            logger.warning(
                f"Skipping chapter row without a usable code: {row.get('name')!r}",
                extra={"table": CHAPTERS_TABLE},
            )
    return chapters


@gateway_call("loading chapters", CHAPTERS_TABLE)
def list_chapters(supabase: Client) -> GatewayResult[list[ChapterRecord]]:
    """All chapters by chapter number. Rows without a derivable code are dropped."""
    response = (
        supabase.table(CHAPTERS_TABLE)
        .select("*")
        .order("chapter_number", desc=False)
        .execute()
    )
    return GatewayResult.ok(_valid_chapters(response.data or []))


@gateway_call("loading chapter", CHAPTERS_TABLE)
def get_chapter(supabase: Client, chapter_id: str) -> GatewayResult[ChapterRecord]:
    response = supabase.table(CHAPTERS_TABLE).select("*").eq("id", chapter_id).limit(1).execute()
    if not response.data:
        return GatewayResult.fail("Chapter not found")
    return GatewayResult.ok(ChapterRecord.model_validate(response.data[0]))


@gateway_call("loading chapter", CHAPTERS_TABLE)
def find_chapter_by_code(supabase: Client, chapter_code: str) -> GatewayResult[ChapterRecord]:
    """Look a chapter up by its three-letter code.

    The code may be stored or derived from the name, so matching happens
    after validation rather than in the query.
    """
    response = supabase.table(CHAPTERS_TABLE).select("*").execute()
    for chapter in _valid_chapters(response.data or []):
        if chapter.code == chapter_code:
            return GatewayResult.ok(chapter)
    return GatewayResult.fail(f"Chapter {chapter_code} not found")


@gateway_call("loading objectives", OBJECTIVES_TABLE)
def list_objectives_by_chapter(
    supabase: Client, chapter_code: str
) -> GatewayResult[list[ObjectiveRecord]]:
    """Objective interpretations of a chapter ordered by objective code."""
    response = (
        supabase.table(OBJECTIVES_TABLE)
        .select("*")
        .eq("chapter_code", chapter_code)
        .order("objective_code", desc=False)
        .execute()
    )
    return GatewayResult.ok([ObjectiveRecord.model_validate(r) for r in response.data or []])


@gateway_call("loading objective", OBJECTIVES_TABLE)
def get_objective(
    supabase: Client, chapter_code: str, objective_code: str
) -> GatewayResult[ObjectiveRecord]:
    response = (
        supabase.table(OBJECTIVES_TABLE)
        .select("*")
        .eq("chapter_code", chapter_code)
        .eq("objective_code", objective_code)
        .limit(1)
        .execute()
    )
    if not response.data:
        return GatewayResult.fail(f"Objective {objective_code} not found")
    return GatewayResult.ok(ObjectiveRecord.model_validate(response.data[0]))
