"""Content pipeline for one (chapter, objective) selection.

Stages: select context -> extract -> filter -> merge -> generate -> improve
-> save. Each stage reads the previous stage's output from the run and
writes its own. Any stage can be re-run; when an upstream value changes all
downstream outputs are cleared so a run never mixes outputs of different
inputs.

A stage called before its inputs exist raises ``PipelineError``. A stage
whose adapter or gateway call fails returns ``StageResult(success=False)``
and leaves the run untouched apart from ``last_error``.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Awaitable, Callable, Literal, NoReturn
from uuid import uuid4

from supabase import Client

from app.core.config import Settings
from app.core.document_extractor import ChapterInfo, DocumentExtractor
from app.core.logging import get_logger
from app.core.pdf_renderer import PDFRenderError, render_pdf
from app.core.schemas_extraction import SourceDocument
from app.core.schemas_reference import ChapterRecord, ObjectiveRecord
from app.core.schemas_sop import (
    ChapterDataCreate,
    ChapterDataType,
    GeneratedSOPCreate,
    GeneratedSOPUpdate,
    RecordStatus,
)
from app.core.sop_template import derive_document_number
from app.db.chapter_data import save_chapter_data
from app.db.chapters import find_chapter_by_code, get_objective
from app.db.generated_sops import create_generated_sop, update_generated_sop
from app.db.prompt_templates import get_prompt_template
from app.db.sop_documents import load_sops_by_chapter
from app.db.sop_storage import sop_pdf_path, upload_sop_pdf

logger = get_logger(__name__)

INITIAL_VERSION = "1.0"
VERSION_STEP = Decimal("0.1")
MAX_STORED_RUNS = 500


class PipelineStage(str, Enum):
    IDLE = "idle"
    CONTEXT_READY = "context_ready"
    HAS_RAW_TEXT = "has_raw_text"
    HAS_FILTERED_TEXT = "has_filtered_text"
    HAS_MERGED_TEXT = "has_merged_text"
    HAS_GENERATED_SOP = "has_generated_sop"
    PERSISTED = "persisted"


def merge_content(title: str | None, interpretation: str | None, filtered: str | None) -> str:
    """Header-concatenate the non-empty fragments in fixed order."""
    parts = []
    if title:
        parts.append(f"=== TITLE ===\n{title}")
    if interpretation:
        parts.append(f"=== INTERPRETATION ===\n{interpretation}")
    if filtered:
        parts.append(f"=== FILTERED CONTENT ===\n{filtered}")
    return "\n\n".join(parts).strip()


def next_version(current: str | None) -> str:
    """Decimal +0.1 increment: 1.0 -> 1.1 -> 1.2 ... 1.9 -> 2.0."""
    try:
        value = Decimal(current or INITIAL_VERSION)
    except InvalidOperation:
        value = Decimal(INITIAL_VERSION)
    return str((value + VERSION_STEP).quantize(VERSION_STEP))


@dataclass
class VersionEntry:
    version: str
    html: str
    source: Literal["generate", "ai", "chat", "edit"]
    instructions: str | None = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class PipelineError(Exception):
    """A stage was invoked before its inputs exist."""


@dataclass
class StageResult:
    success: bool
    error: str | None = None
    message: str | None = None


@dataclass
class PipelineRun:
    """In-memory state of one pipeline run."""

    run_id: str = field(default_factory=lambda: str(uuid4()))
    created_by: str | None = None

    chapter: ChapterRecord | None = None
    objective: ObjectiveRecord | None = None

    raw_text: str = ""
    objective_title: str = ""
    objective_interpretation: str = ""
    filtered_text: str = ""
    merged_text: str = ""
    generation_instructions: str = ""
    prompt_template_id: str | None = None
    generated_html: str = ""
    improved_html: str = ""

    version: str = INITIAL_VERSION
    version_history: list[VersionEntry] = field(default_factory=list)
    saved_sop_id: str | None = None
    pdf_url: str | None = None
    dirty: bool = False
    last_error: str | None = None

    @property
    def chapter_code(self) -> str | None:
        return self.chapter.code if self.chapter else None

    @property
    def objective_code(self) -> str | None:
        return self.objective.objective_code if self.objective else None

    @property
    def current_html(self) -> str:
        return self.improved_html or self.generated_html

    @property
    def document_number(self) -> str | None:
        if not self.chapter:
            return None
        return derive_document_number(self.chapter.code, self.objective_code)

    @property
    def stage(self) -> PipelineStage:
        if self.chapter is None:
            return PipelineStage.IDLE
        if self.current_html:
            if self.saved_sop_id and not self.dirty:
                return PipelineStage.PERSISTED
            return PipelineStage.HAS_GENERATED_SOP
        if self.merged_text:
            return PipelineStage.HAS_MERGED_TEXT
        if self.filtered_text:
            return PipelineStage.HAS_FILTERED_TEXT
        if self.raw_text:
            return PipelineStage.HAS_RAW_TEXT
        return PipelineStage.CONTEXT_READY

    # -- invalidation -------------------------------------------------

    def _clear_sop(self) -> None:
        self.generated_html = ""
        self.improved_html = ""
        self.version = INITIAL_VERSION
        self.version_history = []
        self.saved_sop_id = None
        self.pdf_url = None
        self.dirty = False

    def _clear_from_merge(self) -> None:
        self.merged_text = ""
        self._clear_sop()

    def _clear_from_filter(self) -> None:
        self.filtered_text = ""
        self._clear_from_merge()

    # -- setters used by stages and manual edits ------------------------

    def set_context(self, chapter: ChapterRecord, objective: ObjectiveRecord | None) -> None:
        """Select chapter/objective; every stage output is cleared on change."""
        same = (
            self.chapter is not None
            and self.chapter.id == chapter.id
            and (self.objective.objective_code if self.objective else None)
            == (objective.objective_code if objective else None)
        )
        self.chapter = chapter
        self.objective = objective
        if same:
            return
        self.raw_text = ""
        self.objective_title = objective.title if objective else ""
        self.objective_interpretation = objective.interpretation if objective else ""
        self._clear_from_filter()

    def set_raw_text(self, text: str) -> None:
        if text != self.raw_text:
            self.raw_text = text
            self._clear_from_filter()

    def set_objective_text(self, title: str | None = None, interpretation: str | None = None) -> None:
        changed = False
        if title is not None and title != self.objective_title:
            self.objective_title = title
            changed = True
        if interpretation is not None and interpretation != self.objective_interpretation:
            self.objective_interpretation = interpretation
            changed = True
        if changed:
            self._clear_from_filter()

    def set_filtered_text(self, text: str) -> None:
        if text != self.filtered_text:
            self.filtered_text = text
            self._clear_from_merge()

    def set_merged_text(self, text: str) -> None:
        if text != self.merged_text:
            self.merged_text = text
            self._clear_sop()

    def set_generation_inputs(
        self, instructions: str | None = None, prompt_template_id: str | None = None
    ) -> None:
        changed = False
        if instructions is not None and instructions != self.generation_instructions:
            self.generation_instructions = instructions
            changed = True
        if prompt_template_id is not None and prompt_template_id != self.prompt_template_id:
            self.prompt_template_id = prompt_template_id or None
            changed = True
        if changed:
            self._clear_sop()

    def set_generated_sop(self, html: str) -> None:
        """A fresh generation restarts the version line at 1.0."""
        self._clear_sop()
        self.generated_html = html
        self.version_history = [VersionEntry(INITIAL_VERSION, html, "generate")]

    def apply_improvement(self, html: str, source: str, instructions: str | None) -> None:
        self.version = next_version(self.version)
        self.improved_html = html
        self.version_history.append(VersionEntry(self.version, html, source, instructions))
        self.pdf_url = None
        self.dirty = True

    def edit_sop(self, html: str) -> None:
        """Direct edit of the current SOP; same version, unsaved."""
        if not self.current_html:
            self.generated_html = html
            self.version_history = [VersionEntry(self.version, html, "edit")]
        elif self.improved_html:
            self.improved_html = html
        else:
            self.generated_html = html
        self.pdf_url = None
        self.dirty = True


class PipelineRunStore:
    """Process-local registry of runs, oldest evicted first."""

    def __init__(self, max_runs: int = MAX_STORED_RUNS):
        self._runs: OrderedDict[str, PipelineRun] = OrderedDict()
        self._max_runs = max_runs

    def add(self, run: PipelineRun) -> PipelineRun:
        self._runs[run.run_id] = run
        while len(self._runs) > self._max_runs:
            evicted, _ = self._runs.popitem(last=False)
            logger.debug(f"Evicted pipeline run {evicted}")
        return run

    def get(self, run_id: str) -> PipelineRun | None:
        return self._runs.get(run_id)

    def remove(self, run_id: str) -> bool:
        return self._runs.pop(run_id, None) is not None

    def __len__(self) -> int:
        return len(self._runs)


PdfRenderer = Callable[[str], Awaitable[bytes]]


class SOPPipeline:
    """Runs pipeline stages against injected backend and AI adapters."""

    def __init__(
        self,
        supabase: Client,
        extractor: DocumentExtractor,
        settings: Settings,
        pdf_renderer: PdfRenderer = render_pdf,
    ):
        self._supabase = supabase
        self._extractor = extractor
        self._settings = settings
        self._render_pdf = pdf_renderer

    def _fail(self, run: PipelineRun, stage: str, error: str) -> StageResult:
        run.last_error = error
        logger.warning(
            f"Stage {stage} failed: {error}",
            extra={
                "run_id": run.run_id,
                "stage": stage,
                "chapter_code": run.chapter_code,
                "objective_code": run.objective_code,
            },
        )
        return StageResult(success=False, error=error)

    def _invalid(self, run: PipelineRun, error: str) -> NoReturn:
        run.last_error = error
        raise PipelineError(error)

    def _ok(self, run: PipelineRun, stage: str, message: str) -> StageResult:
        run.last_error = None
        logger.info(
            message,
            extra={
                "run_id": run.run_id,
                "stage": stage,
                "chapter_code": run.chapter_code,
                "objective_code": run.objective_code,
            },
        )
        return StageResult(success=True, message=message)

    # -- context --------------------------------------------------------

    async def select_context(
        self, run: PipelineRun, chapter_code: str, objective_code: str | None = None
    ) -> StageResult:
        """Idle -> Context Ready. Loads and validates chapter and objective."""
        chapter_result = find_chapter_by_code(self._supabase, chapter_code)
        if not chapter_result.success:
            return self._fail(run, "select", chapter_result.error)

        objective = None
        if objective_code:
            objective_result = get_objective(self._supabase, chapter_code, objective_code)
            if not objective_result.success:
                return self._fail(run, "select", objective_result.error)
            objective = objective_result.data

        run.set_context(chapter_result.data, objective)
        return self._ok(run, "select", f"Selected {chapter_code} {objective_code or ''}".strip())

    # -- extract --------------------------------------------------------

    async def run_extract(
        self,
        run: PipelineRun,
        uploads: list[SourceDocument] | None = None,
        include_stored_sops: bool = True,
        prompt: str | None = None,
    ) -> StageResult:
        """Extract every source sequentially and store the concatenated text."""
        if run.chapter is None:
            self._invalid(run, "Please select a chapter first")

        blocks: list[str] = []
        extracted = 0
        attempted = 0
        errors: list[str] = []

        for upload in uploads or []:
            attempted += 1
            result = await self._extractor.extract_text(upload, prompt)
            if result.success and result.text:
                blocks.append(f"=== SOP SOURCE: {upload.filename} ===\n{result.text}")
                extracted += 1
            elif not result.success:
                errors.append(f"{upload.filename}: {result.error}")

        if include_stored_sops:
            sops = load_sops_by_chapter(self._supabase, run.chapter.code)
            if not sops.success:
                return self._fail(run, "extract", sops.error)
            for sop in sops.data:
                urls = sop.source_urls()
                if not urls:
                    continue
                texts = []
                for url in urls:
                    attempted += 1
                    result = await self._extractor.extract_from_url(url, prompt)
                    if result.success and result.text:
                        texts.append(result.text)
                        extracted += 1
                    elif not result.success:
                        errors.append(f"{sop.title}: {result.error}")
                if texts:
                    blocks.append(f"=== SOP SOURCE: {sop.title} ===\n" + "\n".join(texts))

        if attempted == 0:
            self._invalid(run, f"No source documents found for chapter {run.chapter.code}")
        if extracted == 0:
            detail = "; ".join(errors) if errors else "sources contained no text"
            return self._fail(run, "extract", f"No text could be extracted ({detail})")

        run.set_raw_text("\n\n".join(blocks).strip())
        message = f"Extracted content from {extracted} of {attempted} documents"
        if errors:
            message += f" ({len(errors)} failed)"
        return self._ok(run, "extract", message)

    # -- filter ---------------------------------------------------------

    async def run_filter(self, run: PipelineRun, custom_prompt: str | None = None) -> StageResult:
        """HasRawText -> HasFilteredText."""
        if run.objective is None:
            self._invalid(run, "Please select an objective first")
        if not run.raw_text.strip():
            self._invalid(run, "Extract source text before filtering")

        result = await self._extractor.filter_relevant_content(
            run.raw_text,
            run.objective.objective_code,
            run.objective_title,
            run.objective_interpretation,
            custom_prompt,
        )
        if not result.success:
            return self._fail(run, "filter", result.error)

        run.set_filtered_text((result.filtered_text or "").strip())
        return self._ok(run, "filter", f"Filtered content to {len(run.filtered_text)} chars")

    # -- merge ----------------------------------------------------------

    def run_merge(self, run: PipelineRun) -> StageResult:
        merged = merge_content(run.objective_title, run.objective_interpretation, run.filtered_text)
        if not merged:
            self._invalid(run, "Nothing to merge: title, interpretation and filtered text are empty")
        run.set_merged_text(merged)
        return self._ok(run, "merge", f"Merged content ({len(merged)} chars)")

    # -- generate -------------------------------------------------------

    async def run_generate(
        self,
        run: PipelineRun,
        instructions: str | None = None,
        prompt_template_id: str | None = None,
        today=None,
    ) -> StageResult:
        """HasMergedText -> HasGeneratedSOP at version 1.0."""
        if run.chapter is None:
            self._invalid(run, "Please select a chapter first")
        if not run.merged_text:
            self._invalid(run, "Merge content before generating the SOP")

        run.set_generation_inputs(instructions, prompt_template_id)

        custom_parts = []
        if run.prompt_template_id:
            template = get_prompt_template(self._supabase, run.prompt_template_id)
            if not template.success:
                return self._fail(run, "generate", template.error)
            custom_parts.append(template.data.prompt_text)
        if run.generation_instructions:
            custom_parts.append(run.generation_instructions)

        objective_context = (
            f"Title: {run.objective_title}\nInterpretation: {run.objective_interpretation}"
            if run.objective
            else ""
        )
        result = await self._extractor.generate_document(
            merged_content=run.merged_text,
            objective_context=objective_context,
            chapter_info=ChapterInfo(code=run.chapter.code, name=run.chapter.display_name),
            custom_prompt="\n\n".join(custom_parts) or None,
            objective_code=run.objective_code,
            title=run.objective_title or None,
            today=today,
        )
        if not result.success:
            return self._fail(run, "generate", result.error)

        run.set_generated_sop(result.sop)
        return self._ok(run, "generate", f"Generated SOP {run.document_number}")

    # -- improve --------------------------------------------------------

    async def run_improve(
        self,
        run: PipelineRun,
        instructions: str | None = None,
        source: Literal["ai", "chat"] = "ai",
    ) -> StageResult:
        """HasGeneratedSOP -> HasGeneratedSOP at the next version."""
        if not run.current_html:
            self._invalid(run, "Generate an SOP before improving it")

        result = await self._extractor.improve_document(run.current_html, instructions)
        if not result.success:
            return self._fail(run, "improve", result.error)

        run.apply_improvement(result.sop, source, instructions)
        return self._ok(run, "improve", f"Improved SOP to version {run.version}")

    # -- save -----------------------------------------------------------

    async def save(
        self,
        run: PipelineRun,
        status: RecordStatus = "Draft",
        with_pdf: bool = False,
    ) -> StageResult:
        """Persist the current SOP version (insert first time, update afterwards)."""
        if run.chapter is None or not run.current_html:
            self._invalid(run, "Ensure chapter is selected and SOP generated")

        html = run.current_html
        pdf_url = run.pdf_url
        if with_pdf:
            try:
                pdf_bytes = await self._render_pdf(html)
            except PDFRenderError as e:
                return self._fail(run, "save", str(e))
            path = sop_pdf_path(run.chapter.code, run.document_number, run.version)
            upload = upload_sop_pdf(self._supabase, self._settings.SOP_PDF_BUCKET, path, pdf_bytes)
            if not upload.success:
                return self._fail(run, "save", upload.error)
            pdf_url = upload.data

        title = run.objective_title or f"{run.chapter.display_name} SOP"
        if run.saved_sop_id:
            fields = {
                "title": title,
                "html_content": html,
                "version": run.version,
                "filtered_text": run.filtered_text or None,
                "merged_content": run.merged_text or None,
                "pdf_url": pdf_url,
                "status": status,
            }
            result = update_generated_sop(
                self._supabase, run.saved_sop_id, GeneratedSOPUpdate(**fields)
            )
        else:
            result = create_generated_sop(
                self._supabase,
                GeneratedSOPCreate(
                    chapter_id=run.chapter.id,
                    chapter_code=run.chapter.code,
                    chapter_name=run.chapter.display_name,
                    objective_code=run.objective_code,
                    objective_title=run.objective_title or None,
                    title=title,
                    html_content=html,
                    version=run.version,
                    document_number=run.document_number,
                    pdf_url=pdf_url,
                    filtered_text=run.filtered_text or None,
                    merged_content=run.merged_text or None,
                    prompt_template_id=run.prompt_template_id,
                    created_by=run.created_by,
                    status=status,
                ),
            )

        if not result.success:
            return self._fail(run, "save", result.error)

        run.saved_sop_id = result.data.id
        run.pdf_url = pdf_url
        run.dirty = False
        return self._ok(run, "save", f"Saved SOP {run.saved_sop_id} v{run.version}")

    async def save_chapter_snapshot(self, run: PipelineRun, data_type: ChapterDataType) -> StageResult:
        """Store the documentation text or final SOP under nabh_chapter_data."""
        content = run.raw_text if data_type == "documentation" else run.current_html
        if run.chapter is None or not content:
            self._invalid(run, "Ensure chapter is selected and content exists")

        result = save_chapter_data(
            self._supabase,
            ChapterDataCreate(
                chapter_id=run.chapter.id,
                objective_code=run.objective_code,
                data_type=data_type,
                content=content,
                created_by=run.created_by or "System",
            ),
        )
        if not result.success:
            return self._fail(run, "snapshot", result.error)
        return self._ok(run, "snapshot", f"Saved {data_type} for {run.chapter.code}")
