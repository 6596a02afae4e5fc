"""Extraction adapter: document text, analysis, filtering and SOP generation
through a hosted generative model.

Every public coroutine returns a result object instead of raising. A missing
API credential fails before any network call; transport and API errors are
converted to ``success=False`` with the error message.
"""

from dataclasses import dataclass
from datetime import date

import httpx

from app.core.ai_client import AIClientError, ContentPart, GenerativeClient
from app.core.config import Settings
from app.core.docx_text import read_docx_text
from app.core.llm import (
    ensure_doctype,
    extract_html_block,
    extract_json_block,
    parse_json_model,
    strip_code_fences,
)
from app.core.logging import get_logger
from app.core.schemas_extraction import (
    AnalysisSection,
    CommitteeData,
    DocumentAnalysis,
    ExtractionResult,
    FilterResult,
    GenerationResult,
    KPIData,
    SourceDocument,
)
from app.core.sop_prompts import (
    ANALYSIS_PROMPTS,
    COMMITTEE_EXTRACTION_PROMPT,
    DEFAULT_EXTRACTION_PROMPTS,
    DEFAULT_IMPROVE_INSTRUCTIONS,
    DEFAULT_SUGGESTIONS,
    IMPROVE_PROMPT,
    IMPROVED_DOCUMENT_PROMPTS,
    KPI_EXTRACTION_PROMPT,
    build_filter_prompt,
    build_generation_prompt,
)
from app.core.sop_template import build_template_context, render_sop_template

logger = get_logger(__name__)

EXTRACTION_TEMPERATURE = 0.3
GENERATION_TEMPERATURE = 0.7
FILTER_TEMPERATURE = 0.2


@dataclass
class ChapterInfo:
    code: str
    name: str


class DocumentExtractor:
    """Adapter between the pipeline and the generative model."""

    def __init__(self, ai_client: GenerativeClient, http_client: httpx.AsyncClient, settings: Settings):
        self._ai = ai_client
        self._http = http_client
        self._settings = settings

    @property
    def ai_configured(self) -> bool:
        return self._ai.is_configured

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    async def extract_text(
        self, source: SourceDocument, task_prompt: str | None = None
    ) -> ExtractionResult:
        """
        Extract the text of an image, PDF or Word document.

        Args:
            source: File bytes and MIME type
            task_prompt: Overrides the default instruction for the document class

        Returns:
            ExtractionResult; ``text`` may be empty on success
        """
        if not self._ai.is_configured:
            return ExtractionResult(success=False, error=self._ai.not_configured_message)

        document_class = source.document_class
        if document_class is None:
            return ExtractionResult(success=False, error="Unsupported file type")

        if len(source.content) > self._settings.MAX_UPLOAD_BYTES:
            return ExtractionResult(
                success=False,
                error=f"File too large ({len(source.content)} bytes, "
                f"max {self._settings.MAX_UPLOAD_BYTES})",
            )

        prompt = task_prompt or DEFAULT_EXTRACTION_PROMPTS[document_class]

        try:
            if document_class == "word":
                body = read_docx_text(source.content, source.filename)
                parts = [ContentPart.from_text(prompt), ContentPart.from_text(body)]
            else:
                parts = [
                    ContentPart.from_text(prompt),
                    ContentPart.from_bytes(source.content, source.mime_type),
                ]
            text = await self._ai.generate(
                parts, temperature=EXTRACTION_TEMPERATURE, max_output_tokens=8192
            )
        except ValueError as e:
            return ExtractionResult(success=False, error=str(e))
        except AIClientError as e:
            logger.error(f"Extraction failed for {source.filename}: {e.message}")
            return ExtractionResult(success=False, error=e.message)

        logger.info(
            f"Extracted {len(text)} chars from {source.filename} ({document_class})"
        )
        return ExtractionResult(success=True, text=text, document_type=document_class)

    async def extract_from_url(self, url: str, prompt: str | None = None) -> ExtractionResult:
        """Fetch a remote document (normally a stored SOP PDF) and extract it."""
        try:
            response = await self._http.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch {url}: {e}")
            return ExtractionResult(success=False, error=f"Failed to fetch PDF: {e}")

        if response.status_code >= 400:
            return ExtractionResult(
                success=False,
                error=f"Failed to fetch PDF: {response.status_code} {response.reason_phrase}",
            )

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not content_type or content_type == "application/octet-stream":
            content_type = "application/pdf"

        source = SourceDocument(
            filename="document.pdf", content=response.content, mime_type=content_type
        )
        return await self.extract_text(source, prompt)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze_document(self, text: str, category: str) -> DocumentAnalysis:
        """
        Structured analysis of extracted text.

        Falls back to a single "Extracted Content" section holding the raw
        response when no JSON can be parsed. Never raises.
        """
        if not self._ai.is_configured:
            logger.warning("Document analysis skipped: AI provider not configured")
            return DocumentAnalysis(document_type="unknown", sections=[])

        template = ANALYSIS_PROMPTS.get(category, ANALYSIS_PROMPTS["stationery"])
        try:
            response_text = await self._ai.generate(
                [ContentPart.from_text(template.format(text=text))],
                temperature=EXTRACTION_TEMPERATURE,
                max_output_tokens=4096,
            )
        except AIClientError as e:
            logger.error(f"Document analysis failed: {e.message}")
            return DocumentAnalysis(document_type="unknown", sections=[])

        return self.parse_analysis(response_text, category)

    @staticmethod
    def parse_analysis(response_text: str, category: str) -> DocumentAnalysis:
        parsed = extract_json_block(response_text)
        if parsed is not None:
            sections = []
            for item in parsed.get("sections") or []:
                if isinstance(item, dict):
                    sections.append(
                        AnalysisSection(
                            heading=str(item.get("heading") or ""),
                            content=str(item.get("content") or ""),
                        )
                    )
            tables = parsed.get("tables")
            key_values = parsed.get("keyValuePairs")
            return DocumentAnalysis(
                document_type=parsed.get("documentType") or category,
                title=parsed.get("title") or parsed.get("committeeName"),
                sections=sections,
                tables=tables if isinstance(tables, list) else None,
                key_value_pairs=key_values if isinstance(key_values, dict) else None,
                suggestions=[str(s) for s in parsed.get("suggestions") or []],
            )

        return DocumentAnalysis(
            document_type=category,
            sections=[AnalysisSection(heading="Extracted Content", content=response_text)],
        )

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    async def filter_relevant_content(
        self,
        old_text: str,
        objective_code: str,
        title: str,
        interpretation: str,
        custom_prompt: str | None = None,
    ) -> FilterResult:
        """Keep only the passages of ``old_text`` relevant to one objective."""
        if not old_text or not old_text.strip():
            return FilterResult(success=False, error="No source text to filter")
        if not self._ai.is_configured:
            return FilterResult(success=False, error=self._ai.not_configured_message)

        prompt = build_filter_prompt(old_text, objective_code, title, interpretation, custom_prompt)
        try:
            filtered = await self._ai.generate(
                [ContentPart.from_text(prompt)],
                temperature=FILTER_TEMPERATURE,
                max_output_tokens=8192,
            )
        except AIClientError as e:
            logger.error(
                f"Filtering failed: {e.message}", extra={"objective_code": objective_code}
            )
            return FilterResult(success=False, error=e.message)

        return FilterResult(success=True, filtered_text=filtered)

    async def generate_document(
        self,
        merged_content: str,
        objective_context: str,
        chapter_info: ChapterInfo,
        custom_prompt: str | None = None,
        objective_code: str | None = None,
        title: str | None = None,
        today: date | None = None,
    ) -> GenerationResult:
        """
        Generate a complete HTML SOP from merged content.

        The fixed template (document number, dates, branding, authorization
        block) is rendered locally; the model fills the narrative sections.
        """
        if not (merged_content or "").strip() and not (custom_prompt or "").strip():
            return GenerationResult(success=False, error="No content available to generate SOP")
        if not self._ai.is_configured:
            return GenerationResult(success=False, error=self._ai.not_configured_message)

        context = build_template_context(
            self._settings,
            chapter_code=chapter_info.code,
            chapter_name=chapter_info.name,
            objective_code=objective_code,
            title=title,
            today=today,
        )
        prompt = build_generation_prompt(
            template=render_sop_template(context),
            merged_content=merged_content,
            objective_context=objective_context,
            chapter_code=chapter_info.code,
            chapter_name=chapter_info.name,
            objective_code=objective_code,
            custom_prompt=custom_prompt,
        )

        logger.info(
            f"Generating SOP {context.document_number}",
            extra={"chapter_code": chapter_info.code, "objective_code": objective_code},
        )
        try:
            raw = await self._ai.generate(
                [ContentPart.from_text(prompt)],
                temperature=GENERATION_TEMPERATURE,
                max_output_tokens=8192,
            )
        except AIClientError as e:
            logger.error(f"SOP generation failed: {e.message}")
            return GenerationResult(success=False, error=e.message)

        return self._finish_html(raw)

    async def improve_document(
        self, html: str, instructions: str | None = None
    ) -> GenerationResult:
        """Polish an existing SOP (AI-only or with chat instructions)."""
        if not (html or "").strip():
            return GenerationResult(success=False, error="No SOP content to improve")
        if not self._ai.is_configured:
            return GenerationResult(success=False, error=self._ai.not_configured_message)

        prompt = IMPROVE_PROMPT.format(
            instructions=instructions or DEFAULT_IMPROVE_INSTRUCTIONS, html=html
        )
        try:
            raw = await self._ai.generate(
                [ContentPart.from_text(prompt)],
                temperature=GENERATION_TEMPERATURE,
                max_output_tokens=8192,
            )
        except AIClientError as e:
            logger.error(f"SOP improvement failed: {e.message}")
            return GenerationResult(success=False, error=e.message)

        return self._finish_html(raw)

    @staticmethod
    def _finish_html(raw: str) -> GenerationResult:
        sop = strip_code_fences(raw)
        if not sop:
            return GenerationResult(success=False, error="Model returned no SOP content")
        return GenerationResult(success=True, sop=ensure_doctype(sop))

    # ------------------------------------------------------------------
    # Other document categories
    # ------------------------------------------------------------------

    async def generate_improved_document(
        self,
        extracted_text: str,
        category: str,
        suggestions: str = "",
        hospital_name: str | None = None,
    ) -> str:
        """Redesign a stationery/committee/KPI/presentation document as HTML ('' on failure)."""
        if not self._ai.is_configured:
            return ""

        key = category if category in IMPROVED_DOCUMENT_PROMPTS else "stationery"
        prompt = IMPROVED_DOCUMENT_PROMPTS[key].format(
            text=extracted_text,
            suggestions=suggestions or DEFAULT_SUGGESTIONS[key],
            hospital_name=hospital_name or self._settings.HOSPITAL_NAME,
        )
        try:
            content = await self._ai.generate(
                [ContentPart.from_text(prompt)],
                temperature=GENERATION_TEMPERATURE,
                max_output_tokens=8192,
            )
        except AIClientError as e:
            logger.error(f"Improved document generation failed: {e.message}")
            return ""

        return extract_html_block(content)

    async def extract_committee_data(self, text: str) -> CommitteeData:
        raw = await self._json_call(COMMITTEE_EXTRACTION_PROMPT.format(text=text), 2048)
        return parse_json_model(raw, CommitteeData, CommitteeData())

    async def extract_kpi_data(self, text: str) -> KPIData:
        raw = await self._json_call(KPI_EXTRACTION_PROMPT.format(text=text), 4096)
        return parse_json_model(raw, KPIData, KPIData())

    async def _json_call(self, prompt: str, max_tokens: int) -> str:
        if not self._ai.is_configured:
            return ""
        try:
            return await self._ai.generate(
                [ContentPart.from_text(prompt)],
                temperature=EXTRACTION_TEMPERATURE,
                max_output_tokens=max_tokens,
            )
        except AIClientError as e:
            logger.error(f"Structured extraction failed: {e.message}")
            return ""
