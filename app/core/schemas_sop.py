"""Pydantic schemas for SOP documents, generated SOPs and prompt templates."""

from typing import Literal

from pydantic import BaseModel, Field

RecordStatus = Literal["Active", "Draft", "Archived"]
ChapterDataType = Literal["documentation", "final_sop"]


# ============================================================================
# Historical SOP documents (nabh_sop_documents)
# ============================================================================


class SOPDocumentCreate(BaseModel):
    """Writable fields of an uploaded/linked SOP document."""

    chapter_code: str
    chapter_name: str | None = None
    title: str
    description: str | None = None
    google_drive_url: str | None = None
    google_drive_file_id: str | None = None
    pdf_url: str | None = None
    pdf_urls: list[str] = Field(default_factory=list)
    extracted_content: str | None = None
    version: str = "1.0"
    effective_date: str | None = None
    review_date: str | None = None
    category: str | None = None
    department: str | None = None
    author: str | None = None
    status: str = "Active"
    tags: list[str] = Field(default_factory=list)
    is_public: bool = False
    created_by: str | None = None


class SOPDocumentUpdate(BaseModel):
    """Partial update for an SOP document."""

    chapter_code: str | None = None
    chapter_name: str | None = None
    title: str | None = None
    description: str | None = None
    google_drive_url: str | None = None
    google_drive_file_id: str | None = None
    pdf_url: str | None = None
    pdf_urls: list[str] | None = None
    extracted_content: str | None = None
    version: str | None = None
    effective_date: str | None = None
    review_date: str | None = None
    category: str | None = None
    department: str | None = None
    author: str | None = None
    status: str | None = None
    tags: list[str] | None = None
    is_public: bool | None = None


class SOPDocument(SOPDocumentCreate):
    """Stored SOP document."""

    id: str
    pdf_urls: list[str] | None = None
    tags: list[str] | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def source_urls(self) -> list[str]:
        """PDF locations to extract from, preferring the multi-file list."""
        if self.pdf_urls:
            return list(self.pdf_urls)
        return [self.pdf_url] if self.pdf_url else []


# ============================================================================
# Generated SOPs (nabh_generated_sops)
# ============================================================================


class GeneratedSOPCreate(BaseModel):
    """Fields persisted when a generated SOP is saved."""

    chapter_id: str | None = None
    chapter_code: str
    chapter_name: str | None = None
    objective_code: str | None = None
    objective_title: str | None = None
    title: str
    html_content: str
    version: str = "1.0"
    document_number: str | None = None
    pdf_url: str | None = None
    filtered_text: str | None = None
    merged_content: str | None = None
    prompt_template_id: str | None = None
    created_by: str | None = None
    status: RecordStatus = "Draft"


class GeneratedSOPUpdate(BaseModel):
    """Partial update for a generated SOP (new version, edits, status)."""

    title: str | None = None
    html_content: str | None = None
    version: str | None = None
    pdf_url: str | None = None
    filtered_text: str | None = None
    merged_content: str | None = None
    status: RecordStatus | None = None


class GeneratedSOP(GeneratedSOPCreate):
    """Stored generated SOP."""

    id: str
    created_at: str | None = None
    updated_at: str | None = None


# ============================================================================
# Prompt templates (nabh_sop_prompts)
# ============================================================================


class SOPPromptTemplateCreate(BaseModel):
    """Writable fields of a stored generation prompt."""

    name: str
    description: str | None = None
    category: str | None = None
    prompt_text: str
    is_active: bool = True


class SOPPromptTemplateUpdate(BaseModel):
    """Partial update for a prompt template."""

    name: str | None = None
    description: str | None = None
    category: str | None = None
    prompt_text: str | None = None
    is_active: bool | None = None


class SOPPromptTemplate(SOPPromptTemplateCreate):
    """Stored prompt template."""

    id: str
    created_at: str | None = None
    updated_at: str | None = None


# ============================================================================
# Chapter data snapshots (nabh_chapter_data)
# ============================================================================


class ChapterDataCreate(BaseModel):
    """A saved documentation box or final SOP for a chapter/objective."""

    chapter_id: str
    objective_code: str | None = None
    data_type: ChapterDataType
    content: str
    created_by: str = "System"


class ChapterDataEntry(ChapterDataCreate):
    """Stored chapter data snapshot."""

    id: str
    created_at: str | None = None
