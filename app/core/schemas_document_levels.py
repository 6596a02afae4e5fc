"""Pydantic schemas for the document level hierarchy (nabh_document_levels)."""

from pydantic import BaseModel, Field

from app.core.schemas_sop import RecordStatus


class DocumentLevel(BaseModel):
    """One tier of the document hierarchy."""

    level: int
    label: str
    description: str
    color: str


DOCUMENT_LEVELS: list[DocumentLevel] = [
    DocumentLevel(
        level=1,
        label="Mission & Vision Statements",
        description="Organization's mission, vision, values and quality policy documents",
        color="#1565C0",
    ),
    DocumentLevel(
        level=2,
        label="Policies & Procedures",
        description="Hospital-wide policies and standard procedures",
        color="#2E7D32",
    ),
    DocumentLevel(
        level=3,
        label="Work Instructions",
        description="Detailed step-by-step work instructions for specific tasks",
        color="#ED6C02",
    ),
    DocumentLevel(
        level=4,
        label="Forms, Formats & Records",
        description="All forms, templates, checklists and record formats",
        color="#9C27B0",
    ),
    DocumentLevel(
        level=5,
        label="Documents of External Origin",
        description="External regulatory documents, guidelines and reference materials",
        color="#D32F2F",
    ),
]


class DocumentLevelItemCreate(BaseModel):
    """Writable fields of a document level item."""

    level: int = Field(ge=1, le=5)
    title: str = Field(min_length=1)
    description: str | None = None
    file_url: str | None = None
    file_type: str | None = None
    version: str = "1.0"
    status: RecordStatus = "Active"


class DocumentLevelItemUpdate(BaseModel):
    """Partial update for a document level item."""

    level: int | None = Field(default=None, ge=1, le=5)
    title: str | None = None
    description: str | None = None
    file_url: str | None = None
    file_type: str | None = None
    version: str | None = None
    status: RecordStatus | None = None


class DocumentLevelItem(DocumentLevelItemCreate):
    """Stored document level item."""

    id: str
    created_at: str | None = None
    updated_at: str | None = None
