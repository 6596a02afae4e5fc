"""Result types for the extraction adapter."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

WORD_MIME_TYPES = (
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)


@dataclass
class SourceDocument:
    """An uploaded or fetched file awaiting extraction."""

    filename: str
    content: bytes
    mime_type: str

    @property
    def document_class(self) -> str | None:
        """'image', 'pdf', 'word' or None when unsupported."""
        mime = (self.mime_type or "").lower()
        if mime.startswith("image/"):
            return "image"
        if mime == "application/pdf":
            return "pdf"
        if mime in WORD_MIME_TYPES:
            return "word"
        return None


class ExtractionResult(BaseModel):
    """Text produced from one source document.

    ``success`` with an empty ``text`` is valid: the model returned nothing.
    """

    success: bool
    text: str = ""
    document_type: str | None = None
    error: str | None = None


class AnalysisSection(BaseModel):
    heading: str
    content: str


class DocumentAnalysis(BaseModel):
    """Structured analysis of extracted text."""

    document_type: str
    title: str | None = None
    sections: list[AnalysisSection] = Field(default_factory=list)
    tables: list[dict[str, Any]] | None = None
    key_value_pairs: dict[str, Any] | None = None
    suggestions: list[str] = Field(default_factory=list)


class FilterResult(BaseModel):
    success: bool
    filtered_text: str | None = None
    error: str | None = None


class GenerationResult(BaseModel):
    success: bool
    sop: str = ""
    error: str | None = None


class CommitteeMember(BaseModel):
    name: str = ""
    role: str = ""
    designation: str = ""


class CommitteeData(BaseModel):
    name: str = ""
    description: str = ""
    objectives: list[str] = Field(default_factory=list)
    members: list[CommitteeMember] = Field(default_factory=list)
    meetingFrequency: str = ""
    responsibilities: list[str] = Field(default_factory=list)


class KPIEntry(BaseModel):
    name: str = ""
    category: str = ""
    target: float | str | None = Field(default=None, description="Numeric target or a threshold like '<1%'")
    unit: str = ""
    formula: str = ""


class KPIData(BaseModel):
    kpis: list[KPIEntry] = Field(default_factory=list)

    @field_validator("kpis", mode="before")
    @classmethod
    def drop_malformed_kpis(cls, v: Any) -> Any:
        """Skip entries that do not validate so one bad KPI keeps the rest."""
        if not isinstance(v, list):
            return v
        kept = []
        for item in v:
            try:
                kept.append(KPIEntry.model_validate(item))
            except ValidationError:
                continue
        return kept
