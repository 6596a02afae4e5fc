"""API endpoints for document extraction and analysis.

Adapter results are returned as-is: ``success=False`` carries the adapter's
error message and is not an HTTP error.
"""

import mimetypes
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field

from app.api.deps import get_extractor
from app.core.document_extractor import DocumentExtractor
from app.core.schemas_extraction import (
    CommitteeData,
    DocumentAnalysis,
    ExtractionResult,
    KPIData,
    SourceDocument,
)

router = APIRouter()

ExtractorDep = Annotated[DocumentExtractor, Depends(get_extractor)]

DocumentCategory = Literal["stationery", "committee", "kpi", "presentation"]


class ExtractFromUrlRequest(BaseModel):
    url: str = Field(..., min_length=1)
    prompt: str | None = None


class AnalyzeRequest(BaseModel):
    text: str = Field(..., min_length=1)
    category: DocumentCategory = "stationery"


class ImproveDocumentRequest(BaseModel):
    text: str = Field(..., min_length=1)
    category: DocumentCategory = "stationery"
    suggestions: str = ""
    hospital_name: str | None = None


class ImproveDocumentResponse(BaseModel):
    success: bool
    html: str = ""
    error: str | None = None


class TextRequest(BaseModel):
    text: str = Field(..., min_length=1)


async def to_source_document(file: UploadFile) -> SourceDocument:
    """Read an upload; the MIME type falls back to a guess from the filename."""
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    filename = file.filename or "upload"
    mime_type = file.content_type
    if not mime_type or mime_type == "application/octet-stream":
        mime_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return SourceDocument(filename=filename, content=content, mime_type=mime_type)


@router.post("/extraction/extract")
async def extract_upload(
    extractor: ExtractorDep,
    file: UploadFile = File(...),
    prompt: str | None = Form(default=None),
) -> ExtractionResult:
    """Extract the text of an uploaded image, PDF or Word document."""
    source = await to_source_document(file)
    return await extractor.extract_text(source, prompt)


@router.post("/extraction/extract-url")
async def extract_url(body: ExtractFromUrlRequest, extractor: ExtractorDep) -> ExtractionResult:
    return await extractor.extract_from_url(body.url, body.prompt)


@router.post("/extraction/analyze")
async def analyze(body: AnalyzeRequest, extractor: ExtractorDep) -> DocumentAnalysis:
    return await extractor.analyze_document(body.text, body.category)


@router.post("/extraction/improve-document")
async def improve_document(body: ImproveDocumentRequest, extractor: ExtractorDep) -> ImproveDocumentResponse:
    """Redesign a stationery, committee, KPI or presentation document as HTML."""
    html = await extractor.generate_improved_document(
        body.text, body.category, body.suggestions, body.hospital_name
    )
    if not html:
        return ImproveDocumentResponse(success=False, error="Failed to generate improved document")
    return ImproveDocumentResponse(success=True, html=html)


@router.post("/extraction/committee")
async def extract_committee(body: TextRequest, extractor: ExtractorDep) -> CommitteeData:
    return await extractor.extract_committee_data(body.text)


@router.post("/extraction/kpi")
async def extract_kpis(body: TextRequest, extractor: ExtractorDep) -> KPIData:
    return await extractor.extract_kpi_data(body.text)
