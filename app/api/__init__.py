"""API router for v1 endpoints."""

from fastapi import APIRouter

from app.api import document_levels, extraction, generated_sops, pipeline, prompt_templates, reference, sop_documents

router = APIRouter()

# Historical SOP library
router.include_router(sop_documents.router, tags=["sop_documents"])

# Five-level document hierarchy
router.include_router(document_levels.router, tags=["document_levels"])

# Chapters and objective interpretations
router.include_router(reference.router, tags=["reference"])

# Stored generation prompts
router.include_router(prompt_templates.router, tags=["prompt_templates"])

# Generated SOP records and PDFs
router.include_router(generated_sops.router, tags=["generated_sops"])

# Extraction adapter
router.include_router(extraction.router, tags=["extraction"])

# Content pipeline runs
router.include_router(pipeline.router, tags=["pipeline"])
