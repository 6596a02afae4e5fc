"""Pytest configuration and fixtures."""

import os
from datetime import date

import pytest

from app.core.config import Settings, get_settings
from tests.fakes.fake_supabase import FakeSupabase

# Required before any module builds Settings at import time
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["GEMINI_API_KEY"] = "test-gemini-key"
    os.environ["SOP_ENGINE_ENV"] = "test"
    get_settings.cache_clear()


TODAY = date(2026, 3, 15)

CHAPTER_ROWS = [
    {"id": "ch-1", "chapter_number": 1, "name": "AAC - Access, Assessment and Continuity of Care"},
    {"id": "ch-2", "chapter_number": 2, "name": "COP - Care of Patients", "code": "COP"},
    {"id": "ch-x", "chapter_number": 99, "name": "misc notes"},
]

OBJECTIVE_ROWS = [
    {
        "id": 11,
        "chapter_code": "COP",
        "objective_code": "COP.1",
        "title": "Uniform care of patients",
        "interpretation": "Stock interpretation",
        "interpretations2": "Care is uniform across all settings.",
    },
    {
        "id": 12,
        "chapter_code": "COP",
        "objective_code": "COP.2",
        "title": "Emergency services",
        "interpretation": "Emergency care is guided by policies.",
    },
]

SOP_ROWS = [
    {
        "id": "sop-1",
        "chapter_code": "COP",
        "title": "Patient Care SOP",
        "description": "Legacy care procedures",
        "pdf_urls": ["https://files.test/cop-care-1.pdf", "https://files.test/cop-care-2.pdf"],
        "status": "Active",
    },
    {
        "id": "sop-2",
        "chapter_code": "COP",
        "title": "Admission SOP",
        "pdf_url": "https://files.test/cop-admission.pdf",
        "status": "Active",
    },
    {
        "id": "sop-3",
        "chapter_code": "AAC",
        "title": "Registration SOP",
        "extracted_content": "Registration desk workflow",
        "status": "Active",
    },
]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        SUPABASE_URL="https://test.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="test-key",
        GEMINI_API_KEY="test-gemini-key",
        HOSPITAL_NAME="Hope Hospital",
        HOSPITAL_CONTACT="+91 712 000 0000",
    )


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase(
        {
            "nabh_chapters": CHAPTER_ROWS,
            "nabh_objective_edits": OBJECTIVE_ROWS,
            "nabh_sop_documents": SOP_ROWS,
        }
    )
