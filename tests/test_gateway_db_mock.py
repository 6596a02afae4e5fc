"""Tests for the persistence gateway with mocked Supabase query chains."""

from unittest.mock import MagicMock

import pytest

from app.core.schemas_document_levels import DocumentLevelItemCreate, DocumentLevelItemUpdate
from app.core.schemas_sop import GeneratedSOPCreate, SOPDocumentCreate, SOPDocumentUpdate
from app.db.document_levels import load_all_documents, load_documents_by_level, save_document, update_document
from app.db.generated_sops import create_generated_sop, list_generated_sops
from app.db.prompt_templates import list_prompt_templates
from app.db.sop_documents import (
    load_all_sops,
    load_sop_by_id,
    load_sops_by_chapter,
    save_sop_document,
    search_sops,
    update_sop_document,
)


class APIError(Exception):
    """Shape of a PostgREST error: message attribute plus code."""

    def __init__(self, error: dict):
        super().__init__(str(error))
        self.message = error.get("message")
        self.code = error.get("code")


@pytest.fixture
def mock_supabase():
    """Supabase client whose builder methods chain back to one query mock."""
    client = MagicMock()
    query = client.table.return_value
    for method in ("select", "insert", "update", "delete", "eq", "ilike", "or_", "order", "limit"):
        getattr(query, method).return_value = query
    return client


def _respond(mock_supabase, data):
    mock_supabase.table.return_value.execute.return_value = MagicMock(data=data)


class TestSOPDocuments:
    def test_save_returns_stored_row(self, mock_supabase):
        _respond(mock_supabase, [{"id": "sop-1", "chapter_code": "AAC", "title": "Triage"}])

        result = save_sop_document(mock_supabase, SOPDocumentCreate(chapter_code="AAC", title="Triage"))

        assert result.success is True
        assert result.error is None
        assert result.data.id == "sop-1"
        mock_supabase.table.assert_called_with("nabh_sop_documents")
        inserted = mock_supabase.table.return_value.insert.call_args[0][0]
        assert inserted["title"] == "Triage"
        assert inserted["pdf_urls"] == []

    def test_load_all_orders_by_chapter_then_title(self, mock_supabase):
        _respond(mock_supabase, [])

        result = load_all_sops(mock_supabase)

        assert result.success is True
        assert result.data == []
        order_calls = mock_supabase.table.return_value.order.call_args_list
        assert [c.args[0] for c in order_calls] == ["chapter_code", "title"]
        assert all(c.kwargs == {"desc": False} for c in order_calls)

    def test_load_by_chapter_filters_and_orders(self, mock_supabase):
        _respond(mock_supabase, [{"id": "1", "chapter_code": "COP", "title": "A"}])

        result = load_sops_by_chapter(mock_supabase, "COP")

        assert result.success is True
        mock_supabase.table.return_value.eq.assert_called_once_with("chapter_code", "COP")
        mock_supabase.table.return_value.order.assert_called_once_with("title", desc=False)

    def test_load_by_id_not_found(self, mock_supabase):
        _respond(mock_supabase, [])

        result = load_sop_by_id(mock_supabase, "missing")

        assert result.success is False
        assert result.data is None
        assert result.error == "SOP document not found"

    def test_update_writes_only_set_fields_and_stamps_updated_at(self, mock_supabase):
        _respond(mock_supabase, [{"id": "sop-1", "chapter_code": "AAC", "title": "Renamed"}])

        result = update_sop_document(mock_supabase, "sop-1", SOPDocumentUpdate(title="Renamed"))

        assert result.success is True
        payload = mock_supabase.table.return_value.update.call_args[0][0]
        assert set(payload) == {"title", "updated_at"}
        mock_supabase.table.return_value.eq.assert_called_once_with("id", "sop-1")

    def test_search_uses_ilike_over_three_columns(self, mock_supabase):
        _respond(mock_supabase, [])

        search_sops(mock_supabase, "hand hygiene")

        expression = mock_supabase.table.return_value.or_.call_args[0][0]
        assert expression == (
            "title.ilike.%hand hygiene%,"
            "description.ilike.%hand hygiene%,"
            "extracted_content.ilike.%hand hygiene%"
        )

    def test_search_strips_filter_syntax(self, mock_supabase):
        _respond(mock_supabase, [])

        search_sops(mock_supabase, "fire (drill), 2024")

        expression = mock_supabase.table.return_value.or_.call_args[0][0]
        assert expression.count(",") == 2
        assert "(" not in expression

    def test_search_escapes_like_wildcards(self, mock_supabase):
        _respond(mock_supabase, [])

        search_sops(mock_supabase, "100%_done")

        expression = mock_supabase.table.return_value.or_.call_args[0][0]
        assert expression.startswith("title.ilike.%100\\%\\_done%,")

    def test_backend_exception_becomes_failed_result(self, mock_supabase):
        mock_supabase.table.return_value.execute.side_effect = APIError(
            {"message": "relation does not exist", "code": "42P01"}
        )

        result = load_all_sops(mock_supabase)

        assert result.success is False
        assert result.data is None
        assert result.error == "relation does not exist"


class TestDocumentLevels:
    def test_by_level_newest_first(self, mock_supabase):
        _respond(mock_supabase, [{"id": "d1", "level": 2, "title": "Policy"}])

        result = load_documents_by_level(mock_supabase, 2)

        assert result.success is True
        assert result.data[0].level == 2
        mock_supabase.table.assert_called_with("nabh_document_levels")
        mock_supabase.table.return_value.eq.assert_called_once_with("level", 2)
        mock_supabase.table.return_value.order.assert_called_once_with("created_at", desc=True)

    def test_all_by_level_then_newest(self, mock_supabase):
        _respond(mock_supabase, [])

        load_all_documents(mock_supabase)

        order_calls = mock_supabase.table.return_value.order.call_args_list
        assert [(c.args[0], c.kwargs["desc"]) for c in order_calls] == [
            ("level", False),
            ("created_at", True),
        ]

    def test_save_stamps_timestamps(self, mock_supabase):
        _respond(mock_supabase, [{"id": "d1", "level": 1, "title": "Mission"}])

        save_document(mock_supabase, DocumentLevelItemCreate(level=1, title="Mission"))

        record = mock_supabase.table.return_value.insert.call_args[0][0]
        assert record["created_at"] == record["updated_at"]
        assert record["status"] == "Active"
        assert record["version"] == "1.0"

    def test_update_stamps_updated_at(self, mock_supabase):
        _respond(mock_supabase, [{"id": "d1", "level": 1, "title": "Mission"}])

        update_document(mock_supabase, "d1", DocumentLevelItemUpdate(status="Archived"))

        payload = mock_supabase.table.return_value.update.call_args[0][0]
        assert payload["status"] == "Archived"
        assert "updated_at" in payload


class TestGeneratedSOPs:
    def test_create_stores_html_verbatim(self, mock_supabase):
        html = "<!DOCTYPE html>\n<html><body><h2>1. Purpose</h2> </body></html>"
        _respond(
            mock_supabase,
            [{"id": "g1", "chapter_code": "COP", "title": "T", "html_content": html, "version": "1.0"}],
        )

        result = create_generated_sop(
            mock_supabase, GeneratedSOPCreate(chapter_code="COP", title="T", html_content=html)
        )

        assert result.success is True
        inserted = mock_supabase.table.return_value.insert.call_args[0][0]
        assert inserted["html_content"] == html
        assert inserted["status"] == "Draft"

    def test_list_applies_filters_newest_first(self, mock_supabase):
        _respond(mock_supabase, [])

        list_generated_sops(mock_supabase, chapter_code="COP", status="Active", search="care", limit=5)

        query = mock_supabase.table.return_value
        assert [c.args for c in query.eq.call_args_list] == [("chapter_code", "COP"), ("status", "Active")]
        query.ilike.assert_called_once_with("title", "%care%")
        query.order.assert_called_once_with("created_at", desc=True)
        query.limit.assert_called_once_with(5)


class TestPromptTemplates:
    def test_active_only_and_category(self, mock_supabase):
        _respond(mock_supabase, [{"id": "p1", "name": "Clinical", "prompt_text": "Be clinical"}])

        result = list_prompt_templates(mock_supabase, active_only=True, category="clinical")

        assert result.success is True
        assert result.data[0].name == "Clinical"
        query = mock_supabase.table.return_value
        assert [c.args for c in query.eq.call_args_list] == [("is_active", True), ("category", "clinical")]
        query.order.assert_called_once_with("name", desc=False)
