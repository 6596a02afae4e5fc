"""Round-trip tests of the persistence gateway against the in-memory Supabase fake."""

from app.core.schemas_sop import (
    ChapterDataCreate,
    GeneratedSOPCreate,
    GeneratedSOPUpdate,
    SOPPromptTemplateCreate,
)
from app.db.chapter_data import list_chapter_data, save_chapter_data
from app.db.chapters import find_chapter_by_code, get_objective, list_chapters, list_objectives_by_chapter
from app.db.generated_sops import (
    create_generated_sop,
    delete_generated_sop,
    get_generated_sop,
    list_generated_sops,
    update_generated_sop,
)
from app.db.prompt_templates import create_prompt_template, get_prompt_template
from app.db.sop_documents import delete_sop_document, load_all_sops, load_sop_by_id, search_sops
from app.db.sop_storage import sop_pdf_path, upload_sop_pdf

SOP_HTML = (
    "<!DOCTYPE html>\n<html><head><style>td { padding: 4px; }</style></head>"
    "<body><h2>1. Purpose</h2>\n  <p>Ensure “uniform” care &amp; safety.</p>\t</body></html>"
)


def test_generated_sop_html_round_trips_byte_identical(fake_supabase):
    created = create_generated_sop(
        fake_supabase,
        GeneratedSOPCreate(chapter_code="COP", objective_code="COP.1", title="Uniform care", html_content=SOP_HTML),
    )
    assert created.success is True

    loaded = get_generated_sop(fake_supabase, created.data.id)

    assert loaded.success is True
    assert loaded.data.html_content == SOP_HTML
    assert loaded.data.html_content.encode("utf-8") == SOP_HTML.encode("utf-8")


def test_generated_sop_update_and_delete(fake_supabase):
    created = create_generated_sop(
        fake_supabase, GeneratedSOPCreate(chapter_code="COP", title="Uniform care", html_content="<p>v1</p>")
    )

    updated = update_generated_sop(
        fake_supabase, created.data.id, GeneratedSOPUpdate(html_content="<p>v2</p>", version="1.1")
    )
    assert updated.success is True
    assert updated.data.version == "1.1"
    assert updated.data.updated_at is not None

    assert delete_generated_sop(fake_supabase, created.data.id).success is True
    missing = get_generated_sop(fake_supabase, created.data.id)
    assert missing.success is False
    assert missing.error == "Generated SOP not found"


def test_generated_sops_listed_newest_first(fake_supabase):
    for title in ("First", "Second", "Third"):
        create_generated_sop(
            fake_supabase, GeneratedSOPCreate(chapter_code="COP", title=title, html_content="<p></p>")
        )

    result = list_generated_sops(fake_supabase, chapter_code="COP")

    assert [s.title for s in result.data] == ["Third", "Second", "First"]


def test_sops_sorted_by_chapter_then_title(fake_supabase):
    result = load_all_sops(fake_supabase)

    assert [(s.chapter_code, s.title) for s in result.data] == [
        ("AAC", "Registration SOP"),
        ("COP", "Admission SOP"),
        ("COP", "Patient Care SOP"),
    ]


def test_search_is_case_insensitive_over_content(fake_supabase):
    result = search_sops(fake_supabase, "REGISTRATION desk")

    assert [s.id for s in result.data] == ["sop-3"]


def test_search_treats_wildcards_literally(fake_supabase):
    assert search_sops(fake_supabase, "%").data == []
    assert search_sops(fake_supabase, "_").data == []

    fake_supabase.tables["nabh_sop_documents"].append(
        {"id": "sop-9", "chapter_code": "COP", "title": "Falls <1% target", "status": "Active"}
    )

    assert [s.id for s in search_sops(fake_supabase, "<1%").data] == ["sop-9"]


def test_search_with_blank_term_lists_everything(fake_supabase):
    result = search_sops(fake_supabase, "  ")

    assert len(result.data) == 3


def test_delete_then_load_reports_not_found(fake_supabase):
    assert delete_sop_document(fake_supabase, "sop-2").success is True

    result = load_sop_by_id(fake_supabase, "sop-2")

    assert result.success is False
    assert result.error == "SOP document not found"


def test_chapters_skip_rows_without_code(fake_supabase):
    result = list_chapters(fake_supabase)

    assert result.success is True
    assert [c.code for c in result.data] == ["AAC", "COP"]


def test_find_chapter_by_derived_code(fake_supabase):
    result = find_chapter_by_code(fake_supabase, "AAC")

    assert result.success is True
    assert result.data.id == "ch-1"


def test_find_unknown_chapter(fake_supabase):
    result = find_chapter_by_code(fake_supabase, "XYZ")

    assert result.success is False
    assert result.error == "Chapter XYZ not found"


def test_objectives_prefer_edited_interpretation(fake_supabase):
    result = list_objectives_by_chapter(fake_supabase, "COP")

    assert [o.objective_code for o in result.data] == ["COP.1", "COP.2"]
    assert result.data[0].interpretation == "Care is uniform across all settings."
    assert result.data[0].id == "11"
    assert result.data[1].interpretation == "Emergency care is guided by policies."


def test_get_objective_not_found(fake_supabase):
    result = get_objective(fake_supabase, "COP", "COP.9")

    assert result.success is False
    assert result.error == "Objective COP.9 not found"


def test_prompt_template_round_trip(fake_supabase):
    created = create_prompt_template(
        fake_supabase, SOPPromptTemplateCreate(name="Clinical", prompt_text="Use clinical tone")
    )

    loaded = get_prompt_template(fake_supabase, created.data.id)

    assert loaded.data.prompt_text == "Use clinical tone"
    assert loaded.data.is_active is True


def test_chapter_data_filtered_by_type(fake_supabase):
    save_chapter_data(
        fake_supabase, ChapterDataCreate(chapter_id="ch-2", data_type="documentation", content="raw")
    )
    save_chapter_data(
        fake_supabase,
        ChapterDataCreate(chapter_id="ch-2", objective_code="COP.1", data_type="final_sop", content="<p/>"),
    )

    result = list_chapter_data(fake_supabase, "ch-2", data_type="final_sop")

    assert len(result.data) == 1
    assert result.data[0].objective_code == "COP.1"
    assert result.data[0].created_by == "System"


def test_upload_sop_pdf_returns_public_url(fake_supabase):
    path = sop_pdf_path("COP", "SOP-COP-COP-1", "1.2")

    result = upload_sop_pdf(fake_supabase, "sop-pdfs", path, b"%PDF-1.7")

    assert path == "COP/SOP-COP-COP-1_v1.2.pdf"
    assert result.success is True
    assert result.data.endswith("/sop-pdfs/COP/SOP-COP-COP-1_v1.2.pdf")
    assert fake_supabase.storage.objects[("sop-pdfs", path)] == b"%PDF-1.7"
    assert fake_supabase.storage.options[("sop-pdfs", path)]["upsert"] == "true"


def test_backend_outage_is_a_failed_result(fake_supabase):
    fake_supabase.fail_with = ConnectionError("connection refused")

    result = list_chapters(fake_supabase)

    assert result.success is False
    assert result.error == "connection refused"
