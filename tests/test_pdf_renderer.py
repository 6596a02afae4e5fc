"""Tests for print preparation of SOP HTML."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from app.core.pdf_renderer import PDFRenderError, pdf_filename, render_pdf, wrap_for_print


def test_wraps_body_and_injects_print_css():
    html = '<!DOCTYPE html><html><head><title>SOP</title></head><body class="sop"><h1>Hope</h1></body></html>'

    wrapped = wrap_for_print(html)

    assert '<body class="sop"><div class="sop-print-container"><h1>Hope</h1></div></body>' in wrapped
    assert wrapped.index("page-break-inside: avoid") < wrapped.index("</head>")
    assert wrapped.startswith("<!DOCTYPE html>")


def test_document_without_head_gets_one():
    wrapped = wrap_for_print("<html><body><p>x</p></body></html>")

    assert "<head><style>" in wrapped
    assert '<div class="sop-print-container"><p>x</p></div>' in wrapped


def test_fragment_becomes_full_document():
    wrapped = wrap_for_print("<p>fragment</p>")

    assert wrapped.startswith("<!DOCTYPE html><html><head>")
    assert '<div class="sop-print-container"><p>fragment</p></div>' in wrapped


def test_pdf_filename():
    assert pdf_filename("SOP-COP-COP-1", "1.2") == "SOP-COP-COP-1_v1.2.pdf"


@pytest.mark.asyncio
async def test_render_prints_a4_with_margins():
    page = MagicMock()
    page.set_content = AsyncMock()
    page.pdf = AsyncMock(return_value=b"%PDF-1.7")
    context = MagicMock(new_page=AsyncMock(return_value=page))
    browser = MagicMock(new_context=AsyncMock(return_value=context), close=AsyncMock())
    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    manager = MagicMock(
        __aenter__=AsyncMock(return_value=playwright), __aexit__=AsyncMock(return_value=False)
    )

    with patch("app.core.pdf_renderer.async_playwright", return_value=manager):
        pdf = await render_pdf("<html><body>SOP</body></html>")

    assert pdf == b"%PDF-1.7"
    browser.new_context.assert_awaited_once_with(device_scale_factor=2)
    kwargs = page.pdf.call_args.kwargs
    assert kwargs["format"] == "A4"
    assert kwargs["landscape"] is False
    assert kwargs["margin"] == {"top": "10mm", "right": "10mm", "bottom": "10mm", "left": "10mm"}
    assert "sop-print-container" in page.set_content.call_args.args[0]
    browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_browser_failure_is_render_error():
    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(side_effect=PlaywrightError("Executable doesn't exist"))
    manager = MagicMock(
        __aenter__=AsyncMock(return_value=playwright), __aexit__=AsyncMock(return_value=False)
    )

    with patch("app.core.pdf_renderer.async_playwright", return_value=manager):
        with pytest.raises(PDFRenderError, match="Executable doesn't exist"):
            await render_pdf("<p>x</p>")
