"""Print SOP HTML to an A4 PDF with headless Chromium."""

import re

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from app.core.logging import get_logger

logger = get_logger(__name__)

PAGE_FORMAT = "A4"
PAGE_MARGIN = {"top": "10mm", "right": "10mm", "bottom": "10mm", "left": "10mm"}
DEVICE_SCALE_FACTOR = 2
RENDER_TIMEOUT_MS = 30_000

# Pagination hints only; page breaks are left to Chromium
PRINT_CSS = """
.sop-print-container { width: 100%; }
.sop-print-container table, .sop-print-container tr, .sop-print-container img {
  page-break-inside: avoid; break-inside: avoid;
}
"""

_BODY = re.compile(r"<body([^>]*)>([\s\S]*)</body>", re.IGNORECASE)
_HEAD_CLOSE = re.compile(r"</head>", re.IGNORECASE)


class PDFRenderError(Exception):
    """Chromium could not print the document."""


def wrap_for_print(html: str) -> str:
    """Place the document body inside a print container and add print CSS."""
    style = f"<style>{PRINT_CSS}</style>"
    match = _BODY.search(html)
    if not match:
        return (
            f"<!DOCTYPE html><html><head><meta charset=\"UTF-8\">{style}</head>"
            f'<body><div class="sop-print-container">{html}</div></body></html>'
        )

    attrs, inner = match.group(1), match.group(2)
    wrapped = html[: match.start()] + (
        f'<body{attrs}><div class="sop-print-container">{inner}</div></body>'
    ) + html[match.end():]

    if _HEAD_CLOSE.search(wrapped):
        return _HEAD_CLOSE.sub(f"{style}</head>", wrapped, count=1)
    return wrapped.replace("<body", f"<head>{style}</head><body", 1)


def pdf_filename(document_number: str, version: str) -> str:
    return f"{document_number}_v{version}.pdf"


async def render_pdf(html: str) -> bytes:
    """
    Render HTML to PDF bytes (A4 portrait, 10mm margins, 2x device scale).

    Raises:
        PDFRenderError: If the browser fails to launch or print
    """
    document = wrap_for_print(html)
    try:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch()
            try:
                context = await browser.new_context(device_scale_factor=DEVICE_SCALE_FACTOR)
                page = await context.new_page()
                await page.set_content(
                    document, wait_until="networkidle", timeout=RENDER_TIMEOUT_MS
                )
                pdf_bytes = await page.pdf(
                    format=PAGE_FORMAT,
                    landscape=False,
                    margin=PAGE_MARGIN,
                    print_background=True,
                )
            finally:
                await browser.close()
    except PlaywrightError as e:
        logger.error(f"PDF rendering failed: {e}")
        raise PDFRenderError(f"PDF rendering failed: {e}") from e

    logger.info(f"Rendered PDF ({len(pdf_bytes)} bytes)")
    return pdf_bytes
