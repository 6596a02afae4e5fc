"""Plain-text reading of Word (.docx) documents with python-docx."""

from io import BytesIO

from docx import Document

from app.core.logging import get_logger

logger = get_logger(__name__)


def read_docx_text(file_bytes: bytes, filename: str = "document.docx") -> str:
    """
    Flatten a .docx into text: headings as ``## Heading``, body paragraphs,
    then tables as pipe-delimited rows.

    Raises:
        ValueError: If the bytes are not a readable .docx (including legacy .doc)
    """
    try:
        doc = Document(BytesIO(file_bytes))
    except Exception as e:
        raise ValueError(f"Failed to open Word document {filename}: {e}") from e

    lines: list[str] = []
    for para in doc.paragraphs:
        text = para.text.strip()
        if not text:
            continue
        style_name = (para.style.name or "").lower() if para.style else ""
        lines.append(f"## {text}" if "heading" in style_name else text)

    for idx, table in enumerate(doc.tables, start=1):
        rows = [" | ".join(cell.text.strip() for cell in row.cells) for row in table.rows]
        if any(r.strip(" |") for r in rows):
            lines.append(f"\n[Table {idx}]")
            lines.extend(rows)

    text = "\n".join(lines)
    logger.debug(f"Read {len(text)} chars from {filename}")
    return text
