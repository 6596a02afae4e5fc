"""Post-processing of raw model output: fences, JSON blocks, HTML documents."""

import json
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)

_JSON_FENCE = re.compile(r"```json\s*\n?([\s\S]*?)\n?```")
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")
_HTML_FENCE = re.compile(r"```html\s*\n?([\s\S]*?)\n?```")
_ANY_FENCE_MARKER = re.compile(r"```[a-zA-Z]*")
_DOCTYPE = re.compile(r"^\s*<!doctype\s+html", re.IGNORECASE)

DOCTYPE_DECLARATION = "<!DOCTYPE html>"


def strip_code_fences(raw_output: str) -> str:
    """Remove every markdown fence marker (```html, ```json, ```) and trim."""
    return _ANY_FENCE_MARKER.sub("", raw_output or "").strip()


def extract_html_block(raw_output: str) -> str:
    """Content of the first ```html fence, or the input unchanged."""
    match = _HTML_FENCE.search(raw_output or "")
    return match.group(1) if match else raw_output


def ensure_doctype(html: str) -> str:
    """Guarantee the document starts with a doctype declaration.

    Any preamble the model wrote before ``<html`` is dropped.
    """
    html = (html or "").strip()
    if _DOCTYPE.match(html):
        return html
    start = html.lower().find("<html")
    if start > 0:
        html = html[start:]
    return f"{DOCTYPE_DECLARATION}\n{html}"


def extract_json_block(raw_output: str) -> dict[str, Any] | None:
    """
    Best-effort JSON object extraction from model text.

    Tries a fenced ```json block first, then the outermost bare ``{...}``.

    Returns:
        Parsed dict, or None when nothing parseable was found
    """
    text = raw_output or ""
    candidates = []
    fence = _JSON_FENCE.search(text)
    if fence:
        candidates.append(fence.group(1))
    bare = _BARE_OBJECT.search(text)
    if bare:
        candidates.append(bare.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def parse_json_model(raw_output: str, model: type[T], default: T) -> T:
    """Validate the extracted JSON block against ``model``, else return ``default``."""
    parsed = extract_json_block(raw_output)
    if parsed is None:
        return default
    try:
        return model.model_validate(parsed)
    except ValidationError:
        return default
