"""Accreditation reference data: chapters and objective interpretations.

Rows arrive from Supabase as loose dicts. They are validated here so that
downstream prompt building never interpolates a missing code.
"""

import re
from typing import Any

from pydantic import BaseModel, Field, model_validator

CHAPTER_CODE_PATTERN = re.compile(r"^[A-Z]{3}")

# Reference list of NABH (SHCO 3rd Edition) chapters
NABH_CHAPTERS: dict[str, str] = {
    "AAC": "Access, Assessment and Continuity of Care",
    "COP": "Care of Patients",
    "MOM": "Management of Medication",
    "PRE": "Patient Rights and Education",
    "HIC": "Hospital Infection Control",
    "PSQ": "Patient Safety and Quality Improvement",
    "ROM": "Responsibilities of Management",
    "FMS": "Facility Management and Safety",
    "HRM": "Human Resource Management",
    "IMS": "Information Management System",
}


class ChapterRecord(BaseModel):
    """An accreditation chapter (nabh_chapters)."""

    id: str
    chapter_number: int | None = None
    name: str
    code: str = Field(min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _derive_code(cls, data: Any) -> Any:
        """Fill ``code`` from the leading capitals of the name when absent."""
        if isinstance(data, dict) and not data.get("code"):
            match = CHAPTER_CODE_PATTERN.match(str(data.get("name") or ""))
            if match:
                data = {**data, "code": match.group(0)}
        return data

    @property
    def display_name(self) -> str:
        return NABH_CHAPTERS.get(self.code, self.name)


class ObjectiveRecord(BaseModel):
    """An objective with its interpretation (nabh_objective_edits)."""

    id: str | None = None
    chapter_code: str = Field(min_length=1)
    objective_code: str = Field(min_length=1)
    title: str = ""
    interpretation: str = ""

    @model_validator(mode="before")
    @classmethod
    def _normalize_columns(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Edited interpretation wins over the stock one
        interpretation = data.get("interpretations2") or data.get("interpretation") or ""
        data["interpretation"] = interpretation
        data["title"] = data.get("title") or ""
        if data.get("id") is not None:
            data["id"] = str(data["id"])
        return data


class ChapterObjective(BaseModel):
    """Objective joined with its chapter: the pipeline's context."""

    chapter: ChapterRecord
    objective: ObjectiveRecord

    @property
    def chapter_code(self) -> str:
        return self.chapter.code

    @property
    def objective_code(self) -> str:
        return self.objective.objective_code
