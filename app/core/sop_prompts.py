"""Instruction templates for the extraction adapter."""

# ruff: noqa: E501

from app.core.sop_template import SOP_SECTIONS, placeholder_for

# =============================================================================
# Extraction defaults per document class
# =============================================================================

IMAGE_EXTRACTION_PROMPT = """Extract all text content from this document image.

Identify and organize:
1. Document title/heading
2. All text fields and their labels
3. Table contents (if any)
4. Signatures and dates
5. Any stamps or seals text

Format the output as structured text with clear sections."""

PDF_EXTRACTION_PROMPT = """This is a PDF document. Extract all text content, organizing it by:
1. Document title and headers
2. Body content with section headings
3. Tables (format as structured data)
4. Footer information
5. Any form fields and their values

Provide a comprehensive extraction of all visible text."""

WORD_EXTRACTION_PROMPT = """The following text was read from a Word document. Reproduce all of its content as clean structured text, organizing it by:
1. Document title and headers
2. Body content with section headings
3. Tables (format as structured data)
4. Any form fields and their values

Do not summarize or omit anything."""

DEFAULT_EXTRACTION_PROMPTS: dict[str, str] = {
    "image": IMAGE_EXTRACTION_PROMPT,
    "pdf": PDF_EXTRACTION_PROMPT,
    "word": WORD_EXTRACTION_PROMPT,
}


# =============================================================================
# Structured analysis per category
# =============================================================================

ANALYSIS_PROMPTS: dict[str, str] = {
    "stationery": """Analyze this hospital stationery/form text and extract:
1. Document type (form, register, certificate, letterhead, etc.)
2. Title of the document
3. All sections with their headings and content
4. Table structures if any
5. Form fields and their labels
6. Suggestions for improvement (formatting, missing fields, NABH compliance)

Text to analyze:
{text}

Return as JSON with keys: documentType, title, sections[{{heading, content}}], tables[], keyValuePairs{{}}, suggestions[]""",
    "committee": """Analyze this committee document/SOP and extract:
1. Committee name
2. Committee objectives/purpose
3. Members list with roles
4. Meeting frequency
5. Key responsibilities
6. Recent meeting details if mentioned
7. Suggestions for improvement

Text to analyze:
{text}

Return as JSON with keys: committeeName, objectives[], members[], meetingFrequency, responsibilities[], meetings[], suggestions[]""",
    "kpi": """Analyze this KPI/quality indicator document and extract:
1. KPI names and definitions
2. Target values
3. Current values if mentioned
4. Calculation formulas
5. Data sources
6. Trends or historical data
7. Suggestions for additional KPIs

Text to analyze:
{text}

Return as JSON with keys: kpis[{{name, target, current, formula, category}}], suggestions[]""",
    "presentation": """Analyze this presentation/slide content and extract:
1. Presentation title
2. Slide titles and content
3. Key points and data
4. Charts/graphs descriptions
5. Suggestions for improvement

Text to analyze:
{text}

Return as JSON with keys: title, slides[{{title, content, keyPoints[]}}], suggestions[]""",
}


# =============================================================================
# Objective filtering
# =============================================================================

FILTER_PROMPT = """You are a NABH accreditation documentation analyst.

From the SOURCE TEXT below, extract ONLY the passages that are relevant to this accreditation objective.

Objective: {objective_code}
Title: {title}
Interpretation:
{interpretation}

Rules:
1. Preserve the original wording exactly. Do not paraphrase, summarize or add content.
2. Keep relevant passages in their original order.
3. Drop everything unrelated to the objective.
4. If nothing is relevant, return an empty response.
5. Return only the extracted passages, with no commentary.
{custom_instructions}
SOURCE TEXT:
{old_text}"""


# =============================================================================
# SOP generation and improvement
# =============================================================================

def _section_list() -> str:
    return "\n".join(
        f"- {placeholder_for(name)}: the {name} section" for name in SOP_SECTIONS
    )


GENERATION_PROMPT = """You are a NABH Accreditation Expert. Produce a comprehensive Standard Operating Procedure (SOP) by completing the HTML template below.

## CONTEXT
Hospital Chapter: {chapter_code} - {chapter_name}
Objective: {objective_code}
SHCO 3rd Edition Objective & Interpretation:
{objective_context}

## SOURCE MATERIAL (title, interpretation and filtered historical content)
{merged_content}

## USER SPECIFIC INSTRUCTIONS
{custom_prompt}

## HOW TO COMPLETE THE TEMPLATE
Replace each placeholder with well-structured HTML (paragraphs, <ul>/<ol> lists, <table> where useful):
{section_list}

Rules:
1. Keep every other part of the template exactly as given: header, document control table, authorization block, section order, revision history and footer.
2. Language and tone: professional, formal, strictly compliant with SHCO 3rd Edition standards.
3. Integrate the interpretation and the historical content; do not invent hospital-specific facts that contradict the source material.
4. Procedure must be numbered, step by step, and name the responsible role for each step.
5. Return only the completed HTML document, no introductory text.

## TEMPLATE
{template}"""


IMPROVE_PROMPT = """You are a NABH Accreditation Expert reviewing an existing SOP written in HTML.

Improve the document according to these instructions:
{instructions}

Rules:
1. Keep the HTML structure, header, document control table, authorization block, section order, revision history and footer intact.
2. Improve language, clarity and NABH (SHCO 3rd Edition) compliance of the narrative sections.
3. Do not remove factual content unless the instructions ask for it.
4. Return only the complete improved HTML document, no commentary.

CURRENT SOP:
{html}"""

DEFAULT_IMPROVE_INSTRUCTIONS = (
    "Polish the language, tighten the procedure steps and close any NABH compliance gaps."
)


# =============================================================================
# Improved stationery / committee / KPI / presentation documents
# =============================================================================

IMPROVED_DOCUMENT_PROMPTS: dict[str, str] = {
    "stationery": """Create an improved, professionally formatted hospital document based on this extracted content.

Original Document Content:
{text}

User's Improvement Suggestions:
{suggestions}

Requirements:
1. Hospital: {hospital_name}
2. Create a complete HTML document with embedded CSS
3. Include professional header with hospital name and logo placeholder
4. Use proper typography and spacing
5. Add all necessary fields for NABH compliance
6. Include proper footer with document control information
7. Make it print-ready (A4 size)
8. Use professional color scheme (blue: #1565C0)

Generate complete, ready-to-use HTML document.""",
    "committee": """Create a professional Committee SOP/Charter document based on this extracted content.

Original Document Content:
{text}

User's Improvement Suggestions:
{suggestions}

Requirements:
1. Hospital: {hospital_name}
2. Create a complete HTML document
3. Include: Purpose, Scope, Composition, Responsibilities, Meeting Frequency, Reporting
4. Add proper header and footer
5. Include signature blocks for Chairperson and Members
6. NABH compliant format
7. Document control number and version

Generate complete HTML document for the committee SOP.""",
    "kpi": """Create a professional KPI Dashboard/Report based on this extracted content.

Original Document Content:
{text}

User's Improvement Suggestions:
{suggestions}

Requirements:
1. Hospital: {hospital_name}
2. Create HTML document with tables for KPI tracking
3. Include: KPI Name, Formula, Target, Actual, Variance, Trend
4. Add sections for different KPI categories
5. Include space for monthly data entry
6. Professional formatting
7. Print-ready format

Generate complete HTML KPI tracking document.""",
    "presentation": """Create professional presentation slides based on this extracted content.

Original Document Content:
{text}

User's Improvement Suggestions:
{suggestions}

Requirements:
1. Hospital: {hospital_name}
2. Create HTML slides with proper styling
3. Include title slide with hospital branding
4. Clear, concise bullet points
5. Professional color scheme
6. Each slide should fit one screen
7. Add speaker notes sections

Generate complete HTML presentation with multiple slides.""",
}

DEFAULT_SUGGESTIONS: dict[str, str] = {
    "stationery": "Make it NABH compliant and professional",
    "committee": "Make it NABH compliant",
    "kpi": "Create a comprehensive KPI tracking document",
    "presentation": "Make it suitable for NABH auditor presentation",
}


COMMITTEE_EXTRACTION_PROMPT = """Extract committee information from this document:

{text}

Return JSON with:
{{
  "name": "Committee Name",
  "description": "Brief description",
  "objectives": ["objective1", "objective2"],
  "members": [{{"name": "Name", "role": "Chairperson/Member", "designation": "Job Title"}}],
  "meetingFrequency": "Monthly/Quarterly/etc",
  "responsibilities": ["responsibility1", "responsibility2"]
}}

Only return the JSON, no other text."""

KPI_EXTRACTION_PROMPT = """Extract KPI/Quality Indicator information from this document:

{text}

Return JSON with:
{{
  "kpis": [
    {{
      "name": "KPI Name",
      "category": "clinical/patient_safety/infection/nursing/laboratory/operational/patient_experience",
      "target": 5,
      "unit": "%",
      "formula": "Calculation formula"
    }}
  ]
}}

Only return the JSON, no other text."""


def build_filter_prompt(
    old_text: str,
    objective_code: str,
    title: str,
    interpretation: str,
    custom_prompt: str | None = None,
) -> str:
    custom = f"\nAdditional instructions:\n{custom_prompt}\n" if custom_prompt else ""
    return FILTER_PROMPT.format(
        objective_code=objective_code,
        title=title or "(none)",
        interpretation=interpretation or "(none)",
        custom_instructions=custom,
        old_text=old_text,
    )


def build_generation_prompt(
    template: str,
    merged_content: str,
    objective_context: str,
    chapter_code: str,
    chapter_name: str,
    objective_code: str | None,
    custom_prompt: str | None,
) -> str:
    return GENERATION_PROMPT.format(
        chapter_code=chapter_code,
        chapter_name=chapter_name,
        objective_code=objective_code or "(chapter level)",
        objective_context=objective_context or "(none)",
        merged_content=merged_content,
        custom_prompt=custom_prompt or "None",
        section_list=_section_list(),
        template=template,
    )
