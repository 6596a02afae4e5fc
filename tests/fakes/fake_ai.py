"""Scripted generative client for adapter and pipeline tests."""

from typing import Callable

from app.core.ai_client import AIClientError, ContentPart, GenerativeClient
from app.core.sop_template import SOP_SECTIONS, placeholder_for

Responder = Callable[[list[ContentPart]], str]


class FakeGenerativeClient(GenerativeClient):
    """Returns queued replies (or a responder's output) and records every call.

    A queued ``AIClientError`` is raised instead of returned.
    """

    provider = "fake"
    display_name = "Gemini"

    def __init__(self, replies: list | None = None, responder: Responder | None = None, api_key: str = "test-key"):
        super().__init__(api_key, "fake-model", max_retries=0, backoff_seconds=0)
        self.replies = list(replies or [])
        self.responder = responder
        self.calls: list[dict] = []

    async def _generate_once(self, parts, temperature, max_output_tokens):
        self.calls.append(
            {"parts": parts, "temperature": temperature, "max_output_tokens": max_output_tokens}
        )
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, AIClientError):
                raise reply
            return reply
        if self.responder is not None:
            return self.responder(parts)
        return ""

    @property
    def prompts(self) -> list[str]:
        """Concatenated text parts of each call."""
        return ["\n".join(p.text for p in call["parts"] if p.text) for call in self.calls]


def model_responder(parts: list[ContentPart]) -> str:
    """Answer each kind of adapter request the way a well-behaved model would.

    Extraction echoes the inline bytes, filtering returns one fixed passage
    and generation fills every ``{{SECTION}}`` placeholder of the template
    embedded in the prompt.
    """
    binary = [p for p in parts if p.data is not None]
    if binary:
        return f"Text of {binary[0].data.decode()}"
    prompt = parts[0].text
    if prompt.startswith("You are a NABH accreditation documentation analyst."):
        return "Every patient receives uniform care."
    if "## TEMPLATE\n" in prompt:
        html = prompt.split("## TEMPLATE\n", 1)[1]
        for name in SOP_SECTIONS:
            html = html.replace(placeholder_for(name), f"<p>{name} body</p>")
        return f"```html\n{html}\n```"
    if prompt.startswith("You are a NABH Accreditation Expert reviewing"):
        return "<!DOCTYPE html><html><body>improved</body></html>"
    return ""
