"""
Gemini-backed problem generation, solution feedback and study reports.

The provider never raises to its callers: a failed call is logged and
turned into degraded but valid content (an error message as the problem
statement, a fixed apology as the reply), so the navigation layer never
has to model a "generation failed" state.
"""

from __future__ import annotations

import base64
import json
from collections import Counter
from typing import Any, Callable, Optional, Protocol

import google.generativeai as genai
from loguru import logger
from pydantic import BaseModel, Field

from feynman.core.errors import ProviderFailure
from feynman.core.models import Attachment, Difficulty, Message, Problem, Sender, now_ms

from .prompts import (
    EMPTY_EVALUATION_REPLY,
    EMPTY_REPORT_REPLY,
    EVALUATION_FAILED_REPLY,
    FEYNMAN_TUTOR_PROMPT,
    GENERATION_FAILED_CONTENT,
    HIDDEN_CONTEXT_TEMPLATE,
    NO_MISTAKES_REPORT,
    PROBLEM_GENERATOR_PROMPT,
    REPORT_FAILED_REPLY,
    STUDY_REPORT_PROMPT,
    TEXT_ATTACHMENT_TEMPLATE,
    TUTOR_ACKNOWLEDGEMENT,
    TUTOR_CONTEXT_TEMPLATE,
)

NOT_AVAILABLE = "(Not available, generate dynamically)"
SUMMARY_PREVIEW_CHARS = 50


class TutorProvider(Protocol):
    """Interface the orchestrator relies on."""

    async def generate_problem(self, topic: str) -> Problem: ...

    async def evaluate(
        self,
        problem: Problem,
        history: list[Message],
        attachment: Optional[Attachment] = None,
        text: Optional[str] = None,
    ) -> str: ...

    async def summarize(self, mistakes: list[Problem]) -> str: ...


class GeneratedProblem(BaseModel):
    """Structured output expected from the generator prompt."""

    problem_statement: str = Field(alias="problemStatement")
    source: str | None = None
    feynman_explanation: str | None = Field(default=None, alias="feynmanExplanation")
    standard_solution: str | None = Field(default=None, alias="standardSolution")


def attachment_to_part(attachment: Attachment) -> dict[str, Any] | None:
    """
    Convert an attachment into a Gemini content part.

    Text files (LaTeX) are inlined as text; binary files are sent as inline
    data with any "data:<mime>;base64," prefix stripped.
    """
    if not attachment.data:
        return None
    if attachment.is_text:
        return {"text": TEXT_ATTACHMENT_TEMPLATE.format(data=attachment.data)}

    payload = attachment.data.split(",", 1)[1] if "," in attachment.data else attachment.data
    return {"inline_data": {"mime_type": attachment.mime_type, "data": base64.b64decode(payload)}}


def build_tutor_contents(
    problem: Problem,
    history: list[Message],
    attachment: Optional[Attachment] = None,
    text: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Assemble the multi-turn conversation sent for evaluation."""
    hidden = HIDDEN_CONTEXT_TEMPLATE.format(
        feynman_explanation=problem.feynman_explanation or NOT_AVAILABLE,
        standard_solution=problem.standard_solution or NOT_AVAILABLE,
    )
    contents: list[dict[str, Any]] = [
        {
            "role": "user",
            "parts": [
                {
                    "text": TUTOR_CONTEXT_TEMPLATE.format(
                        system_prompt=FEYNMAN_TUTOR_PROMPT,
                        content=problem.content,
                        hidden_context=hidden,
                    )
                }
            ],
        },
        {"role": "model", "parts": [{"text": TUTOR_ACKNOWLEDGEMENT}]},
    ]

    for message in history:
        parts: list[dict[str, Any]] = []
        if message.attachment:
            part = attachment_to_part(message.attachment)
            if part:
                parts.append(part)
        if message.text:
            parts.append({"text": message.text})
        if parts:
            contents.append(
                {"role": "user" if message.sender == Sender.USER else "model", "parts": parts}
            )

    new_parts: list[dict[str, Any]] = []
    if attachment:
        part = attachment_to_part(attachment)
        if part:
            new_parts.append(part)
    if text:
        new_parts.append({"text": text})
    if new_parts:
        contents.append({"role": "user", "parts": new_parts})

    return contents


class GeminiProvider:
    """
    Tutor provider using the Gemini API.

    The client is created lazily on first use, so constructing the provider
    without an API key is cheap; calls then fail and degrade as usual.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str = "gemini-2.0-flash",
        temperature: float = 0.7,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize the provider.

        Args:
            api_key: Gemini API key
            model_name: Model used for every call
            temperature: Sampling temperature for tutoring replies
            clock: Source of time-derived problem ids
        """
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.clock = clock
        self._client = None

        if not self.api_key:
            logger.warning("No Gemini API key - problem generation will be degraded")

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self):
        """Lazy-load Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise ProviderFailure("GEMINI_API_KEY is not configured")
            genai.configure(api_key=self.api_key)
            self._client = genai.GenerativeModel(model_name=self.model_name)
        return self._client

    # =========================================================================
    # Problem generation
    # =========================================================================

    async def generate_problem(self, topic: str) -> Problem:
        problem_id = str(self.clock())
        try:
            response = await self.client.generate_content_async(
                PROBLEM_GENERATOR_PROMPT.format(topic=topic),
                generation_config={"response_mime_type": "application/json"},
            )
            text = _response_text(response)
            if not text:
                raise ProviderFailure("Empty response from model")

            parsed = GeneratedProblem.model_validate(json.loads(text))
            return Problem(
                id=problem_id,
                topic=topic,
                content=parsed.problem_statement,
                source=parsed.source,
                feynman_explanation=parsed.feynman_explanation,
                standard_solution=parsed.standard_solution,
                difficulty=Difficulty.MEDIUM,
            )
        except Exception as e:
            logger.error(f"Problem generation failed: {e}")
            return Problem(
                id=problem_id,
                topic=topic,
                content=GENERATION_FAILED_CONTENT,
                difficulty=Difficulty.MEDIUM,
            )

    # =========================================================================
    # Solution feedback
    # =========================================================================

    async def evaluate(
        self,
        problem: Problem,
        history: list[Message],
        attachment: Optional[Attachment] = None,
        text: Optional[str] = None,
    ) -> str:
        try:
            contents = build_tutor_contents(problem, history, attachment, text)
            response = await self.client.generate_content_async(
                contents,
                generation_config={"temperature": self.temperature},
            )
            return _response_text(response) or EMPTY_EVALUATION_REPLY
        except Exception as e:
            logger.error(f"Solution evaluation failed: {e}")
            return EVALUATION_FAILED_REPLY

    # =========================================================================
    # Study report
    # =========================================================================

    async def summarize(self, mistakes: list[Problem]) -> str:
        if not mistakes:
            return NO_MISTAKES_REPORT

        try:
            topic_counts = Counter(m.topic for m in mistakes)
            summaries = "\n".join(
                f"- [{m.topic}] {m.content[:SUMMARY_PREVIEW_CHARS]}..." for m in mistakes
            )
            prompt = STUDY_REPORT_PROMPT.format(
                topic_counts=json.dumps(dict(topic_counts), ensure_ascii=False, indent=2),
                summaries=summaries,
            )
            response = await self.client.generate_content_async(prompt)
            return _response_text(response) or EMPTY_REPORT_REPLY
        except Exception as e:
            logger.error(f"Study report generation failed: {e}")
            return REPORT_FAILED_REPLY


def _response_text(response: Any) -> str:
    """Response text, or empty when the model returned no usable candidate."""
    try:
        return (response.text or "").strip()
    except ValueError:
        # .text raises when the candidate was blocked or has no parts
        return ""
