"""OpenAI-compatible document analyzer (Cerebras by default)."""

import json
import re
from typing import Any

import openai
import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from doctrack.application.dto.content import AnalysisResult
from doctrack.domain.exceptions import AnalysisError

logger = structlog.get_logger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)

SYSTEM_PROMPT = "You are a document analysis expert. Return only valid JSON."

PROMPT_TEMPLATE = """Analyze this document and extract key information:

Title: {title}
Organization: {organization}

First {max_chars} characters of content:
{content}

Return ONLY valid JSON with:
{{
  "summary": "2-3 sentence executive summary",
  "topics": ["topic1", "topic2", "topic3"],
  "entities": {{
    "companies": ["Company A", "Company B"],
    "technologies": ["Tech A", "Tech B"],
    "locations": ["Location A"],
    "people": ["Person A"]
  }}
}}"""


class AnalysisReply(BaseModel):
    """Shape of the JSON object the model is asked to return."""

    summary: str = Field(..., min_length=1)
    topics: list[str] = Field(default_factory=list)
    entities: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("summary", mode="before")
    @classmethod
    def strip_summary(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("topics", mode="before")
    @classmethod
    def clean_topics(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        seen: dict[str, None] = {}
        for item in v:
            topic = str(item).strip()
            if topic:
                seen.setdefault(topic, None)
        return list(seen)

    @field_validator("entities", mode="before")
    @classmethod
    def clean_entities(cls, v: Any) -> dict[str, list[str]]:
        if not isinstance(v, dict):
            return {}
        result: dict[str, list[str]] = {}
        for key, values in v.items():
            if values is None:
                continue
            if isinstance(values, str):
                values = [values]
            names = [str(x).strip() for x in values if str(x).strip()]
            if names:
                result[str(key)] = names
        return result


def parse_analysis_reply(reply: str) -> AnalysisResult:
    """Extract the JSON object from a model reply. Raises AnalysisError."""
    match = _JSON_OBJECT.search(reply or "")
    if not match:
        raise AnalysisError("No JSON found in analysis response")
    try:
        payload = json.loads(match.group(0))
        parsed = AnalysisReply.model_validate(payload)
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise AnalysisError(f"Malformed analysis response: {e}") from e
    return AnalysisResult(summary=parsed.summary, topics=parsed.topics, entities=parsed.entities)


def build_prompt(text: str, hints: dict[str, Any], max_chars: int) -> str:
    return PROMPT_TEMPLATE.format(
        title=hints.get("title") or "Unknown",
        organization=hints.get("organization") or "Unknown",
        max_chars=max_chars,
        content=text[:max_chars],
    )


class OpenAIDocumentAnalyzer:
    """Analyzer using an OpenAI-compatible chat completion API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        max_chars: int = 2000,
        timeout: float = 60.0,
        max_attempts: int = 3,
        retry_wait: wait_base | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if client is None and api_key:
            # Retries are handled below, not by the SDK.
            client = AsyncOpenAI(base_url=base_url, api_key=api_key, timeout=timeout, max_retries=0)
        self._client = client
        self._model = model
        self._max_chars = max_chars
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=8)

    async def analyze(self, text: str, hints: dict[str, Any]) -> AnalysisResult:
        """Summarize text and extract topics and entities."""
        if self._client is None:
            raise AnalysisError("Analysis API key is not configured")
        if not text or not text.strip():
            raise AnalysisError("Document text is required")

        prompt = build_prompt(text, hints, self._max_chars)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=self._retry_wait,
                retry=retry_if_exception_type(_TRANSIENT_ERRORS),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.info("analysis_retry", attempt=attempt.retry_state.attempt_number)
                    response = await self._client.chat.completions.create(
                        model=self._model,
                        messages=[
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": prompt},
                        ],
                        temperature=0.2,
                        max_tokens=500,
                    )
        except openai.OpenAIError as e:
            raise AnalysisError(f"Analysis API error: {e}") from e

        if not response.choices:
            raise AnalysisError("Analysis API returned no choices")
        content = response.choices[0].message.content or ""
        logger.debug("analysis_completed", model=self._model, response_length=len(content))
        return parse_analysis_reply(content)
