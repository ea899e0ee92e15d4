"""
Generation steps backed by the OpenAI API.

Each step builds a fresh async client from the credential provider's current
key, so a reselected key is picked up by the very next call. Text steps use the
Responses API with strict JSON-schema outputs; images use the Images API and
come back as ``data:`` URLs.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Sequence

import openai
from openai import AsyncOpenAI

from .backend import CredentialProvider
from .config import RESOLUTION_QUALITY, ImageResolution, Settings, get_settings
from .errors import CredentialInvalidationError, CredentialRequiredError, GenericStepError
from .models import NewsArticle, ScriptOutput
from .schema import (
    ARTICLES_SCHEMA,
    SCRIPT_SCHEMA,
    SUMMARIES_SCHEMA,
    response_format,
    validate_payload,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], AsyncOpenAI]

IMAGE_PROMPT_TEMPLATE = (
    "High-contrast cinematic news aesthetic for: {prompt}. "
    "Professional, photorealistic, futuristic lighting, 8k."
)


def build_client(api_key: str) -> AsyncOpenAI:
    """Create an async OpenAI client; separated for easier testing."""
    return AsyncOpenAI(api_key=api_key)


def _response_text_or_raise(response: object, *, step: str) -> str:
    """Extract response text or raise a clear error when output is missing."""
    text = getattr(response, "output_text", None)
    if isinstance(text, str) and text.strip():
        return text

    status = getattr(response, "status", None)
    if status == "incomplete":
        details = getattr(response, "incomplete_details", None)
        reason = getattr(details, "reason", None) if details else None
        hint = ""
        if reason == "max_output_tokens":
            hint = " Increase MAX_TOKENS or set it to 0 to remove the cap."
        raise GenericStepError(f"{step} response incomplete (reason={reason}).{hint}")

    err = getattr(response, "error", None)
    if err:
        raise GenericStepError(f"{step} response error: {err}")

    raise GenericStepError(f"{step} response missing output text.")


@contextmanager
def _credential_errors(step: str) -> Iterator[None]:
    """Re-raise a rejected key as CredentialInvalidationError."""
    try:
        yield
    except openai.AuthenticationError as exc:
        raise CredentialInvalidationError(f"{step}: API key rejected ({exc}).") from exc


class OpenAIBackend:
    """WorkflowBackend implementation over ``AsyncOpenAI``."""

    def __init__(
        self,
        credentials: CredentialProvider,
        settings: Optional[Settings] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self._credentials = credentials
        self._settings = settings or get_settings()
        self._client_factory = client_factory or build_client

    def _client(self) -> AsyncOpenAI:
        api_key = self._credentials.api_key
        if not api_key:
            raise CredentialRequiredError(
                "OPENAI_API_KEY is required. Select a key before running a workflow."
            )
        return self._client_factory(api_key)

    def _text_kwargs(self, model: str, prompt: str, name: str, schema: dict) -> dict[str, Any]:
        request_kwargs: dict[str, Any] = {
            "model": model,
            "input": [{"role": "user", "content": prompt}],
            "text": response_format(name, schema),
        }
        if self._settings.max_tokens and self._settings.max_tokens > 0:
            request_kwargs["max_output_tokens"] = self._settings.max_tokens
        return request_kwargs

    async def fetch_articles(self, topic: str) -> List[NewsArticle]:
        prompt = (
            "Find the 5-7 most significant news headlines from the last 24 hours "
            f'regarding: "{topic}".\n'
            "Provide news headlines, sources, and timestamps. Return an object whose "
            "'articles' key lists objects with keys: title, source, timestamp, url."
        )
        request_kwargs = self._text_kwargs(
            self._settings.fetch_model, prompt, "news_articles", ARTICLES_SCHEMA
        )
        request_kwargs["tools"] = [{"type": "web_search"}]
        with _credential_errors("Fetch"):
            response = await self._client().responses.create(**request_kwargs)
        text = _response_text_or_raise(response, step="Fetch")
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Fetch returned undecodable JSON; treating as no articles.")
            return []
        payload = validate_payload(data, ARTICLES_SCHEMA, step="Fetch")
        return [NewsArticle(**item) for item in payload["articles"]]

    async def summarize_articles(self, articles: Sequence[NewsArticle]) -> List[str]:
        if not articles:
            return []
        numbered = "\n".join(f"{idx}. {a.title}" for idx, a in enumerate(articles, start=1))
        prompt = (
            f"Summarize these {len(articles)} news items into 2 concise, factual "
            f"sentences each:\n{numbered}\n"
            "Return an object whose 'summaries' key lists one string per item, in order."
        )
        request_kwargs = self._text_kwargs(
            self._settings.summarizer_model, prompt, "article_summaries", SUMMARIES_SCHEMA
        )
        with _credential_errors("Summarizer"):
            response = await self._client().responses.create(**request_kwargs)
        text = _response_text_or_raise(response, step="Summarizer")
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Summarizer returned undecodable JSON; no summaries applied.")
            return []
        payload = validate_payload(data, SUMMARIES_SCHEMA, step="Summarizer")
        return list(payload["summaries"])

    async def generate_script(
        self, topic: str, articles: Sequence[NewsArticle]
    ) -> ScriptOutput:
        news = "\n".join(
            f"[{idx}] {a.title}: {a.summary or ''}" for idx, a in enumerate(articles, start=1)
        )
        prompt = (
            f'Create a professional YouTube news script for "{topic}".\n'
            f"News: {news}\n\n"
            "Format: JSON object { intro, newsSegments: [{title, script, transition}], outro }."
        )
        request_kwargs = self._text_kwargs(
            self._settings.script_model, prompt, "news_script", SCRIPT_SCHEMA
        )
        with _credential_errors("Script"):
            response = await self._client().responses.create(**request_kwargs)
        text = _response_text_or_raise(response, step="Script")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GenericStepError(f"Script response is not valid JSON: {exc}") from exc
        payload = validate_payload(data, SCRIPT_SCHEMA, step="Script")
        return ScriptOutput.model_validate(payload)

    async def generate_image(
        self, prompt: str, resolution: ImageResolution
    ) -> Optional[str]:
        quality = RESOLUTION_QUALITY.get(resolution)
        if quality is None:
            raise ValueError(f"Unknown resolution tier: {resolution!r}")
        try:
            with _credential_errors("Image"):
                result = await self._client().images.generate(
                    model=self._settings.image_model,
                    prompt=IMAGE_PROMPT_TEMPLATE.format(prompt=prompt),
                    size=self._settings.image_size,
                    quality=quality,
                    n=1,
                )
        except openai.NotFoundError as exc:
            # The key points at a project or entity that no longer exists.
            raise CredentialInvalidationError(f"Image: requested entity not found ({exc}).") from exc
        except openai.OpenAIError as exc:
            logger.error("Image generation failed for %r: %s", prompt, exc)
            return None

        data = getattr(result, "data", None) or []
        encoded = getattr(data[0], "b64_json", None) if data else None
        if not encoded:
            return None
        return f"data:image/png;base64,{encoded}"
