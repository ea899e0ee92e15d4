"""Credential providers: where the backend's API key comes from."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer

from .config import Settings, get_settings
from .errors import CredentialRequiredError

logger = logging.getLogger(__name__)


class StaticCredentialProvider:
    """
    Holds a key in memory.

    Selection cannot happen here: ``select`` raises when no key is held, and
    ``force_reselect`` drops the key so the owner (e.g. a browser client) must
    supply a new one.
    """

    def __init__(self, api_key: Optional[str] = None) -> None:
        self._api_key = api_key or None

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    def set_key(self, api_key: str) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("api_key must be a non-empty string.")
        self._api_key = api_key.strip()

    def clear(self) -> None:
        self._api_key = None

    async def has_selected(self) -> bool:
        return self._api_key is not None

    async def select(self) -> None:
        if self._api_key is None:
            raise CredentialRequiredError(
                "No API key selected. Provide one before starting a workflow."
            )

    async def force_reselect(self) -> None:
        logger.warning("Backend rejected the selected API key; clearing it.")
        self.clear()


class PromptCredentialProvider(StaticCredentialProvider):
    """Asks for a key on the terminal whenever one is needed."""

    def __init__(self, api_key: Optional[str] = None, prompt_text: str = "OpenAI API key") -> None:
        super().__init__(api_key)
        self._prompt_text = prompt_text

    async def select(self) -> None:
        value = await asyncio.to_thread(typer.prompt, self._prompt_text, hide_input=True)
        self.set_key(value)

    async def force_reselect(self) -> None:
        await super().force_reselect()
        await self.select()


def credentials_from_settings(settings: Settings | None = None) -> StaticCredentialProvider:
    """Seed a static provider from OPENAI_API_KEY (may be empty)."""
    settings = settings or get_settings()
    return StaticCredentialProvider(settings.openai_api_key)
