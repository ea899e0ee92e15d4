"""
Collaborator interfaces the orchestrator depends on.

The orchestrator never talks to a model provider directly; it calls a
``WorkflowBackend`` for the four generation steps and a ``CredentialProvider``
for key selection. ``novascript.openai_backend`` and ``novascript.credentials``
hold the production implementations; tests inject fakes.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from .config import ImageResolution
from .models import NewsArticle, ScriptOutput


@runtime_checkable
class WorkflowBackend(Protocol):
    async def fetch_articles(self, topic: str) -> Sequence[NewsArticle]:
        """Return the most significant recent headlines for ``topic``."""
        ...

    async def summarize_articles(
        self, articles: Sequence[NewsArticle]
    ) -> Sequence[Optional[str]]:
        """Return one summary per article, in input order."""
        ...

    async def generate_script(
        self, topic: str, articles: Sequence[NewsArticle]
    ) -> ScriptOutput:
        """Compose a script from summarized articles; image fields stay unset."""
        ...

    async def generate_image(
        self, prompt: str, resolution: ImageResolution
    ) -> Optional[str]:
        """
        Return an image reference, or None when generation fails.

        Raises CredentialInvalidationError when the backend rejects the key.
        """
        ...


@runtime_checkable
class CredentialProvider(Protocol):
    @property
    def api_key(self) -> Optional[str]:
        ...

    async def has_selected(self) -> bool:
        ...

    async def select(self) -> None:
        ...

    async def force_reselect(self) -> None:
        ...
