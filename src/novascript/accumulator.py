"""Holds the evolving article list and script for one orchestrator."""

from __future__ import annotations

from typing import Optional, Sequence

from .models import SUMMARY_PLACEHOLDER, NewsArticle, ScriptOutput, ScriptSegment


def merge_summaries(
    articles: Sequence[NewsArticle], summaries: Sequence[Optional[str]]
) -> tuple[NewsArticle, ...]:
    """
    Attach summary ``i`` to article ``i``.

    Pairing is positional, never by content. Articles without a matching
    (or with an empty) summary get the placeholder text; extra summaries are
    ignored.
    """
    merged = []
    for idx, article in enumerate(articles):
        summary = summaries[idx] if idx < len(summaries) else None
        merged.append(article.model_copy(update={"summary": summary or SUMMARY_PLACEHOLDER}))
    return tuple(merged)


def attach_images(
    script: ScriptOutput,
    thumbnail_url: Optional[str],
    segment_images: dict[int, Optional[str]],
) -> ScriptOutput:
    """
    Return a new script carrying the generated image references.

    ``segment_images`` maps segment positions to image references; segments not
    present in the mapping are passed through unchanged. ``None`` leaves the
    field unset.
    """
    segments: list[ScriptSegment] = []
    for idx, segment in enumerate(script.news_segments):
        if idx in segment_images:
            segment = segment.model_copy(update={"image_url": segment_images[idx] or None})
        segments.append(segment)
    return script.model_copy(
        update={"news_segments": tuple(segments), "thumbnail_url": thumbnail_url or None}
    )


class ResultAccumulator:
    """Canonical article list and script. Every update replaces, never mutates."""

    def __init__(self) -> None:
        self._articles: tuple[NewsArticle, ...] = ()
        self._script: ScriptOutput | None = None

    @property
    def articles(self) -> tuple[NewsArticle, ...]:
        return self._articles

    @property
    def script(self) -> ScriptOutput | None:
        return self._script

    def reset(self) -> None:
        self._articles = ()
        self._script = None

    def set_articles(self, articles: Sequence[NewsArticle]) -> tuple[NewsArticle, ...]:
        self._articles = tuple(articles)
        return self._articles

    def apply_summaries(self, summaries: Sequence[Optional[str]]) -> tuple[NewsArticle, ...]:
        self._articles = merge_summaries(self._articles, summaries)
        return self._articles

    def set_script(self, script: ScriptOutput) -> ScriptOutput:
        self._script = script
        return script

    def apply_images(
        self,
        thumbnail_url: Optional[str],
        segment_images: dict[int, Optional[str]],
    ) -> ScriptOutput:
        if self._script is None:
            raise RuntimeError("Script missing; compose the script before attaching images.")
        self._script = attach_images(self._script, thumbnail_url, segment_images)
        return self._script
