"""Data models for the NovaScript workflow.

All models are frozen: updates produce new objects via ``model_copy`` so a
reader holding a reference never sees a half-applied change. Field names are
snake_case in Python and camelCase on the wire (``imageUrl``, ``newsSegments``).
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import ImageResolution
from .stages import WorkflowStage

SUMMARY_PLACEHOLDER = "No data synthesized."


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class NewsArticle(_Frozen):
    """A headline returned by the fetch step."""

    title: str
    source: str
    timestamp: str
    url: str
    summary: Optional[str] = None


class ScriptSegment(_Frozen):
    """One news segment of the narrative script."""

    title: str
    script: str
    transition: str
    image_url: Optional[str] = None


class ScriptOutput(_Frozen):
    """The composed script; image fields are filled in by the fan-out step."""

    intro: str
    outro: str
    news_segments: Tuple[ScriptSegment, ...] = Field(default_factory=tuple)
    thumbnail_url: Optional[str] = None


class WorkflowSnapshot(_Frozen):
    """Read-only view of one orchestrator's state, handed to renderers."""

    stage: WorkflowStage
    topic: str = ""
    resolution: ImageResolution = "1K"
    articles: Tuple[NewsArticle, ...] = Field(default_factory=tuple)
    script: Optional[ScriptOutput] = None
    log: Tuple[str, ...] = Field(default_factory=tuple)

    @property
    def is_busy(self) -> bool:
        return self.stage.is_running
