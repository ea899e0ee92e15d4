"""
Workflow orchestrator: turns a topic into a summarized, illustrated script.

A run moves through fetching -> summarizing -> generating-script ->
generating-images -> completed. Steps one to three are strictly sequential,
each feeding the next. The image step fans out a thumbnail call plus one call
per leading segment and waits for all of them before finishing. Any error ends
the run in idle with a single "PROTOCOL HALTED" log line; a rejected credential
additionally triggers one forced reselection.

The orchestrator is the only writer of its state. Renderers read immutable
``WorkflowSnapshot`` objects, either by calling ``snapshot()`` or by
subscribing to change notifications.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from .accumulator import ResultAccumulator
from .activity_log import ActivityLog
from .backend import CredentialProvider, WorkflowBackend
from .config import ImageResolution, get_settings
from .errors import CredentialInvalidationError, NoSignalError, WorkflowBusyError
from .models import ScriptOutput, WorkflowSnapshot
from .stages import StageTracker, WorkflowStage

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[WorkflowSnapshot], None]

# Only the leading segments get an illustration.
SEGMENT_IMAGE_LIMIT = 2


class WorkflowOrchestrator:
    """Owns one workflow's stage, results, and activity log."""

    def __init__(
        self,
        backend: WorkflowBackend,
        credentials: CredentialProvider,
        *,
        resolution: Optional[ImageResolution] = None,
        activity_log: Optional[ActivityLog] = None,
    ) -> None:
        self._backend = backend
        self._credentials = credentials
        self._stage = StageTracker()
        self._results = ResultAccumulator()
        self._log = activity_log or ActivityLog()
        self._topic = ""
        self._resolution: ImageResolution = resolution or get_settings().image_resolution
        self._listeners: List[SnapshotListener] = []
        self._active = False

    # --- Observation -------------------------------------------------------

    @property
    def stage(self) -> WorkflowStage:
        return self._stage.stage

    @property
    def is_busy(self) -> bool:
        return self._active

    def snapshot(self) -> WorkflowSnapshot:
        return WorkflowSnapshot(
            stage=self._stage.stage,
            topic=self._topic,
            resolution=self._resolution,
            articles=self._results.articles,
            script=self._results.script,
            log=self._log.entries(),
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    def record_activity(self, message: str) -> None:
        """Append a line to the activity log (also used by export surfaces)."""
        line = self._log.append(message)
        logger.debug(line)
        self._notify()

    def _enter(self, stage: WorkflowStage) -> None:
        self._stage.advance(stage)
        logger.debug("Stage -> %s", stage.value)
        self._notify()

    # --- Run ---------------------------------------------------------------

    async def run_workflow(
        self, topic: str, resolution: Optional[ImageResolution] = None
    ) -> WorkflowSnapshot:
        """
        Run the full pipeline for ``topic`` and return the final snapshot.

        A blank topic is ignored. Raises WorkflowBusyError if a run is already
        active. Errors from the steps, and from listeners notified during the
        run, are absorbed and leave the stage at idle (see ``_handle_failure``).
        Errors raised while selecting a credential propagate to the caller:
        from the pre-step they leave the stage untouched, and from a forced
        reselection they escape after the stage is back at idle.
        """
        topic = (topic or "").strip()
        if not topic:
            return self.snapshot()
        if self._active:
            raise WorkflowBusyError("A workflow run is already in progress.")

        self._active = True
        try:
            if not await self._credentials.has_selected():
                await self._credentials.select()

            self._topic = topic
            if resolution is not None:
                self._resolution = resolution
            try:
                self._results.reset()
                self._enter(WorkflowStage.FETCHING)
                await self._run_steps(topic, self._resolution)
            except Exception as exc:
                await self._handle_failure(exc)
        finally:
            self._active = False
        return self.snapshot()

    async def _run_steps(self, topic: str, resolution: ImageResolution) -> None:
        self.record_activity(f"INITIALIZING SCAN: {topic.upper()}")

        articles = await self._backend.fetch_articles(topic)
        if not articles:
            raise NoSignalError()
        self._results.set_articles(articles)
        self.record_activity(f"DATA POOL LOADED: {len(articles)} UNITS.")

        self._enter(WorkflowStage.SUMMARIZING)
        self.record_activity("SYNTHESIZING NEURAL SUMMARY...")
        summaries = await self._backend.summarize_articles(self._results.articles)
        summarized = self._results.apply_summaries(summaries)
        self._notify()

        self._enter(WorkflowStage.GENERATING_SCRIPT)
        self.record_activity("COMPILING SCRIPT NARRATIVE...")
        script = await self._backend.generate_script(topic, summarized)
        self._results.set_script(script)
        self._notify()

        self._enter(WorkflowStage.GENERATING_IMAGES)
        self.record_activity(f"VECTORING VISUAL ASSETS ({resolution})...")
        await self._generate_images(topic, script, resolution)

        self._enter(WorkflowStage.COMPLETED)
        self.record_activity("SYNTHESIS COMPLETE. SIGNAL STABLE.")

    async def _generate_images(
        self, topic: str, script: ScriptOutput, resolution: ImageResolution
    ) -> None:
        targets = list(range(min(SEGMENT_IMAGE_LIMIT, len(script.news_segments))))
        for idx in targets:
            self.record_activity(f"RENDERING SEG_NODE_{idx + 1}...")

        calls = [self._backend.generate_image(topic, resolution)]
        calls.extend(
            self._backend.generate_image(script.news_segments[idx].title, resolution)
            for idx in targets
        )
        outcomes = await asyncio.gather(*calls, return_exceptions=True)

        for outcome in outcomes:
            if isinstance(outcome, CredentialInvalidationError):
                raise outcome
        results = [self._image_or_none(outcome) for outcome in outcomes]

        thumbnail, segment_urls = results[0], results[1:]
        self._results.apply_images(thumbnail, dict(zip(targets, segment_urls)))
        self._notify()

    @staticmethod
    def _image_or_none(outcome: object) -> Optional[str]:
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            logger.warning("Image call failed; leaving image unset: %s", outcome)
            return None
        return outcome if isinstance(outcome, str) and outcome else None

    async def _handle_failure(self, exc: Exception) -> None:
        logger.error(
            "Workflow for %r halted at %s: %s",
            self._topic,
            self.stage.value,
            exc,
            exc_info=exc,
        )
        try:
            if isinstance(exc, CredentialInvalidationError):
                await self._credentials.force_reselect()
        finally:
            self._stage.reset()
            self._notify()
            self.record_activity("PROTOCOL HALTED: ERROR.")
