"""Stateful trip session: generation, follow-up routing, day edits and history."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Iterator, List, Optional

from wanderlust.agents import (
    AdvisorAgent,
    DayRefiner,
    DayWorker,
    FollowUpClassifier,
    SceneClassifier,
)
from wanderlust.core.collaborators import Collaborators
from wanderlust.core.rendering import render_document
from wanderlust.core.versions import VersionLedger
from wanderlust.schemas import (
    Change,
    ChangeScope,
    DayResult,
    DoneChunk,
    FollowUpClassification,
    FollowUpIntent,
    FragmentChunk,
    PlaceMatch,
    ProgressChunk,
    RenderPhase,
    SkeletonChunk,
    StreamChunk,
    TripRequest,
    TripSkeleton,
    UIAction,
    VersionSnapshot,
)
from wanderlust.workflows.trip_pipeline import (
    DEFAULT_CONCURRENCY,
    iter_days_parallel,
    run_trip_pipeline,
)

_LOGGER = logging.getLogger(__name__)

INITIAL_DESCRIPTION = "Initial itinerary"


class SessionBusy(RuntimeError):
    """Raised when an operation starts while another one is still running."""


@dataclass
class FollowUpOutcome:
    """What happened in response to a follow-up message."""

    classification: FollowUpClassification
    reply: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)
    regenerate_request: Optional[TripRequest] = None
    updated_day: Optional[DayResult] = None
    needs_day: bool = False
    search_result: Optional[PlaceMatch] = None


class TripSession:
    """Owns the current trip, its day results and its version history."""

    def __init__(
        self,
        collaborators: Collaborators,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self.collaborators = collaborators
        self.concurrency = concurrency
        self.ledger = VersionLedger()
        self.request: Optional[TripRequest] = None
        self.skeleton: Optional[TripSkeleton] = None
        self.day_results: Dict[int, DayResult] = {}
        self.busy = False
        self._run_id = 0
        self._task: Optional[asyncio.Task] = None
        self._scene = SceneClassifier(collaborators.text)
        self._listener = FollowUpClassifier(collaborators.text)
        self._advisor = AdvisorAgent(collaborators.text)
        self._refiner = DayRefiner(collaborators.text)

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if self.busy:
            raise SessionBusy("Another trip operation is still running")
        self.busy = True
        try:
            yield
        finally:
            self.busy = False

    def _require_skeleton(self) -> TripSkeleton:
        if self.skeleton is None:
            raise RuntimeError("No itinerary has been generated yet")
        return self.skeleton

    def _begin_run(self) -> int:
        self._run_id += 1
        self._task = asyncio.current_task()
        return self._run_id

    def _end_run(self) -> None:
        if self._task is asyncio.current_task():
            self._task = None

    def _is_current(self, run_id: int) -> bool:
        if run_id != self._run_id:
            _LOGGER.info("Discarding results of superseded run %d", run_id)
            return False
        return True

    async def generate(
        self, request: TripRequest, *, description: Optional[str] = None
    ) -> AsyncIterator[StreamChunk]:
        """Stream a full pipeline run and adopt its result on success.

        The committed snapshot is described by ``description`` (the follow-up
        text for regenerations) or "Initial itinerary". A failed run keeps
        nothing.
        """

        with self._exclusive():
            run_id = self._begin_run()
            skeleton: Optional[TripSkeleton] = None
            days: List[DayResult] = []
            try:
                async for chunk in run_trip_pipeline(
                    request,
                    self.collaborators,
                    concurrency=self.concurrency,
                    scene_classifier=self._scene,
                ):
                    if isinstance(chunk, SkeletonChunk):
                        skeleton = chunk.skeleton
                    elif isinstance(chunk, DoneChunk):
                        days = chunk.days
                    yield chunk
            finally:
                self._end_run()

            if skeleton is None or not self._is_current(run_id):
                return
            self.request = request
            self.skeleton = skeleton
            self.day_results = {result.day: result for result in days}
            self.ledger.commit(
                skeleton,
                [Change(scope=ChangeScope.GLOBAL, description=description or INITIAL_DESCRIPTION)],
            )

    async def regenerate_days(self) -> AsyncIterator[StreamChunk]:
        """Re-run the day stage for the current skeleton, e.g. after a restore."""

        with self._exclusive():
            skeleton = self._require_skeleton()
            run_id = self._begin_run()
            results: List[DayResult] = []
            try:
                worker = DayWorker(self.collaborators)
                async for result in iter_days_parallel(
                    skeleton.days, skeleton, worker, self.concurrency
                ):
                    results.append(result)
                    yield ProgressChunk(
                        phase=RenderPhase.DAY_1 if len(results) == 1 else RenderPhase.REMAINING,
                        progress=30 + round(len(results) / skeleton.duration * 60),
                        day=result.day,
                        message=f"Day {result.day}: {result.skeleton.title} ready",
                    )
                    yield FragmentChunk(markup=result.markup)
            finally:
                self._end_run()

            if not self._is_current(run_id):
                return
            self.day_results = {result.day: result for result in results}
            yield DoneChunk(days=results)

    async def _edit_day(self, day: int, instruction: str) -> DayResult:
        skeleton = self._require_skeleton()
        run_id = self._run_id
        revised = await self._refiner.revise(skeleton, day, instruction)
        candidate = skeleton.replace_day(revised)
        result = await DayWorker(self.collaborators).run(revised, candidate, instruction=instruction)
        if not self._is_current(run_id):
            return result

        self.skeleton = candidate
        self.day_results[day] = result
        self.ledger.commit(
            candidate,
            [Change(scope=ChangeScope.LOCAL, day=day, description=instruction)],
        )
        return result

    async def edit_day(self, day: int, instruction: str) -> DayResult:
        """Revise one day and regenerate its detail.

        A worker exception leaves the session untouched and propagates.
        """

        with self._exclusive():
            return await self._edit_day(day, instruction)

    async def handle_follow_up(self, text: str) -> FollowUpOutcome:
        """Classify ``text`` and act on it.

        Full regenerations are not started here: the outcome carries the new
        request for :meth:`generate` so the caller can stream it.
        """

        with self._exclusive():
            skeleton = self._require_skeleton()
            original_prompt = self.request.prompt if self.request else ""
            classification = await self._listener.classify(original_prompt, skeleton, text)
            intent = classification.intent
            _LOGGER.info(
                "Follow-up routed to %s (confidence=%.2f)", intent.value, classification.confidence
            )

            if intent is FollowUpIntent.FULL_REGENERATION:
                media = self.request.media if self.request else ()
                return FollowUpOutcome(
                    classification=classification,
                    regenerate_request=TripRequest(
                        prompt=f"{original_prompt}\n\n{text}", media=media
                    ),
                )

            if intent is FollowUpIntent.SINGLE_DAY_EDIT:
                target = classification.target_day
                if classification.ui_action is UIAction.SILENT_UPDATE and target is not None:
                    result = await self._edit_day(target, text)
                    return FollowUpOutcome(
                        classification=classification,
                        updated_day=result,
                        reply=f"Day {target} has been updated.",
                    )
                return FollowUpOutcome(
                    classification=classification,
                    needs_day=True,
                    reply=classification.confirmation_prompt
                    or "Which day would you like to change?",
                )

            if intent is FollowUpIntent.QUESTION:
                answer = await self._advisor.answer(original_prompt, skeleton, text)
                return FollowUpOutcome(
                    classification=classification,
                    reply=answer.reply,
                    suggestions=answer.suggestions,
                )

            if intent is FollowUpIntent.CHAT:
                return FollowUpOutcome(
                    classification=classification,
                    reply=AdvisorAgent.chat_reply(text),
                )

            query = classification.search_query or text
            match = await self.collaborators.places.lookup_place(query, skeleton.destination)
            if match is None:
                reply = f"I couldn't find a place matching \"{query}\" in {skeleton.destination}."
            else:
                reply = f"{match.name}: {match.address}" if match.address else match.name
            return FollowUpOutcome(
                classification=classification,
                search_result=match,
                reply=reply,
            )

    def restore(self, version: int) -> VersionSnapshot:
        """Make ``version`` the head again; day detail must be regenerated."""

        with self._exclusive():
            snapshot = self.ledger.restore(version)
            self.skeleton = snapshot.skeleton.model_copy(deep=True)
            self.day_results = {}
            return snapshot

    def render_document(self) -> str:
        return render_document(self._require_skeleton(), self.day_results.values())

    def cancel(self) -> bool:
        """Cancel the in-flight generation; its results will be discarded."""

        self._run_id += 1
        task = self._task
        if task is None or task.done():
            return False
        _LOGGER.info("Cancelling in-flight trip generation")
        task.cancel()
        return True


__all__ = ["FollowUpOutcome", "INITIAL_DESCRIPTION", "SessionBusy", "TripSession"]
