"""Orchestrates the end-to-end flow for generating a trip itinerary."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from operator import attrgetter
from typing import AsyncIterator, List, Optional, Sequence, Tuple

from wanderlust.agents import (
    DayWorker,
    GenerationFailed,
    MediaInsight,
    MediaInsightAgent,
    SceneClassifier,
    SkeletonAgent,
    VisualIdentityAgent,
)
from wanderlust.core.collaborators import Collaborators
from wanderlust.core.rendering import (
    render_footer,
    render_header,
    render_overview,
    render_placeholder_day,
)
from wanderlust.schemas import (
    DayResult,
    DaySkeleton,
    DoneChunk,
    ErrorChunk,
    FragmentChunk,
    ProgressChunk,
    RenderPhase,
    SceneAnalysis,
    SkeletonChunk,
    StreamChunk,
    TripRequest,
    TripSkeleton,
    VisualIdentity,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = int(os.getenv("DAY_CONCURRENCY", "3"))


def _log_stage(stage: str, duration: float, prompt_version: str, *, cached: bool = False) -> None:
    suffix = " (cache hit)" if cached else ""
    _LOGGER.info(
        "%s stage completed%s in %.2fs [prompt_version=%s]",
        stage.capitalize(),
        suffix,
        duration,
        prompt_version,
    )


def placeholder_day_result(
    day: DaySkeleton, skeleton: TripSkeleton, reason: Optional[str] = None
) -> DayResult:
    """Stand-in for a day whose worker failed outright."""

    return DayResult(
        day=day.day,
        skeleton=day,
        activities=[],
        images=[],
        markup=render_placeholder_day(day, skeleton.palette, reason),
        failed=True,
    )


async def iter_days_parallel(
    days: Sequence[DaySkeleton],
    skeleton: TripSkeleton,
    worker: DayWorker,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> AsyncIterator[DayResult]:
    """Run Day Workers in batches of ``concurrency``, yielding results by day.

    Each batch settles completely before the next one starts. A worker that
    raises is replaced by a placeholder result so every day is present.
    """

    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    ordered = sorted(days, key=attrgetter("day"))
    for start in range(0, len(ordered), concurrency):
        batch = ordered[start : start + concurrency]
        outcomes = await asyncio.gather(
            *(worker.run(day, skeleton) for day in batch),
            return_exceptions=True,
        )
        results: List[DayResult] = []
        for day, outcome in zip(batch, outcomes):
            if isinstance(outcome, Exception):
                _LOGGER.error("Day %d worker failed: %s", day.day, outcome, exc_info=outcome)
                results.append(placeholder_day_result(day, skeleton))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)
        for result in sorted(results, key=attrgetter("day")):
            yield result


async def generate_days_parallel(
    days: Sequence[DaySkeleton],
    skeleton: TripSkeleton,
    worker: DayWorker,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> List[DayResult]:
    """Collect :func:`iter_days_parallel` into a list sorted by day."""

    results = [result async for result in iter_days_parallel(days, skeleton, worker, concurrency)]
    return sorted(results, key=attrgetter("day"))


async def _run_scene(
    request: TripRequest,
    collaborators: Collaborators,
    classifier: SceneClassifier,
) -> Tuple[SceneAnalysis, MediaInsight]:
    start = time.perf_counter()
    media_agent = MediaInsightAgent(collaborators.text)
    analysis, media = await asyncio.gather(
        classifier.analyze(request.prompt),
        media_agent.analyze(request.media),
    )
    _log_stage("scene", time.perf_counter() - start, classifier.prompt_version)
    return analysis, media


async def _run_visual_identity(
    prompt: str, analysis: SceneAnalysis, collaborators: Collaborators
) -> VisualIdentity:
    start = time.perf_counter()
    agent = VisualIdentityAgent(collaborators)
    identity = await agent.run(prompt, analysis)
    _log_stage("stylist", time.perf_counter() - start, agent.prompt_version)
    return identity


async def _run_skeleton(
    prompt: str,
    identity: VisualIdentity,
    analysis: SceneAnalysis,
    links: Sequence[str],
    collaborators: Collaborators,
) -> TripSkeleton:
    start = time.perf_counter()
    agent = SkeletonAgent(collaborators.text)
    skeleton = await agent.run(prompt, identity, analysis, links)
    _log_stage("planner", time.perf_counter() - start, agent.prompt_version)
    return skeleton


async def run_trip_pipeline(
    request: TripRequest,
    collaborators: Collaborators,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    scene_classifier: Optional[SceneClassifier] = None,
) -> AsyncIterator[StreamChunk]:
    """Execute the pipeline, streaming progress, markup and the skeleton.

    On :class:`GenerationFailed` an :class:`ErrorChunk` is emitted and the
    exception re-raised; nothing after the failing stage is produced.
    """

    pipeline_start = time.perf_counter()
    classifier = scene_classifier or SceneClassifier(collaborators.text)
    _LOGGER.info("Starting trip pipeline for request: %.80s", request.prompt)

    yield ProgressChunk(phase=RenderPhase.SKELETON, progress=5, message="Reading your request")
    try:
        analysis, media = await _run_scene(request, collaborators, classifier)
        prompt = request.prompt
        if media.summary:
            prompt = f"{prompt}\n\n{media.summary}"

        yield ProgressChunk(
            phase=RenderPhase.HEADER,
            progress=10,
            message=f"Scene: {analysis.category.value} ({analysis.summary})",
        )
        identity = await _run_visual_identity(prompt, analysis, collaborators)
        yield FragmentChunk(markup=render_header(identity))

        yield ProgressChunk(
            phase=RenderPhase.OVERVIEW,
            progress=20,
            message=f"Style: {identity.vibe} ({identity.palette})",
        )
        skeleton = await _run_skeleton(prompt, identity, analysis, request.links(), collaborators)
    except GenerationFailed as exc:
        _LOGGER.error("Trip pipeline aborted: %s", exc)
        yield ErrorChunk(message=str(exc))
        raise

    yield SkeletonChunk(skeleton=skeleton)
    yield FragmentChunk(markup=render_overview(skeleton))
    yield ProgressChunk(
        phase=RenderPhase.DAY_1,
        progress=30,
        message=f"Planning {skeleton.duration} days in parallel",
    )

    day_start = time.perf_counter()
    worker = DayWorker(collaborators)
    results: List[DayResult] = []
    async for result in iter_days_parallel(skeleton.days, skeleton, worker, concurrency):
        results.append(result)
        position = len(results)
        yield ProgressChunk(
            phase=RenderPhase.DAY_1 if position == 1 else RenderPhase.REMAINING,
            progress=30 + round(position / skeleton.duration * 60),
            day=result.day,
            message=f"Day {result.day}: {result.skeleton.title} ready ({result.latency_ms}ms)",
        )
        yield FragmentChunk(markup=result.markup)
    _log_stage("day", time.perf_counter() - day_start, worker.prompt_version)

    yield ProgressChunk(phase=RenderPhase.COMPLETE, progress=100, message="Itinerary complete")
    yield FragmentChunk(markup=render_footer(skeleton.palette))
    yield DoneChunk(days=results)
    _LOGGER.info("Trip pipeline completed in %.2fs", time.perf_counter() - pipeline_start)


__all__ = [
    "DEFAULT_CONCURRENCY",
    "generate_days_parallel",
    "iter_days_parallel",
    "placeholder_day_result",
    "run_trip_pipeline",
]
