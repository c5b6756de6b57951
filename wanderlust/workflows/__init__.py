"""Workflow entry points for orchestrating Wanderlust agents."""

from .session import FollowUpOutcome, SessionBusy, TripSession
from .trip_pipeline import generate_days_parallel, iter_days_parallel, run_trip_pipeline

__all__ = [
    "FollowUpOutcome",
    "SessionBusy",
    "TripSession",
    "generate_days_parallel",
    "iter_days_parallel",
    "run_trip_pipeline",
]
