"""Core utilities for Wanderlust."""

from .collaborators import Collaborators, default_collaborators
from .parsing import MalformedResponse, ParseResult, extract_json, parse_response
from .versions import VersionLedger

__all__ = [
    "Collaborators",
    "MalformedResponse",
    "ParseResult",
    "VersionLedger",
    "default_collaborators",
    "extract_json",
    "parse_response",
]
