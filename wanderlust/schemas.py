"""Data schemas for the Wanderlust itinerary generator."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
import re
from typing import Annotated, Dict, Iterable, List, Literal, Optional, Tuple, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    field_validator,
    model_validator,
)


PALETTES: Tuple[str, ...] = (
    "stone",
    "zinc",
    "slate",
    "blue",
    "indigo",
    "rose",
    "orange",
    "amber",
    "emerald",
    "teal",
)

HERO_STYLES: Tuple[str, ...] = ("centered", "magazine", "minimal")

MAX_TRIP_DAYS = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SceneCategory(str, Enum):
    """Travel-intent archetypes used to bias tone and styling."""

    ROMANTIC = "romantic"
    FAMILY = "family"
    ADVENTURE = "adventure"
    BUSINESS = "business"
    FOODIE = "foodie"
    CULTURE = "culture"
    RELAXATION = "relaxation"
    SOLO = "solo"

    @classmethod
    def coerce(cls, value: object) -> Optional["SceneCategory"]:
        """Return the matching category for loose LLM output, if any."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        cleaned = value.strip().lower()
        for member in cls:
            if member.value == cleaned:
                return member
        return None


DEFAULT_SCENE = SceneCategory.RELAXATION


class MediaReference(BaseModel):
    """A user-supplied photo, clip or hyperlink attached to a request."""

    kind: Literal["image", "video", "link"] = "link"
    name: str = ""
    url: Optional[str] = None
    mime_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("mime_type", "mimeType", "type"),
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class TripRequest(BaseModel):
    """Free-text travel request submitted by the traveller."""

    prompt: str
    media: Tuple[MediaReference, ...] = ()

    model_config = ConfigDict(frozen=True)

    @field_validator("prompt")
    @classmethod
    def _strip_prompt(cls, value: str) -> str:
        return value.strip()

    def links(self) -> List[str]:
        return [item.url for item in self.media if item.kind == "link" and item.url]

    def uploads(self) -> List[MediaReference]:
        return [item for item in self.media if item.kind != "link"]


class SceneAnalysis(BaseModel):
    """Scene classification for a request."""

    category: SceneCategory
    confidence: float = Field(ge=0.0, le=1.0)
    summary: str
    highlights: List[str] = Field(min_length=3, max_length=5)
    detected_keywords: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("detected_keywords", "detectedKeywords", "keywords"),
    )

    model_config = ConfigDict(populate_by_name=True)

    @property
    def recommended_template(self) -> str:
        return f"{self.category.value}_template"


class SkeletonPreview(BaseModel):
    """Instant preview shown while the full skeleton is being generated."""

    destination: Optional[str] = None
    duration: PositiveInt
    category: SceneCategory
    vibe: str
    estimated_seconds: int


class FontConfig(BaseModel):
    """Heading/body font pairing plus the stylesheet that provides them."""

    heading_font: str = Field(validation_alias=AliasChoices("heading_font", "headingFont", "title"))
    body_font: str = Field(validation_alias=AliasChoices("body_font", "bodyFont", "body"))
    google_font_url: str = Field(
        default="",
        validation_alias=AliasChoices("google_font_url", "googleFontUrl", "url"),
    )

    model_config = ConfigDict(populate_by_name=True)


class VisualIdentity(BaseModel):
    """Styling decisions made once per run and read by every later stage."""

    destination: str = Field(min_length=1)
    duration: PositiveInt
    vibe: str
    palette: str
    hero_style: str = Field(
        default="centered",
        validation_alias=AliasChoices("hero_style", "heroStyle"),
    )
    font_config: FontConfig = Field(validation_alias=AliasChoices("font_config", "fontConfig"))
    hero_image: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("hero_image", "heroImage"),
    )
    scene_category: SceneCategory = Field(
        default=DEFAULT_SCENE,
        validation_alias=AliasChoices("scene_category", "sceneType", "sceneCategory"),
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("palette")
    @classmethod
    def _known_palette(cls, value: str) -> str:
        if value not in PALETTES:
            raise ValueError(f"Unknown palette token: {value}")
        return value

    @field_validator("hero_style")
    @classmethod
    def _known_hero_style(cls, value: str) -> str:
        if value not in HERO_STYLES:
            raise ValueError(f"Unknown hero style: {value}")
        return value


class Highlight(BaseModel):
    """A headline highlight shown in the trip overview."""

    icon: str = "✦"
    title: str
    description: str = Field(
        default="",
        validation_alias=AliasChoices("description", "desc"),
    )

    model_config = ConfigDict(populate_by_name=True)


class DaySkeleton(BaseModel):
    """Per-day outline produced before full detail is generated."""

    day: PositiveInt
    title: str
    theme: str
    city: str
    visual_keyword: str = Field(
        validation_alias=AliasChoices("visual_keyword", "visualKeyword", "image_keyword"),
    )

    model_config = ConfigDict(populate_by_name=True)


class TripSkeleton(VisualIdentity):
    """The authoritative plan for a trip."""

    summary: str
    highlights: List[Highlight] = Field(min_length=3, max_length=5)
    days: List[DaySkeleton]

    @model_validator(mode="after")
    def _days_are_dense(self) -> "TripSkeleton":
        numbers = sorted(day.day for day in self.days)
        if len(self.days) != self.duration:
            raise ValueError(
                f"Trip duration {self.duration} does not match {len(self.days)} day entries"
            )
        if numbers != list(range(1, self.duration + 1)):
            raise ValueError(f"Day numbers must be exactly 1..{self.duration}, got {numbers}")
        return self

    @classmethod
    def from_parts(
        cls,
        identity: VisualIdentity,
        *,
        summary: str,
        highlights: Iterable[Highlight],
        days: Iterable[DaySkeleton],
    ) -> "TripSkeleton":
        return cls(
            **identity.model_dump(),
            summary=summary,
            highlights=list(highlights),
            days=sorted(days, key=lambda item: item.day),
        )

    def identity(self) -> VisualIdentity:
        return VisualIdentity.model_validate(
            self.model_dump(include=set(VisualIdentity.model_fields))
        )

    def day(self, number: int) -> DaySkeleton:
        for entry in self.days:
            if entry.day == number:
                return entry
        raise KeyError(f"Day {number} is not part of this trip")

    def replace_day(self, replacement: DaySkeleton) -> "TripSkeleton":
        """Return a copy of the skeleton with one day swapped out."""

        self.day(replacement.day)
        days = [replacement if entry.day == replacement.day else entry for entry in self.days]
        return self.model_copy(update={"days": days}, deep=True)

    def outline(self) -> str:
        """Compact day-by-day summary used inside prompts."""

        lines = [f"{self.destination}, {self.duration} days, vibe: {self.vibe}"]
        for entry in self.days:
            lines.append(f"Day {entry.day}: {entry.title} ({entry.theme}) in {entry.city}")
        return "\n".join(lines)


class LocationData(BaseModel):
    """Where an activity happens; coordinates are best-effort."""

    name: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


class Activity(BaseModel):
    """A single time slot within a day."""

    time: str
    title: str
    description: str = ""
    location: LocationData
    tip: Optional[str] = Field(default=None, validation_alias=AliasChoices("tip", "tips"))

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _coerce_location(cls, data: object) -> object:
        """Accept a bare location string as produced by some model replies."""

        if not isinstance(data, dict):
            return data
        payload = dict(data)
        location = payload.get("location")
        if isinstance(location, str):
            payload["location"] = {"name": location}
        elif location is None:
            payload["location"] = {"name": payload.get("title") or ""}
        if isinstance(payload.get("time"), (int, float)):
            payload["time"] = str(payload["time"])
        return payload


class PlaceMatch(BaseModel):
    """Result of a successful place lookup."""

    name: str
    lat: float
    lng: float
    address: str = ""
    city: str = ""


class DayResult(BaseModel):
    """Fully generated detail for one day of a trip."""

    day: PositiveInt
    skeleton: DaySkeleton
    activities: List[Activity] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    markup: str
    latency_ms: int = 0
    failed: bool = False

    @model_validator(mode="after")
    def _day_matches_skeleton(self) -> "DayResult":
        if self.day != self.skeleton.day:
            raise ValueError("DayResult.day must match its DaySkeleton")
        return self


class ChangeScope(str, Enum):
    GLOBAL = "global"
    LOCAL = "local"


class Change(BaseModel):
    """A single described change recorded in a snapshot."""

    scope: ChangeScope
    day: Optional[PositiveInt] = None
    description: str
    timestamp: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> Tuple[str, Optional[int]]:
        return (self.scope.value, self.day)


class VersionSnapshot(BaseModel):
    """Immutable, versioned copy of a trip plan."""

    version: PositiveInt
    timestamp: datetime = Field(default_factory=_utcnow)
    author: str
    changes: Tuple[Change, ...] = ()
    skeleton: TripSkeleton
    summary: str

    model_config = ConfigDict(frozen=True)


class VersionDiff(BaseModel):
    """Shallow comparison between two snapshots."""

    added: List[Change] = Field(default_factory=list)
    removed: List[Change] = Field(default_factory=list)
    modified: List[Change] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)


class FollowUpIntent(str, Enum):
    FULL_REGENERATION = "full_regeneration"
    SINGLE_DAY_EDIT = "single_day_edit"
    QUESTION = "question"
    CHAT = "chat"
    SEARCH = "search"

    @classmethod
    def coerce(cls, value: object) -> Optional["FollowUpIntent"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        cleaned = re.sub(r"[\s-]+", "_", value.strip().lower())
        return _INTENT_ALIASES.get(cleaned)


_INTENT_ALIASES: Dict[str, FollowUpIntent] = {
    "full_regeneration": FollowUpIntent.FULL_REGENERATION,
    "regenerate_global": FollowUpIntent.FULL_REGENERATION,
    "regenerate": FollowUpIntent.FULL_REGENERATION,
    "single_day_edit": FollowUpIntent.SINGLE_DAY_EDIT,
    "update_local": FollowUpIntent.SINGLE_DAY_EDIT,
    "question": FollowUpIntent.QUESTION,
    "qa_query": FollowUpIntent.QUESTION,
    "qa": FollowUpIntent.QUESTION,
    "chat": FollowUpIntent.CHAT,
    "chit_chat": FollowUpIntent.CHAT,
    "search": FollowUpIntent.SEARCH,
}


class UIAction(str, Enum):
    STREAM_LOADING = "stream_loading"
    SILENT_UPDATE = "silent_update"
    CHAT_REPLY = "chat_reply"
    DAY_CONFIRMATION = "day_confirmation"
    SEARCH_CONFIRMATION = "search_confirmation"


SearchCategory = Literal["restaurant", "attraction", "transport", "accommodation"]


class FollowUpClassification(BaseModel):
    """Classification of a free-text follow-up message."""

    intent: FollowUpIntent
    ui_action: UIAction
    target_day: Optional[PositiveInt] = None
    day_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""
    suggested_action: str = ""
    requires_confirmation: bool = False
    confirmation_prompt: Optional[str] = None
    chat_type: Optional[str] = None
    search_query: Optional[str] = None
    search_category: Optional[SearchCategory] = None
    new_destination: Optional[str] = None
    new_duration: Optional[PositiveInt] = None
    modified_activities: List[str] = Field(default_factory=list)


class QAReply(BaseModel):
    """Answer to a question asked about the current plan."""

    reply: str
    suggestions: List[str] = Field(default_factory=list)


class RenderPhase(str, Enum):
    SKELETON = "skeleton"
    HEADER = "header"
    OVERVIEW = "overview"
    DAY_1 = "day_1"
    REMAINING = "remaining"
    COMPLETE = "complete"


class FragmentChunk(BaseModel):
    kind: Literal["fragment"] = "fragment"
    markup: str


class ProgressChunk(BaseModel):
    kind: Literal["progress"] = "progress"
    phase: RenderPhase
    progress: int = Field(ge=0, le=100)
    day: Optional[PositiveInt] = None
    message: Optional[str] = None


class SkeletonChunk(BaseModel):
    kind: Literal["skeleton"] = "skeleton"
    skeleton: TripSkeleton


class DoneChunk(BaseModel):
    kind: Literal["done"] = "done"
    days: List[DayResult] = Field(default_factory=list)


class ErrorChunk(BaseModel):
    kind: Literal["error"] = "error"
    message: str


StreamChunk = Annotated[
    Union[FragmentChunk, ProgressChunk, SkeletonChunk, DoneChunk, ErrorChunk],
    Field(discriminator="kind"),
]


__all__ = [
    "Activity",
    "Change",
    "ChangeScope",
    "DEFAULT_SCENE",
    "DayResult",
    "DaySkeleton",
    "DoneChunk",
    "ErrorChunk",
    "FollowUpClassification",
    "FollowUpIntent",
    "FontConfig",
    "FragmentChunk",
    "HERO_STYLES",
    "Highlight",
    "LocationData",
    "MAX_TRIP_DAYS",
    "MediaReference",
    "PALETTES",
    "PlaceMatch",
    "ProgressChunk",
    "QAReply",
    "RenderPhase",
    "SceneAnalysis",
    "SceneCategory",
    "SearchCategory",
    "SkeletonChunk",
    "SkeletonPreview",
    "StreamChunk",
    "TripRequest",
    "TripSkeleton",
    "UIAction",
    "VersionDiff",
    "VersionSnapshot",
    "VisualIdentity",
]
