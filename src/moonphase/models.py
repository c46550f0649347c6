"""Data model definitions: explicit boundaries between input, fetch, and display layers."""

from dataclasses import dataclass
from datetime import date
from typing import Generic, TypeVar, Union

MOON_PHASES: tuple[str, ...] = (
    "New Moon",
    "Waxing Crescent",
    "First Quarter",
    "Waxing Gibbous",
    "Full Moon",
    "Waning Gibbous",
    "Last Quarter",
    "Waning Crescent",
)

MEDIA_TYPES: tuple[str, ...] = ("image", "video")

T = TypeVar("T")


@dataclass(frozen=True)
class QueryInput:
    """Raw user intent. Keys every in-flight fetch."""

    location: str  # Place name ("Queens, NY") or "lat, lng"
    day: date  # Calendar date of the observation


@dataclass(frozen=True)
class Coordinates:
    """Result of geocoding. Discarded once the fact prompt is built."""

    lat: float  # Latitude (decimal degrees)
    lng: float  # Longitude (decimal degrees)


@dataclass(frozen=True)
class LunarObservation:
    """Moon facts for one location and date."""

    moonrise: str  # "07:12 PM", or "N/A" when the moon does not rise
    moonset: str  # "06:03 AM", or "N/A" when the moon does not set
    phase: str  # Phase name ("Waxing Gibbous")
    illumination: float  # Illuminated fraction in percent, nominally 0-100


@dataclass(frozen=True)
class SkyPhotograph:
    """A daily space photograph and its caption."""

    title: str
    url: str  # Direct link to the image or video resource
    media_type: str  # "image" or "video"
    explanation: str


# --- Per-slot fetch state ---


@dataclass(frozen=True)
class Idle:
    """Nothing requested for this slot yet."""


@dataclass(frozen=True)
class Loading:
    """A request for this slot is in flight."""


@dataclass(frozen=True)
class Ready(Generic[T]):
    """Fetch finished with a value."""

    value: T


@dataclass(frozen=True)
class Failed:
    """Fetch finished with an error."""

    error: Exception
    message: str  # User-safe text; empty for slots that fail silently


SlotState = Union[Idle, Loading, Ready, Failed]


@dataclass(frozen=True)
class Snapshot:
    """Current user intent and everything derived from it. Replaced, never mutated."""

    query: QueryInput | None
    facts: SlotState = Idle()
    photo: SlotState = Idle()

    @property
    def observation(self) -> LunarObservation | None:
        return self.facts.value if isinstance(self.facts, Ready) else None

    @property
    def photograph(self) -> SkyPhotograph | None:
        return self.photo.value if isinstance(self.photo, Ready) else None

    @property
    def loading(self) -> bool:
        return isinstance(self.facts, Loading) or isinstance(self.photo, Loading)
