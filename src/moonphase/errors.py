"""Error taxonomy shared by every pipeline stage."""

from typing import Any


class MoonPhaseError(Exception):
    """Base class. ``user_message`` is safe to show in the page."""

    default_message = "Something went wrong while fetching sky data."

    def __init__(self, detail: str, user_message: str | None = None) -> None:
        super().__init__(detail)
        self.user_message = user_message or self.default_message


class ResolutionError(MoonPhaseError):
    """A place name could not be geocoded."""

    def __init__(self, location: str, detail: str | None = None) -> None:
        super().__init__(
            detail or f"Could not find valid coordinates for {location!r}.",
            f'Failed to find coordinates for "{location}". '
            "Please try a more specific location.",
        )
        self.location = location


class ParseError(MoonPhaseError):
    """Model output is not valid JSON after fence extraction."""

    default_message = "Received an unreadable answer. Please try again."

    def __init__(self, detail: str, text: str = "") -> None:
        super().__init__(detail)
        self.text = text


class ValidationError(MoonPhaseError):
    """Parsed JSON is missing required fields or has the wrong field types."""

    default_message = "Received incomplete data. Please try again."

    def __init__(self, detail: str, data: Any = None) -> None:
        super().__init__(detail)
        self.data = data


class NetworkError(MoonPhaseError):
    """Transport failure, timeout, or non-2xx response."""

    default_message = "Could not reach the data source. Please try again."

    def __init__(self, detail: str, retriable: bool = False) -> None:
        super().__init__(detail)
        self.retriable = retriable
