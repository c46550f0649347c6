"""Photograph retrieval: from the language model or from NASA's APOD endpoint."""

import logging
from datetime import date
from typing import Any, Protocol
from urllib.parse import urlparse

import httpx

from moonphase.errors import NetworkError, ValidationError
from moonphase.extract import reply_json
from moonphase.llm import ModelClient
from moonphase.lunar import format_day
from moonphase.models import MEDIA_TYPES, SkyPhotograph

logger = logging.getLogger(__name__)

APOD_URL = "https://api.nasa.gov/planetary/apod"

PHOTO_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "url": {"type": "string", "description": "Direct https:// link to the file"},
        "media_type": {"type": "string", "enum": list(MEDIA_TYPES)},
        "explanation": {"type": "string"},
    },
    "required": ["title", "url", "media_type", "explanation"],
    "additionalProperties": False,
}


class PhotoSource(Protocol):
    async def fetch(self, day: date) -> SkyPhotograph: ...


def validate_photograph(data: Any) -> SkyPhotograph:
    """Build a SkyPhotograph from a decoded JSON object.

    ``media_type`` defaults to "image" when absent. ``explanation`` is read
    through without being required.

    Raises:
        ValidationError: Missing title or url, a url that is not http(s), or an
            unknown media type.
    """
    if not isinstance(data, dict):
        raise ValidationError("Photograph data is not a JSON object.", data)

    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Missing or empty field: title", data)

    url = data.get("url")
    if not isinstance(url, str) or urlparse(url.strip()).scheme not in ("http", "https"):
        raise ValidationError(f"Missing or invalid field: url ({url!r})", data)

    media_type = data.get("media_type") or "image"
    if media_type not in MEDIA_TYPES:
        raise ValidationError(f"Unsupported media type: {media_type!r}", data)

    explanation = data.get("explanation")
    return SkyPhotograph(
        title=title.strip(),
        url=url.strip(),
        media_type=media_type,
        explanation=explanation if isinstance(explanation, str) else "",
    )


def photograph_from_apod(payload: Any) -> SkyPhotograph:
    """Map an APOD response body to a SkyPhotograph, preferring the thumbnail URL."""
    if not isinstance(payload, dict):
        raise ValidationError("APOD response is not a JSON object.", payload)
    return validate_photograph(
        {
            "title": payload.get("title"),
            "url": payload.get("thumbnail_url") or payload.get("url"),
            "media_type": payload.get("media_type"),
            "explanation": payload.get("explanation"),
        }
    )


def build_photo_prompt(day: date) -> str:
    return (
        "Find a beautiful, high-quality, public domain space photograph with a title "
        f"and brief explanation, relevant for the date {format_day(day)}. Respond ONLY "
        "with a single, raw JSON object in the format: "
        '{"title": "...", "url": "...", "media_type": "image", "explanation": "..."}. '
        "The URL must be a direct link to an image file (e.g., .jpg, .png) or a video "
        'and MUST start with "https://". media_type is "image" or "video".'
    )


class ModelPhotoSource:
    """Asks the language model for a photograph."""

    def __init__(self, model: ModelClient, structured: bool = True) -> None:
        self.model = model
        self.structured = structured

    async def fetch(self, day: date) -> SkyPhotograph:
        reply = await self.model.generate(
            build_photo_prompt(day),
            schema=PHOTO_SCHEMA if self.structured else None,
        )
        data = reply_json(reply)
        return validate_photograph(data)


class ApodPhotoSource:
    """Reads NASA's Astronomy Picture of the Day.

    With ``use_date`` off the endpoint's own "today" is used, whatever day is asked for.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str = "DEMO_KEY",
        use_date: bool = True,
        url: str = APOD_URL,
    ) -> None:
        self.http = http
        self.api_key = api_key
        self.use_date = use_date
        self.url = url

    async def fetch(self, day: date) -> SkyPhotograph:
        params = {"api_key": self.api_key, "thumbs": "true"}
        if self.use_date:
            params["date"] = day.isoformat()
        try:
            resp = await self.http.get(self.url, params=params)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise NetworkError("APOD request timed out.", retriable=True) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise NetworkError(
                f"NASA APOD API responded with status: {status}",
                retriable=status == 429 or status >= 500,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"APOD request failed: {e}", retriable=True) from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise NetworkError("APOD returned a non-JSON body.") from e
        return photograph_from_apod(payload)
