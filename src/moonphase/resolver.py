"""Location resolution: literal "lat, lng" parsing and model-backed geocoding."""

import logging
import math
import re
from typing import Any

from moonphase.errors import ParseError, ResolutionError
from moonphase.extract import reply_json
from moonphase.llm import ModelClient
from moonphase.models import Coordinates

logger = logging.getLogger(__name__)

_COORDS = re.compile(r"^(-?\d+\.?\d*),\s*(-?\d+\.?\d*)$")

_NULLABLE_NUMBER: dict[str, Any] = {"anyOf": [{"type": "number"}, {"type": "null"}]}
GEOCODE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"lat": _NULLABLE_NUMBER, "lng": _NULLABLE_NUMBER},
    "required": ["lat", "lng"],
    "additionalProperties": False,
}


def parse_coordinates(location: str) -> Coordinates | None:
    """Parse a strict "lat, lng" string. Returns None for anything else."""
    match = _COORDS.match(location.strip())
    if match is None:
        return None
    return Coordinates(lat=float(match.group(1)), lng=float(match.group(2)))


def build_geocode_prompt(location: str) -> str:
    return (
        "Your task is to act as a geocoding service. Convert the following location "
        "name into precise latitude and longitude coordinates.\n"
        f'Location: "{location}"\n'
        'Your output must be ONLY a raw JSON object in the format: {"lat": ..., "lng": ...}.\n'
        "Do not add any other text or explanation. If the location is invalid or "
        'cannot be found, return {"lat": null, "lng": null}.'
    )


def _is_number(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


async def resolve_location(
    location: str, model: ModelClient, structured: bool = True
) -> Coordinates:
    """Resolve a location string to coordinates.

    Literal coordinates are returned as-is without touching the model.

    Args:
        location: "lat, lng" or a free-form place name.
        model: Client used for the geocoding prompt.
        structured: Constrain the answer to GEOCODE_SCHEMA where the client can.

    Returns:
        Coordinates for the location.

    Raises:
        ResolutionError: When the model cannot place the location.
        NetworkError: On transport failure.
    """
    coords = parse_coordinates(location)
    if coords is not None:
        return coords

    reply = await model.generate(
        build_geocode_prompt(location), schema=GEOCODE_SCHEMA if structured else None
    )
    try:
        data = reply_json(reply)
    except ParseError as e:
        raise ResolutionError(location, f"Unreadable geocoder answer for {location!r}") from e

    if not isinstance(data, dict):
        raise ResolutionError(location)
    lat, lng = data.get("lat"), data.get("lng")
    if not (_is_number(lat) and _is_number(lng)):
        logger.warning("Geocoder returned no coordinates for %r: %r", location, data)
        raise ResolutionError(location)
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        logger.warning("Geocoder returned out-of-range coordinates for %r: %r", location, data)
        raise ResolutionError(location)

    logger.info("Resolved %r to lat=%.4f lng=%.4f", location, lat, lng)
    return Coordinates(lat=float(lat), lng=float(lng))
