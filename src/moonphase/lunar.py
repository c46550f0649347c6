"""Fact retrieval: moonrise, moonset, phase and illumination for a place and date."""

import logging
import math
from datetime import date
from typing import Any

from moonphase.config import IlluminationPolicy
from moonphase.errors import ValidationError
from moonphase.extract import reply_json
from moonphase.llm import ModelClient, ModelReply
from moonphase.models import MOON_PHASES, Coordinates, LunarObservation

logger = logging.getLogger(__name__)

LUNAR_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "moonrise": {"type": "string", "description": "Moonrise time, HH:MM AM/PM or N/A"},
        "moonset": {"type": "string", "description": "Moonset time, HH:MM AM/PM or N/A"},
        "phase": {"type": "string", "description": "Moon phase name"},
        "illumination": {"type": "number", "description": "Illuminated percent, 0-100"},
    },
    "required": ["moonrise", "moonset", "phase", "illumination"],
    "additionalProperties": False,
}


def format_day(day: date) -> str:
    """Spell the date out ("January 1, 2024")."""
    return f"{day:%B} {day.day}, {day.year}"


def describe_target(target: Coordinates | str) -> str:
    if isinstance(target, Coordinates):
        return f"the geographic coordinates (latitude: {target.lat}, longitude: {target.lng})"
    return f'the location "{target}"'


def build_lunar_prompt(target: Coordinates | str, day: date, web_search: bool = True) -> str:
    where = describe_target(target)
    when = format_day(day)
    if web_search:
        intro = (
            "Your task is to act as a precise astronomical data fetcher. You must use "
            f"web search to query the website timeanddate.com for {where} on the date {when}.\n"
            "From the timeanddate.com search result, you MUST extract the following exact values:\n"
        )
    else:
        intro = (
            "Your task is to act as a precise astronomical data fetcher. "
            f"For {where} on the date {when}, provide the following exact values:\n"
        )
    return (
        intro
        + "1. Moonrise time (in HH:MM AM/PM format)\n"
        "2. Moonset time (in HH:MM AM/PM format)\n"
        f"3. Moon phase name (one of: {', '.join(MOON_PHASES)})\n"
        "4. Illumination percentage (as a number)\n\n"
        "If a value does not exist for that day (for example, the moon does not set "
        'or rise), you must use the string "N/A".\n\n'
        "Your final output must be ONLY the raw JSON object containing this data. "
        "Do not add any conversational text, explanations, or markdown formatting. "
        "The format MUST be:\n"
        '{"moonrise": "...", "moonset": "...", "phase": "...", "illumination": ...}'
    )


def validate_lunar(
    data: Any, policy: IlluminationPolicy = IlluminationPolicy.PASS
) -> LunarObservation:
    """Check field presence and shape, then build a LunarObservation.

    Raises:
        ValidationError: On any missing or mistyped field, or an out-of-range
            illumination under the REJECT policy.
    """
    if not isinstance(data, dict):
        raise ValidationError("Moon data is not a JSON object.", data)

    for name in ("moonrise", "moonset", "phase"):
        value = data.get(name)
        if not isinstance(value, str) or not value.strip():
            logger.error("Validation failed for moon data: %r", data)
            raise ValidationError(f"Missing or empty field: {name}", data)

    illumination = data.get("illumination")
    if (
        not isinstance(illumination, (int, float))
        or isinstance(illumination, bool)
        or not math.isfinite(illumination)
    ):
        logger.error("Validation failed for moon data: %r", data)
        raise ValidationError("Missing or non-numeric field: illumination", data)

    illumination = float(illumination)
    if not 0 <= illumination <= 100:
        if policy is IlluminationPolicy.REJECT:
            raise ValidationError(f"Illumination out of range: {illumination}", data)
        if policy is IlluminationPolicy.CLAMP:
            illumination = min(100.0, max(0.0, illumination))
        else:
            logger.warning("Illumination out of range, passing through: %s", illumination)

    return LunarObservation(
        moonrise=data["moonrise"].strip(),
        moonset=data["moonset"].strip(),
        phase=data["phase"].strip(),
        illumination=illumination,
    )


def parse_lunar_reply(
    reply: ModelReply, policy: IlluminationPolicy = IlluminationPolicy.PASS
) -> LunarObservation:
    data = reply_json(reply)
    return validate_lunar(data, policy)


async def fetch_lunar_observation(
    target: Coordinates | str,
    day: date,
    model: ModelClient,
    *,
    web_search: bool = True,
    structured: bool = True,
    policy: IlluminationPolicy = IlluminationPolicy.PASS,
) -> LunarObservation:
    """Ask the model for the moon facts of one place and date.

    Args:
        target: Resolved coordinates, or place text when geocoding is skipped.
        day: Observation date.
        model: Client for the fact prompt.
        web_search: Ground the answer with the model's web search tool.
        structured: Constrain the answer to LUNAR_SCHEMA where the client can.
        policy: Handling of illumination values outside [0, 100].

    Raises:
        ParseError: The answer is not JSON.
        ValidationError: The JSON lacks a required field or has the wrong shape.
        NetworkError: On transport failure.
    """
    reply = await model.generate(
        build_lunar_prompt(target, day, web_search=web_search),
        web_search=web_search,
        schema=LUNAR_SCHEMA if structured else None,
    )
    observation = parse_lunar_reply(reply, policy)
    logger.info(
        "Moon data for %s: %s, %.1f%%", format_day(day), observation.phase, observation.illumination
    )
    return observation
