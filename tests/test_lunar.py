import json

import pytest

from moonphase.config import IlluminationPolicy
from moonphase.errors import ParseError, ValidationError
from moonphase.llm import ModelReply
from moonphase.lunar import (
    LUNAR_SCHEMA,
    build_lunar_prompt,
    fetch_lunar_observation,
    format_day,
    validate_lunar,
)
from moonphase.models import Coordinates, LunarObservation

from conftest import FakeModel

GOOD = {"moonrise": "11:21 PM", "moonset": "11:35 AM", "phase": "Waning Gibbous", "illumination": 77}


def test_format_day(new_year):
    assert format_day(new_year) == "January 1, 2024"


def test_prompt_names_coordinates_and_date(new_year):
    prompt = build_lunar_prompt(Coordinates(40.7128, -74.006), new_year)
    assert "latitude: 40.7128" in prompt
    assert "longitude: -74.006" in prompt
    assert "January 1, 2024" in prompt
    assert "timeanddate.com" in prompt
    assert '"N/A"' in prompt


def test_prompt_for_place_text_without_search(new_year):
    prompt = build_lunar_prompt("Queens, NY", new_year, web_search=False)
    assert '"Queens, NY"' in prompt
    assert "timeanddate.com" not in prompt


def test_validate_good_record():
    assert validate_lunar(GOOD) == LunarObservation("11:21 PM", "11:35 AM", "Waning Gibbous", 77.0)


@pytest.mark.parametrize("missing", ["moonrise", "moonset", "phase", "illumination"])
def test_missing_field_is_validation_error(missing):
    data = {k: v for k, v in GOOD.items() if k != missing}
    with pytest.raises(ValidationError) as exc_info:
        validate_lunar(data)
    assert exc_info.value.data == data


@pytest.mark.parametrize(
    "field_name, value",
    [
        ("moonrise", 2321),
        ("moonset", ""),
        ("phase", "   "),
        ("illumination", "77%"),
        ("illumination", True),
        ("illumination", float("nan")),
        ("illumination", None),
    ],
)
def test_wrong_shape_is_validation_error(field_name, value):
    with pytest.raises(ValidationError):
        validate_lunar({**GOOD, field_name: value})


def test_non_object_is_validation_error():
    with pytest.raises(ValidationError):
        validate_lunar([GOOD])


def test_sentinels_accepted():
    obs = validate_lunar({**GOOD, "moonrise": "N/A", "moonset": "Not visible"})
    assert obs.moonrise == "N/A"
    assert obs.moonset == "Not visible"


def test_out_of_range_passes_through_by_default():
    assert validate_lunar({**GOOD, "illumination": 104.5}).illumination == 104.5


def test_out_of_range_clamped():
    obs = validate_lunar({**GOOD, "illumination": -3}, IlluminationPolicy.CLAMP)
    assert obs.illumination == 0.0


def test_out_of_range_rejected():
    with pytest.raises(ValidationError):
        validate_lunar({**GOOD, "illumination": 101}, IlluminationPolicy.REJECT)


async def test_fetch_from_fenced_reply(new_year):
    model = FakeModel(replies=["Based on timeanddate.com:\n```json\n" + json.dumps(GOOD) + "\n```"])
    obs = await fetch_lunar_observation(
        Coordinates(40.7128, -74.006), new_year, model, structured=False
    )
    assert obs.phase == "Waning Gibbous"
    call = model.calls[0]
    assert call["web_search"] is True
    assert call["schema"] is None
    assert "January 1, 2024" in call["prompt"]


async def test_fetch_structured_reply(new_year):
    model = FakeModel(replies=[ModelReply(text=json.dumps(GOOD), structured=True)])
    obs = await fetch_lunar_observation(
        "Queens, NY", new_year, model, web_search=False, structured=True
    )
    assert obs.illumination == 77.0
    assert model.calls[0]["schema"] is LUNAR_SCHEMA


async def test_fetch_missing_field_never_returns_partial(new_year):
    partial = {k: v for k, v in GOOD.items() if k != "moonset"}
    model = FakeModel(replies=[json.dumps(partial)])
    with pytest.raises(ValidationError):
        await fetch_lunar_observation("Queens, NY", new_year, model)


async def test_fetch_malformed_json_is_parse_error(new_year):
    model = FakeModel(replies=["The moon rises at 11:21 PM tonight."])
    with pytest.raises(ParseError):
        await fetch_lunar_observation("Queens, NY", new_year, model)


async def test_same_answer_same_record(new_year):
    reply = "```json\n" + json.dumps(GOOD) + "\n```"
    model = FakeModel(replies=[reply, reply])
    first = await fetch_lunar_observation("Queens, NY", new_year, model)
    second = await fetch_lunar_observation("Queens, NY", new_year, model)
    assert first == second
