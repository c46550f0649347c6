import pytest
from pydantic import ValidationError

from moonphase.config import (
    Composition,
    IlluminationPolicy,
    PhotoSourceKind,
    Settings,
)
from moonphase.i18n import t


def test_defaults_from_empty_env():
    settings = Settings.from_env({})
    assert settings == Settings()
    assert settings.nasa_api_key == "DEMO_KEY"
    assert settings.timeout == 15.0
    assert settings.composition is Composition.DEPENDENT
    assert settings.photo_source is PhotoSourceKind.MODEL
    assert settings.illumination_policy is IlluminationPolicy.PASS
    assert settings.web_search is True
    assert settings.structured is True
    assert settings.anthropic_api_key is None


def test_values_from_env():
    settings = Settings.from_env(
        {
            "ANTHROPIC_API_KEY": "sk-test",
            "NASA_API_KEY": "nasa-key",
            "MOONPHASE_MODEL": "claude-haiku-4-5",
            "MOONPHASE_TIMEOUT": "7.5",
            "MOONPHASE_COMPOSITION": "Joined",
            "MOONPHASE_PHOTO_SOURCE": "apod",
            "MOONPHASE_WEB_SEARCH": "off",
            "MOONPHASE_STRUCTURED": "yes",
            "MOONPHASE_GEOCODE": "0",
            "MOONPHASE_ILLUMINATION": "reject",
            "MOONPHASE_LOG_LEVEL": "debug",
        }
    )
    assert settings.anthropic_api_key == "sk-test"
    assert settings.nasa_api_key == "nasa-key"
    assert settings.model == "claude-haiku-4-5"
    assert settings.timeout == 7.5
    assert settings.composition is Composition.PARALLEL_JOINED
    assert settings.photo_source is PhotoSourceKind.APOD
    assert settings.web_search is False
    assert settings.structured is True
    assert settings.geocode is False
    assert settings.illumination_policy is IlluminationPolicy.REJECT
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name, value",
    [
        ("MOONPHASE_TIMEOUT", "soon"),
        ("MOONPHASE_TIMEOUT", "-1"),
        ("MOONPHASE_TIMEOUT", "0"),
        ("MOONPHASE_TIMEOUT", "nan"),
        ("MOONPHASE_TIMEOUT", "inf"),
        ("MOONPHASE_PHOTO_SOURCE", "flickr"),
        ("MOONPHASE_ILLUMINATION", "wrap"),
        ("MOONPHASE_COMPOSITION", "sequential"),
        ("MOONPHASE_WEB_SEARCH", "maybe"),
        ("MOONPHASE_LOG_LEVEL", "LOUD"),
    ],
)
def test_invalid_values(name, value):
    with pytest.raises(ValueError, match=name):
        Settings.from_env({name: value})


def test_blank_values_count_as_unset():
    settings = Settings.from_env({"MOONPHASE_TIMEOUT": "  ", "ANTHROPIC_API_KEY": ""})
    assert settings.timeout == 15.0
    assert settings.anthropic_api_key is None


@pytest.mark.parametrize(
    "value, expected", [("true", True), ("1", True), ("on", True), ("false", False), ("no", False)]
)
def test_boolean_spellings(value, expected):
    assert Settings.from_env({"MOONPHASE_GEOCODE": value}).geocode is expected


def test_settings_are_frozen():
    settings = Settings()
    with pytest.raises(ValidationError):
        settings.timeout = 1.0


def test_direct_construction_is_validated():
    with pytest.raises(ValidationError):
        Settings(timeout=float("nan"))


def test_translation_fallbacks():
    assert t("page_title", "ko") == "달의 위상"
    assert t("page_title", "fr") == "MoonPhase"
    assert t("no_such_key", "en") == "no_such_key"


def test_missing_key_message_is_translated():
    assert "ANTHROPIC_API_KEY" in t("error_api_key", "en")
    assert "ANTHROPIC_API_KEY" in t("error_api_key", "ko")
