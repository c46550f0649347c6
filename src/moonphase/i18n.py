"""Simple two-language (ko/en) translation helper."""

_STRINGS: dict[str, dict[str, str]] = {
    "page_title": {
        "ko": "달의 위상",
        "en": "MoonPhase",
    },
    "label_place": {
        "ko": "장소",
        "en": "Location",
    },
    "label_date": {
        "ko": "날짜",
        "en": "Date",
    },
    "btn_fetch": {
        "ko": "☾ 달 보기",
        "en": "☾ Show Moon",
    },
    "loading_facts": {
        "ko": "☾ 달을 찾는 중",
        "en": "☾ Looking up the moon",
    },
    "loading_photo": {
        "ko": "✦ 오늘의 우주 사진을 불러오는 중",
        "en": "✦ Fetching a space photograph",
    },
    "metric_phase": {
        "ko": "위상",
        "en": "Phase",
    },
    "metric_illumination": {
        "ko": "밝기",
        "en": "Illumination",
    },
    "metric_moonrise": {
        "ko": "월출",
        "en": "Moonrise",
    },
    "metric_moonset": {
        "ko": "월몰",
        "en": "Moonset",
    },
    "error_facts": {
        "ko": "달 정보를 가져오지 못했어요. 다른 장소나 날짜로 다시 시도해보세요.",
        "en": "Could not fetch astronomical data. Please try a different location or date.",
    },
    "placeholder": {
        "ko": "장소와 날짜를 입력하고 달을 불러오세요",
        "en": "Enter a location and date to see the moon",
    },
    "error_api_key": {
        "ko": "ANTHROPIC_API_KEY가 설정되지 않았어요. 환경 변수나 .env 파일에 추가해주세요.",
        "en": "ANTHROPIC_API_KEY is not set. Add it to the environment or a .env file.",
    },
}


def t(key: str, lang: str) -> str:
    """Return the translated string for key in lang.

    Falls back to 'en', then to the key itself if not found.
    """
    entry = _STRINGS.get(key)
    if entry is None:
        return key
    return entry.get(lang) or entry.get("en") or key
