"""MoonPhase: Streamlit app for the moon and a space photograph on a given date."""

import asyncio
import datetime

import httpx
import streamlit as st
from dotenv import load_dotenv
from streamlit_js_eval import streamlit_js_eval

load_dotenv()

from moonphase.config import Settings, configure_logging  # noqa: E402
from moonphase.i18n import t  # noqa: E402
from moonphase.models import Failed, Loading, Snapshot  # noqa: E402
from moonphase.pipeline import build_pipeline  # noqa: E402
from moonphase.session import Supervisor  # noqa: E402

_settings = Settings.from_env()
configure_logging(_settings)

# --- Language detection (browser-first via streamlit-js-eval) ---
# On the first run the JS call returns None; the rerun it triggers fills it in.
if "lang" not in st.session_state:
    _browser_lang: str | None = streamlit_js_eval(
        js_expressions="navigator.language", key="_lang_detect", height=0
    )
    if _browser_lang is not None:
        st.session_state.lang = "ko" if _browser_lang.lower().startswith("ko") else "en"

_lang: str = st.session_state.get("lang", "en")

st.set_page_config(page_title=t("page_title", _lang), page_icon="☾", layout="centered")

if not _settings.anthropic_api_key:
    st.error(t("error_api_key", _lang))
    st.stop()

if "snapshot" not in st.session_state:
    st.session_state.snapshot = Snapshot(query=None)
if "default_location" not in st.session_state:
    st.session_state.default_location = "Queens, NY"


async def _refresh(location: str, day: datetime.date, status) -> Snapshot:
    """Run one fetch with fresh clients; each asyncio.run gets its own event loop."""

    def _on_change(snapshot: Snapshot) -> None:
        if isinstance(snapshot.facts, Loading):
            status.markdown(t("loading_facts", _lang))
        elif isinstance(snapshot.photo, Loading):
            status.markdown(t("loading_photo", _lang))
        else:
            status.empty()

    async with httpx.AsyncClient(timeout=_settings.timeout) as http:
        supervisor = Supervisor(
            build_pipeline(_settings, http),
            composition=_settings.composition,
            on_change=_on_change,
        )
        return await supervisor.refresh(location, day)


st.title(t("page_title", _lang))

with st.form("query"):
    col1, col2 = st.columns([3, 2])
    with col1:
        location = st.text_input(
            t("label_place", _lang), value=st.session_state.default_location
        )
    with col2:
        day = st.date_input(t("label_date", _lang), value=datetime.date.today())
    submitted = st.form_submit_button(t("btn_fetch", _lang), width="stretch")

if submitted and location.strip():
    st.session_state.default_location = location
    st.session_state.snapshot = asyncio.run(_refresh(location.strip(), day, st.empty()))

snapshot: Snapshot = st.session_state.snapshot

if snapshot.query is None:
    st.caption(t("placeholder", _lang))
elif isinstance(snapshot.facts, Failed):
    st.error(t("error_facts", _lang))
elif snapshot.observation is not None:
    obs = snapshot.observation
    c1, c2 = st.columns(2)
    c1.metric(t("metric_phase", _lang), obs.phase)
    c2.metric(t("metric_illumination", _lang), f"{obs.illumination:g}%")
    c3, c4 = st.columns(2)
    c3.metric(t("metric_moonrise", _lang), obs.moonrise)
    c4.metric(t("metric_moonset", _lang), obs.moonset)

    # A failed photograph renders nothing.
    photo = snapshot.photograph
    if photo is not None:
        st.subheader(photo.title)
        # APOD videos arrive as their thumbnail image
        is_still = photo.url.lower().endswith((".jpg", ".jpeg", ".png", ".gif", ".webp"))
        if photo.media_type == "video" and not is_still:
            st.video(photo.url)
        else:
            st.image(photo.url, width="stretch")
        if photo.explanation:
            st.caption(photo.explanation)
