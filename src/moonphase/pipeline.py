"""Fetch pipeline: (location, date) in, validated records out. Holds no state of its own."""

import asyncio
import logging
from collections.abc import Awaitable
from datetime import date
from typing import TypeVar

import httpx

from moonphase.config import PhotoSourceKind, Settings
from moonphase.errors import NetworkError
from moonphase.llm import AnthropicModel, ModelClient
from moonphase.lunar import fetch_lunar_observation
from moonphase.models import Coordinates, LunarObservation, SkyPhotograph
from moonphase.photo import ApodPhotoSource, ModelPhotoSource, PhotoSource
from moonphase.resolver import parse_coordinates, resolve_location

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Pipeline:
    def __init__(self, model: ModelClient, photos: PhotoSource, settings: Settings) -> None:
        self.model = model
        self.photos = photos
        self.settings = settings

    async def _bounded(self, stage: str, aw: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(aw, timeout=self.settings.timeout)
        except asyncio.TimeoutError as e:
            logger.warning("%s timed out after %.1fs", stage, self.settings.timeout)
            raise NetworkError(f"{stage} timed out.", retriable=True) from e

    async def resolve(self, location: str) -> Coordinates | str:
        """Coordinates for the fact prompt, or the raw text when geocoding is off."""
        if not self.settings.geocode:
            return parse_coordinates(location) or location
        return await self._bounded(
            "Geocoding",
            resolve_location(location, self.model, structured=self.settings.structured),
        )

    async def observe(self, location: str, day: date) -> LunarObservation:
        target = await self.resolve(location)
        return await self._bounded(
            "Moon data",
            fetch_lunar_observation(
                target,
                day,
                self.model,
                web_search=self.settings.web_search,
                structured=self.settings.structured,
                policy=self.settings.illumination_policy,
            ),
        )

    async def photograph(self, day: date) -> SkyPhotograph:
        return await self._bounded("Photograph", self.photos.fetch(day))

    async def fetch_joined(
        self, location: str, day: date
    ) -> tuple[LunarObservation, SkyPhotograph]:
        """Run both fetches concurrently and wait for both.

        If either fails, its error is raised (the facts error first when both fail)
        and the other result is discarded.
        """
        facts, photo = await asyncio.gather(
            self.observe(location, day), self.photograph(day), return_exceptions=True
        )
        for outcome in (facts, photo):
            if isinstance(outcome, BaseException):
                raise outcome
        return facts, photo


def build_pipeline(settings: Settings, http: httpx.AsyncClient) -> Pipeline:
    """Wire the configured clients into a Pipeline. ``http`` must outlive the pipeline.

    Raises:
        ValueError: When no Anthropic API key is configured.
    """
    if not settings.anthropic_api_key:
        raise ValueError("ANTHROPIC_API_KEY is not set; add it to the environment or .env")
    model = AnthropicModel(
        api_key=settings.anthropic_api_key,
        model=settings.model,
        timeout=settings.timeout,
    )
    photos: PhotoSource
    if settings.photo_source is PhotoSourceKind.APOD:
        photos = ApodPhotoSource(http, api_key=settings.nasa_api_key)
    else:
        photos = ModelPhotoSource(model, structured=settings.structured)
    return Pipeline(model, photos, settings)
