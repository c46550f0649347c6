import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import pytest

from moonphase.config import Settings
from moonphase.errors import MoonPhaseError
from moonphase.llm import ModelReply
from moonphase.models import LunarObservation, SkyPhotograph


@dataclass
class FakeModel:
    """ModelClient stand-in. Replies are consumed in order; an exception is raised instead of returned."""

    replies: list[Any] = field(default_factory=list)
    calls: list[dict[str, Any]] = field(default_factory=list)

    async def generate(self, prompt, *, web_search=False, schema=None):
        self.calls.append({"prompt": prompt, "web_search": web_search, "schema": schema})
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, str):
            return ModelReply(text=reply)
        return reply


class FakePipeline:
    """Pipeline stand-in with per-call outcomes and optional gates to control ordering."""

    def __init__(self, facts=None, photo=None):
        self.facts = facts or {}
        self.photo = photo or {}
        self.gates: dict[str, asyncio.Event] = {}
        self.observe_calls: list[tuple[str, date]] = []
        self.photo_calls: list[date] = []

    async def _outcome(self, table, key):
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        value = table[key]
        if isinstance(value, BaseException):
            raise value
        return value

    async def observe(self, location, day):
        self.observe_calls.append((location, day))
        return await self._outcome(self.facts, location)

    async def photograph(self, day):
        self.photo_calls.append(day)
        return await self._outcome(self.photo, day)

    async def fetch_joined(self, location, day):
        facts, photo = await asyncio.gather(
            self.observe(location, day), self.photograph(day), return_exceptions=True
        )
        for outcome in (facts, photo):
            if isinstance(outcome, MoonPhaseError):
                raise outcome
        return facts, photo


@pytest.fixture
def new_year():
    return date(2024, 1, 1)


@pytest.fixture
def settings():
    return Settings(anthropic_api_key="test-key", timeout=1.0)


@pytest.fixture
def observation():
    return LunarObservation(
        moonrise="11:21 PM", moonset="11:35 AM", phase="Waning Gibbous", illumination=77.0
    )


@pytest.fixture
def photograph():
    return SkyPhotograph(
        title="The Pillars of Creation",
        url="https://example.org/pillars.jpg",
        media_type="image",
        explanation="Star-forming columns in the Eagle Nebula.",
    )
