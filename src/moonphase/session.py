"""Fetch supervisor: owns the current Snapshot and drops results for stale inputs."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import date

from moonphase.config import Composition
from moonphase.errors import MoonPhaseError
from moonphase.models import Failed, Idle, Loading, QueryInput, Ready, SlotState, Snapshot
from moonphase.pipeline import Pipeline

logger = logging.getLogger(__name__)

FACTS_ERROR = "Could not fetch astronomical data. Please try a different location or date."


class Supervisor:
    """Runs fetches for the latest (location, date) and publishes immutable snapshots.

    Every result is tagged with the QueryInput that spawned it and is applied only
    while that query is still current. Facts failures carry FACTS_ERROR; photograph
    failures carry no message and never touch the facts slot.
    """

    def __init__(
        self,
        pipeline: Pipeline,
        composition: Composition = Composition.DEPENDENT,
        on_change: Callable[[Snapshot], None] | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.composition = composition
        self.on_change = on_change
        self._snapshot = Snapshot(query=None)

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def _publish(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        if self.on_change is not None:
            self.on_change(snapshot)

    def _apply(self, query: QueryInput, **slots: SlotState) -> bool:
        if self._snapshot.query != query:
            logger.info("Dropping stale result for %s on %s", query.location, query.day)
            return False
        self._publish(replace(self._snapshot, **slots))
        return True

    async def refresh(self, location: str, day: date) -> Snapshot:
        """Start over for a new (location, date) and run the configured composition.

        Returns:
            The snapshot current when this refresh finishes (which may belong to a
            newer refresh).
        """
        query = QueryInput(location=location, day=day)
        dependent = self.composition is Composition.DEPENDENT
        self._publish(
            Snapshot(query=query, facts=Loading(), photo=Idle() if dependent else Loading())
        )

        if self.composition is Composition.PARALLEL_JOINED:
            await self._run_joined(query)
        elif self.composition is Composition.PARALLEL_INDEPENDENT:
            await asyncio.gather(self._run_facts(query), self._run_photo(query))
        elif await self._run_facts(query):
            if self._apply(query, photo=Loading()):
                await self._run_photo(query)
        return self._snapshot

    async def _run_facts(self, query: QueryInput) -> bool:
        try:
            observation = await self.pipeline.observe(query.location, query.day)
        except MoonPhaseError as e:
            logger.error("Moon data failed for %r: %s", query.location, e)
            self._apply(query, facts=Failed(e, FACTS_ERROR))
            return False
        return self._apply(query, facts=Ready(observation))

    async def _run_photo(self, query: QueryInput) -> None:
        try:
            photograph = await self.pipeline.photograph(query.day)
        except MoonPhaseError as e:
            logger.warning("Failed to fetch space photograph: %s", e)
            self._apply(query, photo=Failed(e, ""))
            return
        self._apply(query, photo=Ready(photograph))

    async def _run_joined(self, query: QueryInput) -> None:
        try:
            observation, photograph = await self.pipeline.fetch_joined(
                query.location, query.day
            )
        except MoonPhaseError as e:
            logger.error("Sky data failed for %r: %s", query.location, e)
            failed = Failed(e, FACTS_ERROR)
            self._apply(query, facts=failed, photo=failed)
            return
        self._apply(query, facts=Ready(observation), photo=Ready(photograph))
