"""Recommendation Cache - Decides when new AI content must be generated.

Reads are lazy: the first read for a (user, kind) generates and stores a
snapshot; later reads serve the stored snapshot indefinitely. Only an
explicit refresh (a metrics update) generates again.

Generation for one (user, kind) is serialized: concurrent first reads share
a single generator call, and a first read arriving during a refresh waits
for the refreshed snapshot.

Fallback content produced on generator failure is returned to the caller
but never stored, so a failed refresh leaves the previous snapshot as latest.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ..core.models import Recommendation, RecommendationKind, User, utcnow
from .generator import GeneratorInputs, RecommendationGenerator
from .repository import Clock, Repository


logger = logging.getLogger(__name__)


class _KeyLock:
    """An asyncio.Lock plus the number of coroutines holding or awaiting it."""

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class RecommendationCache:
    """Cache-or-generate policy over the repository and a generator."""

    def __init__(
        self,
        repository: Repository,
        generator: RecommendationGenerator,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._generator = generator
        self._clock = clock
        self._locks: dict[tuple[int, RecommendationKind], _KeyLock] = {}

    @asynccontextmanager
    async def _serialized(self, user_id: int, kind: RecommendationKind) -> AsyncIterator[None]:
        # An entry exists only while some coroutine holds or awaits its lock.
        key = (user_id, kind)
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    async def get(self, user: User, kind: RecommendationKind) -> Recommendation:
        """Latest snapshot for the user, generating one if none exists."""
        kind = RecommendationKind(kind)
        latest = self._repository.get_latest_recommendation(kind, user.id)
        if latest is not None:
            logger.debug("Serving stored %s recommendation %s", kind.value, latest.id)
            return latest

        async with self._serialized(user.id, kind):
            latest = self._repository.get_latest_recommendation(kind, user.id)
            if latest is not None:
                logger.debug("Serving %s recommendation %s stored while waiting", kind.value, latest.id)
                return latest

            logger.info("No %s recommendation for user %s; generating", kind.value, user.id)
            return await self._generate(user.id, kind, GeneratorInputs.from_user(user))

    async def refresh(
        self, user_id: int, kind: RecommendationKind, inputs: GeneratorInputs
    ) -> Recommendation:
        """Generate a new snapshot regardless of what is stored."""
        kind = RecommendationKind(kind)
        async with self._serialized(user_id, kind):
            logger.info("Refreshing %s recommendation for user %s", kind.value, user_id)
            return await self._generate(user_id, kind, inputs)

    async def _generate(
        self, user_id: int, kind: RecommendationKind, inputs: GeneratorInputs
    ) -> Recommendation:
        generated = await self._generator.generate(kind, inputs)

        if generated.is_fallback:
            logger.warning(
                "Returning unsaved fallback %s recommendation for user %s", kind.value, user_id
            )
            return Recommendation(
                user_id=user_id,
                kind=kind,
                content=generated.content,
                generated_at=self._clock(),
                is_fallback=True,
            )

        return self._repository.append_recommendation(kind, user_id, generated.content)
