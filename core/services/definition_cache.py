# core/services/definition_cache.py

from __future__ import annotations

import asyncio
import logging
from time import time
from typing import Awaitable, Callable, List, Optional

from core.domain.entities.position_entity import StrategyDefinition
from core.domain.repositories.strategy_definition_repository_interface import StrategyDefinitionRepository

logger = logging.getLogger(__name__)

Discover = Callable[[], Awaitable[List[StrategyDefinition]]]


class DefinitionCache:
    """
    Holds the latest discovered definition set and refreshes it on a schedule.

    - A refresh replaces the whole snapshot at once, and only on success; a
      failed cycle keeps serving the previous snapshot.
    - Concurrent refreshes share one discovery run.
    - When a repository is given, every published snapshot is also persisted
      and `warm()` can seed the cache from the last persisted one. A failed
      write is logged and does not affect the in-memory snapshot.
    """

    def __init__(
        self,
        discover: Discover,
        *,
        refresh_sec: int = 300,
        repository: Optional[StrategyDefinitionRepository] = None,
        network: str = "",
        contract: str = "",
    ):
        self._discover = discover
        self.refresh_sec = refresh_sec
        self.repository = repository
        self.network = network
        self.contract = contract

        self._snapshot: Optional[List[StrategyDefinition]] = None
        self._refreshed_at: Optional[float] = None
        self._generation = 0
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def refreshed_at(self) -> Optional[float]:
        return self._refreshed_at

    async def get(self) -> List[StrategyDefinition]:
        if self._snapshot is None:
            return await self.refresh()
        return self._snapshot

    async def refresh(self) -> List[StrategyDefinition]:
        generation = self._generation
        async with self._lock:
            # another caller refreshed while we were waiting
            if self._generation != generation:
                return self._snapshot or []

            definitions = await self._discover()
            self._snapshot = definitions
            self._refreshed_at = time()
            self._generation += 1
            logger.info("Definition snapshot refreshed: %d definitions", len(definitions))

            if self.repository is not None:
                try:
                    await asyncio.to_thread(
                        self.repository.replace_all,
                        network=self.network,
                        contract=self.contract,
                        definitions=definitions,
                    )
                except Exception:
                    logger.exception("Persisting definition snapshot failed; serving it from memory only")
            return definitions

    async def warm(self) -> int:
        """
        Seed the snapshot from the repository. Returns the number of definitions loaded.
        """
        if self.repository is None or self._snapshot is not None:
            return 0

        try:
            stored = await asyncio.to_thread(
                self.repository.list_latest, network=self.network, contract=self.contract
            )
        except Exception:
            logger.exception("Reading persisted definition snapshot failed; starting cold")
            return 0
        if stored:
            self._snapshot = list(stored)
            logger.info("Definition snapshot warmed from storage: %d definitions", len(stored))
        return len(stored)

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Definition refresh failed; keeping previous snapshot")
            await asyncio.sleep(self.refresh_sec)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="definition-cache-refresh")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
