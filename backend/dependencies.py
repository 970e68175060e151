"""
dependencies.py — Per-user garden engines for the HTTP layer
The registry lives on `app.state`, so tests can build an app around an in-memory
store and a manual ticker.
"""

import logging
import threading
from datetime import datetime
from typing import Callable

from fastapi import Depends, Request

from auth import get_current_user
from schemas import Identity
from services.attestation_service import AttestationProvider
from services.challenge_service import ChallengeService
from services.garden_service import GardenEngine, local_now
from services.social_service import SocialBoard
from services.storage_service import GardenStore
from services.timer_service import AsyncioTicker

logger = logging.getLogger(__name__)


class GardenRegistry:
    """One loaded engine per user plus the shared social board."""

    def __init__(
        self,
        store: GardenStore,
        attestation: AttestationProvider | None = None,
        ticker_factory: Callable[[], object] = AsyncioTicker,
        clock: Callable[[], datetime] = local_now,
        seed_sample_data: bool = None,
    ):
        self.store = store
        self.attestation = attestation
        self.ticker_factory = ticker_factory
        self.clock = clock
        self.seed_sample_data = seed_sample_data
        self._engines: dict[str, GardenEngine] = {}
        self._board: SocialBoard | None = None
        # Sync dependencies run in the threadpool; creation must happen once per user
        self._lock = threading.RLock()

    @property
    def board(self) -> SocialBoard:
        with self._lock:
            if self._board is None:
                board = SocialBoard(self.store, self.clock)
                board.load()
                self._board = board
            return self._board

    def engine_for(self, identity: Identity) -> GardenEngine:
        with self._lock:
            engine = self._engines.get(identity.user_id)
            if engine is None:
                engine = GardenEngine(
                    identity.user_id,
                    self.store,
                    attestation=self.attestation,
                    ticker=self.ticker_factory(),
                    clock=self.clock,
                    identity=identity,
                    social_counter=self.board.interactions,
                    seed_sample_data=self.seed_sample_data,
                )
                engine.load()
                self._engines[identity.user_id] = engine
                logger.info("Garden loaded for user %s", identity.user_id)
            return engine

    def leaderboard(self, limit: int = 10) -> list[dict]:
        """Focus sessions this week across every garden loaded in this process."""
        with self._lock:
            engines = list(self._engines.values())
        return ChallengeService.leaderboard([e.garden for e in engines], self.clock(), limit=limit)

    def shutdown(self):
        with self._lock:
            engines = list(self._engines.values())
            board = self._board
        for engine in engines:
            engine.ticker.stop()
            engine.save()
        if board is not None:
            board.save()


def get_registry(request: Request) -> GardenRegistry:
    return request.app.state.gardens


def get_engine(
    identity: Identity = Depends(get_current_user),
    registry: GardenRegistry = Depends(get_registry),
) -> GardenEngine:
    """FastAPI dependency — the caller's garden engine."""
    return registry.engine_for(identity)
