"""Game clock ticker: per-game countdown for the game clock and shot clock.

States are RUNNING and PAUSED. While running, every tick decrements the
local game/shot clock mirrors by one second (floored at zero) and persists
both. The mirrors are read once at mount and are the scorekeeper's working
copy from then on; they are not re-read from storage while ticking. A manual
adjustment (``set_clocks``) overwrites the mirrors and storage together.

The running flag lives in a RunningFlagStore so it survives a ticker being
unmounted and mounted again. Unmounting stops the loop without pausing: the
clock simply does not advance while nothing is mounted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ...config import settings
from ...gateway import EntityGateway
from ...utils.datetime_utils import format_clock
from .types import GameSnapshot

logger = logging.getLogger(__name__)


class RunningFlagStore:
    """Process-local memory of which game clocks were left running."""

    def __init__(self) -> None:
        self._flags: dict[int, bool] = {}

    def get(self, game_id: int) -> bool:
        return self._flags.get(game_id, False)

    def set(self, game_id: int, running: bool) -> None:
        self._flags[game_id] = running


class GameClockTicker:
    def __init__(
        self,
        gateway: EntityGateway,
        game: GameSnapshot,
        flags: RunningFlagStore,
        tick_seconds: float | None = None,
        shot_clock_seconds: int | None = None,
        max_periods: int | None = None,
    ) -> None:
        self._gateway = gateway
        self._flags = flags
        self._tick_seconds = settings.clock_tick_seconds if tick_seconds is None else tick_seconds
        self._shot_clock_seconds = (
            settings.shot_clock_seconds if shot_clock_seconds is None else shot_clock_seconds
        )
        self._max_periods = settings.max_periods if max_periods is None else max_periods

        self.game_id = game.id
        self.quarter = game.quarter
        self.quarter_length_minutes = game.quarter_length_minutes
        self.game_clock = max(0, game.game_clock_seconds)
        self.shot_clock = max(0, game.shot_clock_seconds)

        self._running = flags.get(game.id)
        self._task: asyncio.Task[None] | None = None

    @classmethod
    async def mount(
        cls,
        gateway: EntityGateway,
        game_id: int,
        flags: RunningFlagStore,
        **kwargs: Any,
    ) -> "GameClockTicker":
        """Read the game once and resume ticking if the flag says so."""
        record = await gateway.games.get(game_id)
        ticker = cls(gateway, GameSnapshot.from_record(record), flags, **kwargs)
        if ticker.is_running:
            ticker._ensure_loop()
        return ticker

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Running / paused
    # ------------------------------------------------------------------

    def _set_running(self, running: bool) -> None:
        self._running = running
        self._flags.set(self.game_id, running)

    def _ensure_loop(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name=f"game-clock-{self.game_id}")

    def _stop_loop(self) -> None:
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def start(self) -> None:
        self._set_running(True)
        self._ensure_loop()
        logger.info("game_clock_started", extra={"game_id": self.game_id})

    async def pause(self) -> None:
        self._set_running(False)
        self._stop_loop()
        logger.info("game_clock_paused", extra={"game_id": self.game_id})

    async def toggle(self) -> None:
        if self._running:
            await self.pause()
        else:
            await self.start()

    async def unmount(self) -> None:
        """Stop the loop but leave the remembered running flag untouched."""
        task = self._task
        self._stop_loop()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self) -> None:
        while self._running:
            await asyncio.sleep(self._tick_seconds)
            if not self._running:
                break
            try:
                await self.tick()
            except Exception:
                logger.exception("game_clock_tick_failed", extra={"game_id": self.game_id})

    # ------------------------------------------------------------------
    # Ticking and resets
    # ------------------------------------------------------------------

    async def tick(self) -> bool:
        """Advance one second. Returns False when paused (nothing happens)."""
        if not self._running:
            return False

        self.game_clock = max(0, self.game_clock - 1)
        self.shot_clock = max(0, self.shot_clock - 1)
        if self.game_clock == 0:
            await self.pause()

        await self._persist(
            game_clock_seconds=self.game_clock,
            shot_clock_seconds=self.shot_clock,
        )
        return True

    async def reset_shot_clock(self) -> None:
        self.shot_clock = self._shot_clock_seconds
        await self._persist(shot_clock_seconds=self.shot_clock)

    async def reset_game_clock(self) -> None:
        self.game_clock = self.quarter_length_minutes * 60
        await self._persist(game_clock_seconds=self.game_clock)

    async def advance_period(self) -> None:
        """Move to the next period (capped) and reset the game clock."""
        self.quarter = min(self.quarter + 1, self._max_periods)
        self.game_clock = self.quarter_length_minutes * 60
        await self._persist(quarter=self.quarter, game_clock_seconds=self.game_clock)
        logger.info(
            "game_period_advanced",
            extra={"game_id": self.game_id, "quarter": self.quarter},
        )

    async def set_clocks(
        self,
        game_clock_seconds: int | None = None,
        shot_clock_seconds: int | None = None,
    ) -> None:
        """Set either clock to an exact value (manual correction by the scorekeeper)."""
        changes: dict[str, int] = {}
        if game_clock_seconds is not None:
            changes["game_clock_seconds"] = game_clock_seconds
        if shot_clock_seconds is not None:
            changes["shot_clock_seconds"] = shot_clock_seconds
        if not changes:
            raise ValueError("Provide gameClockSeconds or shotClockSeconds")
        if any(value < 0 for value in changes.values()):
            raise ValueError("Clock values cannot be negative")

        self.game_clock = changes.get("game_clock_seconds", self.game_clock)
        self.shot_clock = changes.get("shot_clock_seconds", self.shot_clock)
        await self._persist(**changes)
        logger.info("game_clock_adjusted", extra={"game_id": self.game_id, **changes})

    async def _persist(self, **changes: int) -> None:
        await self._gateway.games.update(self.game_id, changes)

    def state(self) -> dict[str, Any]:
        """Serialize for JSON."""
        return {
            "game_id": self.game_id,
            "running": self._running,
            "quarter": self.quarter,
            "game_clock_seconds": self.game_clock,
            "shot_clock_seconds": self.shot_clock,
            "game_clock_display": format_clock(self.game_clock),
        }


class ClockRegistry:
    """Mounted tickers by game id."""

    def __init__(self, gateway: EntityGateway, flags: RunningFlagStore | None = None) -> None:
        self._gateway = gateway
        self._flags = flags or RunningFlagStore()
        self._tickers: dict[int, GameClockTicker] = {}
        self._lock = asyncio.Lock()

    async def get(self, game_id: int) -> GameClockTicker:
        async with self._lock:
            ticker = self._tickers.get(game_id)
            if ticker is None:
                ticker = await GameClockTicker.mount(self._gateway, game_id, self._flags)
                self._tickers[game_id] = ticker
            return ticker

    def sync_shot_clock(self, game_id: int, seconds: int) -> None:
        """Align a mounted ticker with a shot-clock reset written by a stat commit."""
        ticker = self._tickers.get(game_id)
        if ticker is not None:
            ticker.shot_clock = seconds

    async def unmount(self, game_id: int) -> None:
        ticker = self._tickers.pop(game_id, None)
        if ticker is not None:
            await ticker.unmount()

    async def shutdown(self) -> None:
        for game_id in list(self._tickers):
            await self.unmount(game_id)
