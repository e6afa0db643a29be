"""
Per-player tick driver.

Wires a snapshot, the behavior dispatcher and the host's command executor
together. Nothing here is global: the host hands in the executor once and a
fresh snapshot every tick.
"""

from __future__ import annotations

import time
from typing import Callable, List, Optional

from loguru import logger

from .behavior import SpacecraftControl
from .commands import BatchResult, Command, CommandBatch, CommandExecutor
from .config import ControlConfig, DEFAULT_CONFIG
from .interval import Interval
from .queries import WorldView
from .world import PlayerId, WorldSnapshot


class Autopilot:
    """
    Runs one player's behavior dispatcher against host snapshots.

    Args:
        player_id: Player whose craft are controlled
        executor: Host command sink
        config: Tuning configuration
        control: Existing dispatcher (for restored state); created if omitted.
            Must carry the same config.
        clock: Time source for the cooldown interval

    Raises:
        ValueError: if a given control was built with a different config
    """

    def __init__(
        self,
        player_id: PlayerId,
        executor: CommandExecutor,
        config: ControlConfig = DEFAULT_CONFIG,
        control: Optional[SpacecraftControl] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if control is not None and control.config != config:
            raise ValueError("Restored control uses a different config than the autopilot")
        self.player_id = player_id
        self.executor = executor
        self.config = config
        self.control = control or SpacecraftControl(config)
        self.interval = Interval(config.control_interval_s, clock)
        self.outbound_log: List[Command] = []

    def plan(self, snapshot: WorldSnapshot) -> CommandBatch:
        """Compute this tick's commands without submitting them."""
        view = WorldView(snapshot, self.player_id, self.config.truncate_target_ranking)
        batch = CommandBatch()
        batch.extend(self.control.update(view))
        return batch

    def tick(self, snapshot: WorldSnapshot, force: bool = False) -> Optional[BatchResult]:
        """
        Plan and apply commands if the cooldown has elapsed.

        Args:
            snapshot: World state taken at the start of this tick
            force: Ignore the cooldown

        Returns:
            BatchResult, or None when the cooldown skipped this tick
        """
        if not force and not self.interval.check():
            return None

        batch = self.plan(snapshot)
        result = batch.apply(self.executor, self.player_id, self.outbound_log)
        if result.rejected:
            logger.debug(f"Tick applied {len(result.accepted)} commands, rejected {len(result.rejected)}")
        return result

    def drain_outbound(self) -> List[Command]:
        """Return and clear accepted commands awaiting replication."""
        drained, self.outbound_log = self.outbound_log, []
        return drained
