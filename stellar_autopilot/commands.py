#!/usr/bin/env python3
"""
Actuator Commands for the Stellar Autopilot

This module implements:
- Command schema addressed to (spacecraft, component) pairs
- Local validation before a command leaves the control layer
- The executor contract the host provides
- Command batches that submit sequentially and keep going past rejections
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Tuple, Union, runtime_checkable

from loguru import logger

from .world import ComponentId, GameObjectId, PlayerId


# =============================================================================
# COMMAND SCHEMA
# =============================================================================

class ComponentAction(Enum):
    """Actuator settings a command can change."""
    SET_ACTIVE = "set_active"
    SET_POWER = "set_power"
    SET_ROTATION = "set_rotation"


@dataclass(frozen=True)
class Command:
    """
    Absolute actuator setting for one component.

    Commands are idempotent instructions, not deltas: applying the same
    command twice leaves the component in the same state.

    Attributes:
        spacecraft_id: Craft the component belongs to
        component_id: Component on that craft
        action: Which setting to change
        value: New value (bool for SET_ACTIVE, float otherwise)
    """
    spacecraft_id: GameObjectId
    component_id: ComponentId
    action: ComponentAction
    value: Union[bool, float]

    @classmethod
    def set_active(cls, spacecraft_id: GameObjectId, component_id: ComponentId, active: bool) -> Command:
        return cls(spacecraft_id, component_id, ComponentAction.SET_ACTIVE, bool(active))

    @classmethod
    def set_power(cls, spacecraft_id: GameObjectId, component_id: ComponentId, power: float) -> Command:
        return cls(spacecraft_id, component_id, ComponentAction.SET_POWER, float(power))

    @classmethod
    def set_rotation(cls, spacecraft_id: GameObjectId, component_id: ComponentId, rotation: float) -> Command:
        return cls(spacecraft_id, component_id, ComponentAction.SET_ROTATION, float(rotation))

    @property
    def target(self) -> Tuple[GameObjectId, ComponentId]:
        return (self.spacecraft_id, self.component_id)

    def __str__(self) -> str:
        return f"{self.action.value}({self.value!r}) -> {self.spacecraft_id}/{self.component_id}"


class CommandRejected(ValueError):
    """Raised when a command fails validation, locally or host-side."""

    def __init__(self, command: Command, reason: str):
        super().__init__(f"{command}: {reason}")
        self.command = command
        self.reason = reason


def validate_command(command: Command) -> None:
    """
    Check that a command is well-formed before submission.

    Raises:
        CommandRejected: if the value has the wrong type or is not finite.
    """
    if command.action == ComponentAction.SET_ACTIVE:
        if not isinstance(command.value, bool):
            raise CommandRejected(command, "activation value must be a bool")
        return

    if isinstance(command.value, bool) or not isinstance(command.value, (int, float)):
        raise CommandRejected(command, "value must be a number")
    if not math.isfinite(command.value):
        raise CommandRejected(command, "value must be finite")


# =============================================================================
# EXECUTOR CONTRACT
# =============================================================================

@runtime_checkable
class CommandExecutor(Protocol):
    """Host-side command sink."""

    def submit(self, actor: PlayerId, command: Command) -> None:
        """Apply a command or raise CommandRejected."""
        ...


# =============================================================================
# COMMAND BATCH
# =============================================================================

@dataclass
class BatchResult:
    """Outcome of applying a batch."""
    accepted: List[Command] = field(default_factory=list)
    rejected: List[CommandRejected] = field(default_factory=list)

    @property
    def all_accepted(self) -> bool:
        return not self.rejected


@dataclass
class CommandBatch:
    """
    Ordered list of commands collected during a tick.

    Commands are applied in insertion order. A rejection drops that command
    only; the rest of the batch still executes and nothing is rolled back.
    """
    commands: List[Command] = field(default_factory=list)

    def extend(self, commands: Iterable[Command]) -> None:
        self.commands.extend(commands)

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self):
        return iter(self.commands)

    def apply(
        self,
        executor: CommandExecutor,
        actor: PlayerId,
        outbound_log: Optional[List[Command]] = None,
    ) -> BatchResult:
        """
        Submit every command to the executor.

        Args:
            executor: Host command sink
            actor: Player issuing the commands
            outbound_log: Accepted commands are appended here for replication

        Returns:
            BatchResult listing accepted and rejected commands
        """
        result = BatchResult()
        for command in self.commands:
            try:
                validate_command(command)
                executor.submit(actor, command)
            except CommandRejected as e:
                logger.warning(f"Command rejected: {e}")
                result.rejected.append(e)
                continue
            result.accepted.append(command)
            if outbound_log is not None:
                outbound_log.append(command)
        return result
