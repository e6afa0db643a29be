#!/usr/bin/env python3
"""
In-Memory Reference Host for the Stellar Autopilot

A small stand-in for the authoritative simulation, used by the tests and
the demo script:
- Validates and applies commands (executor contract)
- Hands out deep-copied snapshots
- Propagates craft with Euler integration of engine thrust and torque

Engine force is thrust * power along the engine's world direction; torque
is the perp-dot of the mount offset (from the center of mass) with that
force. Weapons are not simulated.
"""

from __future__ import annotations

from typing import Optional

from .commands import Command, CommandRejected, ComponentAction, validate_command
from .vector import Vec2, wrap_angle
from .world import Engine, PlayerId, Spacecraft, Weapon, WorldSnapshot


MAX_ENGINE_POWER = 1.0


class SandboxHost:
    """
    Mutable world plus a command executor.

    Args:
        world: Initial world state, owned by the host from now on
    """

    def __init__(self, world: Optional[WorldSnapshot] = None):
        self.world = world or WorldSnapshot()
        self.time_s = 0.0

    # -------------------------------------------------------------------------
    # Executor contract
    # -------------------------------------------------------------------------

    def submit(self, actor: PlayerId, command: Command) -> None:
        """
        Apply a command to the world.

        Raises:
            CommandRejected: unknown craft or component, wrong owner, action
                not supported by the component, or out-of-range value
        """
        validate_command(command)

        craft = self.world.objects.get(command.spacecraft_id)
        if not isinstance(craft, Spacecraft):
            raise CommandRejected(command, "no such spacecraft")
        if craft.owner != actor:
            raise CommandRejected(command, f"player {actor} does not own spacecraft")

        component = craft.components.get(command.component_id)
        if component is None:
            raise CommandRejected(command, "no such component")

        if command.action == ComponentAction.SET_ACTIVE:
            component.active = command.value
        elif command.action == ComponentAction.SET_POWER:
            if not isinstance(component, Engine):
                raise CommandRejected(command, "power applies to engines only")
            if abs(command.value) > MAX_ENGINE_POWER:
                raise CommandRejected(command, f"power outside [-{MAX_ENGINE_POWER}, {MAX_ENGINE_POWER}]")
            component.power = command.value
        elif command.action == ComponentAction.SET_ROTATION:
            if not isinstance(component, Weapon):
                raise CommandRejected(command, "rotation applies to weapons only")
            component.rotation = wrap_angle(command.value)

    def snapshot(self) -> WorldSnapshot:
        """Deep copy of the current world."""
        return self.world.copy()

    # -------------------------------------------------------------------------
    # Integration
    # -------------------------------------------------------------------------

    def step(self, dt: float) -> None:
        """Advance every body by dt seconds."""
        for game_object in self.world.objects.values():
            if isinstance(game_object, Spacecraft):
                _propagate_spacecraft(game_object, dt)
            else:
                body = game_object.body
                body.position = body.position + body.velocity * dt
        self.time_s += dt


def engine_force_and_torque(craft: Spacecraft) -> tuple[Vec2, float]:
    """Net world force and torque from the craft's active engines."""
    force = Vec2.zero()
    torque = 0.0
    for _, engine in craft.engines():
        if not engine.active:
            continue
        local_force = engine.local_direction * (engine.thrust * engine.power)
        torque += craft.mount_offset(engine).perp_dot(local_force)
        force = force + local_force.rotated(craft.body.rotation)
    return force, torque


def _propagate_spacecraft(craft: Spacecraft, dt: float) -> None:
    force, torque = engine_force_and_torque(craft)
    body = craft.body

    # Semi-implicit Euler: velocities first, then positions
    if craft.mass > 0:
        body.velocity = body.velocity + force * (dt / craft.mass)
    if craft.moment_of_inertia > 0:
        body.angular_velocity += torque / craft.moment_of_inertia * dt

    body.position = body.position + body.velocity * dt
    body.rotation = wrap_angle(body.rotation + body.angular_velocity * dt)
