#!/usr/bin/env python3
"""
Behavior Dispatcher for the Stellar Autopilot

Each own craft carries a discrete behavior state. Every control tick the
dispatcher re-evaluates that state's policy against the fresh snapshot and
composes targeting and propulsion commands:

- IDLE:    shoot the closest enemy target
- ATTACK:  shoot the closest enemy target, fly to the closest enemy base
- MINING:  fly to the closest asteroid of the least-held material and shoot
           it once in range, otherwise shoot the closest enemy target
- DEFENSE: shoot the closest enemy target, fall back to the closest own base

States never change on their own; operators assign them, usually in bulk by
tag. Per-unit state and tag snapshots are dropped as soon as a unit is gone.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Set

from loguru import logger

from .commands import Command
from .config import ControlConfig, DEFAULT_CONFIG
from .propulsion import fly_to
from .queries import WorldView
from .targeting import predictive_shoot_at
from .world import GameObjectBody, GameObjectId, Spacecraft


# =============================================================================
# BEHAVIOR STATE
# =============================================================================

class BehaviorState(Enum):
    """Tactical mode of one craft."""
    IDLE = "idle"
    ATTACK = "attack"
    MINING = "mining"
    DEFENSE = "defense"


# =============================================================================
# DISPATCHER
# =============================================================================

class SpacecraftControl:
    """
    Per-unit behavior state machine for one player's craft.

    Attributes:
        config: Gains, ranges and steering strategy
    """

    def __init__(self, config: ControlConfig = DEFAULT_CONFIG):
        self.config = config
        self._states: Dict[GameObjectId, BehaviorState] = {}
        self._tags: Dict[GameObjectId, Set[str]] = {}

    # -------------------------------------------------------------------------
    # State management
    # -------------------------------------------------------------------------

    @property
    def states(self) -> Dict[GameObjectId, BehaviorState]:
        """Copy of the current per-unit states."""
        return dict(self._states)

    def state_of(self, spacecraft_id: GameObjectId) -> BehaviorState:
        return self._states.get(spacecraft_id, BehaviorState.IDLE)

    def set_state(self, spacecraft_id: GameObjectId, state: BehaviorState) -> None:
        self._states[spacecraft_id] = BehaviorState(state)

    def known_tags(self) -> Set[str]:
        """Every tag carried by a craft seen in the last update."""
        tags: Set[str] = set()
        for unit_tags in self._tags.values():
            tags |= unit_tags
        return tags

    def assign_state_by_tags(self, tags: Iterable[str], state: BehaviorState) -> List[GameObjectId]:
        """
        Overwrite the state of every known unit carrying any of the tags.

        Only units seen in a previous update are affected.

        Returns:
            Ids of the units whose state was assigned
        """
        selected = set(tags)
        state = BehaviorState(state)
        assigned = []
        for spacecraft_id, unit_tags in self._tags.items():
            if unit_tags & selected:
                self._states[spacecraft_id] = state
                assigned.append(spacecraft_id)
        logger.info(f"Assigned {state.value} to {len(assigned)} craft tagged {sorted(selected)}")
        return assigned

    def prune(self, present_ids: Iterable[GameObjectId]) -> None:
        """Forget units that are no longer present."""
        present = set(present_ids)
        for spacecraft_id in [i for i in self._states if i not in present]:
            del self._states[spacecraft_id]
        for spacecraft_id in [i for i in self._tags if i not in present]:
            del self._tags[spacecraft_id]

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def update(self, view: WorldView) -> List[Command]:
        """
        Run every own craft's policy against the view's snapshot.

        Returns:
            Commands for all craft, in snapshot order
        """
        spacecrafts = view.my_spacecrafts()
        self.prune(spacecrafts)

        commands: List[Command] = []
        for spacecraft_id, spacecraft in spacecrafts.items():
            state = self._states.setdefault(spacecraft_id, BehaviorState.IDLE)
            self._tags[spacecraft_id] = set(spacecraft.tags)
            commands.extend(self.run_policy(view, spacecraft_id, spacecraft, state))

        logger.debug(f"Behavior update: {len(spacecrafts)} craft, {len(commands)} commands")
        return commands

    def run_policy(
        self,
        view: WorldView,
        spacecraft_id: GameObjectId,
        spacecraft: Spacecraft,
        state: BehaviorState,
    ) -> List[Command]:
        """Commands for one craft in one state."""
        if state == BehaviorState.IDLE:
            return self._shoot_closest_enemy(view, spacecraft_id, spacecraft)
        if state == BehaviorState.ATTACK:
            return self._attack(view, spacecraft_id, spacecraft)
        if state == BehaviorState.MINING:
            return self._mine(view, spacecraft_id, spacecraft)
        if state == BehaviorState.DEFENSE:
            return self._defend(view, spacecraft_id, spacecraft)
        raise ValueError(f"Unknown behavior state: {state}")

    def _shoot_closest_enemy(self, view: WorldView, spacecraft_id: GameObjectId,
                             spacecraft: Spacecraft) -> List[Command]:
        target = view.closest_enemy_target(spacecraft.body.position)
        if target is None:
            return []
        return predictive_shoot_at(spacecraft_id, spacecraft, target[1], self.config)

    def _fly(self, spacecraft_id: GameObjectId, spacecraft: Spacecraft, target_body: GameObjectBody,
             speed: float) -> List[Command]:
        return fly_to(spacecraft_id, spacecraft, target_body, speed,
                      self.config.steering_strategy, self.config)

    def _attack(self, view: WorldView, spacecraft_id: GameObjectId,
                spacecraft: Spacecraft) -> List[Command]:
        commands = self._shoot_closest_enemy(view, spacecraft_id, spacecraft)
        enemy_base = view.closest_enemy_star_base(spacecraft.body.position)
        if enemy_base is not None:
            commands += self._fly(spacecraft_id, spacecraft, enemy_base[1].body,
                                  self.config.attack_steering)
        return commands

    def _mine(self, view: WorldView, spacecraft_id: GameObjectId,
              spacecraft: Spacecraft) -> List[Command]:
        commands: List[Command] = []
        has_taken_shot = False

        material = view.least_held_material()
        asteroid = None
        if material is not None:
            asteroid = view.closest_asteroid_with_material(material, spacecraft.body.position)

        if asteroid is not None:
            asteroid_body = asteroid[1].body
            commands += self._fly(spacecraft_id, spacecraft, asteroid_body,
                                  self.config.mining_steering)
            distance = asteroid_body.position.distance_to(spacecraft.body.position)
            if distance < self.config.mining_engage_range:
                commands += predictive_shoot_at(spacecraft_id, spacecraft, asteroid_body, self.config)
                has_taken_shot = True

        if not has_taken_shot:
            commands += self._shoot_closest_enemy(view, spacecraft_id, spacecraft)
        return commands

    def _defend(self, view: WorldView, spacecraft_id: GameObjectId,
                spacecraft: Spacecraft) -> List[Command]:
        commands = self._shoot_closest_enemy(view, spacecraft_id, spacecraft)
        home = view.closest_my_star_base(spacecraft.body.position)
        if home is not None:
            commands += self._fly(spacecraft_id, spacecraft, home[1].body,
                                  self.config.defense_steering)
        return commands

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serializable per-unit state."""
        return {
            "states": {str(i): state.value for i, state in self._states.items()},
            "tags": {str(i): sorted(tags) for i, tags in self._tags.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], config: ControlConfig = DEFAULT_CONFIG) -> 'SpacecraftControl':
        control = cls(config)
        for key, value in data.get("states", {}).items():
            control._states[int(key)] = BehaviorState(value)
        for key, value in data.get("tags", {}).items():
            control._tags[int(key)] = set(value)
        return control
