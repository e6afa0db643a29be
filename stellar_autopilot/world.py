#!/usr/bin/env python3
"""
World Data Model for the Stellar Autopilot

Describes the read-only snapshot the control layer works from:
- Kinematic bodies (position, velocity, rotation, angular velocity)
- Spacecraft components (engines and weapons at fixed mounts)
- Spacecraft, asteroids and star bases
- Players and their material inventories
- The world snapshot tying objects and players together

The host simulation owns and mutates the authoritative state. The control
layer only ever sees copies taken at the start of a tick.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Set, Tuple, Union

from .vector import Vec2


GameObjectId = int
ComponentId = int
PlayerId = int


# =============================================================================
# KINEMATIC BODY
# =============================================================================

@dataclass
class GameObjectBody:
    """
    Kinematic state of any world object.

    Attributes:
        position: World position (units)
        velocity: World velocity (units/s)
        rotation: Heading angle in radians, 0 = +X axis
        angular_velocity: Rotation rate (rad/s), positive is counter-clockwise
    """
    position: Vec2 = field(default_factory=Vec2.zero)
    velocity: Vec2 = field(default_factory=Vec2.zero)
    rotation: float = 0.0
    angular_velocity: float = 0.0

    @property
    def heading(self) -> Vec2:
        """Unit vector the body is facing."""
        return Vec2.from_angle(self.rotation)

    def relative_to_world(self, local: Vec2) -> Vec2:
        """Transform a body-local offset into a world position."""
        return self.position + local.rotated(self.rotation)


# =============================================================================
# COMPONENTS
# =============================================================================

@dataclass
class Engine:
    """
    Thruster mounted on a spacecraft.

    The engine pushes the craft along its orientation. Torque comes from the
    mount offset relative to the craft's center of mass.

    Attributes:
        centered_position: Body-local mount point (units)
        orientation: Body-local thrust direction angle (rad)
        thrust: Maximum force at power 1.0
        active: Whether the engine is firing
        power: Throttle, roughly in [-1, 1]
    """
    centered_position: Vec2 = field(default_factory=Vec2.zero)
    orientation: float = 0.0
    thrust: float = 1.0
    active: bool = False
    power: float = 1.0

    @property
    def local_direction(self) -> Vec2:
        """Thrust direction in the craft frame."""
        return Vec2.from_angle(self.orientation)


@dataclass
class Weapon:
    """
    Turreted projectile weapon mounted on a spacecraft.

    Attributes:
        centered_position: Body-local mount point (units)
        orientation: Body-local mount angle (rad)
        projectile_speed: Muzzle speed of fired projectiles (units/s)
        active: Whether the weapon is firing
        rotation: Current turret angle relative to the mount (rad)
    """
    centered_position: Vec2 = field(default_factory=Vec2.zero)
    orientation: float = 0.0
    projectile_speed: float = 100.0
    active: bool = False
    rotation: float = 0.0


Component = Union[Engine, Weapon]


# =============================================================================
# WORLD OBJECTS
# =============================================================================

@dataclass
class Spacecraft:
    """
    A player-owned craft composed of placed components.

    Attributes:
        owner: Owning player
        body: Kinematic state
        mass: Total mass
        center_of_mass: Body-local center of mass
        moment_of_inertia: Rotational inertia about the center of mass
        components: Components keyed by component id
        tags: Free-form labels used to group craft
    """
    owner: PlayerId
    body: GameObjectBody = field(default_factory=GameObjectBody)
    mass: float = 1.0
    center_of_mass: Vec2 = field(default_factory=Vec2.zero)
    moment_of_inertia: float = 1.0
    components: Dict[ComponentId, Component] = field(default_factory=dict)
    tags: Set[str] = field(default_factory=set)

    def engines(self) -> Iterator[Tuple[ComponentId, Engine]]:
        """Iterate over (id, engine) pairs."""
        for component_id, component in self.components.items():
            if isinstance(component, Engine):
                yield component_id, component

    def weapons(self) -> Iterator[Tuple[ComponentId, Weapon]]:
        """Iterate over (id, weapon) pairs."""
        for component_id, component in self.components.items():
            if isinstance(component, Weapon):
                yield component_id, component

    def mount_offset(self, component: Component) -> Vec2:
        """Body-local offset of a component from the center of mass."""
        return component.centered_position - self.center_of_mass

    def component_world_position(self, component: Component) -> Vec2:
        """World position of a component mount."""
        return self.body.relative_to_world(self.mount_offset(component))


@dataclass
class Asteroid:
    """Unowned minable rock carrying one material."""
    material: str
    body: GameObjectBody = field(default_factory=GameObjectBody)


@dataclass
class StarBase:
    """Player-owned static base."""
    owner: PlayerId
    body: GameObjectBody = field(default_factory=GameObjectBody)


GameObject = Union[Spacecraft, Asteroid, StarBase]


@dataclass
class Player:
    """A player and the materials they hold."""
    materials: Dict[str, float] = field(default_factory=dict)

    def least_held_material(self) -> Optional[str]:
        """Material with the smallest amount, or None when holding nothing."""
        if not self.materials:
            return None
        return min(self.materials.items(), key=lambda item: item[1])[0]


# =============================================================================
# WORLD SNAPSHOT
# =============================================================================

@dataclass
class WorldSnapshot:
    """
    Complete world state at the start of a control tick.

    Object iteration order is insertion order and is stable within a tick.
    """
    objects: Dict[GameObjectId, GameObject] = field(default_factory=dict)
    players: Dict[PlayerId, Player] = field(default_factory=dict)

    def copy(self) -> WorldSnapshot:
        """Create a deep copy of the snapshot."""
        return copy.deepcopy(self)

    def add(self, object_id: GameObjectId, game_object: GameObject) -> GameObjectId:
        """Insert an object under an explicit id."""
        if object_id in self.objects:
            raise KeyError(f"Object id {object_id} already present")
        self.objects[object_id] = game_object
        return object_id

    def next_id(self) -> GameObjectId:
        """Smallest id greater than every id in use."""
        return max(self.objects, default=0) + 1

    def spawn(self, game_object: GameObject) -> GameObjectId:
        """Insert an object under a freshly assigned id."""
        return self.add(self.next_id(), game_object)


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def create_asteroid_miner(
    owner: PlayerId,
    position: Optional[Vec2] = None,
    rotation: float = 0.0,
    engine_thrust: float = 50.0,
    projectile_speed: float = 300.0,
    mass: float = 10.0,
) -> Spacecraft:
    """
    Create the standard asteroid miner layout.

    A central block with two rear engines pushing forward along the craft
    heading and four lasers on the cross arms, tagged "asteroid_miner".

    Args:
        owner: Owning player id
        position: Initial world position (defaults to origin)
        rotation: Initial heading (rad)
        engine_thrust: Thrust of each engine
        projectile_speed: Laser projectile speed
        mass: Total craft mass

    Returns:
        New Spacecraft with components ids 1..6
    """
    components: Dict[ComponentId, Component] = {
        1: Engine(centered_position=Vec2(-2.0, -1.0), thrust=engine_thrust),
        2: Engine(centered_position=Vec2(-2.0, 1.0), thrust=engine_thrust),
        3: Weapon(centered_position=Vec2(1.0, 0.0), projectile_speed=projectile_speed),
        4: Weapon(centered_position=Vec2(-1.0, 0.0), projectile_speed=projectile_speed),
        5: Weapon(centered_position=Vec2(0.0, 1.0), orientation=math.pi / 2,
                  projectile_speed=projectile_speed),
        6: Weapon(centered_position=Vec2(0.0, -1.0), orientation=-math.pi / 2,
                  projectile_speed=projectile_speed),
    }
    return Spacecraft(
        owner=owner,
        body=GameObjectBody(position=position or Vec2.zero(), rotation=rotation),
        mass=mass,
        moment_of_inertia=mass * 2.0,
        components=components,
        tags={"asteroid_miner"},
    )
