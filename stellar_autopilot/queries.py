"""
World Query Layer.

Read-only nearest-object queries over a world snapshot, as seen by one
player. Every "closest" query returns an (id, object) pair or None when the
category is empty.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Optional, Tuple, TypeVar

from .world import (
    Asteroid,
    GameObject,
    GameObjectBody,
    GameObjectId,
    Player,
    PlayerId,
    Spacecraft,
    StarBase,
    WorldSnapshot,
)
from .vector import Vec2


T = TypeVar("T")


def _nearest(
    candidates: Iterable[Tuple[GameObjectId, T]],
    position: Vec2,
    body_of: Callable[[T], GameObjectBody],
    truncate: bool = False,
) -> Optional[Tuple[GameObjectId, T]]:
    # min() keeps the first of equal keys, so ties go to iteration order
    def key(item: Tuple[GameObjectId, T]) -> float:
        distance = position.distance_to(body_of(item[1]).position)
        return int(distance) if truncate else distance

    return min(candidates, key=key, default=None)


class WorldView:
    """
    One player's read-only view of a snapshot.

    Args:
        snapshot: World state for the current tick
        player_id: The acting player; "my" and "enemy" are relative to it
        truncate_target_ranking: Rank enemy-target candidates by integer
            distance (sub-unit differences ignored)
    """

    def __init__(self, snapshot: WorldSnapshot, player_id: PlayerId,
                 truncate_target_ranking: bool = True):
        self.snapshot = snapshot
        self.player_id = player_id
        self.truncate_target_ranking = truncate_target_ranking

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def player(self) -> Player:
        """The acting player's record."""
        try:
            return self.snapshot.players[self.player_id]
        except KeyError:
            raise KeyError(f"Player {self.player_id} not found in snapshot") from None

    def least_held_material(self) -> Optional[str]:
        player = self.snapshot.players.get(self.player_id)
        return player.least_held_material() if player else None

    def objects_of(self, kind: type) -> Dict[GameObjectId, GameObject]:
        return {
            object_id: game_object
            for object_id, game_object in self.snapshot.objects.items()
            if isinstance(game_object, kind)
        }

    def my_spacecrafts(self) -> Dict[GameObjectId, Spacecraft]:
        return {
            object_id: craft
            for object_id, craft in self.objects_of(Spacecraft).items()
            if craft.owner == self.player_id
        }

    def my_star_bases(self) -> Dict[GameObjectId, StarBase]:
        return {
            object_id: base
            for object_id, base in self.objects_of(StarBase).items()
            if base.owner == self.player_id
        }

    def asteroids(self) -> Dict[GameObjectId, Asteroid]:
        return self.objects_of(Asteroid)

    # -------------------------------------------------------------------------
    # Nearest-object queries
    # -------------------------------------------------------------------------

    def closest(
        self,
        predicate: Callable[[GameObject], bool],
        position: Vec2,
    ) -> Optional[Tuple[GameObjectId, GameObject]]:
        """Nearest object matching a predicate, by exact distance."""
        candidates = ((object_id, game_object)
                      for object_id, game_object in self.snapshot.objects.items()
                      if predicate(game_object))
        return _nearest(candidates, position, lambda o: o.body)

    def closest_my_star_base(self, position: Vec2) -> Optional[Tuple[GameObjectId, StarBase]]:
        return _nearest(self.my_star_bases().items(), position, lambda o: o.body)

    def closest_asteroid_with_material(
        self, material: str, position: Vec2
    ) -> Optional[Tuple[GameObjectId, Asteroid]]:
        return self.closest(
            lambda o: isinstance(o, Asteroid) and o.material == material,
            position,
        )

    def closest_enemy_spacecraft(self, position: Vec2) -> Optional[Tuple[GameObjectId, Spacecraft]]:
        candidates = ((object_id, craft)
                      for object_id, craft in self.objects_of(Spacecraft).items()
                      if craft.owner != self.player_id)
        return _nearest(candidates, position, lambda o: o.body, self.truncate_target_ranking)

    def closest_asteroid(self, position: Vec2) -> Optional[Tuple[GameObjectId, Asteroid]]:
        return _nearest(self.asteroids().items(), position, lambda o: o.body,
                        self.truncate_target_ranking)

    def closest_enemy_star_base(self, position: Vec2) -> Optional[Tuple[GameObjectId, StarBase]]:
        candidates = ((object_id, base)
                      for object_id, base in self.objects_of(StarBase).items()
                      if base.owner != self.player_id)
        return _nearest(candidates, position, lambda o: o.body, self.truncate_target_ranking)

    def closest_enemy_target(self, position: Vec2) -> Optional[Tuple[GameObjectId, GameObjectBody]]:
        """
        Nearest thing worth shooting: enemy craft, asteroid or enemy base.

        Asteroids are unowned and always count. With truncated ranking the
        merge ignores sub-unit distance differences and prefers, on ties,
        craft over asteroids over bases.
        """
        found = [
            self.closest_enemy_spacecraft(position),
            self.closest_asteroid(position),
            self.closest_enemy_star_base(position),
        ]
        targets = []
        for item in found:
            if item is not None:
                object_id, game_object = item
                targets.append((object_id, game_object.body))
        return _nearest(targets, position, lambda body: body, self.truncate_target_ranking)
