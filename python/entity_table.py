"""
Entity table and alias index.

Entities get integer ids in definition order. Names (entity names and alias
names) share one namespace; aliases resolve through chains to a canonical id.
"""

from __future__ import annotations

import logging
from typing import Iterator

from nest_types import (
    AliasCycle,
    DuplicateName,
    Entity,
    EntityKind,
    InvalidDefinition,
    UnknownEntity,
)

__all__ = ["EntityTable"]

logger = logging.getLogger(__name__)


class EntityTable:
    """Canonical storage for every box and wall, plus the alias index."""

    def __init__(self) -> None:
        self._entities: list[Entity] = []
        self._by_name: dict[str, int] = {}
        self._aliases: dict[str, str] = {}  # alias name -> target name

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name or name in self._aliases

    def define(
        self,
        name: str,
        kind: EntityKind,
        size: tuple[int, int] | None = None,
        solid: bool = False,
    ) -> int:
        """
        Create an entity with a fresh id.

        Raises:
            DuplicateName: If `name` is already bound to an entity or alias
            InvalidDefinition: For a box with neither size nor solid, a sized
                wall, or a non-positive size
        """
        self._check_unbound(name)

        if kind == EntityKind.WALL:
            if size is not None:
                raise InvalidDefinition(
                    f"Wall '{name}' cannot have a size\n"
                    f"  Walls are never containers"
                )
            solid = True
        elif size is None and not solid:
            raise InvalidDefinition(
                f"Box '{name}' needs a size, the solid flag, or both"
            )

        if size is not None:
            width, height = size
            if width <= 0 or height <= 0:
                raise InvalidDefinition(
                    f"Invalid size {size} for '{name}'\n"
                    f"  Width and height must be positive"
                )

        entity = Entity(len(self._entities), name, kind, solid, size)
        self._entities.append(entity)
        self._by_name[name] = entity.id
        logger.debug("defined %s", entity)
        return entity.id

    def alias(self, name: str, target: str) -> int | None:
        """
        Bind `name` as an alias of `target` (an entity or another alias).

        The target may be defined later; the binding is then resolved on use.

        Returns:
            The canonical id the alias resolves to, or None if the chain ends
            at a name that is not defined yet

        Raises:
            AliasCycle: If the new binding closes an alias cycle
            InvalidDefinition: If the alias resolves to a wall
        """
        self._check_unbound(name)
        self._aliases[name] = target

        try:
            canonical = self.resolve(name)
        except UnknownEntity:
            logger.debug("alias %s -> %s (forward reference)", name, target)
            return None
        except AliasCycle:
            del self._aliases[name]
            raise

        if self._entities[canonical].is_wall:
            del self._aliases[name]
            raise InvalidDefinition(
                f"Alias '{name}' refers to wall '{self._entities[canonical].name}'\n"
                f"  Only boxes can be aliased"
            )
        logger.debug("alias %s -> %s (canonical %s)", name, target, canonical)
        return canonical

    def resolve(self, name: str) -> int:
        """
        Follow alias chains to a canonical id.

        Raises:
            UnknownEntity: If `name` (or a name along the chain) is unbound
            AliasCycle: If the chain revisits a name
        """
        seen: list[str] = []
        current = name
        while current in self._aliases:
            if current in seen:
                raise AliasCycle(
                    f"Alias cycle while resolving '{name}'\n"
                    f"  Chain: {' -> '.join(seen + [current])}"
                )
            seen.append(current)
            current = self._aliases[current]

        if current not in self._by_name:
            raise UnknownEntity(f"Unknown entity '{current}'")
        return self._by_name[current]

    def get(self, entity_id: int) -> Entity:
        try:
            return self._entities[entity_id]
        except IndexError:
            raise UnknownEntity(f"Unknown entity id {entity_id}") from None

    def lookup(self, name: str) -> Entity:
        return self._entities[self.resolve(name)]

    def name_of(self, entity_id: int) -> str:
        return self.get(entity_id).name

    def is_alias(self, name: str) -> bool:
        return name in self._aliases

    def aliases_of(self, entity_id: int) -> list[str]:
        """All alias names resolving to `entity_id`, in definition order."""
        aliases = []
        for alias in self._aliases:
            try:
                if self.resolve(alias) == entity_id:
                    aliases.append(alias)
            except UnknownEntity:
                continue  # Forward reference still unbound
        return aliases

    def _check_unbound(self, name: str) -> None:
        if name in self:
            raise DuplicateName(f"Name '{name}' is already defined")
