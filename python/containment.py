"""
Containment graph derived from the grid store.

Edge C -> E whenever E, or an alias of E, occupies a cell of container C.
The graph may contain cycles; a container that reaches itself is
self-containing.
"""

from __future__ import annotations

import logging

from grid_store import GridStore
from nest_types import Occupant, Position

__all__ = ["ContainmentGraph"]

logger = logging.getLogger(__name__)


class ContainmentGraph:
    """Read-only view over the grid store, rebuilt whenever the store changes."""

    def __init__(self, store: GridStore) -> None:
        self._store = store
        self._version = -1
        self._positions: dict[Occupant, Position] = {}
        self._children: dict[int, set[int]] = {}
        self._parents: dict[int, set[int]] = {}
        self._ancestors: dict[int, frozenset[int]] = {}

    def _refresh(self) -> None:
        if self._version == self._store.version:
            return

        self._positions = {}
        self._children = {}
        self._parents = {}
        self._ancestors = {}
        for grid in self._store:
            children = self._children.setdefault(grid.container_id, set())
            for x, y, occupant in grid:
                self._positions[occupant] = Position(grid.container_id, x, y)
                children.add(occupant.entity_id)
                self._parents.setdefault(occupant.entity_id, set()).add(grid.container_id)

        self._version = self._store.version
        logger.debug("containment graph rebuilt (%d placements)", len(self._positions))

    def position_of(self, occupant: Occupant) -> Position | None:
        self._refresh()
        return self._positions.get(occupant)

    def container_of(self, entity_id: int) -> int | None:
        """Container of the entity's own placement, ignoring alias references."""
        position = self.position_of(Occupant(entity_id))
        return position.container_id if position is not None else None

    def children(self, container_id: int) -> set[int]:
        self._refresh()
        return set(self._children.get(container_id, ()))

    def parents(self, entity_id: int) -> set[int]:
        self._refresh()
        return set(self._parents.get(entity_id, ()))

    def ancestors(self, entity_id: int) -> frozenset[int]:
        """
        Every container from which `entity_id` is reachable by one or more edges.

        Iterative walk over parent edges with a visited set, so cycles terminate.
        A self-containing container is its own ancestor.
        """
        self._refresh()
        cached = self._ancestors.get(entity_id)
        if cached is not None:
            return cached

        found: set[int] = set()
        frontier = list(self._parents.get(entity_id, ()))
        while frontier:
            container_id = frontier.pop()
            if container_id in found:
                continue
            found.add(container_id)
            frontier.extend(self._parents.get(container_id, ()))

        result = frozenset(found)
        self._ancestors[entity_id] = result
        return result

    def is_ancestor(self, candidate: int, entity_id: int) -> bool:
        return candidate in self.ancestors(entity_id)

    def is_self_containing(self, container_id: int) -> bool:
        return self.is_ancestor(container_id, container_id)
