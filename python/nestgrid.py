"""
Nested box worlds with aliasing and self-containing containers.

World is the entry point: a setup API (define boxes, walls and aliases, place
them), a simulation API (push) and read accessors for verification.
"""

from __future__ import annotations

import logging

from containment import ContainmentGraph
from entity_table import EntityTable
from grid_store import GridStore, Snapshot
from nest_types import (
    AliasCycle,
    CellOccupied,
    Direction,
    DuplicateName,
    Entity,
    EntityKind,
    EntryAlignment,
    InvalidDefinition,
    InvalidMove,
    NestError,
    NotPlaced,
    Occupant,
    OutOfBounds,
    Outcome,
    Position,
    RuleSet,
    SetupError,
    TerminationReason,
    UnknownEntity,
)
from push_resolver import PushResolver, PushResult

__all__ = [
    "AliasCycle",
    "CellOccupied",
    "Direction",
    "DuplicateName",
    "Entity",
    "EntityKind",
    "EntryAlignment",
    "InvalidDefinition",
    "InvalidMove",
    "NestError",
    "NotPlaced",
    "Occupant",
    "OutOfBounds",
    "Outcome",
    "Position",
    "PushResult",
    "RuleSet",
    "SetupError",
    "TerminationReason",
    "UnknownEntity",
    "World",
]

logger = logging.getLogger(__name__)


class World:
    """All entities, their grids and the push resolver operating on them."""

    def __init__(self, rules: RuleSet | None = None) -> None:
        self.rules = rules if rules is not None else RuleSet()
        self.entities = EntityTable()
        self.store = GridStore()
        self.graph = ContainmentGraph(self.store)
        self.resolver = PushResolver(self.entities, self.store, self.graph, self.rules)
        self._placed_aliases: set[str] = set()

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def define_box(
        self, name: str, size: tuple[int, int] | None = None, solid: bool = False
    ) -> int:
        """Define a box; `size` makes it a container, `solid` makes it pushable."""
        entity_id = self.entities.define(name, EntityKind.BOX, size=size, solid=solid)
        if size is not None:
            self.store.add_grid(entity_id, *size)
        return entity_id

    def define_wall(self, name: str) -> int:
        return self.entities.define(name, EntityKind.WALL)

    def define_alias(self, name: str, target: str) -> int | None:
        return self.entities.alias(name, target)

    def place(self, name: str, container: str, x: int, y: int) -> None:
        """
        Place an entity (or an alias reference) at (x, y) of a container.

        Placing an alias puts a reference to its canonical entity in the cell;
        the entity's own placement is unaffected.

        Raises:
            UnknownEntity: If a name is unbound or the container has no grid
            DuplicateName: If the entity or alias is already placed
            OutOfBounds: If (x, y) is outside the container
            CellOccupied: If the cell is taken
        """
        entity_id = self.entities.resolve(name)
        container_id = self.entities.resolve(container)

        if not self.entities.get(container_id).is_container:
            raise UnknownEntity(
                f"Cannot place '{name}' in '{container}'\n"
                f"  '{container}' has no size and is not a container"
            )

        if self.entities.is_alias(name):
            if self.entities.get(entity_id).is_wall:
                raise InvalidDefinition(f"Alias '{name}' refers to a wall")
            occupant = Occupant(entity_id, alias=name)
        else:
            occupant = Occupant(entity_id)
        self.require_unplaced(name)

        self.store.place(container_id, occupant, x, y)
        if occupant.is_reference:
            self._placed_aliases.add(name)
        logger.debug("placed %s at (%d, %d) in %s", name, x, y, container)

    def require_unplaced(self, name: str) -> None:
        """
        Raises:
            DuplicateName: If the entity or alias already has a placement
        """
        if self.is_placed(name):
            raise DuplicateName(
                f"'{name}' is already placed at {self.placement_of(name)}"
            )

    # -------------------------------------------------------------------------
    # Simulation
    # -------------------------------------------------------------------------

    def push(self, name: str, direction: Direction | str) -> Outcome:
        """Push an entity (or, transparently, an alias of it). MOVED or BLOCKED."""
        return self.push_detailed(name, direction).outcome

    def push_detailed(self, name: str, direction: Direction | str) -> PushResult:
        if isinstance(direction, str):
            direction = Direction.parse(direction)
        return self.resolver.push(self.entities.resolve(name), direction)

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    def resolve(self, name: str) -> int:
        return self.entities.resolve(name)

    def entity(self, name: str) -> Entity:
        return self.entities.lookup(name)

    def position_of(self, name: str) -> Position | None:
        """Position of the entity a name resolves to (its own placement)."""
        return self.graph.position_of(Occupant(self.entities.resolve(name)))

    def reference_position(self, alias: str) -> Position | None:
        """Cell holding the reference placed for an alias, if any."""
        return self.graph.position_of(Occupant(self.entities.resolve(alias), alias=alias))

    def placement_of(self, name: str) -> Position | None:
        """Cell a name was placed in: the reference cell for a placed alias, else position_of."""
        if name in self._placed_aliases:
            return self.reference_position(name)
        return self.position_of(name)

    def is_placed(self, name: str) -> bool:
        if self.entities.is_alias(name):
            return name in self._placed_aliases
        return self.position_of(name) is not None

    def container_of(self, name: str) -> str | None:
        container_id = self.graph.container_of(self.entities.resolve(name))
        return self.entities.name_of(container_id) if container_id is not None else None

    def occupant_at(self, container: str, x: int, y: int) -> Occupant | None:
        return self.store.occupant_at(self.entities.resolve(container), x, y)

    def name_at(self, container: str, x: int, y: int) -> str | None:
        """Name shown in a cell: the alias name for references, else the entity name."""
        occupant = self.occupant_at(container, x, y)
        if occupant is None:
            return None
        return occupant.alias or self.entities.name_of(occupant.entity_id)

    def snapshot(self) -> Snapshot:
        return self.store.snapshot()
