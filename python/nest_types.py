"""
Shared type definitions for the nestbox push engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Direction(Enum):
    """Cardinal direction for pushes. x grows east, y grows north."""

    N = "north"
    S = "south"
    E = "east"
    W = "west"

    @property
    def delta(self) -> tuple[int, int]:
        return _DELTAS[self]

    @property
    def horizontal(self) -> bool:
        return self in (Direction.E, Direction.W)

    def opposite(self) -> Direction:
        return _OPPOSITES[self]

    @classmethod
    def parse(cls, text: str) -> Direction:
        """Parse 'north'/'south'/'east'/'west' (or N/S/E/W), case-insensitive."""
        key = text.strip().lower()
        for direction in cls:
            if key in (direction.value, direction.name.lower()):
                return direction
        raise ValueError(
            f"Invalid direction '{text}'\n"
            f"  Expected one of: north, south, east, west"
        )


_DELTAS = {
    Direction.N: (0, 1),
    Direction.S: (0, -1),
    Direction.E: (1, 0),
    Direction.W: (-1, 0),
}

_OPPOSITES = {
    Direction.N: Direction.S,
    Direction.S: Direction.N,
    Direction.E: Direction.W,
    Direction.W: Direction.E,
}


class EntityKind(Enum):
    BOX = "box"
    WALL = "wall"


class Outcome(Enum):
    """Result of a push as seen by the caller."""

    MOVED = "moved"
    BLOCKED = "blocked"


class TerminationReason(Enum):
    """Reason why a push scan terminated."""

    EMPTY_REACHED = "empty_reached"  # Chain ends at an empty cell
    LOOP_CLOSED = "loop_closed"  # Scan wrapped back onto the first movable entity
    EDGE_REACHED = "edge_reached"  # Hit the boundary of a container
    WALL = "wall"  # Hit a wall or another non-solid, non-gateway occupant
    IMMOVABLE = "immovable"  # Origin is a wall or a non-solid box
    NOTHING_TO_MOVE = "nothing_to_move"  # Every chained entity is held by a gateway
    CYCLE = "cycle"  # Revisited a (container, entry cell) pair without closing a loop
    MAX_STEPS = "max_steps"  # Scan budget exhausted
    INVALID_BATCH = "invalid_batch"  # Commit rejected the relocation batch


class EntryAlignment(Enum):
    """Where a scan lands when it wraps into a different container's grid."""

    MIDDLE = "middle"  # Middle of the opposite edge
    ALIGNED = "aligned"  # Same row/column as the scan, falling back to the middle


@dataclass(frozen=True)
class RuleSet:
    """Rules governing push resolution."""

    entry: EntryAlignment = EntryAlignment.MIDDLE
    max_steps: int | None = None  # None = total cell count of all grids + 1


# =============================================================================
# Entity and Placement Types
# =============================================================================


@dataclass(frozen=True)
class Entity:
    """A box or wall with stable identity."""

    id: int
    name: str
    kind: EntityKind
    solid: bool
    size: tuple[int, int] | None = None  # (width, height) for containers

    @property
    def is_container(self) -> bool:
        return self.size is not None

    @property
    def is_wall(self) -> bool:
        return self.kind == EntityKind.WALL

    @property
    def pushable(self) -> bool:
        return self.kind == EntityKind.BOX and self.solid


@dataclass(frozen=True)
class Occupant:
    """
    What a cell holds.

    `alias` is None for the entity's own (primary) placement, or the alias name
    for a reference placement that shows `entity_id` without moving it.
    """

    entity_id: int
    alias: str | None = None

    @property
    def is_reference(self) -> bool:
        return self.alias is not None


@dataclass(frozen=True)
class Position:
    """A cell of a container's grid."""

    container_id: int
    x: int
    y: int

    def step(self, direction: Direction) -> Position:
        dx, dy = direction.delta
        return Position(self.container_id, self.x + dx, self.y + dy)


# =============================================================================
# Errors
# =============================================================================


class NestError(Exception):
    """Base class for every error raised by the engine."""


class SetupError(NestError, ValueError):
    """Setup-time error; scenario construction cannot continue."""


class DuplicateName(SetupError):
    pass


class UnknownEntity(SetupError):
    pass


class AliasCycle(SetupError):
    pass


class OutOfBounds(SetupError):
    pass


class CellOccupied(SetupError):
    pass


class InvalidDefinition(SetupError):
    pass


class NotPlaced(NestError, LookupError):
    """Push origin has no placement. A programmer error, never a block."""


class InvalidMove(NestError):
    """A relocation batch violated a grid invariant and was not applied."""
