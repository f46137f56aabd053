"""
Per-container grid storage.

Each container exclusively owns a width x height cell array indexed [x][y].
A cell holds at most one Occupant or None.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from nest_types import (
    CellOccupied,
    InvalidMove,
    Occupant,
    OutOfBounds,
    Position,
    UnknownEntity,
)

__all__ = ["Grid", "GridStore", "Move", "Snapshot"]

logger = logging.getLogger(__name__)

Snapshot = tuple[tuple[int, tuple[tuple[Occupant | None, ...], ...]], ...]


@dataclass(frozen=True)
class Move:
    """Relocation of one occupant between two cells of the same container."""

    occupant: Occupant
    source: Position
    target: Position


class Grid:
    """A container's cell array."""

    def __init__(self, container_id: int, width: int, height: int) -> None:
        self.container_id = container_id
        self.width = width
        self.height = height
        self.cells: list[list[Occupant | None]] = [[None] * height for _ in range(width)]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def __iter__(self) -> Iterator[tuple[int, int, Occupant]]:
        """Yield (x, y, occupant) for every occupied cell."""
        for x, column in enumerate(self.cells):
            for y, occupant in enumerate(column):
                if occupant is not None:
                    yield x, y, occupant


class GridStore:
    """All container grids, keyed by container id."""

    def __init__(self) -> None:
        self._grids: dict[int, Grid] = {}
        self.version = 0  # Bumped on every mutation

    def __contains__(self, container_id: int) -> bool:
        return container_id in self._grids

    def __iter__(self) -> Iterator[Grid]:
        return iter(self._grids.values())

    @property
    def total_cells(self) -> int:
        return sum(grid.width * grid.height for grid in self._grids.values())

    def add_grid(self, container_id: int, width: int, height: int) -> Grid:
        grid = Grid(container_id, width, height)
        self._grids[container_id] = grid
        self.version += 1
        return grid

    def grid(self, container_id: int) -> Grid:
        try:
            return self._grids[container_id]
        except KeyError:
            raise UnknownEntity(f"Entity {container_id} is not a container") from None

    def size_of(self, container_id: int) -> tuple[int, int]:
        grid = self.grid(container_id)
        return grid.width, grid.height

    def in_bounds(self, container_id: int, x: int, y: int) -> bool:
        return self.grid(container_id).in_bounds(x, y)

    def occupant_at(self, container_id: int, x: int, y: int) -> Occupant | None:
        grid = self._checked(container_id, x, y)
        return grid.cells[x][y]

    def place(self, container_id: int, occupant: Occupant, x: int, y: int) -> None:
        """
        Insert an occupant into an empty cell.

        Raises:
            UnknownEntity: If the container has no grid
            OutOfBounds: If (x, y) is outside the container's size
            CellOccupied: If the cell already holds an occupant
        """
        grid = self._checked(container_id, x, y)
        current = grid.cells[x][y]
        if current is not None:
            raise CellOccupied(
                f"Cell ({x}, {y}) of container {container_id} is occupied\n"
                f"  Current occupant: {current}"
            )
        grid.cells[x][y] = occupant
        self.version += 1

    def move_occupant(
        self,
        container_id: int,
        occupant: Occupant,
        source: tuple[int, int],
        target: tuple[int, int],
    ) -> None:
        """Relocate a single occupant within one container."""
        self.apply_moves([
            Move(
                occupant,
                Position(container_id, *source),
                Position(container_id, *target),
            )
        ])

    def apply_moves(self, moves: list[Move]) -> None:
        """
        Apply a batch of same-container relocations atomically.

        Every move is validated against the current cells before any cell is
        written. A destination may be vacated by another move of the batch.

        Raises:
            InvalidMove: On a container change, an out-of-bounds cell, a source
                not holding the occupant, a duplicate occupant or destination,
                or a destination held by an occupant that stays put
        """
        sources: set[Position] = set()
        targets: set[Position] = set()
        occupants: set[Occupant] = set()

        for move in moves:
            if move.source.container_id != move.target.container_id:
                raise InvalidMove(f"{move} changes container")
            for pos in (move.source, move.target):
                if pos.container_id not in self._grids or not self.in_bounds(
                    pos.container_id, pos.x, pos.y
                ):
                    raise InvalidMove(f"{move} leaves the grid at {pos}")
            if self._grids[move.source.container_id].cells[move.source.x][move.source.y] != move.occupant:
                raise InvalidMove(f"{move} does not start at the occupant's cell")
            if move.occupant in occupants:
                raise InvalidMove(f"{move.occupant} is moved twice")
            if move.target in targets:
                raise InvalidMove(f"Two moves end at {move.target}")
            occupants.add(move.occupant)
            sources.add(move.source)
            targets.add(move.target)

        for target in targets - sources:
            if self._grids[target.container_id].cells[target.x][target.y] is not None:
                raise InvalidMove(f"Destination {target} is occupied")

        for move in moves:
            self._grids[move.source.container_id].cells[move.source.x][move.source.y] = None
        for move in moves:
            self._grids[move.target.container_id].cells[move.target.x][move.target.y] = move.occupant

        if moves:
            self.version += 1
        logger.debug("applied %d moves", len(moves))

    def snapshot(self) -> Snapshot:
        """Hashable copy of every cell, ordered by container id."""
        return tuple(
            (container_id, tuple(tuple(column) for column in grid.cells))
            for container_id, grid in sorted(self._grids.items())
        )

    def _checked(self, container_id: int, x: int, y: int) -> Grid:
        grid = self.grid(container_id)
        if not grid.in_bounds(x, y):
            raise OutOfBounds(
                f"Position ({x}, {y}) is outside container {container_id}\n"
                f"  Size: ({grid.width}, {grid.height})"
            )
        return grid
