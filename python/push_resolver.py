"""
Push resolution across nested, possibly self-containing grids.

Two phases: scan (builds the path and decides how it terminates) -> apply
(commits the relocation batch atomically).

The scan walks cell by cell along the push direction. Solid boxes join the
path. A container whose interior loops back to the scan (a cycle gateway) is
pinned and the scan jumps to the opposite boundary cell of that container's
grid. Only the movable run, the part of the path after the last jump into a
different container, relocates; no entity ever changes container.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from containment import ContainmentGraph
from entity_table import EntityTable
from grid_store import GridStore, Move
from nest_types import (
    Direction,
    EntryAlignment,
    InvalidMove,
    NotPlaced,
    Occupant,
    Outcome,
    Position,
    RuleSet,
    TerminationReason,
)

__all__ = ["Hop", "PathEntry", "PushResolver", "PushResult", "ScanResult"]

logger = logging.getLogger(__name__)


class Hop(Enum):
    """How a path entry was reached from the previous one."""

    START = "start"  # The push origin
    STEP = "step"  # Adjacent cell
    WRAP = "wrap"  # Through a gateway, landing in the same container
    CROSS = "cross"  # Through a gateway, landing in another container


@dataclass(frozen=True)
class PathEntry:
    position: Position
    occupant: Occupant
    hop: Hop


@dataclass
class ScanResult:
    """Output of the scan phase."""

    path: list[PathEntry]
    reason: TerminationReason
    run_start: int = 0
    terminal: Position | None = None  # Empty cell absorbing the motion
    gateways: list[int] | None = None
    blocked_at: Position | None = None

    @property
    def run(self) -> list[PathEntry]:
        return self.path[self.run_start:]


@dataclass(frozen=True)
class PushResult:
    """Detailed result of a push."""

    outcome: Outcome
    reason: TerminationReason
    moves: tuple[Move, ...] = ()
    gateways: tuple[int, ...] = ()
    blocked_at: Position | None = None

    @property
    def moved(self) -> bool:
        return self.outcome == Outcome.MOVED


class PushResolver:
    """Resolves one push at a time against the grid store."""

    def __init__(
        self,
        entities: EntityTable,
        store: GridStore,
        graph: ContainmentGraph,
        rules: RuleSet | None = None,
    ) -> None:
        self.entities = entities
        self.store = store
        self.graph = graph
        self.rules = rules if rules is not None else RuleSet()

    def push(self, entity_id: int, direction: Direction) -> PushResult:
        """
        Push an entity one cell in `direction`.

        Returns:
            PushResult with outcome MOVED when at least one cell changed,
            BLOCKED otherwise (the grid store is then untouched)

        Raises:
            NotPlaced: If the entity has no placement of its own
        """
        scan = self.scan(entity_id, direction)
        gateways = tuple(scan.gateways or ())

        if scan.reason not in (TerminationReason.EMPTY_REACHED, TerminationReason.LOOP_CLOSED):
            logger.debug("push %s %s blocked: %s", entity_id, direction.value, scan.reason.value)
            return PushResult(Outcome.BLOCKED, scan.reason, gateways=gateways, blocked_at=scan.blocked_at)

        moves = self.plan_moves(scan)
        if not moves:
            return PushResult(Outcome.BLOCKED, TerminationReason.NOTHING_TO_MOVE, gateways=gateways)

        try:
            self.store.apply_moves(moves)
        except InvalidMove as e:
            logger.warning("push %s %s rejected at commit: %s", entity_id, direction.value, e)
            return PushResult(Outcome.BLOCKED, TerminationReason.INVALID_BATCH, gateways=gateways)

        logger.info(
            "push %s %s: %d moved (%s), %d gateway(s)",
            self.entities.name_of(entity_id),
            direction.value,
            len(moves),
            scan.reason.value,
            len(gateways),
        )
        return PushResult(Outcome.MOVED, scan.reason, tuple(moves), gateways)

    def scan(self, entity_id: int, direction: Direction) -> ScanResult:
        """
        Build the push path from the entity's cell along `direction`.

        The scan never mutates state. It terminates at an empty cell, when it
        wraps back onto the first entity of the movable run, or on a block.
        """
        origin = self.graph.position_of(Occupant(entity_id))
        if origin is None:
            raise NotPlaced(f"Entity '{self.entities.name_of(entity_id)}' is not placed")

        if not self.entities.get(entity_id).pushable:
            return ScanResult([], TerminationReason.IMMOVABLE, blocked_at=origin)

        path = [PathEntry(origin, Occupant(entity_id), Hop.START)]
        in_path: dict[Occupant, int] = {path[0].occupant: 0}
        visited: set[Position] = set()
        gateways: list[int] = []
        run_start = 0
        if self.rules.max_steps is not None:
            budget = self.rules.max_steps
        else:
            budget = self.store.total_cells + 1
        steps = 0

        def finish(reason: TerminationReason, **kwargs: object) -> ScanResult:
            return ScanResult(path, reason, run_start, gateways=gateways, **kwargs)  # type: ignore[arg-type]

        current = origin
        while True:
            landing = current.step(direction)
            wrapped = False

            # Resolve the landing cell, jumping through gateways until it holds
            # something that is not a gateway.
            while True:
                steps += 1
                if steps > budget:
                    return finish(TerminationReason.MAX_STEPS, blocked_at=landing)

                if not self.store.in_bounds(landing.container_id, landing.x, landing.y):
                    return finish(TerminationReason.EDGE_REACHED, blocked_at=current)

                crossing = landing.container_id != current.container_id
                occupant = self.store.occupant_at(landing.container_id, landing.x, landing.y)

                if occupant is None:
                    if crossing:
                        # Nothing on the far side of the gateway can absorb the
                        # chain without moving it into another container.
                        return finish(TerminationReason.NOTHING_TO_MOVE, blocked_at=landing)
                    return finish(TerminationReason.EMPTY_REACHED, terminal=landing)

                if occupant in in_path:
                    if in_path[occupant] == run_start and not crossing:
                        return finish(TerminationReason.LOOP_CLOSED, terminal=path[run_start].position)
                    return finish(TerminationReason.CYCLE, blocked_at=landing)

                if wrapped:
                    if landing in visited:
                        return finish(TerminationReason.CYCLE, blocked_at=landing)
                    visited.add(landing)

                if not self.is_gateway(occupant.entity_id, landing.container_id):
                    break

                gateway = occupant.entity_id
                gateways.append(gateway)
                logger.debug(
                    "gateway %s at %s, wrapping",
                    self.entities.name_of(gateway),
                    landing,
                )
                landing = self.entry_cell(gateway, landing, direction)
                wrapped = True

            entity = self.entities.get(occupant.entity_id)
            if not entity.pushable:
                return finish(TerminationReason.WALL, blocked_at=landing)

            hop = Hop.CROSS if crossing else Hop.WRAP if wrapped else Hop.STEP
            path.append(PathEntry(landing, occupant, hop))
            in_path[occupant] = len(path) - 1
            if crossing:
                run_start = len(path) - 1
            logger.debug("scan %s: %s via %s", landing, entity.name, hop.value)
            current = landing

    def is_gateway(self, entity_id: int, container_id: int) -> bool:
        """
        Whether a container met while scanning `container_id` is a cycle gateway.

        True when the occupant is the scanned container itself or one of its
        ancestors, or when its interior leads back to itself.
        """
        entity = self.entities.get(entity_id)
        if not entity.is_container:
            return False
        return (
            entity_id == container_id
            or self.graph.is_ancestor(entity_id, container_id)
            or self.graph.is_self_containing(entity_id)
        )

    def entry_cell(self, gateway: int, landing: Position, direction: Direction) -> Position:
        """
        Opposite boundary cell of the gateway's grid along the push axis.

        Inside the gateway's own grid the row (or column) is kept, joining it
        end to end. Entering from another container uses the entry alignment
        rule: middle of the edge, or aligned with the scan when it fits.
        """
        width, height = self.store.size_of(gateway)
        same_grid = gateway == landing.container_id
        aligned = self.rules.entry == EntryAlignment.ALIGNED

        if direction.horizontal:
            x = 0 if direction == Direction.E else width - 1
            if same_grid or (aligned and landing.y < height):
                y = landing.y
            else:
                y = _middle(height, direction)
        else:
            y = 0 if direction == Direction.N else height - 1
            if same_grid or (aligned and landing.x < width):
                x = landing.x
            else:
                x = _middle(width, direction)

        return Position(gateway, x, y)

    def plan_moves(self, scan: ScanResult) -> list[Move]:
        """
        Relocations for a successful scan.

        Each run entry moves into the next entry's cell. The last one moves
        into the terminal cell: the empty cell that ended the scan, or the
        first run entry's cell when the loop closed. Moves that would leave an
        occupant in place are dropped.
        """
        if scan.terminal is None:
            raise ValueError(
                f"Cannot plan moves for a scan that ended with {scan.reason.value}\n"
                f"  Only scans reaching an empty cell or closing a loop have a terminal cell"
            )
        run = scan.run
        targets = [entry.position for entry in run[1:]] + [scan.terminal]

        return [
            Move(entry.occupant, entry.position, target)
            for entry, target in zip(run, targets)
            if entry.position != target
        ]


def _middle(length: int, direction: Direction) -> int:
    """
    Middle cell of an entry edge.

    On an even edge W and N pushes take the upper of the two middle cells and
    E and S pushes the lower one, so a rotated world enters the rotated cell.
    """
    if direction in (Direction.W, Direction.N):
        return length // 2
    return (length - 1) // 2
