"""
Test rotation framework for systematic directional testing.

A scenario written once is run in all 4 rotations (0°, 90°, 180°, 270°) by
rotating every container size, placement, push direction and expectation.
"""

from dataclasses import dataclass, replace

from nestgrid import Direction, RuleSet, World
from scenario import (
    Command,
    DefineAlias,
    DefineBox,
    Expect,
    Place,
    Push,
    ScenarioAssertionError,
    parse_scenario,
    run_scenario,
)


# =============================================================================
# Rotation Utilities
# =============================================================================


def rotate_direction_90(direction: Direction) -> Direction:
    """Rotate a direction 90° clockwise."""
    rotation_map = {
        Direction.N: Direction.E,
        Direction.E: Direction.S,
        Direction.S: Direction.W,
        Direction.W: Direction.N,
    }
    return rotation_map[direction]


def rotate_position_90(x: int, y: int, width: int) -> tuple[int, int]:
    """
    Rotate a position 90° clockwise within its container.

    A W×H container becomes H×W; (x, y) → (y, W - 1 - x) with y pointing north.
    """
    return y, width - 1 - x


def container_sizes(commands: list[Command]) -> dict[str, tuple[int, int]]:
    """Size of every container name, aliases of containers included."""
    sizes = {c.name: c.size for c in commands if isinstance(c, DefineBox) and c.size is not None}
    targets = {c.name: c.target for c in commands if isinstance(c, DefineAlias)}

    for alias in targets:
        seen = set()
        name = alias
        while name in targets and name not in seen:
            seen.add(name)
            name = targets[name]
        if name in sizes:
            sizes[alias] = sizes[name]
    return sizes


def rotate_commands_90(commands: list[Command]) -> list[Command]:
    """Rotate a whole scenario 90° clockwise."""
    sizes = container_sizes(commands)
    rotated: list[Command] = []

    for command in commands:
        if isinstance(command, DefineBox) and command.size is not None:
            width, height = command.size
            rotated.append(replace(command, size=(height, width)))
        elif isinstance(command, (Place, Expect)) and command.container is not None:
            width, _ = sizes[command.container]
            x, y = rotate_position_90(command.x, command.y, width)
            rotated.append(replace(command, x=x, y=y))
        elif isinstance(command, Push):
            rotated.append(replace(command, direction=rotate_direction_90(command.direction)))
        else:
            rotated.append(command)

    return rotated


# =============================================================================
# Test Case Data Structures
# =============================================================================


@dataclass
class RotationalTestCase:
    """
    A scenario that will be run in all 4 rotations.

    Example usage:
        test = RotationalTestCase(
            name="push_simple",
            script='''
                define box #room size (3,1)
                define box #a solid
                place #a at (0,0) in #room
                push #a east moved
                expect #a at (1,0) in #room
            ''',
        )
    """

    name: str
    script: str
    rules: RuleSet | None = None

    def get_all_rotations(self) -> list[tuple[int, list[Command]]]:
        """
        Generate all 4 rotations of this test case.

        Returns:
            List of (rotation_degrees, commands) tuples
        """
        results = []
        current = parse_scenario(self.script)

        for rotation in [0, 90, 180, 270]:
            results.append((rotation, current))
            current = rotate_commands_90(current)

        return results


# =============================================================================
# Test Runner
# =============================================================================


def run_rotational_test(test_case: RotationalTestCase) -> list[World]:
    """
    Run a rotational test case through all 4 rotations.

    Returns:
        The final world of each rotation
    """
    worlds = []
    for rotation, commands in test_case.get_all_rotations():
        try:
            worlds.append(run_scenario(commands, rules=test_case.rules))
        except ScenarioAssertionError as e:
            raise AssertionError(f"{test_case.name} at {rotation}°: {e}") from e
    return worlds


class TestRotationHelpers:
    """Tests for the rotation utilities themselves."""

    def test_direction_cycle(self) -> None:
        direction = Direction.N
        seen = []
        for _ in range(4):
            seen.append(direction)
            direction = rotate_direction_90(direction)
        assert seen == [Direction.N, Direction.E, Direction.S, Direction.W]
        assert direction == Direction.N

    def test_position_follows_direction(self) -> None:
        """Stepping north then rotating equals rotating then stepping east."""
        width = 5
        x, y = 1, 3
        nx, ny = rotate_position_90(x, y + 1, width)
        rx, ry = rotate_position_90(x, y, width)
        assert (nx - rx, ny - ry) == Direction.E.delta

    def test_four_rotations_are_identity(self) -> None:
        commands = parse_scenario(
            """
            define box #room size (4,2)
            define alias #room_ref ref #room
            define box #a solid
            place #a at (3,0) in #room_ref
            push #a south blocked
            expect #a at (3,0) in #room
            """
        )
        rotated = commands
        for _ in range(4):
            rotated = rotate_commands_90(rotated)
        assert rotated == commands

    def test_rotated_sizes_and_positions(self) -> None:
        [define, place] = rotate_commands_90(
            parse_scenario("define box #room size (4,2)\nplace #a at (3,0) in #room")
        )
        assert define.size == (2, 4)  # type: ignore[union-attr]
        assert (place.x, place.y) == (0, 0)  # type: ignore[union-attr]
