"""
Scenario scripts for building and checking worlds.

One statement per line, keywords case-insensitive, '//' starts a comment,
names start with '#':

    DEFINE BOX #name [size (W,H)] [solid]
    DEFINE WALL #name
    DEFINE ALIAS #name ref #target
    PLACE #name at (x,y) in #container | orphan
    PUSH #name north|south|east|west [MOVED|BLOCKED]
    EXPECT #name at (x,y) in #container | orphan

EXPECT on a placed alias checks the alias's own reference cell. `orphan`
means no placement: PLACE only checks that, EXPECT asserts it.
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ascii_render import format_positions, render_world_flow
from nest_types import Direction, NestError, Outcome, Position, RuleSet
from nestgrid import World

__all__ = [
    "Command",
    "DefineAlias",
    "DefineBox",
    "DefineWall",
    "Expect",
    "Place",
    "Push",
    "ScenarioAssertionError",
    "ScenarioError",
    "ScenarioSyntaxError",
    "main",
    "parse_scenario",
    "run_scenario",
]

logger = logging.getLogger(__name__)


class ScenarioError(NestError):
    """Base class for scenario script errors."""


class ScenarioSyntaxError(ScenarioError, ValueError):
    def __init__(self, message: str, line: int, column: int, text: str) -> None:
        super().__init__(
            f"{message}\n"
            f"  --> line {line}, column {column + 1}\n"
            f"  | {text}\n"
            f"  | {' ' * column}^"
        )
        self.line = line
        self.column = column


class ScenarioAssertionError(ScenarioError, AssertionError):
    pass


# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True)
class DefineBox:
    name: str
    size: tuple[int, int] | None = None
    solid: bool = False
    line: int = 0


@dataclass(frozen=True)
class DefineWall:
    name: str
    line: int = 0


@dataclass(frozen=True)
class DefineAlias:
    name: str
    target: str
    line: int = 0


@dataclass(frozen=True)
class Place:
    name: str
    container: str | None  # None for `orphan`
    x: int = 0
    y: int = 0
    line: int = 0

    @property
    def orphan(self) -> bool:
        return self.container is None


@dataclass(frozen=True)
class Push:
    name: str
    direction: Direction
    expected: Outcome | None = None
    line: int = 0


@dataclass(frozen=True)
class Expect:
    name: str
    container: str | None  # None for `orphan`
    x: int = 0
    y: int = 0
    line: int = 0

    @property
    def orphan(self) -> bool:
        return self.container is None


Command = Union[DefineBox, DefineWall, DefineAlias, Place, Push, Expect]


# =============================================================================
# Parsing
# =============================================================================

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<pair>\(\s*-?\d+\s*,\s*-?\d+\s*\))"
    r"|(?P<ident>#[^\s(),]+)"
    r"|(?P<word>[A-Za-z_]+)"
    r"|(?P<bad>\S)"
    r")"
)

_EXPECTED_OUTCOMES = {
    "moved": Outcome.MOVED,
    "blocked": Outcome.BLOCKED,
    "static": Outcome.BLOCKED,
}


@dataclass(frozen=True)
class _Token:
    kind: str  # "pair", "ident" or "word"
    text: str
    column: int


class _LineParser:
    """Token cursor over a single statement line."""

    def __init__(self, text: str, line: int) -> None:
        self.text = text
        self.line = line
        self.tokens: list[_Token] = []
        self.index = 0

        code = text.split("//", 1)[0]
        for match in _TOKEN_RE.finditer(code):
            kind = match.lastgroup
            if kind is None:
                continue
            if kind == "bad":
                raise self.error(f"Unexpected character '{match.group(kind)}'", match.start(kind))
            self.tokens.append(_Token(kind, match.group(kind), match.start(kind)))

    @property
    def done(self) -> bool:
        return self.index >= len(self.tokens)

    def error(self, message: str, column: int | None = None) -> ScenarioSyntaxError:
        if column is None:
            column = self.tokens[self.index].column if not self.done else len(self.text.rstrip())
        return ScenarioSyntaxError(message, self.line, column, self.text)

    def next(self, what: str) -> _Token:
        if self.done:
            raise self.error(f"Missing {what}")
        token = self.tokens[self.index]
        self.index += 1
        return token

    def keyword(self, *choices: str) -> str:
        token = self.next(" or ".join(f"`{c}`" for c in choices))
        word = token.text.lower()
        if token.kind != "word" or word not in choices:
            self.index -= 1
            raise self.error(f"Expected {' or '.join(f'`{c}`' for c in choices)}, found '{token.text}'")
        return word

    def ident(self) -> str:
        token = self.next("name")
        if token.kind != "ident":
            self.index -= 1
            raise self.error(f"Expected a name starting with '#', found '{token.text}'")
        return token.text[1:]

    def pair(self) -> tuple[int, int]:
        token = self.next("coordinate pair")
        if token.kind != "pair":
            self.index -= 1
            raise self.error(f"Expected '(a,b)', found '{token.text}'")
        first, second = token.text.strip("()").split(",")
        return int(first), int(second)

    def word(self) -> str | None:
        """Lowercased next word without consuming it, or None."""
        if self.done or self.tokens[self.index].kind != "word":
            return None
        return self.tokens[self.index].text.lower()

    def finish(self) -> None:
        if not self.done:
            raise self.error(f"Unexpected '{self.tokens[self.index].text}'")


def parse_scenario(text: str) -> list[Command]:
    """
    Parse a scenario script into commands.

    Raises:
        ScenarioSyntaxError: For unknown statements, malformed or missing
            clauses, and repeated clauses
    """
    commands: list[Command] = []
    for line_idx, line_text in enumerate(text.splitlines()):
        parser = _LineParser(line_text, line_idx + 1)
        if parser.done:
            continue

        statement = parser.keyword("define", "place", "push", "expect")
        if statement == "define":
            command = _parse_define(parser)
        elif statement == "place":
            name, container, x, y = _parse_location(parser)
            command = Place(name, container, x, y, parser.line)
        elif statement == "push":
            command = _parse_push(parser)
        else:
            name, container, x, y = _parse_location(parser)
            command = Expect(name, container, x, y, parser.line)

        parser.finish()
        commands.append(command)

    return commands


def _parse_define(parser: _LineParser) -> Command:
    kind = parser.keyword("box", "wall", "alias")
    name = parser.ident()

    if kind == "wall":
        return DefineWall(name, parser.line)

    if kind == "alias":
        parser.keyword("ref")
        return DefineAlias(name, parser.ident(), parser.line)

    size: tuple[int, int] | None = None
    solid = False
    while not parser.done:
        clause = parser.keyword("size", "solid")
        if clause == "size":
            if size is not None:
                raise parser.error("Multiple `size` clauses")
            size = parser.pair()
        else:
            if solid:
                raise parser.error("Multiple `solid` clauses")
            solid = True

    return DefineBox(name, size, solid, parser.line)


def _parse_location(parser: _LineParser) -> tuple[str, str | None, int, int]:
    """
    '#name at (x,y) in #container', clauses in either order, or '#name orphan'.

    An orphan location is returned with container None.
    """
    name = parser.ident()
    pos: tuple[int, int] | None = None
    container: str | None = None
    orphan = False

    while not parser.done:
        clause = parser.keyword("at", "in", "orphan")
        if clause == "orphan":
            if orphan:
                raise parser.error("Multiple `orphan` clauses")
            if pos is not None or container is not None:
                raise parser.error("`orphan` conflicts with `at` and `in`")
            orphan = True
            continue

        if orphan:
            raise parser.error(f"`{clause}` conflicts with `orphan`")
        if clause == "at":
            if pos is not None:
                raise parser.error("Multiple `at` clauses")
            pos = parser.pair()
        else:
            if container is not None:
                raise parser.error("Multiple `in` clauses")
            container = parser.ident()

    if orphan:
        return name, None, 0, 0
    if pos is None:
        raise parser.error("Missing `at` clause")
    if container is None:
        raise parser.error("Missing `in` clause")
    return name, container, pos[0], pos[1]


def _parse_push(parser: _LineParser) -> Push:
    name = parser.ident()
    word = parser.keyword("north", "south", "east", "west")
    direction = Direction.parse(word)

    expected = None
    outcome_word = parser.word()
    if outcome_word is not None:
        parser.keyword(*_EXPECTED_OUTCOMES)
        expected = _EXPECTED_OUTCOMES[outcome_word]

    return Push(name, direction, expected, parser.line)


# =============================================================================
# Execution
# =============================================================================


def run_scenario(
    source: str | list[Command],
    rules: RuleSet | None = None,
    world: World | None = None,
) -> World:
    """
    Execute a scenario against a (new) world.

    Setup errors propagate unchanged. A PUSH whose outcome differs from its
    expectation, or a failed EXPECT, raises ScenarioAssertionError with a dump
    of the world.

    Returns:
        The world after the last command
    """
    commands = parse_scenario(source) if isinstance(source, str) else source
    if world is None:
        world = World(rules)

    for command in commands:
        match command:
            case DefineBox(name=name, size=size, solid=solid):
                world.define_box(name, size=size, solid=solid)
            case DefineWall(name=name):
                world.define_wall(name)
            case DefineAlias(name=name, target=target):
                world.define_alias(name, target)
            case Place(name=name, container=None):
                world.require_unplaced(name)
            case Place(name=name, container=container, x=x, y=y):
                world.place(name, container, x, y)
            case Push(name=name, direction=direction, expected=expected, line=line):
                outcome = world.push(name, direction)
                logger.info("line %d: push #%s %s -> %s", line, name, direction.value, outcome.value)
                if expected is not None and outcome != expected:
                    raise _assertion(
                        world,
                        f"line {line}: push #{name} {direction.value} was {outcome.value.upper()}, "
                        f"expected {expected.value.upper()}",
                    )
            case Expect(name=name, container=container, x=x, y=y, line=line):
                actual = world.placement_of(name)
                if container is None:
                    wanted = None
                    where = "unplaced"
                else:
                    wanted = Position(world.resolve(container), x, y)
                    where = f"at ({x}, {y}) in #{container}"
                if actual != wanted:
                    raise _assertion(
                        world,
                        f"line {line}: expected #{name} {where}, "
                        f"found {_describe(world, actual)}",
                    )

    return world


def _describe(world: World, position: Position | None) -> str:
    if position is None:
        return "unplaced"
    return f"({position.x}, {position.y}) in #{world.entities.name_of(position.container_id)}"


def _assertion(world: World, message: str) -> ScenarioAssertionError:
    return ScenarioAssertionError(
        f"{message}\n\n{format_positions(world)}\n\n{render_world_flow(world, color=False)}"
    )


def main(argv: list[str] | None = None) -> int:
    """Run scenario files; exit status 1 if any fails."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    paths = sys.argv[1:] if argv is None else argv
    failed = 0

    for path in paths:
        try:
            run_scenario(Path(path).read_text())
        except (NestError, OSError) as e:
            logger.error("%s: %s", path, e)
            failed += 1
        else:
            logger.info("%s: ok", path)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
