"""
Text dumps of a world for logs and failure messages.

Provides two views:
1. Flow rendering - every container as a flat character grid, several per row
2. Position listing - one line per placed name
"""

from __future__ import annotations

from typing import Callable

import simple_chalk as chalk  # type: ignore[import-untyped]

from nest_types import Occupant, Position
from nestgrid import World

__all__ = ["cell_char", "format_positions", "render_container", "render_world_flow"]

Colorizer = Callable[[str], str]


def _plain(s: str) -> str:
    return s


def cell_char(world: World, occupant: Occupant | None) -> str:
    """
    Single character for a cell.

    '_' empty, '#' wall, first letter of the name for boxes: uppercase for the
    entity's own placement, lowercase for an alias reference.
    """
    if occupant is None:
        return "_"
    entity = world.entities.get(occupant.entity_id)
    if entity.is_wall:
        return "#"
    first = entity.name[0] if entity.name else "?"
    return first.lower() if occupant.is_reference else first.upper()


def render_container(
    world: World,
    container_id: int,
    cell_width: int = 3,
    highlight_pos: Position | None = None,
    colorize: Colorizer = _plain,
) -> list[str]:
    """
    Render a single container's grid, north at the top.

    Returns:
        List of lines, all of the same visible width
    """
    grid = world.store.grid(container_id)
    title = f" {world.entities.name_of(container_id)} "
    grid_width = grid.width * cell_width + 2

    if len(title) <= grid_width - 2:
        title_start = (grid_width - len(title)) // 2
        title_line = (
            "┌"
            + "─" * (title_start - 1)
            + title
            + "─" * (grid_width - title_start - len(title) - 1)
            + "┐"
        )
    else:
        title_line = "┌" + "─" * (grid_width - 2) + "┐"

    lines = [colorize(title_line)]
    for y in reversed(range(grid.height)):
        parts = [colorize("│")]
        for x in range(grid.width):
            content = cell_char(world, grid.cells[x][y]).center(cell_width)
            if highlight_pos == Position(container_id, x, y):
                parts.append(chalk.bgWhite.black(content))
            else:
                parts.append(colorize(content))
        parts.append(colorize("│"))
        lines.append("".join(parts))
    lines.append(colorize("└" + "─" * (grid_width - 2) + "┘"))
    return lines


def render_world_flow(
    world: World,
    terminal_width: int = 120,
    cell_width: int = 3,
    highlight_pos: Position | None = None,
    color: bool = True,
) -> str:
    """
    Render every container in flow layout (several containers per row).

    Args:
        world: The world to render
        terminal_width: Maximum width for layout (default 120)
        cell_width: Characters per cell (default 3)
        highlight_pos: Optional cell to highlight
        color: Color each container differently (default True)
    """
    colors: list[Colorizer] = [
        chalk.red,
        chalk.green,
        chalk.yellow,
        chalk.blue,
        chalk.magenta,
        chalk.cyan,
        chalk.redBright,
        chalk.greenBright,
        chalk.yellowBright,
        chalk.blueBright,
    ]

    grids = list(world.store)
    rendered: list[tuple[list[str], int]] = []
    for i, grid in enumerate(grids):
        colorize = colors[i % len(colors)] if color else _plain
        lines = render_container(world, grid.container_id, cell_width, highlight_pos, colorize)
        rendered.append((lines, grid.width * cell_width + 2))

    output_lines: list[str] = []
    spacing = 2
    row: list[tuple[list[str], int]] = []
    row_width = 0

    for lines, width in rendered:
        needed = width + (spacing if row else 0)
        if row and row_width + needed > terminal_width:
            _flush_row(row, output_lines, spacing)
            row = []
            row_width = 0
            needed = width
        row.append((lines, width))
        row_width += needed

    if row:
        _flush_row(row, output_lines, spacing)

    return "\n".join(output_lines)


def _flush_row(
    row: list[tuple[list[str], int]],
    output_lines: list[str],
    spacing: int,
) -> None:
    """Combine a row of rendered containers side by side."""
    height = max(len(lines) for lines, _ in row)
    for line_idx in range(height):
        parts = [
            lines[line_idx] if line_idx < len(lines) else " " * width
            for lines, width in row
        ]
        output_lines.append((" " * spacing).join(parts))
    output_lines.append("")


def format_positions(world: World) -> str:
    """One line per placed name, in definition order: '#name at (x, y) in #container'."""
    lines: list[str] = []
    for entity in world.entities:
        position = world.graph.position_of(Occupant(entity.id))
        if position is None:
            lines.append(f"#{entity.name} unplaced")
        else:
            container = world.entities.name_of(position.container_id)
            lines.append(f"#{entity.name} at ({position.x}, {position.y}) in #{container}")
        for alias in world.entities.aliases_of(entity.id):
            ref = world.reference_position(alias)
            if ref is not None:
                container = world.entities.name_of(ref.container_id)
                lines.append(f"#{alias} -> #{entity.name} at ({ref.x}, {ref.y}) in #{container}")
    return "\n".join(lines)
