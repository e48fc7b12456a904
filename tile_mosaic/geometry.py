"""Pixel rectangles, grid-cell coordinates and target partitioning."""

from __future__ import annotations

from typing import NamedTuple


class Rectangle(NamedTuple):
    """Integer pixel region with an unsigned origin."""

    x: int
    y: int
    width: int
    height: int

    def scale(self, ratio: int) -> Rectangle:
        return Rectangle(
            self.x * ratio, self.y * ratio, self.width * ratio, self.height * ratio,
        )


class CellCoords(NamedTuple):
    """Grid-cell coordinate; may be negative during neighbour arithmetic."""

    x: int
    y: int

    @classmethod
    def from_rect(cls, rect: Rectangle, cell_size: tuple[int, int]) -> CellCoords:
        cw, ch = cell_size
        return cls(rect.x // cw, rect.y // ch)

    def to_rect(self, cell_size: tuple[int, int]) -> Rectangle:
        cw, ch = cell_size
        return Rectangle(self.x * cw, self.y * ch, cw, ch)

    def offset(self, dx: int, dy: int) -> CellCoords:
        return CellCoords(self.x + dx, self.y + dy)

    def distance(self, other: CellCoords) -> int:
        """Manhattan distance in whole cells."""
        return abs(self.x - other.x) + abs(self.y - other.y)

    def row_major_key(self) -> tuple[int, int]:
        return self.y, self.x


def neighbour_offsets(radius: int) -> list[tuple[int, int]]:
    """All ``(dx, dy)`` with ``1 <= |dx| + |dy| < radius``.

    Cells at Manhattan distance *radius* or more receive no penalty, so
    they are never visited.
    """
    return [
        (dx, dy)
        for dy in range(-radius + 1, radius)
        for dx in range(-radius + 1, radius)
        if 0 < abs(dx) + abs(dy) < radius
    ]


def grid(
    dimensions: tuple[int, int],
    cell_size: tuple[int, int],
) -> list[Rectangle]:
    """Divide a ``(width, height)`` area into non-overlapping cells.

    Cells step across from (0, 0) in *cell_size* increments. A trailing
    partial cell that would extend past the right or bottom edge is
    dropped, so the uncovered remainder is silently ignored.

    Returns:
        Cells in row-major order.
    """
    tw, th = dimensions
    cw, ch = cell_size
    if cw <= 0 or ch <= 0:
        msg = f"Cell size must be positive, got {cw}x{ch}"
        raise ValueError(msg)

    return [
        Rectangle(x, y, cw, ch)
        for y in range(0, th - ch + 1, ch)
        for x in range(0, tw - cw + 1, cw)
    ]
