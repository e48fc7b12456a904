"""Tile selection that discourages repeating a tile in nearby cells.

Runs in two phases:

1. Score every library tile against every cell (independent per cell).
2. Visit cells in row-major order. Each cell takes its currently
   cheapest tile and makes that tile more expensive for every other
   cell within ``distance_threshold`` (Manhattan, in cells), by an
   amount that decays with distance.

Finally each cell re-picks its cheapest tile from the penalised costs.
Only cells inside the threshold are visited, so the penalty pass is
linear in the number of cells for a fixed threshold.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

import numpy as np

from tile_mosaic.analysis import get_metric
from tile_mosaic.geometry import CellCoords, neighbour_offsets
from tile_mosaic.library import LibraryIndex
from tile_mosaic.strategy import TilePlacement, TilingStrategy, lowest_weight_item

logger = logging.getLogger(__name__)

Penalty = Callable[[int], int]


def penalty_by_distance(
    sample_size: int,
    distance_threshold: int,
    metric: str = "sqr",
    divisor: int = 20,
) -> Penalty:
    """Linear decay from a maximum at distance 1 to zero at the threshold.

    ``max_penalty`` is the largest possible per-sample distance times
    the number of samples, divided by *divisor*.
    """
    if distance_threshold <= 0:
        msg = f"distance_threshold must be positive, got {distance_threshold}"
        raise ValueError(msg)
    max_penalty = get_metric(metric).max_sample_distance * sample_size * sample_size // divisor

    def penalty(distance: int) -> int:
        return max(0, max_penalty * (distance_threshold - distance) // distance_threshold)

    return penalty


def adjust_weights(
    costs: np.ndarray,
    coords: Sequence[CellCoords],
    penalty: Penalty,
    distance_threshold: int,
) -> None:
    """Penalise each cell's favourite tile in its neighbours, in place.

    Args:
        costs:              (cells, tiles) cost matrix; row i belongs to coords[i].
        coords:             Grid position of every row.
        penalty:            Extra cost for a duplicate at a given distance.
        distance_threshold: Cells this far apart or further are not penalised.
    """
    index = {c: i for i, c in enumerate(coords)}
    offsets = neighbour_offsets(distance_threshold)
    order = sorted(range(len(coords)), key=lambda i: coords[i].row_major_key())

    for i in order:
        here = coords[i]
        best = lowest_weight_item(costs[i])
        for dx, dy in offsets:
            j = index.get(here.offset(dx, dy))
            if j is None:
                continue
            p = penalty(abs(dx) + abs(dy))
            if p:
                costs[j, best] += p


class HolisticStrategy(TilingStrategy):
    """Best-match selection with a duplicate penalty between nearby cells."""

    def __init__(
        self,
        library: LibraryIndex,
        cell_size: tuple[int, int],
        sample_size: int | None = None,
        metric: str = "sqr",
        distance_threshold: int = 4,
        penalty: Penalty | None = None,
        penalty_divisor: int = 20,
        workers: int = 1,
    ) -> None:
        super().__init__(library, cell_size, sample_size, metric, workers)
        if distance_threshold <= 0:
            msg = f"distance_threshold must be positive, got {distance_threshold}"
            raise ValueError(msg)
        self.distance_threshold = distance_threshold
        self.penalty = penalty or penalty_by_distance(
            self.sample_size, distance_threshold, metric, penalty_divisor,
        )

    def choose(self, target: np.ndarray) -> list[TilePlacement]:
        rects = self.cells(target)
        if not rects:
            return []
        cost = self.cost_rows(target, rects)
        coords = [CellCoords.from_rect(r, self.cell_size) for r in rects]

        t0 = time.perf_counter()
        adjust_weights(cost, coords, self.penalty, self.distance_threshold)
        logger.debug("Penalty pass over %d cells (%.2f s)",
                     len(rects), time.perf_counter() - t0)

        placements = [
            TilePlacement(lowest_weight_item(row), rect)
            for rect, row in zip(rects, cost, strict=True)
        ]
        logger.info("Holistic: %d cells, %d distinct tiles",
                    len(placements), len({p.tile for p in placements}))
        return placements
