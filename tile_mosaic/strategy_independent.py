"""Greedy per-cell tile selection."""

from __future__ import annotations

import logging

import numpy as np

from tile_mosaic.strategy import TilePlacement, TilingStrategy, lowest_weight_item

logger = logging.getLogger(__name__)


class IndependentStrategy(TilingStrategy):
    """Pick the best-matching tile for each cell, ignoring all other cells.

    Identical cells always get the same tile, so flat areas of the
    target repeat a single tile.
    """

    def choose(self, target: np.ndarray) -> list[TilePlacement]:
        rects = self.cells(target)
        if not rects:
            return []
        cost = self.cost_rows(target, rects)
        placements = [
            TilePlacement(lowest_weight_item(row), rect)
            for rect, row in zip(rects, cost, strict=True)
        ]
        logger.info("Independent: %d cells, %d distinct tiles",
                    len(placements), len({p.tile for p in placements}))
        return placements
