"""Random pile placement: no colour analysis, just scattered tiles."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence
from typing import NamedTuple

import numpy as np

from tile_mosaic.config import MosaicConfig

logger = logging.getLogger(__name__)

MIN_TILES = MosaicConfig().min_tiles


class PilePlacement(NamedTuple):
    """Tile id and the top-left corner at which to draw it."""

    tile: int
    x: int
    y: int


class RandomPileStrategy:
    """Drop tiles at random offsets onto a canvas.

    Tiles are cycled in order until at least *min_tiles* placements
    exist (or every tile is used once, if there are more tiles). Each
    tile may spill up to its own size off the top/left edge and
    anywhere off the bottom/right. Later placements are meant to be
    painted over earlier ones.

    Args:
        sizes:     ``(width, height)`` of each tile; tile ids index this list.
        min_tiles: Minimum number of placements when any tile exists.
        rng:       Random generator; pass a seeded one for repeatable piles.
    """

    def __init__(
        self,
        sizes: Sequence[tuple[int, int]],
        min_tiles: int = MIN_TILES,
        rng: np.random.Generator | None = None,
    ) -> None:
        if min_tiles < 0:
            msg = f"min_tiles must not be negative, got {min_tiles}"
            raise ValueError(msg)
        self.sizes = list(sizes)
        self.min_tiles = min_tiles
        self.rng = rng if rng is not None else np.random.default_rng()

    def choose(self, canvas: tuple[int, int]) -> list[PilePlacement]:
        if not self.sizes:
            return []

        width, height = canvas
        count = max(self.min_tiles, len(self.sizes))
        ids = itertools.islice(itertools.cycle(range(len(self.sizes))), count)

        placements = []
        for tile in ids:
            tw, th = self.sizes[tile]
            x = int(self.rng.integers(-tw, width))
            y = int(self.rng.integers(-th, height))
            placements.append(PilePlacement(tile, x, y))

        logger.info("Pile: %d placements from %d tiles on %dx%d",
                    len(placements), len(self.sizes), width, height)
        return placements
