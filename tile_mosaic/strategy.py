"""Common contract and helpers for tile-matching strategies."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple

import numpy as np

from tile_mosaic.analysis import SAMPLE_SIZE, analyse, cost_matrix, get_metric
from tile_mosaic.errors import EmptyLibrary, FingerprintSizeMismatch
from tile_mosaic.geometry import Rectangle, grid
from tile_mosaic.image_io import crop, dimensions
from tile_mosaic.library import LibraryIndex

logger = logging.getLogger(__name__)


class TilePlacement(NamedTuple):
    """Library tile id and the region of the output it should fill."""

    tile: int
    region: Rectangle

    def scale(self, ratio: int) -> TilePlacement:
        return TilePlacement(self.tile, self.region.scale(ratio))


class TilingStrategy(ABC):
    """Pick library tiles for every cell of a target image."""

    def __init__(
        self,
        library: LibraryIndex,
        cell_size: tuple[int, int],
        sample_size: int | None = None,
        metric: str = "sqr",
        workers: int = 1,
    ) -> None:
        get_metric(metric)
        if sample_size is None:
            sample_size = library.sample_size
        elif sample_size != library.sample_size:
            # Cell fingerprints would never line up with the library's
            raise FingerprintSizeMismatch(sample_size ** 2, library.sample_size ** 2)
        self.library = library
        self.cell_size = cell_size
        self.sample_size = sample_size
        self.metric = metric
        self.workers = workers

    @abstractmethod
    def choose(self, target: np.ndarray) -> list[TilePlacement]:
        """Return one placement per grid cell of *target*."""

    def cells(self, target: np.ndarray) -> list[Rectangle]:
        return grid(dimensions(target), self.cell_size)

    def cost_rows(self, target: np.ndarray, rects: list[Rectangle]) -> np.ndarray:
        """Score every library tile against every cell.

        Returns:
            (len(rects), len(library)) int64 cost matrix.

        Raises:
            EmptyLibrary: if there is nothing to choose from.
        """
        if not self.library:
            raise EmptyLibrary
        t0 = time.perf_counter()
        cells = analyse_cells(target, rects, self.sample_size, self.workers)
        cost = cost_matrix(cells, self.library.colors, self.metric)
        logger.debug("Scored %d cells x %d tiles (%.2f s)",
                     len(rects), len(self.library), time.perf_counter() - t0)
        return cost


def analyse_cells(
    target: np.ndarray,
    rects: list[Rectangle],
    sample_size: int = SAMPLE_SIZE,
    workers: int = 1,
) -> np.ndarray:
    """Fingerprint each cell of *target*.

    Returns:
        (len(rects), sample_size**2, 3) uint8 array.
    """

    def one(rect: Rectangle) -> np.ndarray:
        return analyse(crop(target, rect), sample_size).colors

    if workers <= 1 or len(rects) <= 8:
        colors = [one(r) for r in rects]
    else:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            colors = list(ex.map(one, rects))

    if not colors:
        return np.empty((0, sample_size * sample_size, 3), dtype=np.uint8)
    return np.stack(colors)


def lowest_weight_item(weights: np.ndarray) -> int:
    """Id of the cheapest tile; ties go to the lowest id.

    Raises:
        EmptyLibrary: if *weights* is empty.
    """
    if weights.size == 0:
        raise EmptyLibrary
    return int(np.argmin(weights))
