"""Colour fingerprints and the distances between them."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from scipy.spatial.distance import cdist

from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import FingerprintSizeMismatch, UnknownOption
from tile_mosaic.image_io import dimensions, resize

SAMPLE_SIZE = MosaicConfig().sample_size


class ColorSample(NamedTuple):
    """One RGB sample; alpha is ignored."""

    red: int
    green: int
    blue: int


@dataclass(frozen=True, eq=False)
class Fingerprint:
    """Downsampled colour grid summarising an image.

    Attributes:
        width:  Width of the analysed buffer in pixels.
        height: Height of the analysed buffer in pixels.
        colors: (sample_size**2, 3) uint8, row-major over the sample grid.
    """

    width: int
    height: int
    colors: np.ndarray

    def __len__(self) -> int:
        return len(self.colors)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fingerprint):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and np.array_equal(self.colors, other.colors)
        )

    @property
    def samples(self) -> Iterator[ColorSample]:
        for r, g, b in self.colors.tolist():
            yield ColorSample(r, g, b)


def analyse(buffer: np.ndarray, sample_size: int = SAMPLE_SIZE) -> Fingerprint:
    """Fingerprint a pixel buffer.

    The buffer is area-averaged down (or up) to *sample_size* x
    *sample_size* and each resulting pixel becomes one sample. Library
    tiles and target cells must go through this same function or their
    fingerprints are not comparable.
    """
    if sample_size <= 0:
        msg = f"sample_size must be positive, got {sample_size}"
        raise ValueError(msg)
    w, h = dimensions(buffer)
    tiny = resize(buffer, sample_size, sample_size)
    colors = tiny.reshape(-1, 3).copy()
    colors.flags.writeable = False
    return Fingerprint(width=w, height=h, colors=colors)


# -- Per-colour distances ----------------------------------------------

def abs_diff(a: ColorSample, b: ColorSample) -> int:
    """Sum of absolute channel differences, 0 .. 765."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1]) + abs(a[2] - b[2])


def sqr_diff(a: ColorSample, b: ColorSample) -> int:
    """Sum of squared channel differences, 0 .. 195075."""
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2


class Metric(NamedTuple):
    name: str
    cdist_metric: str
    max_sample_distance: int

    def rows(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Per-sample distances between two (N, 3) colour arrays."""
        d = a.astype(np.int32) - b.astype(np.int32)
        if self.name == "abs":
            return np.abs(d).sum(axis=1, dtype=np.int32)
        return (d * d).sum(axis=1, dtype=np.int32)


METRICS: dict[str, Metric] = {
    "abs": Metric("abs", "cityblock", 3 * 255),
    "sqr": Metric("sqr", "sqeuclidean", 3 * 255 * 255),
}


def get_metric(name: str) -> Metric:
    metric = METRICS.get(name)
    if metric is None:
        raise UnknownOption("metric", name, list(METRICS))
    return metric


# -- Fingerprint comparison --------------------------------------------

def diff(a: Fingerprint, b: Fingerprint, metric: str = "sqr") -> np.ndarray:
    """Per-sample distances between two fingerprints, paired by position.

    Raises:
        FingerprintSizeMismatch: if the sample counts differ.

    Returns:
        (N,) int32 array.
    """
    if len(a) != len(b):
        raise FingerprintSizeMismatch(len(a), len(b))
    return get_metric(metric).rows(a.colors, b.colors)


def match_score(a: Fingerprint, b: Fingerprint, metric: str = "sqr") -> int:
    """Aggregate distance used to rank tiles; lower is better."""
    return int(diff(a, b, metric).sum(dtype=np.int64))


def stack(fingerprints: list[Fingerprint]) -> np.ndarray:
    """Stack fingerprints into an (n, samples, 3) uint8 array."""
    if not fingerprints:
        return np.empty((0, 0, 3), dtype=np.uint8)
    sizes = {len(f) for f in fingerprints}
    if len(sizes) > 1:
        lo, hi = min(sizes), max(sizes)
        raise FingerprintSizeMismatch(lo, hi)
    return np.stack([f.colors for f in fingerprints])


def cost_matrix(
    cells: np.ndarray,
    library: np.ndarray,
    metric: str = "sqr",
    chunk_size: int = 512,
) -> np.ndarray:
    """Aggregate match score of every library tile against every cell.

    The per-sample sums of :func:`abs_diff` / :func:`sqr_diff` over a
    fingerprint equal the L1 / squared-L2 distance between the
    flattened colour arrays, so the whole table is one ``cdist`` call.

    Args:
        cells:      (k, samples, 3) uint8 cell fingerprints.
        library:    (n, samples, 3) uint8 tile fingerprints.
        metric:     ``"sqr"`` or ``"abs"``.
        chunk_size: Cell rows computed per batch (controls peak RAM).

    Returns:
        (k, n) int64 cost matrix.
    """
    m = get_metric(metric)
    k, n = len(cells), len(library)
    cost = np.zeros((k, n), dtype=np.int64)
    if k == 0 or n == 0:
        return cost
    if cells.shape[1:] != library.shape[1:]:
        raise FingerprintSizeMismatch(cells.shape[1], library.shape[1])

    lib_flat = library.reshape(n, -1).astype(np.float64)
    cell_flat = cells.reshape(k, -1).astype(np.float64)
    for i in range(0, k, chunk_size):
        j = min(i + chunk_size, k)
        cost[i:j] = np.rint(cdist(cell_flat[i:j], lib_flat, m.cdist_metric))
    return cost
