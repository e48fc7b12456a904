"""Read-only index of library tiles and their fingerprints."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Hashable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Generic, TypeVar

import numpy as np

from tile_mosaic.analysis import SAMPLE_SIZE, Fingerprint, analyse, stack
from tile_mosaic.errors import FingerprintSizeMismatch

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)


class LibraryIndex(Generic[T]):
    """Arena of tile handles with a parallel array of fingerprints.

    Tile ids are dense integers in insertion order. The index never
    changes after construction, so it can be shared by any number of
    per-cell computations.
    """

    def __init__(
        self,
        handles: Sequence[T],
        fingerprints: Sequence[Fingerprint],
        sample_size: int = SAMPLE_SIZE,
    ) -> None:
        if len(handles) != len(fingerprints):
            msg = f"{len(handles)} handles but {len(fingerprints)} fingerprints"
            raise ValueError(msg)
        expected = sample_size * sample_size
        for fp in fingerprints:
            if len(fp) != expected:
                raise FingerprintSizeMismatch(len(fp), expected)
        self._handles: tuple[T, ...] = tuple(handles)
        self._fingerprints: tuple[Fingerprint, ...] = tuple(fingerprints)
        self._colors = stack(list(fingerprints))
        self._colors.flags.writeable = False
        self.sample_size = sample_size

    def __len__(self) -> int:
        return len(self._handles)

    def __bool__(self) -> bool:
        return bool(self._handles)

    def __repr__(self) -> str:
        return f"LibraryIndex({len(self)} tiles, sample_size={self.sample_size})"

    @property
    def colors(self) -> np.ndarray:
        """(n, sample_size**2, 3) uint8 read-only fingerprint stack."""
        return self._colors

    @property
    def handles(self) -> tuple[T, ...]:
        return self._handles

    def handle(self, tile: int) -> T:
        return self._handles[tile]

    def fingerprint(self, tile: int) -> Fingerprint:
        return self._fingerprints[tile]

    @classmethod
    def from_buffers(
        cls,
        buffers: dict[T, np.ndarray],
        sample_size: int = SAMPLE_SIZE,
    ) -> LibraryIndex[T]:
        """Index in-memory buffers, keyed by their handle."""
        handles = list(buffers)
        return cls(
            handles,
            [analyse(buffers[h], sample_size) for h in handles],
            sample_size,
        )

    @classmethod
    def build(
        cls,
        handles: Sequence[T],
        loader: Callable[[T], np.ndarray],
        sample_size: int = SAMPLE_SIZE,
        workers: int = 4,
    ) -> LibraryIndex[T]:
        """Load and fingerprint every handle.

        Handles whose image cannot be decoded are skipped with a
        warning. Fingerprinting runs on a thread pool of *workers*
        threads; the surviving handles keep their input order.
        """

        def probe(handle: T) -> Fingerprint | None:
            try:
                return analyse(loader(handle), sample_size)
            except OSError as exc:
                logger.warning("Skipping unreadable tile %s: %s", handle, exc)
                return None

        logger.info("Fingerprinting %d library images (%dx%d samples) …",
                    len(handles), sample_size, sample_size)
        t0 = time.perf_counter()
        if workers <= 1 or len(handles) <= 8:
            results = [probe(h) for h in handles]
        else:
            with ThreadPoolExecutor(max_workers=workers) as ex:
                results = list(ex.map(probe, handles))

        kept = [(h, f) for h, f in zip(handles, results, strict=True) if f is not None]
        logger.info("Library ready  %d/%d tiles  (%.1f s)",
                    len(kept), len(handles), time.perf_counter() - t0)
        return cls([h for h, _ in kept], [f for _, f in kept], sample_size)
