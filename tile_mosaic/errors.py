"""Exceptions raised by the tile-selection engine."""

from __future__ import annotations


class MosaicError(Exception):
    """Base class for all tile_mosaic failures."""


class FingerprintSizeMismatch(MosaicError, ValueError):
    """Two fingerprints with different sample counts were compared."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(
            f"Cannot compare fingerprints of {left} and {right} samples",
        )
        self.left = left
        self.right = right


class EmptyLibrary(MosaicError, ValueError):
    """A matching strategy was asked to pick from an empty library."""

    def __init__(self) -> None:
        super().__init__("Library index is empty - no tiles to choose from")


class UnknownOption(MosaicError, ValueError):
    """An unrecognised metric or strategy name was requested."""

    def __init__(self, kind: str, value: str, available: list[str]) -> None:
        super().__init__(
            f"Unknown {kind} '{value}'. Available: {', '.join(sorted(available))}",
        )
        self.kind = kind
        self.value = value
