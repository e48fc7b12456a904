"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for a mosaic or pile run.

    Attributes:
        sample_size:        Fingerprint grid resolution (n x n samples).
        cell_size:          Side of a square target cell, in pixels.
        tile_size:          Side of each drawn tile in the mosaic output.
        metric:             Per-colour distance - "sqr" or "abs".
        strategy:           "independent" or "holistic".
        distance_threshold: Manhattan radius (in cells) of the duplicate penalty.
        penalty_divisor:    Scales down the maximum duplicate penalty.
        min_tiles:          Minimum number of tiles dropped onto a pile.
        thumbnail_size:     Side of square pile thumbnails.
        output_size:        Side of the square pile canvas.
        tile_thumbnail_size: Side of the square built by the ``tile`` command.
        seed:               Pile random seed (None = non-deterministic).
        workers:            Thread-pool size for fingerprinting (<= 1 = inline).
        jpeg_quality:       Encoder quality for saved images.
    """

    # Analysis
    sample_size: int = 8
    metric: str = "sqr"  # "sqr" | "abs"

    # Mosaic
    cell_size: int = 20
    tile_size: int = 100
    strategy: str = "holistic"  # "independent" | "holistic"

    # Duplicate penalty
    distance_threshold: int = 4
    penalty_divisor: int = 20

    # Pile
    min_tiles: int = 128
    thumbnail_size: int = 256
    output_size: int = 1024
    seed: int | None = None

    # Tile command
    tile_thumbnail_size: int = 128

    # Execution / output
    workers: int = 4
    jpeg_quality: int = 90

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".gif"}
    )

    def __post_init__(self) -> None:
        for name in ("sample_size", "cell_size", "tile_size", "distance_threshold",
                     "penalty_divisor", "thumbnail_size", "output_size",
                     "tile_thumbnail_size"):
            if getattr(self, name) <= 0:
                msg = f"{name} must be positive, got {getattr(self, name)}"
                raise ValueError(msg)
        if self.min_tiles < 0:
            msg = f"min_tiles must not be negative, got {self.min_tiles}"
            raise ValueError(msg)

    @property
    def scale_ratio(self) -> int:
        """Factor by which mosaic cells are enlarged when drawn."""
        return max(1, self.tile_size // self.cell_size)
