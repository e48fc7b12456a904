"""
Tile Mosaic
===========

Approximate a target image with a mosaic of library images, or drop
the library into a random pile. Ships three placement strategies:

- **Independent** (best match per cell, duplicates allowed)
- **Holistic** (best match with a penalty for nearby duplicates)
- **Random pile** (no colour analysis)
"""

__version__ = "0.3.0"

from tile_mosaic.analysis import (
    ColorSample,
    Fingerprint,
    abs_diff,
    analyse,
    cost_matrix,
    diff,
    match_score,
    sqr_diff,
)
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import (
    EmptyLibrary,
    FingerprintSizeMismatch,
    MosaicError,
    UnknownOption,
)
from tile_mosaic.geometry import CellCoords, Rectangle, grid
from tile_mosaic.library import LibraryIndex
from tile_mosaic.pipeline import (
    choose_tiles,
    draw_mosaic,
    make_mosaic,
    make_pile,
    make_tile,
    render_mosaic,
    render_pile,
)
from tile_mosaic.strategy import TilePlacement, TilingStrategy
from tile_mosaic.strategy_holistic import HolisticStrategy, penalty_by_distance
from tile_mosaic.strategy_independent import IndependentStrategy
from tile_mosaic.strategy_pile import PilePlacement, RandomPileStrategy

__all__ = [
    "CellCoords",
    "ColorSample",
    "EmptyLibrary",
    "Fingerprint",
    "FingerprintSizeMismatch",
    "HolisticStrategy",
    "IndependentStrategy",
    "LibraryIndex",
    "MosaicConfig",
    "MosaicError",
    "PilePlacement",
    "RandomPileStrategy",
    "Rectangle",
    "TilePlacement",
    "TilingStrategy",
    "UnknownOption",
    "abs_diff",
    "analyse",
    "choose_tiles",
    "cost_matrix",
    "draw_mosaic",
    "diff",
    "grid",
    "make_mosaic",
    "make_pile",
    "make_tile",
    "match_score",
    "penalty_by_distance",
    "render_mosaic",
    "render_pile",
    "sqr_diff",
]
