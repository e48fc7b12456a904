"""Wire images, the library index and a strategy into finished pictures."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import numpy as np

from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import EmptyLibrary, UnknownOption
from tile_mosaic.image_io import (
    build_image,
    build_tile,
    dimensions,
    find_images,
    load_image,
    resize,
)
from tile_mosaic.library import LibraryIndex
from tile_mosaic.strategy import TilePlacement, TilingStrategy
from tile_mosaic.strategy_holistic import HolisticStrategy
from tile_mosaic.strategy_independent import IndependentStrategy
from tile_mosaic.strategy_pile import PilePlacement, RandomPileStrategy

logger = logging.getLogger(__name__)

STRATEGIES = ("independent", "holistic")


def make_strategy(library: LibraryIndex, cfg: MosaicConfig) -> TilingStrategy:
    """Instantiate the matching strategy named by ``cfg.strategy``."""
    cell = (cfg.cell_size, cfg.cell_size)
    if cfg.strategy == "independent":
        return IndependentStrategy(
            library, cell, cfg.sample_size, cfg.metric, cfg.workers,
        )
    if cfg.strategy == "holistic":
        return HolisticStrategy(
            library, cell, cfg.sample_size, cfg.metric,
            distance_threshold=cfg.distance_threshold,
            penalty_divisor=cfg.penalty_divisor,
            workers=cfg.workers,
        )
    raise UnknownOption("strategy", cfg.strategy, list(STRATEGIES))


def choose_tiles(
    target: np.ndarray,
    library: LibraryIndex,
    cfg: MosaicConfig | None = None,
) -> list[TilePlacement]:
    """Run the configured strategy over *target* at cell resolution."""
    cfg = cfg or MosaicConfig()
    if not library:
        raise EmptyLibrary
    strategy = make_strategy(library, cfg)
    w, h = dimensions(target)
    logger.info("Matching %dx%d target, %s strategy, %d-px cells, %d tiles",
                w, h, cfg.strategy, cfg.cell_size, len(library))
    t0 = time.perf_counter()
    placements = strategy.choose(target)
    logger.info("Selected %d placements  (%.1f s)",
                len(placements), time.perf_counter() - t0)
    return placements


def load_library(folder: Path, cfg: MosaicConfig) -> LibraryIndex[Path]:
    paths = find_images(Path(folder), cfg.SUPPORTED_EXTENSIONS)
    return LibraryIndex.build(paths, load_image, cfg.sample_size, cfg.workers)


def _drawables(
    placements: list[TilePlacement],
    library: LibraryIndex,
    loader: Callable[[object], np.ndarray],
) -> Iterator[tuple[np.ndarray, int, int]]:
    cache: dict[tuple[int, int, int], np.ndarray] = {}
    for tile, region in placements:
        key = (tile, region.width, region.height)
        if key not in cache:
            img = loader(library.handle(tile))
            cache[key] = resize(img, region.width, region.height)
        yield cache[key], region.x, region.y


def render_mosaic(
    target: np.ndarray,
    library: LibraryIndex,
    cfg: MosaicConfig | None = None,
    loader: Callable[[object], np.ndarray] = load_image,
) -> np.ndarray:
    """Build a mosaic of *target* from an already-indexed library.

    Cells of ``cfg.cell_size`` are drawn as ``cfg.tile_size`` squares,
    so the output is the target enlarged by the same ratio. *loader*
    turns a tile handle back into pixels for drawing.
    """
    cfg = cfg or MosaicConfig()
    placements = choose_tiles(target, library, cfg)
    return draw_mosaic(target, placements, library, cfg, loader)


def draw_mosaic(
    target: np.ndarray,
    placements: list[TilePlacement],
    library: LibraryIndex,
    cfg: MosaicConfig | None = None,
    loader: Callable[[object], np.ndarray] = load_image,
) -> np.ndarray:
    """Composite cell-resolution *placements* at ``cfg.scale_ratio``."""
    cfg = cfg or MosaicConfig()
    ratio = cfg.scale_ratio
    scaled = [p.scale(ratio) for p in placements]
    w, h = dimensions(target)
    return build_image((w * ratio, h * ratio), _drawables(scaled, library, loader))


def make_mosaic(
    target_path: str | Path,
    library_dir: str | Path,
    cfg: MosaicConfig | None = None,
) -> np.ndarray:
    """Load a target and a folder of tiles and return the mosaic."""
    cfg = cfg or MosaicConfig()
    target = load_image(target_path)
    library = load_library(Path(library_dir), cfg)
    return render_mosaic(target, library, cfg)


def pile_placements(
    tiles: list[np.ndarray],
    cfg: MosaicConfig | None = None,
    rng: np.random.Generator | None = None,
) -> list[PilePlacement]:
    cfg = cfg or MosaicConfig()
    rng = rng if rng is not None else np.random.default_rng(cfg.seed)
    strategy = RandomPileStrategy(
        [dimensions(t) for t in tiles], cfg.min_tiles, rng,
    )
    return strategy.choose((cfg.output_size, cfg.output_size))


def render_pile(
    tiles: list[np.ndarray],
    cfg: MosaicConfig | None = None,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Scatter square thumbnails of *tiles* over a square canvas."""
    cfg = cfg or MosaicConfig()
    thumbs = [build_tile(t, cfg.thumbnail_size) for t in tiles]
    placements = pile_placements(thumbs, cfg, rng)
    return build_image(
        (cfg.output_size, cfg.output_size),
        ((thumbs[p.tile], p.x, p.y) for p in placements),
    )


def make_pile(
    library_dir: str | Path,
    cfg: MosaicConfig | None = None,
) -> np.ndarray:
    """Load a folder of images and return a random pile of them."""
    cfg = cfg or MosaicConfig()
    tiles = []
    for path in find_images(Path(library_dir), cfg.SUPPORTED_EXTENSIONS):
        try:
            tiles.append(load_image(path))
        except OSError as exc:
            logger.warning("Skipping unreadable image %s: %s", path, exc)
    logger.info("Pile of %d images", len(tiles))
    return render_pile(tiles, cfg)


def make_tile(
    source_path: str | Path,
    cfg: MosaicConfig | None = None,
) -> np.ndarray:
    """Square thumbnail of the centre of *source_path*."""
    cfg = cfg or MosaicConfig()
    return build_tile(load_image(source_path), cfg.tile_thumbnail_size)
