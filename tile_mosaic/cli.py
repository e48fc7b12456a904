"""Rich command-line interface powered by Typer.

Images are written as JPEG to ``--output`` or, by default, to stdout,
so all console and log output goes to stderr.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import MosaicError
from tile_mosaic.image_io import STDOUT, dimensions, save_image
from tile_mosaic.pipeline import make_mosaic, make_pile, make_tile

app = typer.Typer(
    name="tile-mosaic",
    help="Build photo mosaics and random piles from a library of images.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
        force=True,
    )


def _write(image: np.ndarray, output: str, quality: int, t0: float) -> None:
    if output != STDOUT:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
    save_image(image, output, quality)
    w, h = dimensions(image)
    target = "stdout" if output == STDOUT else output
    console.print(
        f"[green]✓[/green] Saved to {target}  "
        f"[dim]{w}x{h}  time={time.perf_counter() - t0:.1f}s[/dim]"
    )


def _fail(exc: Exception) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {exc}")
    return typer.Exit(1)


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


# -- mosaic command ----------------------------------------------------

@app.command()
def mosaic(
    target: Path = typer.Argument(..., help="Image to approximate"),
    library: Path = typer.Argument(..., help="Folder of tile images"),
    output: str = typer.Option(
        STDOUT, "--output", "-o", help="JPEG path, or '-' for stdout",
    ),
    strategy: str = typer.Option(
        _DEFAULTS.strategy, "--strategy", help="'independent' or 'holistic'",
    ),
    metric: str = typer.Option(
        _DEFAULTS.metric, "--metric", help="Colour distance: 'sqr' or 'abs'",
    ),
    sample_size: int = typer.Option(
        _DEFAULTS.sample_size, "--sample-size", "-s",
        help="Fingerprint grid resolution (n x n)",
    ),
    cell_size: int = typer.Option(
        _DEFAULTS.cell_size, "--cell-size", "-c", help="Target cell side in pixels",
    ),
    tile_size: int = typer.Option(
        _DEFAULTS.tile_size, "--tile-size", "-t", help="Drawn tile side in pixels",
    ),
    distance: int = typer.Option(
        _DEFAULTS.distance_threshold, "--distance",
        help="Duplicate penalty radius in cells (holistic only)",
    ),
    penalty_divisor: int = typer.Option(
        _DEFAULTS.penalty_divisor, "--penalty-divisor",
        help="Larger values weaken the duplicate penalty (holistic only)",
    ),
    workers: int = typer.Option(
        _DEFAULTS.workers, "--workers", "-w", help="Fingerprinting threads",
    ),
    quality: int = typer.Option(_DEFAULTS.jpeg_quality, "--quality", "-q"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Build a mosaic of TARGET out of the images in LIBRARY."""
    _setup_logging(verbose)
    t0 = time.perf_counter()

    try:
        cfg = MosaicConfig(
            strategy=strategy,
            metric=metric,
            sample_size=sample_size,
            cell_size=cell_size,
            tile_size=tile_size,
            distance_threshold=distance,
            penalty_divisor=penalty_divisor,
            workers=workers,
            jpeg_quality=quality,
        )
        console.print(Panel.fit(
            f"[bold]TILE MOSAIC[/bold]\n"
            f"Strategy: {cfg.strategy}  |  Metric: {cfg.metric}\n"
            f"Samples: {cfg.sample_size}x{cfg.sample_size}  |  "
            f"Cells: {cfg.cell_size}px -> {cfg.tile_size}px",
            border_style="cyan",
        ))
        image = make_mosaic(target, library, cfg)
    except (MosaicError, ValueError, OSError) as exc:
        raise _fail(exc) from exc

    _write(image, output, cfg.jpeg_quality, t0)


# -- pile command ------------------------------------------------------

@app.command()
def pile(
    library: Path = typer.Argument(..., help="Folder of tile images"),
    output: str = typer.Option(
        STDOUT, "--output", "-o", help="JPEG path, or '-' for stdout",
    ),
    min_tiles: int = typer.Option(
        _DEFAULTS.min_tiles, "--min-tiles", "-n",
        help="Repeat images until at least this many are placed",
    ),
    thumbnail_size: int = typer.Option(
        _DEFAULTS.thumbnail_size, "--thumbnail-size", help="Side of each thumbnail",
    ),
    output_size: int = typer.Option(
        _DEFAULTS.output_size, "--size", help="Side of the square canvas",
    ),
    seed: int | None = typer.Option(
        _DEFAULTS.seed, "--seed", help="Random seed (None = random)",
    ),
    quality: int = typer.Option(_DEFAULTS.jpeg_quality, "--quality", "-q"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Scatter square thumbnails of LIBRARY images into a random pile."""
    _setup_logging(verbose)
    t0 = time.perf_counter()

    try:
        cfg = MosaicConfig(
            min_tiles=min_tiles,
            thumbnail_size=thumbnail_size,
            output_size=output_size,
            seed=seed,
            jpeg_quality=quality,
        )
        image = make_pile(library, cfg)
    except (MosaicError, ValueError, OSError) as exc:
        raise _fail(exc) from exc

    _write(image, output, cfg.jpeg_quality, t0)


# -- tile command ------------------------------------------------------

@app.command()
def tile(
    source: Path = typer.Argument(..., help="Image to turn into a tile"),
    output: str = typer.Option(
        STDOUT, "--output", "-o", help="JPEG path, or '-' for stdout",
    ),
    size: int = typer.Option(
        _DEFAULTS.tile_thumbnail_size, "--size", help="Side of the square tile",
    ),
    quality: int = typer.Option(_DEFAULTS.jpeg_quality, "--quality", "-q"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Crop the centre square of SOURCE and shrink it to a tile."""
    _setup_logging(verbose)
    t0 = time.perf_counter()

    try:
        cfg = MosaicConfig(tile_thumbnail_size=size, jpeg_quality=quality)
        image = make_tile(source, cfg)
    except (MosaicError, ValueError, OSError) as exc:
        raise _fail(exc) from exc

    _write(image, output, cfg.jpeg_quality, t0)


if __name__ == "__main__":
    app()
