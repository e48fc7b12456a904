"""Tests for image I/O, the orchestration layer and the CLI."""

from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image
from typer.testing import CliRunner

from tile_mosaic.cli import app
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import EmptyLibrary, UnknownOption
from tile_mosaic.geometry import Rectangle
from tile_mosaic.image_io import (
    build_image,
    build_tile,
    choose_tile_area,
    crop,
    load_image,
    resize,
    save_image,
)
from tile_mosaic.library import LibraryIndex
from tile_mosaic.pipeline import (
    choose_tiles,
    load_library,
    make_mosaic,
    make_pile,
    make_tile,
    pile_placements,
    render_pile,
)

RED = (255, 0, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)

runner = CliRunner()


def solid(width: int, height: int, color: tuple[int, ...]) -> np.ndarray:
    return np.full((height, width, len(color)), color, dtype=np.uint8)


def write_png(path: Path, array: np.ndarray) -> Path:
    Image.fromarray(array).save(path)
    return path


@pytest.fixture
def library_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "tiles"
    folder.mkdir()
    write_png(folder / "a_red.png", solid(12, 12, RED))
    write_png(folder / "b_blue.png", solid(16, 8, BLUE))
    (folder / "notes.txt").write_text("not an image")
    (folder / "c_broken.png").write_bytes(b"definitely not a png")
    return folder


@pytest.fixture
def target_path(tmp_path: Path) -> Path:
    """40x20 target: left half red, right half blue."""
    img = solid(40, 20, RED)
    img[:, 20:] = BLUE
    return write_png(tmp_path / "target.png", img)


# -- Image I/O ---------------------------------------------------------

class TestImageIO:
    def test_central_square_for_portrait(self) -> None:
        assert choose_tile_area(10, 20) == Rectangle(0, 5, 10, 10)

    def test_central_square_for_landscape(self) -> None:
        assert choose_tile_area(20, 10) == Rectangle(5, 0, 10, 10)

    def test_build_tile(self) -> None:
        img = solid(30, 10, RED)
        img[:, 10:20] = BLUE
        tile = build_tile(img, 4)
        assert tile.shape == (4, 4, 3)
        assert (tile == BLUE).all()

    def test_resize_exact_size(self) -> None:
        out = resize(solid(7, 3, RED), 5, 9)
        assert out.shape == (9, 5, 3)

    def test_crop_is_region(self) -> None:
        img = np.arange(5 * 6 * 3, dtype=np.uint8).reshape(5, 6, 3)
        np.testing.assert_array_equal(crop(img, Rectangle(2, 1, 3, 2)), img[1:3, 2:5])

    def test_build_image_paints_later_over_earlier(self) -> None:
        out = build_image((10, 10), [(solid(4, 4, RED), 0, 0), (solid(4, 4, BLUE), 0, 0)])
        assert tuple(out[0, 0]) == BLUE

    def test_build_image_clips_negative_offsets(self) -> None:
        out = build_image((10, 10), [(solid(5, 5, WHITE), -2, -2)])
        assert out.shape == (10, 10, 3)
        assert tuple(out[2, 2]) == WHITE
        assert tuple(out[3, 3]) == (0, 0, 0)

    def test_build_image_clips_far_edge(self) -> None:
        out = build_image((10, 10), [(solid(5, 5, WHITE), 8, 9)])
        assert tuple(out[9, 9]) == WHITE
        assert tuple(out[8, 7]) == (0, 0, 0)

    def test_save_image_round_trip(self, tmp_path: Path) -> None:
        out = tmp_path / "out.jpg"
        save_image(solid(12, 6, RED), out)
        with Image.open(out) as img:
            assert img.format == "JPEG"
            assert img.size == (12, 6)

    def test_save_image_to_stream(self) -> None:
        buf = io.BytesIO()
        save_image(solid(4, 4, BLUE), buf)
        assert buf.getvalue()[:2] == b"\xff\xd8"

    def test_load_drops_alpha(self, tmp_path: Path) -> None:
        path = write_png(tmp_path / "rgba.png", solid(6, 4, (1, 2, 3, 0)))
        arr = load_image(path)
        assert arr.shape == (4, 6, 3)


# -- Orchestration -----------------------------------------------------

class TestPipeline:
    def test_load_library_skips_unreadable(self, library_dir: Path) -> None:
        library = load_library(library_dir, MosaicConfig(sample_size=2))
        assert [p.name for p in library.handles] == ["a_red.png", "b_blue.png"]

    @pytest.mark.parametrize("strategy", ["independent", "holistic"])
    def test_make_mosaic(
        self, target_path: Path, library_dir: Path, strategy: str,
    ) -> None:
        cfg = MosaicConfig(
            strategy=strategy, sample_size=2, cell_size=10, tile_size=20, workers=1,
        )
        mosaic = make_mosaic(target_path, library_dir, cfg)
        assert mosaic.shape == (40, 80, 3)
        assert tuple(mosaic[5, 5]) == RED
        assert tuple(mosaic[35, 75]) == BLUE

    def test_choose_tiles_one_per_cell(self, target_path: Path, library_dir: Path) -> None:
        cfg = MosaicConfig(strategy="independent", sample_size=2, cell_size=10)
        library = load_library(library_dir, cfg)
        placements = choose_tiles(load_image(target_path), library, cfg)
        assert len(placements) == 8
        by_cell = {(p.region.x, p.region.y): library.handle(p.tile).name for p in placements}
        assert by_cell[(0, 0)] == "a_red.png"
        assert by_cell[(30, 10)] == "b_blue.png"

    def test_empty_library_dir(self, target_path: Path, tmp_path: Path) -> None:
        (tmp_path / "empty").mkdir()
        with pytest.raises(EmptyLibrary):
            make_mosaic(target_path, tmp_path / "empty")

    def test_unknown_strategy(self, target_path: Path) -> None:
        library = LibraryIndex.from_buffers({"red": solid(10, 10, RED)})
        with pytest.raises(UnknownOption):
            choose_tiles(load_image(target_path), library, MosaicConfig(strategy="magic"))

    def test_make_pile(self, library_dir: Path) -> None:
        cfg = MosaicConfig(min_tiles=5, thumbnail_size=16, output_size=64, seed=1)
        pile = make_pile(library_dir, cfg)
        assert pile.shape == (64, 64, 3)

    def test_pile_is_seeded(self) -> None:
        tiles = [solid(20, 10, RED), solid(10, 30, BLUE)]
        cfg = MosaicConfig(min_tiles=9, thumbnail_size=8, output_size=32, seed=3)
        assert pile_placements(tiles, cfg) == pile_placements(tiles, cfg)
        np.testing.assert_array_equal(render_pile(tiles, cfg), render_pile(tiles, cfg))

    def test_empty_pile_is_blank(self) -> None:
        pile = render_pile([], MosaicConfig(output_size=16))
        assert pile.shape == (16, 16, 3)
        assert not pile.any()

    def test_make_tile(self, tmp_path: Path) -> None:
        src = write_png(tmp_path / "wide.png", solid(40, 20, RED))
        assert make_tile(src).shape == (128, 128, 3)
        assert make_tile(src, MosaicConfig(tile_thumbnail_size=16)).shape == (16, 16, 3)


# -- CLI ---------------------------------------------------------------

class TestCLI:
    def test_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "mosaic" in result.output

    def test_tile_to_file(self, tmp_path: Path) -> None:
        src = write_png(tmp_path / "src.png", solid(30, 20, BLUE))
        out = tmp_path / "nested" / "tile.jpg"
        result = runner.invoke(app, ["tile", str(src), "-o", str(out), "--size", "24"])
        assert result.exit_code == 0, result.output
        with Image.open(out) as img:
            assert img.size == (24, 24)

    def test_tile_to_stdout(self, tmp_path: Path) -> None:
        src = write_png(tmp_path / "src.png", solid(30, 20, BLUE))
        result = runner.invoke(app, ["tile", str(src), "--size", "8"])
        assert result.exit_code == 0
        assert result.stdout_bytes[:2] == b"\xff\xd8"

    def test_mosaic(self, tmp_path: Path, target_path: Path, library_dir: Path) -> None:
        out = tmp_path / "mosaic.jpg"
        result = runner.invoke(app, [
            "mosaic", str(target_path), str(library_dir), "-o", str(out),
            "--cell-size", "10", "--tile-size", "10", "--sample-size", "2",
        ])
        assert result.exit_code == 0, result.output
        with Image.open(out) as img:
            assert img.size == (40, 20)

    def test_mosaic_penalty_divisor(
        self, tmp_path: Path, target_path: Path, library_dir: Path,
    ) -> None:
        out = tmp_path / "mosaic.jpg"
        args = [
            "mosaic", str(target_path), str(library_dir), "-o", str(out),
            "--cell-size", "10", "--sample-size", "2",
        ]
        result = runner.invoke(app, [*args, "--penalty-divisor", "5"])
        assert result.exit_code == 0, result.output
        assert out.exists()

        result = runner.invoke(app, [*args, "--penalty-divisor", "0"])
        assert result.exit_code == 1

    def test_mosaic_empty_library_fails(self, tmp_path: Path, target_path: Path) -> None:
        (tmp_path / "none").mkdir()
        result = runner.invoke(app, [
            "mosaic", str(target_path), str(tmp_path / "none"),
            "-o", str(tmp_path / "x.jpg"),
        ])
        assert result.exit_code == 1
        assert not (tmp_path / "x.jpg").exists()

    def test_pile(self, tmp_path: Path, library_dir: Path) -> None:
        out = tmp_path / "pile.jpg"
        result = runner.invoke(app, [
            "pile", str(library_dir), "-o", str(out),
            "--min-tiles", "4", "--thumbnail-size", "8", "--size", "32", "--seed", "7",
        ])
        assert result.exit_code == 0, result.output
        with Image.open(out) as img:
            assert img.size == (32, 32)
