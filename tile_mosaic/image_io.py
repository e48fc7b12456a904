"""Image loading, resizing, cropping, compositing and saving.

These are the pixel-layer primitives the tile-selection engine calls
into. Pixel buffers are ``(H, W, 3)`` or ``(H, W, 4)`` uint8 arrays;
alpha never takes part in analysis.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO

import numpy as np
from PIL import Image

from tile_mosaic.geometry import Rectangle

STDOUT = "-"


def load_image(path: str | Path) -> np.ndarray:
    """Decode an image file.

    Returns:
        (H, W, 3) uint8 array.
    """
    with Image.open(path) as img:
        return np.array(img.convert("RGB"), dtype=np.uint8)


def to_rgb(buffer: np.ndarray) -> np.ndarray:
    """Drop the alpha channel (if any) without premultiplying it."""
    if buffer.ndim == 2:
        return np.repeat(buffer[:, :, np.newaxis], 3, axis=2)
    return buffer[:, :, :3]


def dimensions(buffer: np.ndarray) -> tuple[int, int]:
    """``(width, height)`` of a pixel buffer."""
    h, w = buffer.shape[:2]
    return w, h


def resize(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """Area-average resize to exactly *width* x *height*.

    Works in both directions: buffers smaller than the requested size
    are upsampled.
    """
    rgb = np.ascontiguousarray(to_rgb(buffer), dtype=np.uint8)
    if rgb.shape[:2] == (height, width):
        return rgb
    img = Image.fromarray(rgb).resize((width, height), Image.BOX)
    return np.array(img, dtype=np.uint8)


def crop(buffer: np.ndarray, rect: Rectangle) -> np.ndarray:
    """Return a view of *rect* within *buffer*."""
    return buffer[rect.y:rect.y + rect.height, rect.x:rect.x + rect.width]


def choose_tile_area(width: int, height: int) -> Rectangle:
    """Largest centred square inside a ``width`` x ``height`` image."""
    if width < height:
        return Rectangle(0, (height - width) // 2, width, width)
    return Rectangle((width - height) // 2, 0, height, height)


def build_tile(buffer: np.ndarray, size: int) -> np.ndarray:
    """Crop the central square of *buffer* and resize it to *size* x *size*."""
    w, h = dimensions(buffer)
    return resize(crop(buffer, choose_tile_area(w, h)), size, size)


def build_image(
    size: tuple[int, int],
    drawables: Iterable[tuple[np.ndarray, int, int]],
) -> np.ndarray:
    """Composite ``(buffer, x, y)`` items onto a black canvas.

    Items are painted in order, later ones over earlier ones. Offsets
    may be negative and tiles may spill past the canvas edge; the
    overflow is clipped.

    Returns:
        (H, W, 3) uint8 array of *size* ``(width, height)``.
    """
    canvas = Image.new("RGB", size, (0, 0, 0))
    for buffer, x, y in drawables:
        tile = Image.fromarray(np.ascontiguousarray(to_rgb(buffer), dtype=np.uint8))
        canvas.paste(tile, (int(x), int(y)))
    return np.array(canvas, dtype=np.uint8)


def save_image(
    buffer: np.ndarray,
    dest: str | Path | BinaryIO,
    quality: int = 90,
) -> None:
    """Encode *buffer* as JPEG.

    *dest* may be a path, an open binary stream, or ``"-"`` for stdout.
    """
    img = Image.fromarray(np.ascontiguousarray(to_rgb(buffer), dtype=np.uint8))
    if isinstance(dest, str) and dest == STDOUT:
        img.save(sys.stdout.buffer, format="JPEG", quality=quality)
        sys.stdout.buffer.flush()
    else:
        img.save(dest, format="JPEG", quality=quality)


def find_images(folder: Path, extensions: frozenset[str]) -> list[Path]:
    """Sorted image paths directly inside *folder*."""
    if not folder.exists():
        return []
    return sorted(
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() in extensions
    )
