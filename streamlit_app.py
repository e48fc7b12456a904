"""
Tile Mosaic — Studio

Run with:
    streamlit run streamlit_app.py
"""

from __future__ import annotations

import io
import time

import numpy as np
import streamlit as st
from PIL import Image, ImageDraw

from tile_mosaic.config import MosaicConfig
from tile_mosaic.image_io import dimensions
from tile_mosaic.library import LibraryIndex
from tile_mosaic.pipeline import choose_tiles, draw_mosaic, render_pile

# -- Page config -------------------------------------------------------
st.set_page_config(
    page_title="Tile Mosaic",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="collapsed",
)

_DEFAULTS = MosaicConfig()

# -- CSS ---------------------------------------------------------------
st.markdown("""
<style>
    .stApp {
        background-color: #f7f6f2;
        color: #2a2a2a;
        font-family: 'Inter', 'Helvetica Neue', sans-serif;
    }
    .block-container {
        max-width: 1000px;
        padding-top: 3rem;
    }
    .studio-title {
        font-family: 'Georgia', serif;
        font-size: 2.6rem;
        font-weight: 300;
        text-align: center;
        border-bottom: 1px solid #1a1a1a;
        padding-bottom: 0.5rem;
        margin-bottom: 0.5rem;
    }
    .studio-subtitle {
        font-size: 0.8rem;
        font-weight: 300;
        line-height: 1.8;
        margin-bottom: 2.5rem;
    }
    .label-detail {
        text-align: center;
        font-size: 0.75rem;
        color: #777;
    }
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
""", unsafe_allow_html=True)


# -- Helpers -----------------------------------------------------------

def _add_passepartout(img: Image.Image, border: int = 20) -> Image.Image:
    w, h = img.size
    canvas = Image.new("RGB", (w + border * 2, h + border * 2), (247, 246, 242))
    canvas.paste(img, (border, border))
    draw = ImageDraw.Draw(canvas)
    draw.rectangle(
        [border - 1, border - 1, border + w, border + h],
        outline=(224, 222, 216), width=1,
    )
    return canvas


def _decode(data: bytes) -> np.ndarray:
    return np.array(Image.open(io.BytesIO(data)).convert("RGB"), dtype=np.uint8)


def _shrink(buffer: np.ndarray, max_side: int) -> np.ndarray:
    img = Image.fromarray(buffer)
    img.thumbnail((max_side, max_side), Image.BOX)
    return np.array(img, dtype=np.uint8)


def _download(image: np.ndarray, name: str) -> None:
    buf = io.BytesIO()
    Image.fromarray(image).save(buf, format="JPEG", quality=_DEFAULTS.jpeg_quality)
    _, dl_col, _ = st.columns([1, 2, 1])
    with dl_col:
        st.download_button(
            "SAVE",
            data=buf.getvalue(),
            file_name=name,
            mime="image/jpeg",
            use_container_width=True,
        )


# -- Title -------------------------------------------------------------
st.markdown('<div class="studio-title">Tile Mosaic</div>', unsafe_allow_html=True)
st.markdown(
    '<div class="studio-subtitle">'
    "Upload a target picture and a handful of library images. Each cell of "
    "the target is summarised as a small grid of colours and matched to the "
    "library image with the closest summary. The holistic strategy also "
    "makes a tile more expensive near cells that already use it, so flat "
    "areas are filled with a variety of images. Pile mode ignores colour "
    "and simply scatters the library across a canvas."
    "</div>",
    unsafe_allow_html=True,
)

mode = st.radio("Mode", ["Mosaic", "Pile"], horizontal=True)

library_files = st.file_uploader(
    "Library images",
    type=["jpg", "jpeg", "png", "webp", "bmp"],
    accept_multiple_files=True,
)
library_buffers = {f.name: _decode(f.getvalue()) for f in library_files or []}

if mode == "Mosaic":
    ctrl1, ctrl2, ctrl3 = st.columns(3)
    with ctrl1:
        strategy = st.selectbox("Strategy", ["holistic", "independent"])
        metric = st.selectbox("Metric", ["sqr", "abs"])
    with ctrl2:
        cell_size = st.slider("Cell size (px)", 4, 64, _DEFAULTS.cell_size)
        sample_size = st.slider("Samples", 1, 16, _DEFAULTS.sample_size)
    with ctrl3:
        tile_size = st.slider("Tile size (px)", 8, 128, 40)
        distance = st.slider("Penalty radius", 1, 10, _DEFAULTS.distance_threshold)

    target_file = st.file_uploader(
        "Target image", type=["jpg", "jpeg", "png", "webp", "bmp"],
    )

    if target_file is not None and library_buffers:
        target = _shrink(_decode(target_file.getvalue()), 640)
        cfg = MosaicConfig(
            strategy=strategy,
            metric=metric,
            cell_size=cell_size,
            sample_size=sample_size,
            tile_size=tile_size,
            distance_threshold=distance,
        )

        if st.button("COMPOSE", type="primary", use_container_width=True):
            t0 = time.perf_counter()
            library = LibraryIndex.from_buffers(library_buffers, cfg.sample_size)
            placements = choose_tiles(target, library, cfg)
            mosaic = draw_mosaic(
                target, placements, library, cfg, loader=library_buffers.__getitem__,
            )
            elapsed = time.perf_counter() - t0

            st.image(_add_passepartout(Image.fromarray(mosaic), 28),
                     use_container_width=True)
            _download(mosaic, "tile_mosaic.jpg")

            w, h = dimensions(target)
            m1, m2, m3, m4 = st.columns(4)
            m1.metric("Target", f"{w} × {h}")
            m2.metric("Cells", f"{len(placements):,}")
            m3.metric("Distinct tiles", f"{len({p.tile for p in placements}):,}")
            m4.metric("Time", f"{elapsed:.1f} s")
        else:
            st.image(target, use_container_width=True)
            st.markdown('<div class="label-detail">Target</div>', unsafe_allow_html=True)

else:
    ctrl1, ctrl2 = st.columns(2)
    with ctrl1:
        min_tiles = st.slider("Minimum tiles", 1, 512, _DEFAULTS.min_tiles)
    with ctrl2:
        thumb = st.slider("Thumbnail size (px)", 32, 512, _DEFAULTS.thumbnail_size)
        seed = st.number_input("Seed (0 = random)", min_value=0, value=0, step=1)

    if library_buffers and st.button("SCATTER", type="primary", use_container_width=True):
        cfg = MosaicConfig(min_tiles=min_tiles, thumbnail_size=thumb, seed=int(seed) or None)
        pile = render_pile(list(library_buffers.values()), cfg)
        st.image(_add_passepartout(Image.fromarray(pile), 28), use_container_width=True)
        _download(pile, "tile_pile.jpg")

if not library_buffers:
    st.markdown(
        '<p style="font-family: Georgia, serif; color: #bbb; font-style: italic; '
        'margin-top: 2rem;">Add some library images to begin.</p>',
        unsafe_allow_html=True,
    )
