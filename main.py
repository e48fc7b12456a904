#!/usr/bin/env python3
"""
main.py — Quick-start entry point.

    python main.py mosaic target.jpg tiles/ > mosaic.jpg
    python main.py pile tiles/ -o pile.jpg
    python main.py tile photo.jpg > tile.jpg

Or use the installed CLI:

    tile-mosaic --help
"""

from tile_mosaic.cli import app

if __name__ == "__main__":
    app()
