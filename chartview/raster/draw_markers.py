from __future__ import annotations

import numpy as np

from chartview.raster.canvas import RGBA, draw_hline, fill_polygon, fill_rect
from chartview.raster.draw_lines import draw_polyline


MARKER_SYMBOLS = ("circle", "square", "triangle", "diamond")


def draw_marker(
    dst: np.ndarray,
    x: int,
    y: int,
    *,
    radius: int,
    symbol: str = "circle",
    fill: RGBA | None = None,
    stroke: RGBA | None = None,
) -> None:
    """Paint one point marker centred on (x, y).

    ``hollow_<symbol>`` and unknown symbols fall back to their outline and a
    circle respectively.
    """
    base = symbol[len("hollow_"):] if symbol.startswith("hollow_") else symbol
    if base not in MARKER_SYMBOLS:
        base = "circle"
    if base == "circle":
        if fill is not None:
            draw_disc(dst, x, y, fill, radius)
        if stroke is not None and stroke != fill:
            _draw_ring(dst, x, y, stroke, radius)
        return
    if base == "square":
        if fill is not None:
            fill_rect(dst, x - radius, y - radius, x + radius, y + radius, fill)
        xs = np.asarray([x - radius, x + radius, x + radius, x - radius], dtype=np.float64)
        ys = np.asarray([y - radius, y - radius, y + radius, y + radius], dtype=np.float64)
    elif base == "triangle":
        xs = np.asarray([x, x + radius, x - radius], dtype=np.float64)
        ys = np.asarray([y - radius, y + radius, y + radius], dtype=np.float64)
        if fill is not None:
            fill_polygon(dst, xs, ys, fill)
    else:
        xs = np.asarray([x, x + radius, x, x - radius], dtype=np.float64)
        ys = np.asarray([y - radius, y, y + radius, y], dtype=np.float64)
        if fill is not None:
            fill_polygon(dst, xs, ys, fill)
    if stroke is not None and stroke != fill:
        draw_polyline(dst, xs, ys, stroke, closed=True)


def draw_disc(dst: np.ndarray, x: int, y: int, color: RGBA, radius: int) -> None:
    for dy in range(-radius, radius + 1):
        half = int(np.floor(np.sqrt(max(0, radius * radius - dy * dy))))
        draw_hline(dst, x - half, x + half, y + dy, color)


def _draw_ring(dst: np.ndarray, x: int, y: int, color: RGBA, radius: int) -> None:
    steps = max(8, int(2 * np.pi * max(1, radius)))
    theta = np.linspace(0.0, 2 * np.pi, steps, endpoint=False)
    draw_polyline(dst, x + radius * np.cos(theta), y + radius * np.sin(theta), color, closed=True)
