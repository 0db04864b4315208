from __future__ import annotations

from typing import Iterator, Sequence

import numpy as np

from chartview.raster.canvas import RGBA, draw_pixel, fill_rect


def draw_polyline(
    dst: np.ndarray,
    xs: np.ndarray,
    ys: np.ndarray,
    color: RGBA,
    width: int = 1,
    *,
    dash: Sequence[int] | None = None,
    closed: bool = False,
) -> None:
    """Stroke the vertices ``(xs[i], ys[i])`` with a square brush.

    ``dash`` alternates on/off run lengths in pixels and continues across
    vertices, so a dashed grid line keeps its rhythm over sampled arcs.
    """
    if xs.size < 2:
        return
    pts = np.column_stack([np.rint(xs), np.rint(ys)]).astype(np.int64)
    if closed and not np.array_equal(pts[0], pts[-1]):
        pts = np.vstack([pts, pts[:1]])
    pattern = [max(1, int(v)) for v in dash] if dash else None
    step = 0
    for (x0, y0), (x1, y1) in zip(pts[:-1].tolist(), pts[1:].tolist(), strict=False):
        for i, (x, y) in enumerate(_segment_pixels(x0, y0, x1, y1)):
            # Shared vertices are painted once, by the segment that ends there.
            if i == 0 and step > 0:
                continue
            if pattern is None or _dash_on(pattern, step):
                _draw_square_brush(dst, x, y, color=color, width=width)
            step += 1


def _segment_pixels(x0: int, y0: int, x1: int, y1: int) -> Iterator[tuple[int, int]]:
    dx = abs(x1 - x0)
    sx = 1 if x0 < x1 else -1
    dy = -abs(y1 - y0)
    sy = 1 if y0 < y1 else -1
    err = dx + dy

    while True:
        yield x0, y0
        if x0 == x1 and y0 == y1:
            return
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


def _dash_on(pattern: Sequence[int], step: int) -> bool:
    pos = step % sum(pattern)
    for i, run in enumerate(pattern):
        if pos < run:
            return i % 2 == 0
        pos -= run
    return True


def _draw_square_brush(dst: np.ndarray, x: int, y: int, color: RGBA, width: int) -> None:
    if width <= 1:
        draw_pixel(dst, x, y, color)
        return
    radius = width // 2
    fill_rect(dst, x - radius, y - radius, x + radius, y + radius, color)
