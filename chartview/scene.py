"""In-memory scene graph used as the drawing surface for chart views.

The chart core only talks to the three capability protocols below. ``Group``,
``Shape`` and ``Canvas`` are the bundled implementation; ``Canvas.draw`` flushes
the tree into an RGBA ``numpy`` frame through :mod:`chartview.raster`.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Iterator, Mapping, Protocol, Sequence

import numpy as np

from chartview.raster import (
    draw_disc,
    draw_marker,
    draw_polyline,
    draw_text,
    fill_polygon,
    fill_rect,
    new_canvas,
    parse_color,
)


LOGGER = logging.getLogger(__name__)

SHAPE_TYPES = frozenset({"path", "circle", "rect", "line", "text", "marker"})
_MISSING = object()
_ids = itertools.count(1)


class Primitive(Protocol):
    def get(self, key: str) -> Any:
        ...

    def attr(self, name: Any = None, value: Any = _MISSING) -> Any:
        ...

    def remove(self) -> None:
        ...


class DrawingGroup(Protocol):
    def add_group(self, **cfg: Any) -> "DrawingGroup":
        ...

    def add_shape(self, shape_type: str, attrs: Mapping[str, Any] | None = None, **cfg: Any) -> Primitive:
        ...

    def remove_child(self, child: Any) -> None:
        ...

    def get_children(self) -> list[Any]:
        ...

    def get_count(self) -> int:
        ...


class Surface(Protocol):
    def draw(self) -> None:
        ...


class Element:
    element_type = "element"

    def __init__(self, attrs: Mapping[str, Any] | None = None, **cfg: Any) -> None:
        self._attrs: dict[str, Any] = dict(attrs or {})
        self._cfg: dict[str, Any] = {"visible": True, "z_index": 0, "id": f"el-{next(_ids)}"}
        self._cfg.update(cfg)
        self.parent: Group | None = None
        self.destroyed = False

    def get(self, key: str) -> Any:
        if key == "type":
            return self.element_type
        if key == "parent":
            return self.parent
        return self._cfg.get(key)

    def set(self, key: str, value: Any) -> "Element":
        self._cfg[key] = value
        return self

    def attr(self, name: Any = None, value: Any = _MISSING) -> Any:
        if name is None:
            return dict(self._attrs)
        if isinstance(name, Mapping):
            self._attrs.update(name)
            return self
        if value is _MISSING:
            return self._attrs.get(name)
        self._attrs[name] = value
        return self

    def show(self) -> "Element":
        self._cfg["visible"] = True
        return self

    def hide(self) -> "Element":
        self._cfg["visible"] = False
        return self

    @property
    def visible(self) -> bool:
        return bool(self._cfg.get("visible", True))

    def remove(self, destroy: bool = True) -> None:
        if self.parent is not None:
            self.parent.remove_child(self)
        if destroy:
            self.destroy()

    def destroy(self) -> None:
        self._attrs.clear()
        self.destroyed = True


class Shape(Element):
    def __init__(self, shape_type: str, attrs: Mapping[str, Any] | None = None, **cfg: Any) -> None:
        if shape_type not in SHAPE_TYPES:
            raise ValueError(f"unknown shape type: {shape_type}")
        super().__init__(attrs, **cfg)
        self.shape_type = shape_type

    def get(self, key: str) -> Any:
        if key == "type":
            return self.shape_type
        return super().get(key)

    def __repr__(self) -> str:
        return f"Shape({self.shape_type!r}, id={self.get('id')!r})"


class Group(Element):
    element_type = "group"

    def __init__(self, attrs: Mapping[str, Any] | None = None, **cfg: Any) -> None:
        super().__init__(attrs, **cfg)
        self._children: list[Element] = []

    def add_group(self, **cfg: Any) -> "Group":
        group = Group(**cfg)
        self.add(group)
        return group

    def add_shape(self, shape_type: str, attrs: Mapping[str, Any] | None = None, **cfg: Any) -> Shape:
        shape = Shape(shape_type, attrs, **cfg)
        self.add(shape)
        return shape

    def add(self, element: Element) -> Element:
        if element.parent is not None:
            element.parent.remove_child(element)
        element.parent = self
        self._children.append(element)
        return element

    def remove_child(self, child: Element) -> None:
        try:
            self._children.remove(child)
        except ValueError:
            return
        child.parent = None

    def get_children(self) -> list[Element]:
        return list(self._children)

    def get_count(self) -> int:
        return len(self._children)

    def get_first(self) -> Element | None:
        return self._children[0] if self._children else None

    def get_last(self) -> Element | None:
        return self._children[-1] if self._children else None

    def contains(self, element: Element) -> bool:
        return element in self._children

    def find_by_id(self, element_id: str) -> Element | None:
        for child in self.iter_descendants():
            if child.get("id") == element_id:
                return child
        return None

    def iter_descendants(self) -> Iterator[Element]:
        for child in self._children:
            yield child
            if isinstance(child, Group):
                yield from child.iter_descendants()

    def clear(self) -> None:
        for child in list(self._children):
            child.remove(destroy=True)

    def destroy(self) -> None:
        self.clear()
        super().destroy()

    def __repr__(self) -> str:
        return f"Group(id={self.get('id')!r}, children={len(self._children)})"


class Canvas(Group):
    """Root group and flushing surface."""

    element_type = "canvas"

    def __init__(self, width: int, height: int, *, background: Any = None) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("canvas width/height must be > 0")
        super().__init__()
        self.width = int(width)
        self.height = int(height)
        self.background = background
        self.draw_count = 0
        self._last_frame: np.ndarray | None = None

    def draw(self) -> None:
        bg = parse_color(self.background) or (0, 0, 0, 0)
        frame = new_canvas(self.width, self.height, color=bg)
        _paint_group(frame, self)
        self._last_frame = frame
        self.draw_count += 1
        LOGGER.debug("canvas flushed; draw_count=%d", self.draw_count)

    def last_frame(self) -> np.ndarray | None:
        if self._last_frame is None:
            return None
        return self._last_frame.copy()


def _paint_group(frame: np.ndarray, group: Group) -> None:
    children = sorted(group.get_children(), key=lambda el: el.get("z_index") or 0)
    for child in children:
        if not child.visible:
            continue
        if isinstance(child, Group):
            _paint_group(frame, child)
        elif isinstance(child, Shape):
            _paint_shape(frame, child)


def _paint_shape(frame: np.ndarray, shape: Shape) -> None:
    attrs = shape.attr()
    opacity = float(attrs.get("opacity", 1.0))
    stroke = parse_color(attrs.get("stroke"), opacity)
    fill = parse_color(attrs.get("fill"), opacity)
    width = max(1, int(round(float(attrs.get("line_width", 1)))))
    dash = attrs.get("line_dash")
    kind = shape.shape_type

    if kind == "path":
        for xs, ys, closed in _subpaths(attrs.get("path") or ()):
            if fill is not None and closed:
                fill_polygon(frame, xs, ys, fill)
            if stroke is not None:
                draw_polyline(frame, xs, ys, stroke, width=width, dash=dash, closed=closed and xs.size > 2)
    elif kind == "line":
        if stroke is not None:
            xs = np.asarray([attrs.get("x1", 0.0), attrs.get("x2", 0.0)], dtype=np.float64)
            ys = np.asarray([attrs.get("y1", 0.0), attrs.get("y2", 0.0)], dtype=np.float64)
            draw_polyline(frame, xs, ys, stroke, width=width, dash=dash)
    elif kind == "circle":
        color = fill or stroke
        if color is not None:
            draw_disc(
                frame,
                int(round(attrs.get("x", 0.0))),
                int(round(attrs.get("y", 0.0))),
                color=color,
                radius=max(0, int(round(attrs.get("r", 1.0)))),
            )
    elif kind == "marker":
        draw_marker(
            frame,
            int(round(attrs.get("x", 0.0))),
            int(round(attrs.get("y", 0.0))),
            radius=max(0, int(round(attrs.get("r", 1.0)))),
            symbol=str(attrs.get("symbol") or "circle"),
            fill=fill,
            stroke=stroke,
        )
    elif kind == "rect":
        x = float(attrs.get("x", 0.0))
        y = float(attrs.get("y", 0.0))
        w = float(attrs.get("width", 0.0))
        h = float(attrs.get("height", 0.0))
        if fill is not None:
            fill_rect(frame, int(round(x)), int(round(y)), int(round(x + w)), int(round(y + h)), fill)
        if stroke is not None:
            xs = np.asarray([x, x + w, x + w, x, x], dtype=np.float64)
            ys = np.asarray([y, y, y + h, y + h, y], dtype=np.float64)
            draw_polyline(frame, xs, ys, stroke, width=width, dash=dash)
    elif kind == "text":
        color = fill or stroke
        if color is not None:
            draw_text(
                frame,
                float(attrs.get("x", 0.0)),
                float(attrs.get("y", 0.0)),
                str(attrs.get("text", "")),
                color,
                font_size_px=float(attrs.get("font_size", 12.0)),
                align=str(attrs.get("text_align", "start")),
                baseline=str(attrs.get("text_baseline", "top")),
                rotate_deg=int(attrs.get("rotate", 0)),
            )


def _subpaths(segments: Sequence[Sequence[Any]]) -> Iterator[tuple[np.ndarray, np.ndarray, bool]]:
    xs: list[float] = []
    ys: list[float] = []
    for segment in segments:
        command = str(segment[0]).upper()
        if command == "M":
            if xs:
                yield np.asarray(xs), np.asarray(ys), False
            xs, ys = [float(segment[1])], [float(segment[2])]
        elif command == "L":
            xs.append(float(segment[1]))
            ys.append(float(segment[2]))
        elif command == "Z":
            if xs:
                yield np.asarray(xs), np.asarray(ys), True
            xs, ys = [], []
    if xs:
        yield np.asarray(xs), np.asarray(ys), False


def path_segments(points: Sequence[Sequence[float]], closed: bool = False) -> list[list[Any]]:
    segments: list[list[Any]] = [["M" if i == 0 else "L", float(x), float(y)] for i, (x, y) in enumerate(points)]
    if closed and segments:
        segments.append(["Z"])
    return segments
