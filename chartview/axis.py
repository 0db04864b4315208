from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, Mapping, Sequence

from chartview.coord import Coord, Point
from chartview.options import AXIS_PARTS, UNSET, AxisConfig, ChartOptions
from chartview.scales import IdentityScale, Scale, Tick
from chartview.scene import Group, path_segments


LOGGER = logging.getLogger(__name__)

DEFAULT_AXIS_THEME: dict[str, dict[str, Any]] = {
    "line": {"stroke": "#bfbfbf", "line_width": 1},
    "tick_line": {"stroke": "#bfbfbf", "line_width": 1, "length": 4},
    "label": {"fill": "#595959", "font_size": 12, "offset": 8},
    "title": {"fill": "#404040", "font_size": 12, "offset": 32, "position": "center"},
    "grid": {"stroke": "#e8e8e8", "line_width": 1},
}
# Only value (y) axes draw grid lines unless asked to.
DIMENSION_DEFAULT_PARTS = {
    "x": ("line", "tick_line", "label", "title"),
    "y": ("line", "tick_line", "label", "title", "grid"),
}

_CAMEL = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


@dataclass
class AxisSpec:
    field: str
    dimension: str
    position: str
    ticks: list[Tick] = dataclass_field(default_factory=list)
    title: dict[str, Any] | None = None
    label: dict[str, Any] | None = None
    grid: dict[str, Any] | None = None
    line: dict[str, Any] | None = None
    tick_line: dict[str, Any] | None = None


def resolve_part(part: str, dimension: str, value: Any, theme: Mapping[str, Mapping[str, Any]]) -> dict[str, Any] | None:
    if value is None:
        return None
    if value is UNSET:
        if part not in DIMENSION_DEFAULT_PARTS[dimension]:
            return None
        return dict(theme[part])
    out = dict(theme[part])
    overlay = _snake_keys(value)
    text_style = overlay.pop("text_style", None)
    out.update(overlay)
    if isinstance(text_style, Mapping):
        out.update(_snake_keys(text_style))
    return out


class AxisController:
    """Derives axis specs from scales and draws them into the back layer.

    Every ``render`` drops the previously drawn axes before building new ones,
    so toggling axes on and off between renders never leaves stale shapes.
    """

    def __init__(self, container: Group | None = None, theme: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self.container = container
        self.theme = {part: dict(DEFAULT_AXIS_THEME[part]) for part in DEFAULT_AXIS_THEME}
        for part, style in (theme or {}).items():
            self.theme.setdefault(part, {}).update(style)
        self.specs: list[AxisSpec] = []
        self.groups: list[Group] = []

    def create_specs(
        self,
        x_scale: Scale | None,
        y_scales: Sequence[Scale],
        coord: Coord,
        options: ChartOptions,
    ) -> list[AxisSpec]:
        if options.axes is False:
            return []
        candidates: list[tuple[Scale, str, int]] = []
        if x_scale is not None:
            candidates.append((x_scale, "x", 0))
        candidates.extend((scale, "y", idx) for idx, scale in enumerate(y_scales[:2]))

        specs: list[AxisSpec] = []
        for scale, dimension, idx in candidates:
            if isinstance(scale, IdentityScale):
                continue
            cfg = options.axis_config(scale.field) or AxisConfig(enabled=False)
            if not cfg.enabled:
                continue
            spec = AxisSpec(
                field=scale.field,
                dimension=dimension,
                position=cfg.position or _default_position(coord, dimension, idx),
                ticks=scale.get_ticks(),
            )
            for part in AXIS_PARTS:
                setattr(spec, part, resolve_part(part, dimension, getattr(cfg, part), self.theme))
            if spec.title is not None:
                spec.title.setdefault("text", scale.alias)
            specs.append(spec)
        return specs

    def render(
        self,
        x_scale: Scale | None,
        y_scales: Sequence[Scale],
        coord: Coord,
        options: ChartOptions,
        container: Group | None = None,
    ) -> list[AxisSpec]:
        if container is not None:
            self.container = container
        self.clear()
        self.specs = self.create_specs(x_scale, y_scales, coord, options)
        if self.container is not None:
            for spec in self.specs:
                self.groups.append(self._draw(spec, coord))
        LOGGER.debug("rendered %d axis spec(s)", len(self.specs))
        return self.specs

    def clear(self) -> None:
        for group in self.groups:
            group.remove(destroy=True)
        self.groups = []
        self.specs = []

    def _draw(self, spec: AxisSpec, coord: Coord) -> Group:
        assert self.container is not None
        group = self.container.add_group(axis_field=spec.field, axis_position=spec.position)
        p0, p1 = _axis_segment(spec)
        center = coord.center

        if spec.grid is not None:
            grid_style = {k: v for k, v in spec.grid.items() if k not in {"align"}}
            for tick in spec.ticks:
                if spec.dimension == "x":
                    points = coord.sample_path((tick.t, 0.0), (tick.t, 1.0))
                else:
                    points = coord.sample_path((0.0, tick.t), (1.0, tick.t))
                group.add_shape("path", {**grid_style, "path": path_segments(points)}, role="grid")

        if spec.line is not None:
            points = coord.sample_path(p0, p1)
            group.add_shape("path", {**spec.line, "path": path_segments(points)}, role="line")

        for tick in spec.ticks:
            anchor = coord.convert(_along(p0, p1, tick.t))
            nx, ny = _outward(coord, p0, p1, tick.t, center)
            if spec.tick_line is not None:
                length = float(spec.tick_line.get("length", 4))
                style = {k: v for k, v in spec.tick_line.items() if k != "length"}
                group.add_shape(
                    "line",
                    {**style, "x1": anchor[0], "y1": anchor[1], "x2": anchor[0] + nx * length, "y2": anchor[1] + ny * length},
                    role="tick",
                )
            if spec.label is not None:
                offset = float(spec.label.get("offset", 8))
                group.add_shape(
                    "text",
                    {
                        **_text_anchor(nx, ny),
                        **_text_style(spec.label),
                        "x": anchor[0] + nx * offset,
                        "y": anchor[1] + ny * offset,
                        "text": tick.text,
                    },
                    role="label",
                )

        if spec.title is not None:
            t = {"start": 0.0, "center": 0.5, "end": 1.0}.get(str(spec.title.get("position", "center")), 0.5)
            anchor = coord.convert(_along(p0, p1, t))
            nx, ny = _outward(coord, p0, p1, t, center)
            offset = float(spec.title.get("offset", 32))
            group.add_shape(
                "text",
                {
                    **_text_anchor(nx, ny),
                    **_text_style(spec.title),
                    "x": anchor[0] + nx * offset,
                    "y": anchor[1] + ny * offset,
                    "text": str(spec.title.get("text", spec.field)),
                },
                role="title",
            )
        return group


def _default_position(coord: Coord, dimension: str, idx: int) -> str:
    if coord.is_polar:
        return "circle" if dimension == "x" else "radius"
    if dimension == "x":
        return "left" if coord.is_transposed else "bottom"
    if coord.is_transposed:
        return "bottom" if idx == 0 else "top"
    return "left" if idx == 0 else "right"


def _axis_segment(spec: AxisSpec) -> tuple[Point, Point]:
    if spec.position == "circle":
        return ((0.0, 1.0), (1.0, 1.0))
    if spec.dimension == "x":
        return ((0.0, 0.0), (1.0, 0.0))
    if spec.position in {"right", "top"}:
        return ((1.0, 0.0), (1.0, 1.0))
    return ((0.0, 0.0), (0.0, 1.0))


def _along(p0: Point, p1: Point, t: float) -> Point:
    return (p0[0] + (p1[0] - p0[0]) * t, p0[1] + (p1[1] - p0[1]) * t)


def _outward(coord: Coord, p0: Point, p1: Point, t: float, center: Point) -> Point:
    """Unit normal to the axis at ``t`` pointing away from the plot center."""
    eps = 1e-3
    a = coord.convert(_along(p0, p1, max(0.0, t - eps)))
    b = coord.convert(_along(p0, p1, min(1.0, t + eps)))
    dx, dy = b[0] - a[0], b[1] - a[1]
    length = math.hypot(dx, dy)
    if length == 0:
        return (0.0, 1.0)
    nx, ny = -dy / length, dx / length
    anchor = coord.convert(_along(p0, p1, t))
    if (anchor[0] - center[0]) * nx + (anchor[1] - center[1]) * ny < 0:
        nx, ny = -nx, -ny
    return (nx, ny)


def _text_anchor(nx: float, ny: float) -> dict[str, str]:
    if abs(nx) >= abs(ny):
        return {"text_align": "start" if nx > 0 else "end", "text_baseline": "middle"}
    return {"text_align": "center", "text_baseline": "top" if ny > 0 else "bottom"}


def _text_style(part: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in part.items() if k in {"fill", "font_size", "opacity", "rotate", "text_align", "text_baseline"}}


def _snake_keys(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Accept ``fontSize``/``textBaseline`` style keys alongside snake_case."""
    return {_CAMEL.sub("_", str(key)).lower(): value for key, value in raw.items()}
