from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Sequence

from chartview.coord import Coord, Point
from chartview.errors import ChartConfigError
from chartview.options import GuideConfig
from chartview.scales import CategoryScale, Scale
from chartview.scene import Group, path_segments


LOGGER = logging.getLogger(__name__)

DEFAULT_GUIDE_THEME: dict[str, dict[str, Any]] = {
    "line": {"stroke": "#000000", "line_width": 1, "opacity": 0.5},
    "text": {"fill": "#595959", "font_size": 12},
    "region": {"fill": "#cccccc", "opacity": 0.3, "stroke": None},
    "arc": {"stroke": "#999999", "line_width": 1, "opacity": 1.0},
}
REQUIRED_KEYS = {
    "line": ("start", "end"),
    "text": ("position", "content"),
    "region": ("start", "end"),
    "arc": ("start", "end"),
}
KEYWORD_POSITIONS = {"min": 0.0, "start": 0.0, "median": 0.5, "max": 1.0, "end": 1.0}
_PERCENT = re.compile(r"-?\d+(?:\.\d+)?%")


class GuideController:
    """Builder and renderer for annotations that are not bound to data rows.

    Declarations persist across geometry clears; only ``clear()`` (or the
    owning view's ``destroy``) drops them.
    """

    def __init__(self, container: Group | None = None, theme: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self.container = container
        self.theme = {kind: dict(style) for kind, style in DEFAULT_GUIDE_THEME.items()}
        for kind, style in (theme or {}).items():
            self.theme.setdefault(kind, {}).update(style)
        self.options: list[GuideConfig] = []
        self.groups: list[Group] = []

    def line(self, spec: Mapping[str, Any]) -> "GuideController":
        return self.add("line", spec)

    def text(self, spec: Mapping[str, Any]) -> "GuideController":
        return self.add("text", spec)

    def region(self, spec: Mapping[str, Any]) -> "GuideController":
        return self.add("region", spec)

    def arc(self, spec: Mapping[str, Any]) -> "GuideController":
        return self.add("arc", spec)

    def add(self, kind: str, spec: Mapping[str, Any]) -> "GuideController":
        if kind not in REQUIRED_KEYS:
            raise ChartConfigError(f"unknown guide kind: {kind}")
        missing = [key for key in REQUIRED_KEYS[kind] if key not in spec]
        if missing:
            raise ChartConfigError(f"{kind} guide requires {', '.join(missing)}")
        self.options.append(GuideConfig(kind=kind, spec=dict(spec)))
        return self

    def get_options(self, kind: str | None = None) -> list[GuideConfig]:
        return [cfg for cfg in self.options if kind is None or cfg.kind == kind]

    def render(
        self,
        scales: Mapping[str, Scale],
        coord: Coord,
        position_fields: Sequence[str] = (),
        container: Group | None = None,
    ) -> list[Group]:
        if container is not None:
            self.container = container
        self.clear_shapes()
        if self.container is None:
            return []
        resolver = _PointResolver(scales, tuple(position_fields))
        for cfg in self.options:
            group = self.container.add_group(guide_kind=cfg.kind)
            getattr(self, f"_draw_{cfg.kind}")(group, cfg.spec, resolver, coord)
            self.groups.append(group)
        LOGGER.debug("rendered %d guide(s)", len(self.groups))
        return list(self.groups)

    def clear_shapes(self) -> None:
        for group in self.groups:
            group.remove(destroy=True)
        self.groups = []

    def clear(self) -> None:
        self.clear_shapes()
        self.options = []

    def _style(self, kind: str, spec: Mapping[str, Any]) -> dict[str, Any]:
        return {**self.theme[kind], **dict(spec.get("style") or {})}

    def _draw_line(self, group: Group, spec: Mapping[str, Any], resolver: "_PointResolver", coord: Coord) -> None:
        start = resolver.resolve(spec["start"])
        end = resolver.resolve(spec["end"])
        group.add_shape("path", {**self._style("line", spec), "path": path_segments(coord.sample_path(start, end))})
        text = spec.get("text")
        if text:
            text = dict(text)
            at = float(text.get("position", 0.5))
            x, y = coord.convert((start[0] + (end[0] - start[0]) * at, start[1] + (end[1] - start[1]) * at))
            group.add_shape(
                "text",
                {
                    **self.theme["text"],
                    **dict(text.get("style") or {}),
                    "x": x + float(text.get("offset_x", 0.0)),
                    "y": y + float(text.get("offset_y", 0.0)),
                    "text": str(text.get("content", "")),
                },
            )

    def _draw_text(self, group: Group, spec: Mapping[str, Any], resolver: "_PointResolver", coord: Coord) -> None:
        x, y = coord.convert(resolver.resolve(spec["position"]))
        group.add_shape(
            "text",
            {
                **self._style("text", spec),
                "x": x + float(spec.get("offset_x", 0.0)),
                "y": y + float(spec.get("offset_y", 0.0)),
                "text": str(spec["content"]),
            },
        )

    def _draw_region(self, group: Group, spec: Mapping[str, Any], resolver: "_PointResolver", coord: Coord) -> None:
        (x0, y0), (x1, y1) = resolver.resolve(spec["start"]), resolver.resolve(spec["end"])
        outline = (
            coord.sample_path((x0, y0), (x1, y0))
            + coord.sample_path((x1, y0), (x1, y1))[1:]
            + coord.sample_path((x1, y1), (x0, y1))[1:]
            + coord.sample_path((x0, y1), (x0, y0))[1:-1]
        )
        group.add_shape("path", {**self._style("region", spec), "path": path_segments(outline, closed=True)})

    def _draw_arc(self, group: Group, spec: Mapping[str, Any], resolver: "_PointResolver", coord: Coord) -> None:
        start = resolver.resolve(spec["start"])
        end = resolver.resolve(spec["end"])
        points = coord.sample_path(start, end, steps=max(2, int(abs(end[0] - start[0]) * 72) + 2))
        group.add_shape("path", {**self._style("arc", spec), "path": path_segments(points)})


class _PointResolver:
    """Turns a guide point declaration into normalized coordinates."""

    def __init__(self, scales: Mapping[str, Scale], position_fields: tuple[str, ...]) -> None:
        self.scales = scales
        self.position_fields = position_fields

    def resolve(self, point: Any) -> Point:
        if isinstance(point, Mapping):
            fields = list(self.position_fields) or list(point)
            values = [point.get(f) for f in fields[:2]]
            while len(values) < 2:
                values.append(None)
            return (self._dim(fields[0] if fields else None, values[0]), self._dim(fields[1] if len(fields) > 1 else None, values[1]))
        if isinstance(point, (list, tuple)) and len(point) == 2:
            fields = list(self.position_fields) + [None, None]
            return (self._dim(fields[0], point[0]), self._dim(fields[1], point[1]))
        raise ChartConfigError(f"unsupported guide point: {point!r}")

    def _dim(self, field: str | None, value: Any) -> float:
        if isinstance(value, str):
            if value in KEYWORD_POSITIONS:
                return KEYWORD_POSITIONS[value]
            if _PERCENT.fullmatch(value):
                return float(value[:-1]) / 100.0
        scale = self.scales.get(field) if field is not None else None
        if scale is None:
            LOGGER.debug("guide value %r has no scale for field %r; clamping to 0", value, field)
            return 0.0
        if isinstance(scale, CategoryScale) and scale.index(value) < 0:
            LOGGER.warning("guide value %r is not in the %r categories; clamping to 0", value, field)
        return scale.scale(value)
