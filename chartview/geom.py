from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, Mapping, Sequence

from chartview.attrs import DEFAULT_COLOR, DEFAULT_SIZE, Attr, create_attr
from chartview.coord import Coord
from chartview.coord import Point as ScreenPoint
from chartview.errors import ChartConfigError
from chartview.options import GeomConfig
from chartview.scales import CategoryScale, IdentityScale, Scale
from chartview.scene import Element, Group, Shape, path_segments


LOGGER = logging.getLogger(__name__)

GroupKey = tuple[Any, ...]
GROUP_CHANNELS = ("color", "shape", "size")
INTERVAL_PADDING = 0.1


@dataclass
class GeomGroup:
    """Records sharing one value for every non-position channel, mapped to screen."""

    key: GroupKey
    records: list[Mapping[str, Any]] = dataclass_field(default_factory=list)
    points: list[ScreenPoint] = dataclass_field(default_factory=list)
    normalized: list[ScreenPoint] = dataclass_field(default_factory=list)
    colors: list[Any] = dataclass_field(default_factory=list)
    shapes: list[Any] = dataclass_field(default_factory=list)
    sizes: list[float] = dataclass_field(default_factory=list)

    @property
    def color(self) -> Any:
        return self.colors[0] if self.colors else DEFAULT_COLOR


class Geom:
    """One visual encoding of the view's data.

    Channel setters record attribute expressions and return the geom so calls
    chain: ``view.line().position("a*b").color("c")``. ``init`` maps data to
    screen points; ``render`` places one child per attribute-group in the
    geom's container and reuses existing children on later renders.
    """

    type = "base"
    default_style: dict[str, Any] = {}
    default_marker = "circle"

    def __init__(self, config: GeomConfig | Mapping[str, Any] | None = None, *, view: Any = None) -> None:
        self.view = view
        self.attr_options: dict[str, Attr] = {}
        self.style_options: dict[str, Any] = {}
        self.container: Group | None = None
        self.data: list[Mapping[str, Any]] = []
        self.groups: list[GeomGroup] = []
        self.coord: Coord | None = None
        self._shapes: dict[GroupKey, Element] = {}
        self.destroyed = False
        if config is not None:
            self._apply_config(GeomConfig.from_mapping(config))

    def _apply_config(self, config: GeomConfig) -> None:
        if config.type != self.type:
            raise ChartConfigError(f"geom config type {config.type!r} does not match {self.type!r}")
        if config.position is not None:
            self.position(config.position)
        for channel in GROUP_CHANNELS:
            value = getattr(config, channel)
            if value is not None:
                self._set_attr(channel, value)
        if config.style:
            self.style(**config.style)

    def position(self, expr: str) -> "Geom":
        return self._set_attr("position", expr)

    def color(self, field: Any, values: Sequence[Any] = ()) -> "Geom":
        return self._set_attr("color", field, values)

    def shape(self, field: Any, values: Sequence[Any] = ()) -> "Geom":
        return self._set_attr("shape", field, values)

    def size(self, field: Any, values: Sequence[Any] = ()) -> "Geom":
        return self._set_attr("size", field, values)

    def style(self, **attrs: Any) -> "Geom":
        self.style_options.update(attrs)
        return self

    def _set_attr(self, name: str, field: Any, values: Sequence[Any] = ()) -> "Geom":
        self.attr_options[name] = create_attr(name, field, values)
        return self

    def get(self, key: str) -> Any:
        if key in {"attrOptions", "attr_options"}:
            return self.attr_options
        if key == "type":
            return self.type
        if key == "container":
            return self.container
        if key == "shapes":
            return self.get_shapes()
        return getattr(self, key, None)

    @property
    def fields(self) -> list[str]:
        out: list[str] = []
        for attr in self.attr_options.values():
            out.extend(attr.fields)
        return list(dict.fromkeys(out))

    @property
    def group_fields(self) -> list[str]:
        return list(
            dict.fromkeys(self.attr_options[ch].field for ch in GROUP_CHANNELS if ch in self.attr_options)
        )

    def to_config(self) -> GeomConfig:
        def expr(channel: str) -> Any:
            attr = self.attr_options.get(channel)
            return attr.field if attr is not None else None

        return GeomConfig(
            type=self.type,
            position=expr("position"),
            color=expr("color"),
            shape=expr("shape"),
            size=expr("size"),
            style=dict(self.style_options),
        )

    def get_shapes(self) -> list[Element]:
        return list(self._shapes.values())

    def init(self, data: Sequence[Mapping[str, Any]], scales: Mapping[str, Scale], coord: Coord) -> list[GeomGroup]:
        if "position" not in self.attr_options:
            raise ChartConfigError(f"{self.type} geom has no position expression")
        self.data = list(data)
        self.coord = coord
        for attr in self.attr_options.values():
            attr.bind(scales)
        self._warn_degenerate(scales)

        grouped: dict[GroupKey, GeomGroup] = {}
        group_fields = self.group_fields
        position = self.attr_options["position"]
        for record in self.data:
            key = tuple(record.get(f) for f in group_fields)
            group = grouped.get(key)
            if group is None:
                group = grouped[key] = GeomGroup(key=key)
            t = position.map(record)
            group.records.append(record)
            group.normalized.append(t)
            group.points.append(coord.convert(t))
            group.colors.append(self._map("color", record, self.style_options.get("color", DEFAULT_COLOR)))
            group.shapes.append(self._map("shape", record, self.default_marker))
            group.sizes.append(float(self._map("size", record, DEFAULT_SIZE)))
        self.groups = list(grouped.values())
        return self.groups

    def _map(self, channel: str, record: Mapping[str, Any], default: Any) -> Any:
        attr = self.attr_options.get(channel)
        return default if attr is None else attr.map(record)

    def _warn_degenerate(self, scales: Mapping[str, Scale]) -> None:
        for f in self.attr_options["position"].fields:
            scale = scales.get(f)
            if scale is None or isinstance(scale, IdentityScale):
                LOGGER.warning("%s geom: field %r is not in the data; rendering at clamped position", self.type, f)
                continue
            if isinstance(scale, CategoryScale):
                continue
            missing = sum(1 for record in self.data if not _in_domain(scale, record.get(f)))
            if missing:
                LOGGER.warning("%s geom: %d value(s) of %r fall outside the scale domain and are clamped", self.type, missing, f)

    def render(self, container: Group | None = None) -> Group:
        if container is not None and self.container is None:
            self.container = container
        if self.container is None:
            raise ChartConfigError(f"{self.type} geom has no container to render into")
        seen: set[GroupKey] = set()
        for group in self.groups:
            seen.add(group.key)
            element = self._shapes.get(group.key)
            if element is not None and element.parent is not self.container:
                element = None
            element = self.draw_group(group, element)
            self._shapes[group.key] = element
            # Re-adding moves the element to the end so child order follows group order.
            self.container.add(element)
        for key in [k for k in self._shapes if k not in seen]:
            self._shapes.pop(key).remove(destroy=True)
        return self.container

    def draw_group(self, group: GeomGroup, existing: Element | None) -> Element:
        raise NotImplementedError

    def _base_style(self, group: GeomGroup) -> dict[str, Any]:
        style = dict(self.default_style)
        style.update({k: v for k, v in self.style_options.items() if k != "color"})
        return style

    def clear(self) -> None:
        for element in self._shapes.values():
            element.remove(destroy=True)
        self._shapes.clear()
        self.groups = []
        if self.container is not None:
            self.container.remove(destroy=True)
            self.container = None

    def destroy(self) -> None:
        self.clear()
        self.attr_options.clear()
        self.view = None
        self.destroyed = True

    def __repr__(self) -> str:
        pos = self.attr_options.get("position")
        return f"{type(self).__name__}(position={pos.field if pos else None!r})"


def _in_domain(scale: Scale, value: Any) -> bool:
    domain = scale.domain
    if len(domain) != 2:
        return False
    num = scale._to_number(value)  # type: ignore[attr-defined]
    return num is not None and domain[0] <= num <= domain[1]


def _reuse_shape(existing: Element | None, shape_type: str) -> Shape:
    if isinstance(existing, Shape) and existing.shape_type == shape_type:
        return existing
    if existing is not None:
        existing.remove(destroy=True)
    return Shape(shape_type)


def _reuse_group(existing: Element | None) -> Group:
    if isinstance(existing, Group):
        return existing
    if existing is not None:
        existing.remove(destroy=True)
    return Group()


def _sync_children(group: Group, shape_type: str, count: int) -> list[Shape]:
    children = [c for c in group.get_children() if isinstance(c, Shape) and c.shape_type == shape_type]
    for stale in group.get_children():
        if stale not in children:
            stale.remove(destroy=True)
    while len(children) < count:
        children.append(group.add_shape(shape_type))
    for extra in children[count:]:
        extra.remove(destroy=True)
    return children[:count]


class Line(Geom):
    """Connects each group's points in data order."""

    type = "line"
    default_style = {"line_width": 2, "opacity": 1.0}

    def draw_group(self, group: GeomGroup, existing: Element | None) -> Element:
        shape = _reuse_shape(existing, "path")
        shape.attr(self._base_style(group))
        shape.attr({"path": path_segments(group.points), "stroke": group.color, "fill": None})
        shape.set("origin", group.key)
        return shape


class Path(Line):
    type = "path"


class Area(Geom):
    """Closed polygon between each group's points and the y baseline."""

    type = "area"
    default_style = {"opacity": 0.6, "line_width": 0}

    def draw_group(self, group: GeomGroup, existing: Element | None) -> Element:
        shape = _reuse_shape(existing, "path")
        assert self.coord is not None
        baseline = [self.coord.convert((tx, 0.0)) for tx, _ in reversed(group.normalized)]
        shape.attr(self._base_style(group))
        shape.attr({"path": path_segments(list(group.points) + baseline, closed=True), "fill": group.color})
        shape.set("origin", group.key)
        return shape


class Point(Geom):
    """One marker per record, gathered in one sub-group per attribute-group."""

    type = "point"
    default_style = {"opacity": 1.0}

    def draw_group(self, group: GeomGroup, existing: Element | None) -> Element:
        holder = _reuse_group(existing)
        holder.set("origin", group.key)
        markers = _sync_children(holder, "marker", len(group.points))
        base = self._base_style(group)
        for marker, (x, y), color, symbol, size in zip(
            markers, group.points, group.colors, group.shapes, group.sizes, strict=False
        ):
            marker.attr(base)
            hollow = str(symbol).startswith("hollow")
            marker.attr(
                {
                    "x": x,
                    "y": y,
                    "r": size / 2.0,
                    "symbol": symbol,
                    "fill": None if hollow else color,
                    "stroke": color,
                }
            )
        return holder


class Interval(Geom):
    """Bars from the y baseline to each record's value."""

    type = "interval"
    default_style = {"opacity": 0.85}

    def draw_group(self, group: GeomGroup, existing: Element | None) -> Element:
        assert self.coord is not None
        holder = _reuse_group(existing)
        holder.set("origin", group.key)
        bars = _sync_children(holder, "path", len(group.records))
        position = self.attr_options["position"]
        x_scale = position.scales[0] if len(position.scales) == 2 else None
        width = self._band_width(x_scale)
        base = self._base_style(group)
        for bar, record, (tx, ty), color in zip(bars, group.records, group.normalized, group.colors, strict=False):
            if isinstance(x_scale, CategoryScale):
                lo, hi = x_scale.band(record.get(x_scale.field))
                pad = (hi - lo) * INTERVAL_PADDING
                x0, x1 = lo + pad, hi - pad
            else:
                x0, x1 = tx - width / 2.0, tx + width / 2.0
            outline = (
                self.coord.sample_path((x0, 0.0), (x0, ty))
                + self.coord.sample_path((x0, ty), (x1, ty))[1:]
                + self.coord.sample_path((x1, ty), (x1, 0.0))[1:]
                + self.coord.sample_path((x1, 0.0), (x0, 0.0))[1:-1]
            )
            bar.attr(base)
            bar.attr({"path": path_segments(outline, closed=True), "fill": color, "stroke": None})
        return holder

    def _band_width(self, x_scale: Scale | None) -> float:
        count = len({r.get(x_scale.field) for r in self.data}) if x_scale is not None else len(self.data)
        return (1.0 - 2 * INTERVAL_PADDING) / max(1, count)


GEOM_CLASSES: dict[str, type[Geom]] = {
    "line": Line,
    "path": Path,
    "area": Area,
    "point": Point,
    "interval": Interval,
}


def create_geom(config: GeomConfig | Mapping[str, Any], *, view: Any = None) -> Geom:
    config = GeomConfig.from_mapping(config)
    return GEOM_CLASSES[config.type](config, view=view)
