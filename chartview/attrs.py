from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, Mapping, Sequence

from chartview.errors import ChartConfigError
from chartview.raster.colors import is_color_literal
from chartview.scales import CategoryScale, IdentityScale, LinearScale, Scale


LOGGER = logging.getLogger(__name__)

POSITION_SEPARATOR = "*"
DEFAULT_COLOR = "#1890ff"
DEFAULT_PALETTE = (
    "#1890ff",
    "#2fc25b",
    "#facc14",
    "#223273",
    "#8543e0",
    "#13c2c2",
    "#3436c7",
    "#f04864",
)
DEFAULT_LINEAR_COLORS = ("#bae7ff", "#0050b3")
DEFAULT_SHAPES = ("circle", "square", "triangle", "diamond", "hollow_circle")
DEFAULT_SIZE_RANGE = (2.0, 10.0)
DEFAULT_SIZE = 4.0


def parse_position(expr: str) -> tuple[str, ...]:
    fields = tuple(part.strip() for part in str(expr).split(POSITION_SEPARATOR))
    if not fields or any(not part for part in fields):
        raise ChartConfigError(f"invalid position expression: {expr!r}")
    if len(fields) > 2:
        raise ChartConfigError(f"position expression supports at most two fields: {expr!r}")
    return fields


@dataclass
class Attr:
    """One visual channel bound to one field expression."""

    name: str
    field: str
    values: tuple[Any, ...] = ()
    scales: list[Scale] = dataclass_field(default_factory=list)

    @property
    def fields(self) -> tuple[str, ...]:
        return (self.field,)

    def bind(self, scales: Mapping[str, Scale]) -> "Attr":
        self.scales = [scales[f] for f in self.fields if f in scales]
        return self

    def map(self, record: Mapping[str, Any]) -> Any:
        raise NotImplementedError


@dataclass
class PositionAttr(Attr):
    @property
    def fields(self) -> tuple[str, ...]:
        return parse_position(self.field)

    def map(self, record: Mapping[str, Any]) -> tuple[float, float]:
        ts = [scale.scale(record.get(scale.field)) for scale in self.scales]
        if len(ts) == 1:
            # A single field maps onto y at x = 0.
            return (0.0, ts[0])
        if not ts:
            return (0.0, 0.0)
        return (ts[0], ts[1])


@dataclass
class ColorAttr(Attr):
    def bind(self, scales: Mapping[str, Scale]) -> "Attr":
        super().bind(scales)
        scale = self.scales[0] if self.scales else None
        if (scale is None or isinstance(scale, IdentityScale)) and not is_color_literal(self.field):
            LOGGER.warning("color field %r is not in the data and is not a colour; using %s", self.field, DEFAULT_COLOR)
        return self

    def map(self, record: Mapping[str, Any]) -> Any:
        scale = self.scales[0] if self.scales else None
        if scale is None or isinstance(scale, IdentityScale):
            return self.field if is_color_literal(self.field) else DEFAULT_COLOR
        value = record.get(scale.field)
        if isinstance(scale, CategoryScale):
            palette = self.values or DEFAULT_PALETTE
            idx = scale.index(value)
            return palette[max(0, idx) % len(palette)]
        if isinstance(scale, LinearScale):
            lo, hi = (self.values or DEFAULT_LINEAR_COLORS)[:2]
            return interpolate_color(lo, hi, scale.scale(value))
        return DEFAULT_COLOR


@dataclass
class ShapeAttr(Attr):
    def map(self, record: Mapping[str, Any]) -> Any:
        scale = self.scales[0] if self.scales else None
        if scale is None or isinstance(scale, IdentityScale):
            return self.field
        shapes = self.values or DEFAULT_SHAPES
        if isinstance(scale, CategoryScale):
            return shapes[max(0, scale.index(record.get(scale.field))) % len(shapes)]
        idx = int(round(scale.scale(record.get(scale.field)) * (len(shapes) - 1)))
        return shapes[idx]


@dataclass
class SizeAttr(Attr):
    def map(self, record: Mapping[str, Any]) -> float:
        scale = self.scales[0] if self.scales else None
        if scale is None or isinstance(scale, IdentityScale):
            try:
                return float(self.field)
            except (TypeError, ValueError):
                return DEFAULT_SIZE
        lo, hi = (self.values or DEFAULT_SIZE_RANGE)[:2]
        return float(lo) + scale.scale(record.get(scale.field)) * (float(hi) - float(lo))


ATTR_CLASSES: dict[str, type[Attr]] = {
    "position": PositionAttr,
    "color": ColorAttr,
    "shape": ShapeAttr,
    "size": SizeAttr,
}


def create_attr(name: str, field: Any, values: Sequence[Any] = ()) -> Attr:
    if name not in ATTR_CLASSES:
        raise ChartConfigError(f"unknown attribute channel: {name}")
    return ATTR_CLASSES[name](name=name, field=str(field), values=tuple(values))


def interpolate_color(lo: str, hi: str, t: float) -> str:
    a = _hex_channels(lo)
    b = _hex_channels(hi)
    t = max(0.0, min(1.0, float(t)))
    mixed = [int(round(ca + (cb - ca) * t)) for ca, cb in zip(a, b, strict=False)]
    return "#" + "".join(f"{c:02x}" for c in mixed)


def _hex_channels(color: str) -> tuple[int, int, int]:
    digits = color.lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6:
        raise ChartConfigError(f"gradient colours must be #rgb or #rrggbb, got {color!r}")
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
