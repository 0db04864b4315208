"""Declarative chart options.

Each concern (scale, axis, coord, geom, guide) has its own dataclass with a
closed set of recognised keys. Plain mappings are coerced through the
``from_mapping`` constructors and unknown keys are rejected, so a typo in an
options dict fails at declaration time rather than silently rendering defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Mapping, Sequence

from chartview.errors import ChartConfigError


SCALE_TYPES = ("cat", "linear", "time", "identity")
COORD_TYPES = ("rect", "polar")
COORD_ACTIONS = ("transpose", "reflect", "flip", "scale", "rotate")
GEOM_TYPES = ("line", "point", "path", "area", "interval")
GUIDE_KINDS = ("line", "text", "region", "arc")
AXIS_PARTS = ("title", "label", "grid", "line", "tick_line")


class _Unset:
    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def _check_keys(kind: str, raw: Mapping[str, Any], allowed: Sequence[str]) -> None:
    unknown = sorted(set(raw) - set(allowed))
    if unknown:
        raise ChartConfigError(f"unknown {kind} option(s): {', '.join(unknown)}")


def _key_names(cls: type) -> tuple[str, ...]:
    return tuple(f.name for f in fields(cls))


@dataclass
class ScaleConfig:
    type: str | None = None
    min: Any = None
    max: Any = None
    values: tuple[Any, ...] | None = None
    alias: str | None = None
    tick_count: int = 5
    nice: bool = False
    mask: str | None = None
    formatter: Callable[[Any], str] | None = None

    def __post_init__(self) -> None:
        if self.type is not None and self.type not in SCALE_TYPES:
            raise ChartConfigError(f"unknown scale type: {self.type}")
        numeric = (int, float)
        if isinstance(self.min, numeric) and isinstance(self.max, numeric) and self.min > self.max:
            raise ChartConfigError(f"scale min {self.min} is greater than max {self.max}")
        if self.tick_count <= 0:
            raise ChartConfigError("tick_count must be > 0")
        if self.values is not None and not isinstance(self.values, tuple):
            self.values = tuple(self.values)

    @classmethod
    def from_mapping(cls, raw: "ScaleConfig | Mapping[str, Any] | None") -> "ScaleConfig":
        if isinstance(raw, ScaleConfig):
            return raw
        raw = dict(raw or {})
        _check_keys("scale", raw, _key_names(cls))
        return cls(**raw)

    def merged(self, raw: "ScaleConfig | Mapping[str, Any]") -> "ScaleConfig":
        if isinstance(raw, ScaleConfig):
            return raw
        raw = dict(raw)
        _check_keys("scale", raw, _key_names(ScaleConfig))
        return replace(self, **raw)

    def pinned(self) -> dict[str, Any]:
        return {
            key: getattr(self, key)
            for key in ("min", "max", "values")
            if getattr(self, key) is not None
        }


@dataclass
class AxisConfig:
    """Per-dimension axis override.

    Every part is either ``UNSET`` (use the theme default), ``None`` (suppress
    that part) or a mapping overlaid on the theme default.
    """

    enabled: bool = True
    title: Any = UNSET
    label: Any = UNSET
    grid: Any = UNSET
    line: Any = UNSET
    tick_line: Any = UNSET
    position: str | None = None

    def __post_init__(self) -> None:
        for part in AXIS_PARTS:
            value = getattr(self, part)
            if value is UNSET or value is None or isinstance(value, Mapping):
                continue
            raise ChartConfigError(f"axis {part} must be a mapping or None, got {type(value).__name__}")

    @classmethod
    def from_mapping(cls, raw: "AxisConfig | Mapping[str, Any] | bool | None") -> "AxisConfig":
        if isinstance(raw, AxisConfig):
            return raw
        if raw is False:
            return cls(enabled=False)
        if raw is None or raw is True:
            return cls()
        raw = dict(raw)
        _check_keys("axis", raw, _key_names(cls))
        return cls(**{key: dict(value) if isinstance(value, Mapping) else value for key, value in raw.items()})

    def merged(self, raw: "AxisConfig | Mapping[str, Any] | bool | None") -> "AxisConfig":
        if isinstance(raw, AxisConfig):
            return raw
        if raw is False or raw is None or raw is True:
            return replace(self, enabled=raw is not False)
        overlay = AxisConfig.from_mapping(raw)
        changes: dict[str, Any] = {"enabled": overlay.enabled}
        for part in AXIS_PARTS:
            new = getattr(overlay, part)
            if new is UNSET:
                continue
            old = getattr(self, part)
            if isinstance(new, Mapping) and isinstance(old, Mapping):
                new = {**old, **new}
            changes[part] = new
        if overlay.position is not None:
            changes["position"] = overlay.position
        return replace(self, **changes)


@dataclass
class CoordConfig:
    type: str = "rect"
    actions: tuple[tuple[Any, ...], ...] = ()
    start_angle: float = -90.0
    end_angle: float = 270.0
    radius: float = 1.0
    inner_radius: float = 0.0

    def __post_init__(self) -> None:
        if self.type not in COORD_TYPES:
            raise ChartConfigError(f"unknown coord type: {self.type}")
        normalized = []
        for action in self.actions:
            if isinstance(action, str):
                action = (action,)
            action = tuple(action)
            if not action or action[0] not in COORD_ACTIONS:
                raise ChartConfigError(f"unknown coord action: {action!r}")
            normalized.append(action)
        self.actions = tuple(normalized)
        if not 0.0 <= self.inner_radius < self.radius <= 1.0:
            raise ChartConfigError("coord radii must satisfy 0 <= inner_radius < radius <= 1")

    @classmethod
    def from_mapping(cls, raw: "CoordConfig | Mapping[str, Any] | None") -> "CoordConfig":
        if isinstance(raw, CoordConfig):
            return raw
        raw = dict(raw or {})
        _check_keys("coord", raw, _key_names(cls))
        return cls(**raw)


@dataclass
class GeomConfig:
    type: str
    position: str | None = None
    color: str | None = None
    shape: str | None = None
    size: Any = None
    style: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.type not in GEOM_TYPES:
            raise ChartConfigError(f"unknown geom type: {self.type}")

    @classmethod
    def from_mapping(cls, raw: "GeomConfig | Mapping[str, Any]") -> "GeomConfig":
        if isinstance(raw, GeomConfig):
            return raw
        raw = dict(raw)
        _check_keys("geom", raw, _key_names(cls))
        if "type" not in raw:
            raise ChartConfigError("geom option requires a type")
        return cls(**raw)


@dataclass
class GuideConfig:
    kind: str
    spec: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.kind not in GUIDE_KINDS:
            raise ChartConfigError(f"unknown guide kind: {self.kind}")

    @classmethod
    def from_mapping(cls, raw: "GuideConfig | Mapping[str, Any]") -> "GuideConfig":
        if isinstance(raw, GuideConfig):
            return raw
        raw = dict(raw)
        if "kind" not in raw:
            raise ChartConfigError("guide option requires a kind")
        kind = raw.pop("kind")
        return cls(kind=kind, spec=dict(raw.pop("spec", raw)))


@dataclass
class ChartOptions:
    scales: dict[str, ScaleConfig] = field(default_factory=dict)
    axes: bool | dict[str, AxisConfig] = field(default_factory=dict)
    coord: CoordConfig = field(default_factory=CoordConfig)
    geoms: list[GeomConfig] = field(default_factory=list)
    guides: list[GuideConfig] = field(default_factory=list)
    filters: dict[str, Callable[[Any], bool]] = field(default_factory=dict)
    animate: bool = False

    @classmethod
    def from_mapping(cls, raw: "ChartOptions | Mapping[str, Any] | None") -> "ChartOptions":
        if isinstance(raw, ChartOptions):
            return raw
        return merge_options(cls(), raw or {})

    def axis_config(self, field_name: str) -> AxisConfig | None:
        """Effective override for one field; ``None`` when axes are suppressed."""
        if self.axes is False:
            return None
        if self.axes is True:
            return AxisConfig()
        return self.axes.get(field_name, AxisConfig())


def _coerce_axes(raw: Any, current: bool | dict[str, AxisConfig]) -> bool | dict[str, AxisConfig]:
    if raw is False:
        return False
    if raw is True or raw is None:
        return dict(current) if isinstance(current, dict) else {}
    if not isinstance(raw, Mapping):
        raise ChartConfigError("axes option must be a bool or a mapping of field to axis config")
    merged = dict(current) if isinstance(current, dict) else {}
    for field_name, cfg in raw.items():
        base = merged.get(field_name)
        merged[field_name] = base.merged(cfg) if base is not None else AxisConfig.from_mapping(cfg)
    return merged


def option_overrides(partial: "ChartOptions | Mapping[str, Any]") -> dict[str, Any]:
    """Keys of ``partial`` that should be overlaid.

    A ``ChartOptions`` instance contributes only the fields that differ from a
    default-constructed one, so it overlays like the equivalent mapping.
    """
    if isinstance(partial, ChartOptions):
        defaults = ChartOptions()
        return {
            f.name: getattr(partial, f.name)
            for f in fields(ChartOptions)
            if getattr(partial, f.name) != getattr(defaults, f.name)
        }
    return dict(partial)


def merge_options(current: ChartOptions, partial: "ChartOptions | Mapping[str, Any]") -> ChartOptions:
    """Overlay ``partial`` on ``current`` and return a new options object.

    ``scales`` and mapping-valued ``axes`` merge per field, ``coord``, ``geoms``,
    ``guides`` and ``filters`` are replaced wholesale when present. A
    ``ChartOptions`` partial overlays its non-default fields.
    """
    partial = option_overrides(partial)
    _check_keys("chart", partial, _key_names(ChartOptions))

    scales = dict(current.scales)
    for field_name, cfg in (partial.get("scales") or {}).items():
        base = scales.get(field_name)
        scales[field_name] = base.merged(cfg) if base is not None else ScaleConfig.from_mapping(cfg)

    axes = current.axes
    if "axes" in partial:
        axes = _coerce_axes(partial["axes"], current.axes)

    coord = current.coord
    if partial.get("coord") is not None:
        coord = CoordConfig.from_mapping(partial["coord"])

    geoms = list(current.geoms)
    if "geoms" in partial:
        geoms = [GeomConfig.from_mapping(g) for g in partial["geoms"] or ()]

    guides = list(current.guides)
    if "guides" in partial:
        guides = [GuideConfig.from_mapping(g) for g in partial["guides"] or ()]

    filters = dict(current.filters)
    if "filters" in partial:
        filters = dict(partial["filters"] or {})

    return ChartOptions(
        scales=scales,
        axes=axes,
        coord=coord,
        geoms=geoms,
        guides=guides,
        filters=filters,
        animate=bool(partial.get("animate", current.animate)),
    )
