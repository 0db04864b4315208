"""The chart View: owns data, options, controllers and geoms, and drives the
render / change / clear / destroy lifecycle.

Lifecycle::

    constructed --render--> rendered --change_data/change_options--> rendered
         |                     |
         |                   clear --> cleared --render--> rendered
         +-------------- destroy (from any state) --> destroyed (terminal)

Every public method on a destroyed view raises ``ChartUsageError``.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Mapping, Sequence

from chartview.adapters import to_records
from chartview.axis import AxisController, AxisSpec
from chartview.coord import Coord, CoordController
from chartview.errors import ChartConfigError, ChartUsageError
from chartview.geom import Geom, create_geom
from chartview.guide import GuideController
from chartview.options import (
    AxisConfig,
    ChartOptions,
    CoordConfig,
    GeomConfig,
    ScaleConfig,
    merge_options,
    option_overrides,
)
from chartview.scale_controller import ScaleController
from chartview.scales import Scale
from chartview.scene import Group, Surface


LOGGER = logging.getLogger(__name__)

STATE_CONSTRUCTED = "constructed"
STATE_RENDERED = "rendered"
STATE_CLEARED = "cleared"
STATE_DESTROYED = "destroyed"

DEFAULT_START = (0.0, 400.0)
DEFAULT_END = (400.0, 0.0)

_GET_ALIASES = {
    "scaleController": "scale_controller",
    "axisController": "axis_controller",
    "guideController": "guide_controller",
    "coordController": "coord_controller",
    "backPlot": "back_plot",
    "middlePlot": "middle_plot",
    "viewContainer": "middle_plot",
    "frontPlot": "front_plot",
}


def _alive(method: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(method)
    def wrapper(self: "View", *args: Any, **kwargs: Any) -> Any:
        if self.destroyed:
            raise ChartUsageError(f"View.{method.__name__}() called after destroy()")
        return method(self, *args, **kwargs)

    return wrapper


class View:
    def __init__(
        self,
        *,
        canvas: Surface | Group | None = None,
        middle_plot: Group | None = None,
        back_plot: Group | None = None,
        front_plot: Group | None = None,
        coord: Coord | None = None,
        start: Any = None,
        end: Any = None,
        data: Any = None,
        options: ChartOptions | Mapping[str, Any] | None = None,
        animate: bool | None = None,
        theme: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self.canvas = canvas
        self.back_plot = back_plot if back_plot is not None else self._new_layer("back")
        self.middle_plot = middle_plot if middle_plot is not None else self._new_layer("middle")
        self.front_plot = front_plot if front_plot is not None else self._new_layer("front")

        opts = ChartOptions.from_mapping(options)
        if coord is not None:
            start = coord.start if start is None else start
            end = coord.end if end is None else end
            if options is None or "coord" not in (options if isinstance(options, Mapping) else {}):
                polar = {
                    key: getattr(coord, key)
                    for key in ("start_angle", "end_angle", "radius", "inner_radius")
                    if hasattr(coord, key)
                }
                opts.coord = CoordConfig(type=coord.type, actions=coord.actions, **polar)
        if animate is not None:
            opts.animate = bool(animate)
        self.start = start if start is not None else DEFAULT_START
        self.end = end if end is not None else DEFAULT_END

        self.data = to_records(data)
        self.scale_controller = ScaleController(opts.scales)
        self.coord_controller = CoordController(opts.coord)
        self.axis_controller = AxisController(self.back_plot, theme=theme)
        self.guide_controller = GuideController(self.front_plot)
        for guide in opts.guides:
            self.guide_controller.add(guide.kind, guide.spec)
        self.geoms: list[Geom] = []
        for cfg in opts.geoms:
            self.geoms.append(create_geom(cfg, view=self))

        self._options = opts
        self._axis_stash: dict[str, AxisConfig] | None = None
        self._coord: Coord | None = None
        self._state = STATE_CONSTRUCTED
        self.destroyed = False
        LOGGER.debug("view constructed with %d geom(s), %d record(s)", len(self.geoms), len(self.data))

    def _new_layer(self, name: str) -> Group:
        if isinstance(self.canvas, Group):
            return self.canvas.add_group(layer=name)
        return Group(layer=name)

    @property
    def state(self) -> str:
        return self._state

    @property
    def options(self) -> ChartOptions:
        self._options.geoms = [geom.to_config() for geom in self.geoms]
        self._options.guides = list(self.guide_controller.options)
        return self._options

    @property
    def scales(self) -> dict[str, Scale]:
        return dict(self.scale_controller.scales)

    @property
    def coord_transform(self) -> Coord | None:
        return self._coord

    @_alive
    def get(self, key: str) -> Any:
        key = _GET_ALIASES.get(key, key)
        if key == "options":
            return self.options
        if key == "scales":
            return self.scales
        if key == "coord":
            return self._coord
        if key == "filtered_data":
            return self.filtered_data()
        return getattr(self, key, None)

    # -- option mutation ------------------------------------------------

    @_alive
    def source(self, data: Any, scales: Mapping[str, Any] | None = None) -> "View":
        self.data = to_records(data)
        for field, cfg in (scales or {}).items():
            self.scale(field, cfg)
        return self

    @_alive
    def scale(self, field: str, config: ScaleConfig | Mapping[str, Any] | None = None) -> "View":
        current = self._options.scales.get(field)
        merged = current.merged(config or {}) if current is not None else ScaleConfig.from_mapping(config)
        self._options.scales[field] = merged
        self.scale_controller.define_scale(field, merged)
        return self

    @_alive
    def axis(self, field: str | bool, config: AxisConfig | Mapping[str, Any] | bool | None = None) -> "View":
        """Configure axes.

        ``axis(False)`` suppresses every axis and stashes per-field
        customizations; ``axis(True)`` restores them. ``axis(field, cfg)``
        merges ``cfg`` into that field's override, into the stash while
        suppressed.
        """
        opts = self._options
        if field is False:
            if opts.axes is not False:
                self._axis_stash = dict(opts.axes) if isinstance(opts.axes, dict) else {}
            opts.axes = False
            return self
        if field is True:
            if opts.axes is False:
                opts.axes = self._axis_stash or {}
                self._axis_stash = None
            elif opts.axes is True:
                opts.axes = {}
            return self
        target = self._axis_stash if opts.axes is False else opts.axes
        if target is None or target is True:
            target = {}
        base = target.get(field)
        target[field] = base.merged(config) if base is not None else AxisConfig.from_mapping(config)
        if opts.axes is False:
            self._axis_stash = target
        else:
            opts.axes = target
        return self

    @_alive
    def coord(self, type: str = "rect", **cfg: Any) -> CoordController:
        self._options.coord = CoordConfig(type=type, **cfg)
        return self.coord_controller.reset(self._options.coord)

    @_alive
    def guide(self) -> GuideController:
        return self.guide_controller

    @_alive
    def filter(self, field: str, predicate: Callable[[Any], bool] | None) -> "View":
        if predicate is None:
            self._options.filters.pop(field, None)
        else:
            self._options.filters[field] = predicate
        return self

    @_alive
    def add_geom(self, geom_type: str) -> Geom:
        geom = create_geom(GeomConfig(type=geom_type), view=self)
        self.geoms.append(geom)
        return geom

    def line(self) -> Geom:
        return self.add_geom("line")

    def point(self) -> Geom:
        return self.add_geom("point")

    def path(self) -> Geom:
        return self.add_geom("path")

    def area(self) -> Geom:
        return self.add_geom("area")

    def interval(self) -> Geom:
        return self.add_geom("interval")

    # -- queries ----------------------------------------------------------

    @_alive
    def filtered_data(self) -> list[Mapping[str, Any]]:
        filters = self._options.filters
        if not filters:
            return list(self.data)
        return [r for r in self.data if all(pred(r.get(field)) for field, pred in filters.items())]

    def _position_fields(self) -> list[tuple[str, ...]]:
        out = []
        for geom in self.geoms:
            attr = geom.attr_options.get("position")
            if attr is not None:
                out.append(attr.fields)
        return out

    @_alive
    def get_x_scale(self) -> Scale | None:
        positions = self._position_fields()
        if not positions:
            return None
        return self.scale_controller.get_scale(positions[0][0])

    @_alive
    def get_y_scales(self) -> list[Scale]:
        fields = list(dict.fromkeys(p[1] for p in self._position_fields() if len(p) > 1))
        return [s for s in (self.scale_controller.get_scale(f) for f in fields) if s is not None]

    @_alive
    def invert_point(self, point: Any) -> dict[str, Any]:
        if self._coord is None:
            self._coord = self.coord_controller.build(self.start, self.end)
        tx, ty = self._coord.invert(point)
        out: dict[str, Any] = {}
        x_scale = self.get_x_scale()
        if x_scale is not None:
            out[x_scale.field] = x_scale.invert(tx)
        y_scales = self.get_y_scales()
        if y_scales:
            out[y_scales[0].field] = y_scales[0].invert(ty)
        return out

    # -- lifecycle ------------------------------------------------------

    @_alive
    def render(self) -> "View":
        data = self.filtered_data()
        self._update_scales(data)
        self._coord = self.coord_controller.build(self.start, self.end)
        self._render_geoms(data)
        self._render_axes()
        positions = self._position_fields()
        self.guide_controller.render(self.scales, self._coord, positions[0] if positions else ())
        self._state = STATE_RENDERED
        self._flush()
        LOGGER.debug("view rendered: %d geom(s), %d record(s)", len(self.geoms), len(data))
        return self

    @_alive
    def change_data(self, data: Any) -> "View":
        self.data = to_records(data)
        if self._state != STATE_RENDERED:
            return self.render()
        filtered = self.filtered_data()
        self._update_scales(filtered)
        if self._coord is None:
            self._coord = self.coord_controller.build(self.start, self.end)
        self._render_geoms(filtered)
        self._render_axes()
        self._flush()
        LOGGER.debug("view data changed: %d record(s)", len(self.data))
        return self

    @_alive
    def change_options(self, partial: ChartOptions | Mapping[str, Any]) -> "View":
        raw = option_overrides(partial)
        has_axes = "axes" in raw
        axes = raw.pop("axes", None)
        merged = merge_options(self.options, raw)
        if "geoms" in raw:
            self._clear_geoms()
            self.geoms = [create_geom(cfg, view=self) for cfg in merged.geoms]
        if "guides" in raw:
            self.guide_controller.clear()
            for guide in merged.guides:
                self.guide_controller.add(guide.kind, guide.spec)
        self.scale_controller.set_configs(merged.scales)
        self.coord_controller.reset(merged.coord)
        self._options = merged
        if has_axes:
            self._apply_axes(axes)
        return self.render()

    def _apply_axes(self, axes: Any) -> None:
        # Routed through axis() so suppression stashes and restores per-field overrides.
        if axes is False:
            self.axis(False)
        elif axes is True or axes is None:
            self.axis(True)
        elif isinstance(axes, Mapping):
            self.axis(True)
            for field, cfg in axes.items():
                self.axis(field, cfg)
        else:
            raise ChartConfigError("axes option must be a bool or a mapping of field to axis config")

    @_alive
    def clear(self) -> "View":
        self._clear_geoms()
        self.geoms = []
        self._options.geoms = []
        self.axis_controller.clear()
        self.guide_controller.clear_shapes()
        self._state = STATE_CLEARED
        self._flush()
        return self

    def destroy(self) -> None:
        if self.destroyed:
            raise ChartUsageError("View.destroy() called twice")
        self._clear_geoms()
        self.geoms = []
        self.axis_controller.clear()
        self.guide_controller.clear()
        self.scale_controller.clear()
        for layer in (self.back_plot, self.middle_plot, self.front_plot):
            layer.remove(destroy=True)
        self._coord = None
        self._state = STATE_DESTROYED
        self.destroyed = True
        LOGGER.debug("view destroyed")

    # -- internals --------------------------------------------------------

    def _update_scales(self, data: Sequence[Mapping[str, Any]]) -> None:
        fields: list[str] = []
        for geom in self.geoms:
            fields.extend(geom.fields)
        self.scale_controller.update_scales(data, fields)

    def _render_geoms(self, data: Sequence[Mapping[str, Any]]) -> None:
        scales = self.scale_controller.scales
        assert self._coord is not None
        for geom in self.geoms:
            if geom.container is None:
                geom.container = self.middle_plot.add_group(geom_type=geom.type)
            geom.init(data, scales, self._coord)
            geom.render()
            self.middle_plot.add(geom.container)

    def _render_axes(self) -> None:
        assert self._coord is not None
        self.axis_controller.render(self.get_x_scale(), self.get_y_scales(), self._coord, self._options)

    def _clear_geoms(self) -> None:
        for geom in self.geoms:
            geom.destroy()

    def _flush(self) -> None:
        draw = getattr(self.canvas, "draw", None)
        if callable(draw):
            draw()

    @_alive
    def get_axis_specs(self) -> list[AxisSpec]:
        return list(self.axis_controller.specs)

