"""Coordinate transforms from the normalized unit square to screen space.

A transform is a pure function of its rectangle, base type and action list:
building it twice from the same inputs yields identical conversions.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from chartview.errors import ChartConfigError
from chartview.options import COORD_ACTIONS, CoordConfig


LOGGER = logging.getLogger(__name__)

Point = tuple[float, float]


def as_point(value: Any) -> Point:
    if isinstance(value, Mapping):
        return (float(value["x"]), float(value["y"]))
    x, y = value
    return (float(x), float(y))


class Coord:
    type = "base"

    def __init__(self, start: Any, end: Any, actions: Iterable[Sequence[Any]] = ()) -> None:
        self.start = as_point(start)
        self.end = as_point(end)
        self.is_transposed = False
        self.actions: tuple[tuple[Any, ...], ...] = ()
        self._matrix = np.identity(3, dtype=np.float64)
        for action in actions:
            self._apply(tuple(action))

    @property
    def width(self) -> float:
        return abs(self.end[0] - self.start[0])

    @property
    def height(self) -> float:
        return abs(self.end[1] - self.start[1])

    @property
    def center(self) -> Point:
        return ((self.start[0] + self.end[0]) / 2.0, (self.start[1] + self.end[1]) / 2.0)

    @property
    def is_polar(self) -> bool:
        return False

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix.copy()

    def convert(self, point: Any) -> Point:
        tx, ty = as_point(point)
        if self.is_transposed:
            tx, ty = ty, tx
        sx, sy = self._convert_base(tx, ty)
        out = self._matrix @ np.asarray([sx, sy, 1.0], dtype=np.float64)
        return (float(out[0]), float(out[1]))

    def invert(self, point: Any) -> Point:
        sx, sy = as_point(point)
        inv = np.linalg.inv(self._matrix)
        base = inv @ np.asarray([sx, sy, 1.0], dtype=np.float64)
        tx, ty = self._invert_base(float(base[0]), float(base[1]))
        if self.is_transposed:
            tx, ty = ty, tx
        return (tx, ty)

    def sample_path(self, p0: Point, p1: Point, steps: int = 2) -> list[Point]:
        """Screen points along the normalized segment ``p0 -> p1``."""
        steps = max(2, steps)
        return [
            self.convert((p0[0] + (p1[0] - p0[0]) * i / (steps - 1), p0[1] + (p1[1] - p0[1]) * i / (steps - 1)))
            for i in range(steps)
        ]

    def transpose(self) -> "Coord":
        self.is_transposed = not self.is_transposed
        return self

    def reflect(self, dim: str = "y") -> "Coord":
        cx, cy = self.center
        if dim == "x":
            self._post(np.asarray([[-1.0, 0.0, 2.0 * cx], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]))
        elif dim == "y":
            self._post(np.asarray([[1.0, 0.0, 0.0], [0.0, -1.0, 2.0 * cy], [0.0, 0.0, 1.0]]))
        else:
            raise ChartConfigError(f"reflect dimension must be 'x' or 'y', got {dim!r}")
        return self

    def scale(self, sx: float = 1.0, sy: float = 1.0) -> "Coord":
        cx, cy = self.center
        self._post(np.asarray([[sx, 0.0, cx - sx * cx], [0.0, sy, cy - sy * cy], [0.0, 0.0, 1.0]]))
        return self

    def rotate(self, degrees: float) -> "Coord":
        cx, cy = self.center
        rad = math.radians(float(degrees))
        c, s = math.cos(rad), math.sin(rad)
        self._post(np.asarray([[c, -s, cx - c * cx + s * cy], [s, c, cy - s * cx - c * cy], [0.0, 0.0, 1.0]]))
        return self

    def _post(self, matrix: np.ndarray) -> None:
        self._matrix = matrix @ self._matrix

    def _apply(self, action: tuple[Any, ...]) -> None:
        if not action or action[0] not in COORD_ACTIONS:
            raise ChartConfigError(f"unknown coord action: {action!r}")
        name, args = action[0], action[1:]
        if name == "flip":
            name = "reflect"
        getattr(self, name)(*args)
        self.actions = self.actions + (action,)

    def _convert_base(self, tx: float, ty: float) -> Point:
        raise NotImplementedError

    def _invert_base(self, x: float, y: float) -> Point:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(start={self.start}, end={self.end}, actions={list(self.actions)})"


class RectCoord(Coord):
    type = "rect"

    def _convert_base(self, tx: float, ty: float) -> Point:
        x0, y0 = self.start
        x1, y1 = self.end
        return (x0 + tx * (x1 - x0), y0 + ty * (y1 - y0))

    def _invert_base(self, x: float, y: float) -> Point:
        x0, y0 = self.start
        x1, y1 = self.end
        tx = (x - x0) / (x1 - x0) if x1 != x0 else 0.0
        ty = (y - y0) / (y1 - y0) if y1 != y0 else 0.0
        return (tx, ty)


class PolarCoord(Coord):
    """Normalized x is the angle, normalized y the radius."""

    type = "polar"

    def __init__(
        self,
        start: Any,
        end: Any,
        actions: Iterable[Sequence[Any]] = (),
        *,
        start_angle: float = -90.0,
        end_angle: float = 270.0,
        radius: float = 1.0,
        inner_radius: float = 0.0,
    ) -> None:
        self.start_angle = float(start_angle)
        self.end_angle = float(end_angle)
        if self.end_angle == self.start_angle:
            raise ChartConfigError("polar coord start_angle and end_angle must differ")
        self.radius = float(radius)
        self.inner_radius = float(inner_radius)
        super().__init__(start, end, actions)

    @property
    def is_polar(self) -> bool:
        return True

    @property
    def outer_radius_px(self) -> float:
        return min(self.width, self.height) / 2.0 * self.radius

    @property
    def inner_radius_px(self) -> float:
        return min(self.width, self.height) / 2.0 * self.inner_radius

    def _convert_base(self, tx: float, ty: float) -> Point:
        cx, cy = self.center
        angle = math.radians(self.start_angle + tx * (self.end_angle - self.start_angle))
        r = self.inner_radius_px + ty * (self.outer_radius_px - self.inner_radius_px)
        return (cx + r * math.cos(angle), cy + r * math.sin(angle))

    def _invert_base(self, x: float, y: float) -> Point:
        cx, cy = self.center
        dx, dy = x - cx, y - cy
        span = self.end_angle - self.start_angle
        angle = math.degrees(math.atan2(dy, dx))
        while angle < min(self.start_angle, self.end_angle):
            angle += 360.0
        while angle > max(self.start_angle, self.end_angle):
            angle -= 360.0
        tx = (angle - self.start_angle) / span
        band = self.outer_radius_px - self.inner_radius_px
        ty = (math.hypot(dx, dy) - self.inner_radius_px) / band if band > 0 else 0.0
        return (tx, ty)

    def sample_path(self, p0: Point, p1: Point, steps: int = 2) -> list[Point]:
        if p0[0] != p1[0]:
            steps = max(steps, int(abs(p1[0] - p0[0]) * 72) + 2)
        return super().sample_path(p0, p1, steps)


def build_coord(
    start: Any,
    end: Any,
    type: str = "rect",
    actions: Iterable[Sequence[Any]] = (),
    **cfg: Any,
) -> Coord:
    if type == "rect":
        return RectCoord(start, end, actions)
    if type == "polar":
        return PolarCoord(start, end, actions, **cfg)
    raise ChartConfigError(f"unknown coord type: {type}")


class CoordController:
    """Holds the declarative coord config and builds transforms from it."""

    def __init__(self, config: CoordConfig | Mapping[str, Any] | None = None) -> None:
        self.config = CoordConfig.from_mapping(config)

    @property
    def type(self) -> str:
        return self.config.type

    @property
    def actions(self) -> list[tuple[Any, ...]]:
        return list(self.config.actions)

    def reset(self, config: CoordConfig | Mapping[str, Any] | None = None) -> "CoordController":
        self.config = CoordConfig.from_mapping(config)
        return self

    def transpose(self) -> "CoordController":
        return self._push(("transpose",))

    def reflect(self, dim: str = "y") -> "CoordController":
        return self._push(("reflect", dim))

    def scale(self, sx: float = 1.0, sy: float = 1.0) -> "CoordController":
        return self._push(("scale", sx, sy))

    def rotate(self, degrees: float) -> "CoordController":
        return self._push(("rotate", degrees))

    def _push(self, action: tuple[Any, ...]) -> "CoordController":
        cfg = self.config
        self.config = CoordConfig(
            type=cfg.type,
            actions=cfg.actions + (action,),
            start_angle=cfg.start_angle,
            end_angle=cfg.end_angle,
            radius=cfg.radius,
            inner_radius=cfg.inner_radius,
        )
        return self

    def build(self, start: Any, end: Any) -> Coord:
        cfg = self.config
        extra: dict[str, Any] = {}
        if cfg.type == "polar":
            extra = {
                "start_angle": cfg.start_angle,
                "end_angle": cfg.end_angle,
                "radius": cfg.radius,
                "inner_radius": cfg.inner_radius,
            }
        coord = build_coord(start, end, cfg.type, cfg.actions, **extra)
        LOGGER.debug("built %r", coord)
        return coord
