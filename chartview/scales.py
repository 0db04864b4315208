from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from numbers import Real
from typing import Any, Iterable, Sequence

import numpy as np

from chartview.options import ScaleConfig


LOGGER = logging.getLogger(__name__)

DEFAULT_TIME_MASK = "%Y-%m-%d"
_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)


@dataclass(frozen=True)
class Tick:
    value: Any
    text: str
    t: float


class Scale:
    """Maps a field's raw values into ``[0, 1]`` and back.

    A scale is fitted to the values of its field (``fit``) and can be
    reconfigured in place (``change``); geoms and axes hold a reference to the
    same object, so refitting on new data is visible without a re-lookup.
    """

    type = "base"

    def __init__(self, field: str, config: ScaleConfig | None = None) -> None:
        self.field = field
        self.config = config or ScaleConfig()
        self._values: tuple[Any, ...] = ()

    @property
    def alias(self) -> str:
        return self.config.alias or self.field

    @property
    def is_categorical(self) -> bool:
        return False

    @property
    def domain(self) -> list[Any]:
        raise NotImplementedError

    def fit(self, values: Iterable[Any]) -> "Scale":
        self._values = tuple(values)
        self._refit()
        return self

    def change(self, config: ScaleConfig) -> "Scale":
        self.config = config
        self._refit()
        return self

    def scale(self, value: Any) -> float:
        raise NotImplementedError

    def invert(self, t: float) -> Any:
        raise NotImplementedError

    def get_ticks(self) -> list[Tick]:
        return []

    def get_text(self, value: Any) -> str:
        if self.config.formatter is not None:
            return str(self.config.formatter(value))
        return str(value)

    def _refit(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(field={self.field!r}, domain={self.domain!r})"


class CategoryScale(Scale):
    type = "cat"

    def __init__(self, field: str, config: ScaleConfig | None = None) -> None:
        super().__init__(field, config)
        self.values: list[Any] = []

    @property
    def is_categorical(self) -> bool:
        return True

    @property
    def domain(self) -> list[Any]:
        return list(self.values)

    def _refit(self) -> None:
        if self.config.values is not None:
            self.values = list(self.config.values)
            return
        seen: dict[Any, None] = {}
        for value in self._values:
            if value is not None:
                seen.setdefault(value, None)
        self.values = list(seen)

    def index(self, value: Any) -> int:
        try:
            return self.values.index(value)
        except ValueError:
            return -1

    def scale(self, value: Any) -> float:
        count = len(self.values)
        idx = self.index(value)
        if idx < 0:
            return 0.0
        if count == 1:
            return 0.5
        return idx / (count - 1)

    def band(self, value: Any) -> tuple[float, float]:
        count = max(1, len(self.values))
        idx = max(0, self.index(value))
        return (idx / count, (idx + 1) / count)

    def invert(self, t: float) -> Any:
        if not self.values:
            return None
        count = len(self.values)
        if count == 1:
            return self.values[0]
        idx = int(round(max(0.0, min(1.0, float(t))) * (count - 1)))
        return self.values[idx]

    def get_ticks(self) -> list[Tick]:
        return [Tick(value=v, text=self.get_text(v), t=self.scale(v)) for v in self.values]


class LinearScale(Scale):
    type = "linear"

    def __init__(self, field: str, config: ScaleConfig | None = None) -> None:
        super().__init__(field, config)
        self.min: float | None = None
        self.max: float | None = None

    @property
    def domain(self) -> list[Any]:
        if self.min is None or self.max is None:
            return []
        return [self.min, self.max]

    def _to_number(self, value: Any) -> float | None:
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (Real, Decimal)):
            out = float(value)
            return out if math.isfinite(out) else None
        try:
            out = float(value)
        except (TypeError, ValueError):
            return None
        return out if math.isfinite(out) else None

    def _refit(self) -> None:
        nums = [n for n in (self._to_number(v) for v in self._values) if n is not None]
        data_min = float(np.min(nums)) if nums else None
        data_max = float(np.max(nums)) if nums else None
        pinned_min = self._to_number(self.config.min)
        pinned_max = self._to_number(self.config.max)
        vmin = pinned_min if pinned_min is not None else data_min
        vmax = pinned_max if pinned_max is not None else data_max
        if vmin is None and vmax is None:
            self.min = self.max = None
            return
        if vmin is None:
            vmin = min(vmax, data_min) if data_min is not None else vmax
        if vmax is None:
            vmax = max(vmin, data_max) if data_max is not None else vmin
        if vmax < vmin:
            # A pin on one side only can leave the data on the wrong side of it.
            if pinned_min is not None:
                vmax = vmin
            else:
                vmin = vmax
        if self.config.nice and vmax > vmin:
            ticks = generate_nice_ticks(vmin, vmax, self.config.tick_count)
            if pinned_min is None:
                vmin = float(ticks[0])
            if pinned_max is None:
                vmax = float(ticks[-1])
        self.min = vmin
        self.max = vmax

    def scale(self, value: Any) -> float:
        num = self._to_number(value)
        if num is None or self.min is None or self.max is None or self.max == self.min:
            return 0.0
        t = (num - self.min) / (self.max - self.min)
        return max(0.0, min(1.0, t))

    def invert(self, t: float) -> Any:
        if self.min is None or self.max is None:
            return None
        return self.min + float(t) * (self.max - self.min)

    def get_ticks(self) -> list[Tick]:
        if self.min is None or self.max is None:
            return []
        ticks = ticks_within_range(
            generate_nice_ticks(self.min, self.max, self.config.tick_count),
            vmin=self.min,
            vmax=self.max,
        )
        if self.config.formatter is not None:
            texts = [self.get_text(float(v)) for v in ticks]
        else:
            texts = format_ticks_for_axis(ticks)
        return [Tick(value=float(v), text=text, t=self.scale(float(v))) for v, text in zip(ticks, texts, strict=False)]


class TimeScale(LinearScale):
    """Linear scale over epoch milliseconds."""

    type = "time"

    def _to_number(self, value: Any) -> float | None:
        return to_timestamp_ms(value)

    def invert(self, t: float) -> Any:
        ms = super().invert(t)
        if ms is None:
            return None
        return _EPOCH + dt.timedelta(milliseconds=ms)

    def get_text(self, value: Any) -> str:
        if self.config.formatter is not None:
            return str(self.config.formatter(value))
        ms = to_timestamp_ms(value)
        if ms is None:
            return str(value)
        stamp = _EPOCH + dt.timedelta(milliseconds=ms)
        return stamp.strftime(self.config.mask or DEFAULT_TIME_MASK)

    def get_ticks(self) -> list[Tick]:
        if self.min is None or self.max is None:
            return []
        ticks = ticks_within_range(
            generate_nice_ticks(self.min, self.max, self.config.tick_count),
            vmin=self.min,
            vmax=self.max,
        )
        return [Tick(value=float(v), text=self.get_text(float(v)), t=self.scale(float(v))) for v in ticks]


class IdentityScale(Scale):
    """Degenerate scale for a field that appears in neither data nor config.

    Every value maps to ``0.0`` so geometry still renders at the clamped
    origin; the field name itself is kept as a literal for colour/shape use.
    """

    type = "identity"

    @property
    def domain(self) -> list[Any]:
        return []

    @property
    def value(self) -> str:
        return self.field

    def scale(self, value: Any) -> float:
        return 0.0

    def invert(self, t: float) -> Any:
        return self.field


SCALE_CLASSES: dict[str, type[Scale]] = {
    "cat": CategoryScale,
    "linear": LinearScale,
    "time": TimeScale,
    "identity": IdentityScale,
}


def create_scale(field: str, values: Sequence[Any], config: ScaleConfig | None = None) -> Scale:
    config = config or ScaleConfig()
    scale_type = config.type
    if scale_type is None:
        scale_type = "cat" if config.values is not None else infer_scale_type(values)
    return SCALE_CLASSES[scale_type](field, config).fit(values)


def infer_scale_type(values: Iterable[Any]) -> str:
    present = [v for v in values if v is not None]
    if not present:
        return "identity"
    if all(isinstance(v, (Real, Decimal)) and not isinstance(v, bool) for v in present):
        return "linear"
    if all(isinstance(v, (dt.datetime, dt.date)) for v in present):
        return "time"
    if all(isinstance(v, str) and _parse_iso(v) is not None for v in present):
        return "time"
    return "cat"


def to_timestamp_ms(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (Real, Decimal)):
        out = float(value)
        return out if math.isfinite(out) else None
    if isinstance(value, np.datetime64):
        return float(value.astype("datetime64[ms]").astype(np.int64))
    if isinstance(value, str):
        value = _parse_iso(value)
        if value is None:
            return None
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt.timezone.utc)
        return (value - _EPOCH).total_seconds() * 1000.0
    if isinstance(value, dt.date):
        return to_timestamp_ms(dt.datetime(value.year, value.month, value.day))
    return None


def _parse_iso(text: str) -> dt.datetime | None:
    # Bare numbers parse as ISO years on some interpreters; those are categories here.
    if len(text) < 8 or text.strip().lstrip("-").isdigit():
        return None
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError:
        return None


def generate_nice_ticks(vmin: float, vmax: float, target: int) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)

    span = _nice_number(vmax - vmin, round_result=False)
    step = _nice_number(span / max(target - 1, 1), round_result=True)
    tick_min = np.floor(vmin / step) * step
    tick_max = np.ceil(vmax / step) * step

    ticks = np.arange(tick_min, tick_max + 0.5 * step, step, dtype=np.float64)
    # Snap floating-point drift so values like -4.44e-16 become 0.
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def ticks_within_range(ticks: np.ndarray, *, vmin: float, vmax: float) -> np.ndarray:
    if ticks.size == 0:
        return ticks
    step = float(abs(ticks[1] - ticks[0])) if ticks.size > 1 else max(1e-12, abs(vmax - vmin))
    eps = max(1e-12, step * 1e-6)
    out = ticks[(ticks >= vmin - eps) & (ticks <= vmax + eps)]
    if out.size == 0:
        return np.asarray([vmin, vmax] if vmax > vmin else [vmin], dtype=np.float64)
    return out


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e6 or abs_v < 1e-6):
        return f"{value:.4e}"

    try:
        q = Decimal(str(value)).quantize(Decimal("1").scaleb(-decimals))
    except InvalidOperation:
        q = Decimal(str(value))
    out = format(q, "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)

    if round_result:
        if frac < 1.5:
            nice_frac = 1.0
        elif frac < 3.0:
            nice_frac = 2.0
        elif frac < 7.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0
    else:
        if frac <= 1.0:
            nice_frac = 1.0
        elif frac <= 2.0:
            nice_frac = 2.0
        elif frac <= 5.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0

    return float(nice_frac * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    exp = Decimal(str(step)).normalize().as_tuple().exponent
    return min(12, max(0, -int(exp)))
