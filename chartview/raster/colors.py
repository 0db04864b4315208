from __future__ import annotations

from typing import Any

from chartview.raster.canvas import RGBA


NAMED_COLORS: dict[str, RGBA] = {
    "black": (0, 0, 0, 255),
    "white": (255, 255, 255, 255),
    "red": (255, 0, 0, 255),
    "green": (0, 128, 0, 255),
    "blue": (0, 0, 255, 255),
    "gray": (128, 128, 128, 255),
    "grey": (128, 128, 128, 255),
    "orange": (255, 165, 0, 255),
    "yellow": (255, 255, 0, 255),
    "purple": (128, 0, 128, 255),
    "transparent": (0, 0, 0, 0),
}


def parse_color(value: Any, opacity: float = 1.0) -> RGBA | None:
    """Resolve a style colour into RGBA; ``None`` means "do not paint"."""
    if value is None:
        return None
    if isinstance(value, (tuple, list)):
        if len(value) == 3:
            r, g, b = value
            a = 255
        elif len(value) == 4:
            r, g, b, a = value
        else:
            raise ValueError(f"unsupported colour tuple: {value!r}")
        return (int(r), int(g), int(b), _apply_opacity(int(a), opacity))
    text = str(value).strip().lower()
    if text in NAMED_COLORS:
        r, g, b, a = NAMED_COLORS[text]
        return (r, g, b, _apply_opacity(a, opacity))
    if text.startswith("#"):
        digits = text[1:]
        if len(digits) in {3, 4}:
            digits = "".join(ch * 2 for ch in digits)
        if len(digits) not in {6, 8}:
            raise ValueError(f"unsupported colour literal: {value!r}")
        channels = [int(digits[i : i + 2], 16) for i in range(0, len(digits), 2)]
        a = channels[3] if len(channels) == 4 else 255
        return (channels[0], channels[1], channels[2], _apply_opacity(a, opacity))
    raise ValueError(f"unsupported colour: {value!r}")


def is_color_literal(value: Any) -> bool:
    try:
        return parse_color(value) is not None
    except ValueError:
        return False


def _apply_opacity(alpha: int, opacity: float) -> int:
    return int(round(max(0.0, min(1.0, float(opacity))) * alpha))
