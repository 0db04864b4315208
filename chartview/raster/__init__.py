from .canvas import draw_hline, draw_pixel, draw_vline, fill_polygon, fill_rect, new_canvas
from .colors import is_color_literal, parse_color
from .draw_lines import draw_polyline
from .draw_markers import MARKER_SYMBOLS, draw_disc, draw_marker
from .draw_text import draw_text, text_size

__all__ = [
    "MARKER_SYMBOLS",
    "draw_disc",
    "draw_hline",
    "draw_marker",
    "draw_pixel",
    "draw_polyline",
    "draw_text",
    "draw_vline",
    "fill_polygon",
    "fill_rect",
    "is_color_literal",
    "new_canvas",
    "parse_color",
    "text_size",
]
