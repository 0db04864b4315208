from chartview.axis import AxisController, AxisSpec
from chartview.coord import Coord, CoordController, PolarCoord, RectCoord, build_coord
from chartview.errors import ChartConfigError, ChartError, ChartUsageError
from chartview.geom import Area, Geom, Interval, Line, Path, Point, create_geom
from chartview.guide import GuideController
from chartview.options import AxisConfig, ChartOptions, CoordConfig, GeomConfig, GuideConfig, ScaleConfig, merge_options
from chartview.scale_controller import ScaleController
from chartview.scales import CategoryScale, IdentityScale, LinearScale, Scale, TimeScale, create_scale
from chartview.scene import Canvas, Group, Shape
from chartview.view import View

__all__ = [
    "Area",
    "AxisConfig",
    "AxisController",
    "AxisSpec",
    "Canvas",
    "CategoryScale",
    "ChartConfigError",
    "ChartError",
    "ChartOptions",
    "ChartUsageError",
    "Coord",
    "CoordConfig",
    "CoordController",
    "Geom",
    "GeomConfig",
    "Group",
    "GuideConfig",
    "GuideController",
    "IdentityScale",
    "Interval",
    "Line",
    "LinearScale",
    "Path",
    "Point",
    "PolarCoord",
    "RectCoord",
    "Scale",
    "ScaleConfig",
    "ScaleController",
    "Shape",
    "TimeScale",
    "View",
    "build_coord",
    "create_geom",
    "create_scale",
    "merge_options",
]
