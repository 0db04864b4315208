from __future__ import annotations

import importlib.util
import unittest

import numpy as np

from chartview import Canvas, View
from chartview.attrs import DEFAULT_COLOR
from chartview.errors import ChartUsageError
from chartview.scales import CategoryScale, LinearScale


DATA = [
    {"a": 1, "b": 2, "c": "1"},
    {"a": 2, "b": 5, "c": "1"},
    {"a": 3, "b": 4, "c": "1"},
]
HAS_PANDAS = importlib.util.find_spec("pandas") is not None


def _view(**kwargs) -> tuple[Canvas, View]:
    canvas = Canvas(500, 500)
    view = View(canvas=canvas, start={"x": 0, "y": 500}, end={"x": 500, "y": 0}, **kwargs)
    return canvas, view


class ViewMethodTests(unittest.TestCase):
    """Builder calls followed by the render / change / clear / destroy lifecycle."""

    def setUp(self) -> None:
        self.canvas, self.view = _view()

    def test_scale(self) -> None:
        self.view.scale("a", {"type": "linear", "min": 0})
        self.view.scale("b", {"type": "cat"})
        scales = self.view.options.scales
        self.assertEqual(scales["a"].type, "linear")
        self.assertEqual(scales["a"].min, 0)
        self.assertEqual(scales["b"].type, "cat")

    def test_axis(self) -> None:
        self.view.axis(False)
        self.assertFalse(self.view.options.axes)
        self.view.axis(True)
        self.assertEqual(self.view.options.axes, {})
        self.view.axis("a", {"title": None})
        self.assertIsNone(self.view.options.axes["a"].title)

    def test_axis_customizations_survive_suppression(self) -> None:
        self.view.axis("a", {"title": None})
        self.view.axis(False)
        self.view.axis("b", {"position": "right"})
        self.assertFalse(self.view.options.axes)
        self.view.axis(True)
        axes = self.view.options.axes
        self.assertIsNone(axes["a"].title)
        self.assertEqual(axes["b"].position, "right")

    def test_axes_option_toggle_keeps_customizations(self) -> None:
        self.view.source(DATA)
        self.view.line().position("a*b")
        self.view.axis("a", {"title": None})
        self.view.render()
        self.view.change_options({"axes": False})
        self.assertFalse(self.view.options.axes)
        self.assertEqual(self.view.get_axis_specs(), [])
        self.view.change_options({"axes": True})
        self.assertIsNone(self.view.options.axes["a"].title)
        spec = {s.field: s for s in self.view.get_axis_specs()}
        self.assertIsNone(spec["a"].title)
        self.assertIsNotNone(spec["b"].title)

    def test_guide(self) -> None:
        guide = self.view.guide()
        guide.line({"start": {"a": 1, "b": 2}, "end": {"a": 3, "b": 5}})
        guide.text({"position": {"a": 1, "b": 2}, "content": "test text"})
        self.assertEqual([g.kind for g in self.view.options.guides], ["line", "text"])

    def test_source(self) -> None:
        self.view.source(DATA)
        self.assertIs(self.view.get("data"), DATA)
        self.view.source(DATA, {"a": {"min": 0}})
        self.assertEqual(self.view.options.scales["a"].min, 0)

    def test_line(self) -> None:
        line = self.view.line().position("a*b").color("c")
        self.assertEqual(line.get("type"), "line")
        self.assertEqual(line.get("attrOptions")["position"].field, "a*b")
        self.assertEqual(line.get("attr_options")["color"].field, "c")
        self.assertEqual(len(self.view.geoms), 1)

    def test_render_change_data_clear_destroy(self) -> None:
        self.view.source(DATA)
        self.view.line().position("a*b").color("c")
        self.view.render()
        self.assertEqual(self.view.state, "rendered")
        group = self.view.get("viewContainer")
        self.assertEqual(group.get_count(), 1)
        self.assertEqual(self.view.scales["a"].max, 3)
        path = group.get_first().get_first()
        self.assertEqual(len(path.attr("path")), 3)

        self.view.change_data(DATA + [{"a": 4, "b": 3, "c": "1"}])
        self.assertEqual(self.view.scales["a"].max, 4)
        self.assertIs(group.get_first().get_first(), path)
        self.assertEqual(len(path.attr("path")), 4)

        self.view.clear()
        self.assertEqual(self.view.state, "cleared")
        self.assertEqual(group.get_count(), 0)
        self.assertEqual(self.view.geoms, [])
        self.view.clear()

        self.view.destroy()
        self.assertTrue(self.view.destroyed)
        self.assertEqual(self.canvas.get_count(), 0)
        with self.assertRaises(ChartUsageError):
            self.view.render()
        with self.assertRaises(ChartUsageError):
            self.view.change_data(DATA)
        with self.assertRaises(ChartUsageError):
            self.view.destroy()


class ViewOptionsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.canvas, self.view = _view(
            data=DATA,
            options={
                "scales": {"a": {"type": "linear", "min": 0}},
                "coord": {"actions": [["transpose"]]},
                "geoms": [
                    {"type": "line", "position": "a*b", "color": "c"},
                    {"type": "point", "position": "a*b", "color": "c"},
                ],
            },
        )

    def test_options_are_applied(self) -> None:
        self.assertEqual(len(self.view.geoms), 2)
        self.assertEqual([g.type for g in self.view.geoms], ["line", "point"])
        self.view.render()
        self.assertTrue(self.view.coord_transform.is_transposed)
        self.assertEqual(self.view.scales["a"].min, 0.0)
        self.assertEqual(self.view.get("middlePlot").get_count(), 2)

    def test_clear_then_change_options(self) -> None:
        self.view.render()
        self.view.clear()
        self.assertEqual(self.view.get("viewContainer").get_count(), 0)
        self.view.change_options({"geoms": [{"type": "interval", "position": "a*b", "color": "c"}]})
        self.assertEqual(self.view.state, "rendered")
        self.assertEqual(len(self.view.geoms), 1)
        self.assertEqual(self.view.get("viewContainer").get_count(), 1)
        self.assertTrue(self.view.coord_transform.is_transposed)

    def test_change_options_replaces_coord(self) -> None:
        self.view.render()
        self.view.change_options({"coord": {"type": "polar"}})
        coord = self.view.coord_transform
        self.assertTrue(coord.is_polar)
        self.assertFalse(coord.is_transposed)
        self.assertEqual(len(self.view.geoms), 2)


class ViewBehaviourTests(unittest.TestCase):
    def test_render_flushes_canvas_once(self) -> None:
        canvas, view = _view(data=DATA)
        view.line().position("a*b")
        view.render()
        self.assertEqual(canvas.draw_count, 1)
        frame = canvas.last_frame()
        self.assertEqual(frame.shape, (500, 500, 4))
        self.assertGreater(int(frame[..., 3].max()), 0)

    def test_unknown_color_field_falls_back_to_default(self) -> None:
        canvas, view = _view(data=DATA)
        view.line().position("a*b").color("missing")
        with self.assertLogs("chartview.attrs", level="WARNING"):
            view.render()
        path = view.get("middlePlot").get_first().get_first()
        self.assertEqual(path.attr("stroke"), DEFAULT_COLOR)
        self.assertEqual(canvas.draw_count, 1)

    def test_axes_and_guides_render_into_their_layers(self) -> None:
        _, view = _view(data=DATA)
        view.line().position("a*b")
        view.guide().line({"start": {"a": 1, "b": 2}, "end": {"a": 3, "b": 5}})
        view.render()
        self.assertEqual(view.get("backPlot").get_count(), 2)
        self.assertEqual(view.get("frontPlot").get_count(), 1)
        self.assertEqual([s.position for s in view.get_axis_specs()], ["bottom", "left"])

    def test_change_data_leaves_guides_untouched(self) -> None:
        _, view = _view(data=DATA)
        view.line().position("a*b")
        view.guide().text({"position": {"a": 1, "b": 2}, "content": "origin"})
        view.render()
        text = view.get("frontPlot").get_first().get_first()
        view.change_data(DATA + [{"a": 9, "b": 9, "c": "1"}])
        self.assertIs(view.get("frontPlot").get_first().get_first(), text)

    def test_change_data_before_render_renders(self) -> None:
        _, view = _view()
        view.line().position("a*b")
        view.change_data(DATA)
        self.assertEqual(view.state, "rendered")
        self.assertEqual(view.get("viewContainer").get_count(), 1)

    def test_filter_excludes_records(self) -> None:
        _, view = _view(data=DATA)
        view.line().position("a*b")
        view.filter("a", lambda value: value < 3)
        view.render()
        self.assertEqual(view.scales["a"].max, 2)
        view.filter("a", None)
        self.assertEqual(len(view.filtered_data()), 3)

    def test_scale_types_inferred(self) -> None:
        _, view = _view(data=DATA)
        view.point().position("c*b")
        view.render()
        self.assertIsInstance(view.get_x_scale(), CategoryScale)
        self.assertIsInstance(view.get_y_scales()[0], LinearScale)

    def test_invert_point(self) -> None:
        _, view = _view(data=DATA)
        view.line().position("a*b")
        view.render()
        values = view.invert_point((250, 250))
        self.assertAlmostEqual(values["a"], 2.0)
        self.assertAlmostEqual(values["b"], 3.5)

    def test_empty_data_renders_nothing(self) -> None:
        _, view = _view(data=[])
        view.line().position("a*b")
        view.render()
        self.assertEqual(view.get("viewContainer").get_first().get_count(), 0)

    def test_numpy_structured_source(self) -> None:
        arr = np.array([(1, 2.0), (2, 5.0)], dtype=[("a", "i4"), ("b", "f8")])
        _, view = _view(data=arr)
        view.line().position("a*b")
        view.render()
        self.assertEqual(view.scales["b"].max, 5.0)

    @unittest.skipUnless(HAS_PANDAS, "pandas not installed")
    def test_dataframe_source(self) -> None:
        import pandas as pd

        _, view = _view(data=pd.DataFrame(DATA))
        view.line().position("a*b")
        view.render()
        self.assertEqual(view.scales["a"].max, 3)

    def test_camel_case_aliases(self) -> None:
        _, view = _view()
        self.assertIs(view.get("scaleController"), view.scale_controller)
        self.assertIs(view.get("coordController"), view.coord_controller)


if __name__ == "__main__":
    unittest.main()
