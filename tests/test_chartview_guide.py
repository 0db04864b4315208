from __future__ import annotations

import unittest

from chartview.coord import RectCoord
from chartview.errors import ChartConfigError
from chartview.guide import GuideController
from chartview.scales import create_scale
from chartview.scene import Group


def _scales():
    return {"a": create_scale("a", [1, 2, 3]), "b": create_scale("b", [2, 5, 4])}


COORD = RectCoord((0, 100), (100, 0))


class GuideDeclarationTests(unittest.TestCase):
    def test_builders_chain_and_record_options(self) -> None:
        guide = GuideController()
        out = guide.line({"start": [1, 2], "end": [3, 5]}).text({"position": [2, 3], "content": "hi"})
        self.assertIs(out, guide)
        self.assertEqual([cfg.kind for cfg in guide.options], ["line", "text"])
        self.assertEqual(len(guide.get_options("text")), 1)

    def test_missing_required_keys_rejected(self) -> None:
        guide = GuideController()
        with self.assertRaises(ChartConfigError):
            guide.line({"start": [1, 2]})
        with self.assertRaises(ChartConfigError):
            guide.text({"position": [1, 2]})
        with self.assertRaises(ChartConfigError):
            guide.add("legend", {})
        self.assertEqual(guide.options, [])


class GuideRenderTests(unittest.TestCase):
    def test_line_resolves_field_mappings(self) -> None:
        container = Group()
        guide = GuideController(container)
        guide.line({"start": {"a": 1, "b": 2}, "end": {"a": 3, "b": 5}, "text": {"content": "peak", "position": 0.3}})
        groups = guide.render(_scales(), COORD, ("a", "b"))
        self.assertEqual(len(groups), 1)
        path, label = groups[0].get_children()
        segments = path.attr("path")
        self.assertEqual(segments[0], ["M", 0.0, 100.0])
        self.assertEqual(segments[-1], ["L", 100.0, 0.0])
        self.assertAlmostEqual(label.attr("x"), 30.0)
        self.assertAlmostEqual(label.attr("y"), 70.0)
        self.assertEqual(label.attr("text"), "peak")

    def test_region_accepts_keywords_and_percentages(self) -> None:
        container = Group()
        guide = GuideController(container)
        guide.region({"start": ["min", "min"], "end": ["max", "50%"]})
        groups = guide.render(_scales(), COORD, ("a", "b"))
        segments = groups[0].get_first().attr("path")
        self.assertEqual(segments[0], ["M", 0.0, 100.0])
        self.assertEqual(segments[-1], ["Z"])
        ys = [seg[2] for seg in segments[:-1]]
        self.assertEqual(min(ys), 50.0)

    def test_text_with_median_and_pairs(self) -> None:
        container = Group()
        guide = GuideController(container)
        guide.text({"position": ["median", 5], "content": "top", "offset_y": -4})
        groups = guide.render(_scales(), COORD, ("a", "b"))
        text = groups[0].get_first()
        self.assertEqual((text.attr("x"), text.attr("y")), (50.0, -4.0))

    def test_unknown_category_warns(self) -> None:
        scales = {"c": create_scale("c", ["x", "y"]), "b": create_scale("b", [1, 2])}
        guide = GuideController(Group())
        guide.text({"position": ["zz", 1], "content": "?"})
        with self.assertLogs("chartview.guide", level="WARNING"):
            guide.render(scales, COORD, ("c", "b"))

    def test_rerender_replaces_groups(self) -> None:
        container = Group()
        guide = GuideController(container)
        guide.line({"start": [1, 2], "end": [3, 5]})
        guide.render(_scales(), COORD, ("a", "b"))
        guide.render(_scales(), COORD, ("a", "b"))
        self.assertEqual(container.get_count(), 1)

    def test_clear_shapes_keeps_declarations(self) -> None:
        container = Group()
        guide = GuideController(container)
        guide.line({"start": [1, 2], "end": [3, 5]})
        guide.render(_scales(), COORD, ("a", "b"))
        guide.clear_shapes()
        self.assertEqual(container.get_count(), 0)
        self.assertEqual(len(guide.options), 1)
        guide.clear()
        self.assertEqual(guide.options, [])


if __name__ == "__main__":
    unittest.main()
