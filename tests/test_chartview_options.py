from __future__ import annotations

import unittest

from chartview.errors import ChartConfigError
from chartview.options import (
    UNSET,
    AxisConfig,
    ChartOptions,
    CoordConfig,
    GeomConfig,
    GuideConfig,
    ScaleConfig,
    merge_options,
)


class ScaleConfigTests(unittest.TestCase):
    def test_unknown_key_rejected(self) -> None:
        with self.assertRaises(ChartConfigError):
            ScaleConfig.from_mapping({"maximum": 3})

    def test_min_greater_than_max_rejected(self) -> None:
        with self.assertRaises(ChartConfigError):
            ScaleConfig(min=5, max=1)

    def test_values_normalized_to_tuple(self) -> None:
        cfg = ScaleConfig.from_mapping({"type": "cat", "values": ["b", "a"]})
        self.assertEqual(cfg.values, ("b", "a"))
        self.assertEqual(cfg.pinned(), {"values": ("b", "a")})

    def test_merged_overlays_keys(self) -> None:
        cfg = ScaleConfig(min=0).merged({"max": 10})
        self.assertEqual((cfg.min, cfg.max), (0, 10))

    def test_config_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            ScaleConfig(tick_count=0)


class AxisConfigTests(unittest.TestCase):
    def test_false_disables(self) -> None:
        self.assertFalse(AxisConfig.from_mapping(False).enabled)
        self.assertTrue(AxisConfig.from_mapping(None).enabled)

    def test_parts_default_to_unset(self) -> None:
        cfg = AxisConfig.from_mapping({"title": None})
        self.assertIsNone(cfg.title)
        self.assertIs(cfg.label, UNSET)

    def test_non_mapping_part_rejected(self) -> None:
        with self.assertRaises(ChartConfigError):
            AxisConfig.from_mapping({"grid": "dashed"})

    def test_merged_combines_part_mappings(self) -> None:
        cfg = AxisConfig.from_mapping({"label": {"offset": 4}})
        merged = cfg.merged({"label": {"text_style": {"fill": "#333"}}})
        self.assertEqual(merged.label, {"offset": 4, "text_style": {"fill": "#333"}})
        self.assertTrue(merged.enabled)


class CoordConfigTests(unittest.TestCase):
    def test_actions_normalized(self) -> None:
        cfg = CoordConfig.from_mapping({"actions": ["transpose", ["reflect", "y"]]})
        self.assertEqual(cfg.actions, (("transpose",), ("reflect", "y")))

    def test_unknown_type_and_action_rejected(self) -> None:
        with self.assertRaises(ChartConfigError):
            CoordConfig(type="helix")
        with self.assertRaises(ChartConfigError):
            CoordConfig(actions=(("shear", 1),))

    def test_radii_validated(self) -> None:
        with self.assertRaises(ChartConfigError):
            CoordConfig(type="polar", inner_radius=0.8, radius=0.5)


class GeomAndGuideConfigTests(unittest.TestCase):
    def test_geom_requires_known_type(self) -> None:
        with self.assertRaises(ChartConfigError):
            GeomConfig.from_mapping({"position": "a*b"})
        with self.assertRaises(ChartConfigError):
            GeomConfig.from_mapping({"type": "candle"})
        cfg = GeomConfig.from_mapping({"type": "line", "position": "a*b", "color": "c"})
        self.assertEqual(cfg.color, "c")

    def test_guide_spec_collected_from_flat_mapping(self) -> None:
        cfg = GuideConfig.from_mapping({"kind": "text", "position": [1, 2], "content": "hi"})
        self.assertEqual(cfg.kind, "text")
        self.assertEqual(cfg.spec, {"position": [1, 2], "content": "hi"})


class MergeOptionsTests(unittest.TestCase):
    def test_from_mapping_coerces_nested_configs(self) -> None:
        options = ChartOptions.from_mapping({
            "scales": {"a": {"min": 0}},
            "coord": {"actions": [["transpose"]]},
            "geoms": [{"type": "line", "position": "a*b"}],
        })
        self.assertIsInstance(options.scales["a"], ScaleConfig)
        self.assertTrue(options.coord.actions)
        self.assertIsInstance(options.geoms[0], GeomConfig)

    def test_scales_merge_per_field(self) -> None:
        base = ChartOptions.from_mapping({"scales": {"a": {"min": 0}, "b": {"max": 9}}})
        merged = merge_options(base, {"scales": {"a": {"max": 5}}})
        self.assertEqual((merged.scales["a"].min, merged.scales["a"].max), (0, 5))
        self.assertEqual(merged.scales["b"].max, 9)
        self.assertIsNone(base.scales["a"].max)

    def test_geoms_replaced_wholesale(self) -> None:
        base = ChartOptions.from_mapping({
            "geoms": [{"type": "line", "position": "a*b"}, {"type": "point", "position": "a*b"}],
        })
        merged = merge_options(base, {"geoms": [{"type": "area", "position": "a*b"}]})
        self.assertEqual([g.type for g in merged.geoms], ["area"])

    def test_omitted_sections_are_kept(self) -> None:
        base = ChartOptions.from_mapping({"coord": {"type": "polar"}, "animate": True})
        merged = merge_options(base, {"scales": {"a": {"min": 1}}})
        self.assertEqual(merged.coord.type, "polar")
        self.assertTrue(merged.animate)

    def test_axes_false_suppresses_everything(self) -> None:
        options = ChartOptions.from_mapping({"axes": False})
        self.assertIsNone(options.axis_config("a"))
        options = merge_options(options, {"axes": {"a": {"title": None}}})
        self.assertIsNone(options.axis_config("a").title)
        self.assertTrue(options.axis_config("b").enabled)

    def test_chart_options_partial_overlays_non_default_fields(self) -> None:
        base = ChartOptions.from_mapping({"scales": {"a": {"min": 0}}, "animate": True})
        merged = merge_options(base, ChartOptions(coord=CoordConfig(type="polar")))
        self.assertEqual(merged.coord.type, "polar")
        self.assertEqual(merged.scales["a"].min, 0)
        self.assertTrue(merged.animate)

    def test_unknown_top_level_key_rejected(self) -> None:
        with self.assertRaises(ChartConfigError):
            ChartOptions.from_mapping({"legend": {}})


if __name__ == "__main__":
    unittest.main()
