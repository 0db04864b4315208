from __future__ import annotations

import datetime as dt
import unittest

import numpy as np

from chartview.errors import ChartConfigError
from chartview.options import ScaleConfig
from chartview.scales import (
    CategoryScale,
    IdentityScale,
    LinearScale,
    TimeScale,
    create_scale,
    format_ticks_for_axis,
    generate_nice_ticks,
    infer_scale_type,
)


class LinearScaleTests(unittest.TestCase):
    def test_domain_follows_data(self) -> None:
        scale = LinearScale("a").fit([1, 2, 3])
        self.assertEqual(scale.domain, [1.0, 3.0])
        self.assertEqual(scale.scale(2), 0.5)
        self.assertEqual(scale.invert(0.5), 2.0)

    def test_out_of_domain_values_clamp(self) -> None:
        scale = LinearScale("a").fit([1, 2, 3])
        self.assertEqual(scale.scale(10), 1.0)
        self.assertEqual(scale.scale(-10), 0.0)
        self.assertEqual(scale.scale("not a number"), 0.0)
        self.assertEqual(scale.scale(None), 0.0)

    def test_pinned_min_survives_refit(self) -> None:
        scale = LinearScale("a", ScaleConfig(min=0)).fit([5, 6, 7])
        self.assertEqual(scale.min, 0.0)
        self.assertEqual(scale.max, 7.0)
        scale.fit([10, 20])
        self.assertEqual(scale.min, 0.0)
        self.assertEqual(scale.max, 20.0)

    def test_nice_extends_to_tick_boundaries(self) -> None:
        scale = LinearScale("a", ScaleConfig(nice=True)).fit([1.2, 9.7])
        self.assertEqual((scale.min, scale.max), (0.0, 10.0))

    def test_nice_never_moves_pinned_bound(self) -> None:
        scale = LinearScale("a", ScaleConfig(nice=True, max=9.7)).fit([1.2, 9.7])
        self.assertEqual(scale.max, 9.7)
        self.assertEqual(scale.min, 0.0)

    def test_empty_data_gives_degenerate_domain(self) -> None:
        scale = LinearScale("a").fit([])
        self.assertEqual(scale.domain, [])
        self.assertEqual(scale.scale(3), 0.0)
        self.assertEqual(scale.get_ticks(), [])

    def test_ticks_are_formatted_from_step(self) -> None:
        ticks = LinearScale("a").fit([1, 3]).get_ticks()
        self.assertEqual([t.text for t in ticks], ["1", "1.5", "2", "2.5", "3"])
        self.assertEqual(ticks[0].t, 0.0)
        self.assertEqual(ticks[-1].t, 1.0)

    def test_formatter_overrides_tick_text(self) -> None:
        scale = LinearScale("a", ScaleConfig(formatter=lambda v: f"{v:.0f}%")).fit([0, 10])
        self.assertEqual(scale.get_ticks()[-1].text, "10%")

    def test_change_applies_in_place(self) -> None:
        scale = LinearScale("a").fit([1, 2, 3])
        scale.change(ScaleConfig(min=-1))
        self.assertEqual(scale.min, -1.0)


class CategoryScaleTests(unittest.TestCase):
    def test_values_keep_first_seen_order(self) -> None:
        scale = CategoryScale("c").fit(["b", "a", "b", "c", None])
        self.assertEqual(scale.values, ["b", "a", "c"])
        self.assertEqual(scale.scale("a"), 0.5)
        self.assertEqual(scale.scale("c"), 1.0)

    def test_unknown_value_clamps_to_origin(self) -> None:
        scale = CategoryScale("c").fit(["x", "y"])
        self.assertEqual(scale.scale("zz"), 0.0)

    def test_single_category_is_centered(self) -> None:
        self.assertEqual(CategoryScale("c").fit(["only"]).scale("only"), 0.5)

    def test_pinned_values_ignore_data(self) -> None:
        scale = CategoryScale("e", ScaleConfig(values=("a", "b", "c"))).fit(["c", "z"])
        self.assertEqual(scale.values, ["a", "b", "c"])

    def test_band_and_invert(self) -> None:
        scale = CategoryScale("c").fit(["x", "y", "z", "w"])
        self.assertEqual(scale.band("y"), (0.25, 0.5))
        self.assertEqual(scale.invert(1.0), "w")
        self.assertEqual(scale.invert(0.4), "y")

    def test_ticks_one_per_category(self) -> None:
        ticks = CategoryScale("c").fit(["x", "y"]).get_ticks()
        self.assertEqual([t.text for t in ticks], ["x", "y"])


class TimeScaleTests(unittest.TestCase):
    def test_iso_strings_are_inferred_as_time(self) -> None:
        scale = create_scale("d", ["2024-01-01", "2024-01-03"])
        self.assertIsInstance(scale, TimeScale)
        self.assertEqual(scale.get_text(scale.min), "2024-01-01")
        self.assertEqual(scale.scale("2024-01-02"), 0.5)

    def test_invert_returns_utc_datetime(self) -> None:
        scale = create_scale("d", [dt.datetime(2024, 1, 1), dt.datetime(2024, 1, 2)])
        self.assertEqual(scale.invert(0.0), dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc))

    def test_mask_controls_tick_text(self) -> None:
        scale = TimeScale("d", ScaleConfig(mask="%Y")).fit([dt.date(2020, 6, 1), dt.date(2021, 6, 1)])
        self.assertTrue(all(t.text in {"2020", "2021"} for t in scale.get_ticks()))


class ScaleFactoryTests(unittest.TestCase):
    def test_inference(self) -> None:
        self.assertEqual(infer_scale_type([1, 2.5, np.float64(3)]), "linear")
        self.assertEqual(infer_scale_type(["a", 1]), "cat")
        self.assertEqual(infer_scale_type(["2020"]), "cat")
        self.assertEqual(infer_scale_type([dt.date(2020, 1, 1)]), "time")
        self.assertEqual(infer_scale_type([]), "identity")
        self.assertEqual(infer_scale_type([None, None]), "identity")

    def test_values_config_forces_category(self) -> None:
        scale = create_scale("a", [1, 2], ScaleConfig(values=(2, 1)))
        self.assertIsInstance(scale, CategoryScale)
        self.assertEqual(scale.values, [2, 1])

    def test_identity_scale_is_degenerate(self) -> None:
        scale = create_scale("missing", [None, None])
        self.assertIsInstance(scale, IdentityScale)
        self.assertEqual(scale.domain, [])
        self.assertEqual(scale.scale(123), 0.0)

    def test_unknown_type_rejected(self) -> None:
        with self.assertRaises(ChartConfigError):
            ScaleConfig(type="log2")


class TickHelperTests(unittest.TestCase):
    def test_nice_ticks_snap_near_zero(self) -> None:
        ticks = generate_nice_ticks(-1.0, 1.0, 5)
        self.assertIn(0.0, ticks.tolist())

    def test_tick_formatting_preserves_integer_zeros(self) -> None:
        labels = format_ticks_for_axis(np.asarray([20.0, 30.0, 40.0]))
        self.assertEqual(labels, ["20", "30", "40"])


if __name__ == "__main__":
    unittest.main()
