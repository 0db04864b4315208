from __future__ import annotations

import unittest

from chartview.options import ScaleConfig
from chartview.scale_controller import ScaleController
from chartview.scales import CategoryScale, IdentityScale, LinearScale


DATA = [
    {"a": 1, "b": 2, "c": "x"},
    {"a": 2, "b": 5, "c": "y"},
    {"a": 3, "b": 4, "c": "x"},
]


class ScaleControllerTests(unittest.TestCase):
    def test_infers_scale_types_from_data(self) -> None:
        controller = ScaleController()
        scales = controller.update_scales(DATA, ["a", "c"])
        self.assertIsInstance(scales["a"], LinearScale)
        self.assertIsInstance(scales["c"], CategoryScale)
        self.assertEqual(scales["a"].max, 3.0)
        self.assertEqual(scales["c"].values, ["x", "y"])

    def test_missing_field_yields_degenerate_scale(self) -> None:
        controller = ScaleController()
        with self.assertLogs("chartview.scale_controller", level="DEBUG") as logs:
            controller.update_scales(DATA, ["nope"])
        scale = controller.get_scale("nope")
        self.assertIsInstance(scale, IdentityScale)
        self.assertEqual(scale.domain, [])
        self.assertTrue(any("nope" in line for line in logs.output))

    def test_get_scale_unknown_returns_none(self) -> None:
        self.assertIsNone(ScaleController().get_scale("a"))

    def test_refit_mutates_existing_scale(self) -> None:
        controller = ScaleController()
        controller.update_scales(DATA, ["a", "c"])
        a_scale = controller.get_scale("a")
        c_scale = controller.get_scale("c")
        controller.update_scales([{"a": 4, "c": "z"}, {"a": 0, "c": "y"}], ["a", "c"])
        self.assertIs(controller.get_scale("a"), a_scale)
        self.assertEqual(a_scale.domain, [0.0, 4.0])
        self.assertIs(controller.get_scale("c"), c_scale)
        self.assertEqual(c_scale.values, ["z", "y"])

    def test_declared_config_pins_domain(self) -> None:
        controller = ScaleController({"a": ScaleConfig(min=0)})
        controller.update_scales(DATA, ["a"])
        self.assertEqual(controller.get_scale("a").min, 0.0)

    def test_define_scale_updates_existing_in_place(self) -> None:
        controller = ScaleController()
        controller.update_scales(DATA, ["a"])
        scale = controller.get_scale("a")
        defined = controller.define_scale("a", {"type": "linear", "min": 0})
        self.assertIs(defined, scale)
        self.assertEqual(scale.min, 0.0)
        self.assertEqual(scale.max, 3.0)

    def test_define_scale_with_new_type_replaces_scale(self) -> None:
        controller = ScaleController()
        controller.update_scales(DATA, ["a"])
        scale = controller.define_scale("a", {"type": "cat"})
        self.assertIsInstance(scale, CategoryScale)
        self.assertEqual(scale.values, [1, 2, 3])
        self.assertIs(controller.get_scale("a"), scale)

    def test_field_arriving_later_leaves_identity(self) -> None:
        controller = ScaleController()
        controller.update_scales([{"a": 1}], ["d"])
        self.assertIsInstance(controller.get_scale("d"), IdentityScale)
        controller.update_scales([{"d": 1}, {"d": 9}], ["d"])
        self.assertIsInstance(controller.get_scale("d"), LinearScale)
        self.assertEqual(controller.get_scale("d").max, 9.0)


if __name__ == "__main__":
    unittest.main()
