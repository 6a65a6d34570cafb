import logging
import unittest
from unittest import mock

from fabricator.config import AppConfig
from fabricator.error_contract import format_actionable_error, is_actionable_message
from fabricator.errors import (
    CircularDependencyError,
    FabricatorError,
    GraphStructureError,
    RowValidationError,
    SchemaValidationError,
    TargetSelectionError,
)
from fabricator.logging_setup import LOG_FORMAT, setup_logging


class TestActionableErrors(unittest.TestCase):
    def test_format_normalizes_trailing_periods_and_blanks(self):
        self.assertEqual(
            format_actionable_error("Entity 'user'", "duplicate value.", "use another value."),
            "Entity 'user': duplicate value. Fix: use another value.",
        )
        self.assertEqual(
            format_actionable_error(" ", "", ""),
            "Unknown: unknown issue. Fix: review the schema definition and retry.",
        )

    def test_is_actionable_message(self):
        self.assertTrue(is_actionable_message("Graph: broken. Fix: repair it."))
        self.assertFalse(is_actionable_message("something went wrong"))
        self.assertFalse(is_actionable_message("Graph: broken."))

    def test_errors_keep_parts_and_context(self):
        exc = RowValidationError("Entity 'user'", "missing key", "add it", entity_id="user", row_index=3)
        self.assertEqual(str(exc), "Entity 'user': missing key. Fix: add it.")
        self.assertEqual((exc.location, exc.issue, exc.hint), ("Entity 'user'", "missing key", "add it"))
        self.assertEqual(exc.context, {"entity_id": "user", "row_index": 3})

    def test_error_hierarchy(self):
        for cls in (SchemaValidationError, RowValidationError, GraphStructureError, TargetSelectionError):
            with self.subTest(cls=cls.__name__):
                self.assertTrue(issubclass(cls, FabricatorError))
                self.assertTrue(issubclass(cls, ValueError))
        self.assertTrue(issubclass(TargetSelectionError, LookupError))
        self.assertTrue(issubclass(CircularDependencyError, GraphStructureError))

    def test_circular_dependency_message_is_actionable(self):
        exc = CircularDependencyError(["b", "a"])
        self.assertEqual(exc.entity_ids, ["a", "b"])
        self.assertTrue(is_actionable_message(str(exc)))
        self.assertIn("entities involved: a, b", str(exc))


class TestConfigAndLogging(unittest.TestCase):
    def test_config_defaults(self):
        cfg = AppConfig()
        self.assertFalse(cfg.debug)
        self.assertEqual(cfg.log_level, "INFO")
        self.assertFalse(cfg.auto_cardinality)
        self.assertEqual(cfg.default_rows, 100)
        self.assertEqual(cfg.imbalance_ratio, 10)
        with self.assertRaises(AttributeError):
            cfg.seed = 2  # frozen

    def test_setup_logging_configures_root_logger(self):
        with mock.patch("logging.basicConfig") as basic:
            setup_logging("info")
        basic.assert_called_once_with(level=logging.INFO, format=LOG_FORMAT, force=True)

    def test_setup_logging_rejects_unknown_level(self):
        with mock.patch("logging.basicConfig") as basic:
            with self.assertRaises(ValueError) as ctx:
                setup_logging("loud")
        self.assertIn("Fix:", str(ctx.exception))
        basic.assert_not_called()


if __name__ == "__main__":
    unittest.main()
