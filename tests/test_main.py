import unittest
from unittest import mock

from fabricator import main as main_module
from fabricator.config import AppConfig
from fabricator.model_graph import Graph


class TestMain(unittest.TestCase):
    def test_demo_schema_builds_a_graph(self):
        graph = Graph(main_module.build_demo_schema())
        self.assertEqual(
            [e.id for e in graph.get_entities_list()],
            ["department", "role", "user", "project", "membership"],
        )
        self.assertEqual(len(graph.get_all_relationships()), 4)
        self.assertTrue(graph.get_relationship("project_membership").is_one_to_many())

    def test_main_returns_zero_on_success(self):
        with mock.patch.object(main_module, "setup_logging") as setup:
            with self.assertLogs("main", level="INFO") as logs:
                code = main_module.main()
        self.assertEqual(code, 0)
        setup.assert_called_once_with("INFO")
        self.assertTrue(any("Schema: Demo Organisation" in line for line in logs.output))

    def _run_failing(self, cfg: AppConfig):
        with mock.patch.object(main_module, "setup_logging"), mock.patch.object(
            main_module, "AppConfig", return_value=cfg
        ), mock.patch.object(
            main_module, "build_demo_schema", side_effect=RuntimeError("boom")
        ), mock.patch.object(main_module.traceback, "print_exc") as print_exc:
            with self.assertLogs("main", level="ERROR") as logs:
                code = main_module.main()
        return code, print_exc, logs

    def test_main_returns_one_on_unhandled_error(self):
        code, print_exc, logs = self._run_failing(AppConfig())
        self.assertEqual(code, 1)
        print_exc.assert_not_called()
        self.assertIn("Unhandled error: boom", logs.output[0])

    def test_debug_config_prints_traceback(self):
        code, print_exc, _logs = self._run_failing(AppConfig(debug=True))
        self.assertEqual(code, 1)
        print_exc.assert_called_once()


if __name__ == "__main__":
    unittest.main()
