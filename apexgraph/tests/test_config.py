import logging
import os
import unittest
from unittest import mock

from apexgraph.config import (
    DEFAULT_METHOD_SCAN_LINES,
    configure_logging,
    get_settings,
    reset_settings,
)
from apexgraph.graph.graph_store_factory import create_graph_store
from apexgraph.graph.networkx_store import NetworkXStore
from apexgraph.graph.semantic_graph import SemanticGraph


CONFIG_VARS = (
    "GRAPH_STORE_BACKEND",
    "APEXGRAPH_LOG_LEVEL",
    "APEXGRAPH_METHOD_SCAN_LINES",
    "APEXGRAPH_BUILD_WORKERS",
)


class SettingsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.env = mock.patch.dict(os.environ, {})
        self.env.start()
        for name in CONFIG_VARS:
            os.environ.pop(name, None)
        reset_settings()

    def tearDown(self) -> None:
        self.env.stop()
        reset_settings()

    def test_defaults(self) -> None:
        settings = get_settings()
        self.assertEqual(settings.graph_store_backend, "networkx")
        self.assertEqual(settings.log_level, "WARNING")
        self.assertEqual(settings.method_scan_lines, DEFAULT_METHOD_SCAN_LINES)
        self.assertEqual(settings.build_workers, 1)

    def test_environment_overrides(self) -> None:
        os.environ.update({
            "GRAPH_STORE_BACKEND": "NetworkX",
            "APEXGRAPH_LOG_LEVEL": "debug",
            "APEXGRAPH_METHOD_SCAN_LINES": "80",
            "APEXGRAPH_BUILD_WORKERS": "4",
        })
        settings = get_settings()
        self.assertEqual(settings.graph_store_backend, "networkx")
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.method_scan_lines, 80)
        self.assertEqual(settings.build_workers, 4)

    def test_blank_values_fall_back_to_defaults(self) -> None:
        os.environ["APEXGRAPH_BUILD_WORKERS"] = "  "
        self.assertEqual(get_settings().build_workers, 1)

    def test_invalid_integer_raises(self) -> None:
        os.environ["APEXGRAPH_METHOD_SCAN_LINES"] = "lots"
        with self.assertRaises(ValueError):
            get_settings()

    def test_integers_are_clamped(self) -> None:
        os.environ["APEXGRAPH_BUILD_WORKERS"] = "0"
        self.assertEqual(get_settings().build_workers, 1)

    def test_settings_are_cached_until_reset(self) -> None:
        first = get_settings()
        os.environ["APEXGRAPH_BUILD_WORKERS"] = "8"
        self.assertIs(get_settings(), first)

        reset_settings()
        self.assertEqual(get_settings().build_workers, 8)

    def test_configure_logging_accepts_level(self) -> None:
        with mock.patch("logging.basicConfig") as basic_config:
            configure_logging("info")
        self.assertEqual(basic_config.call_args.kwargs["level"], logging.INFO)


class GraphStoreFactoryTests(unittest.TestCase):
    def setUp(self) -> None:
        reset_settings()

    def tearDown(self) -> None:
        reset_settings()

    def test_networkx_backend(self) -> None:
        self.assertIsInstance(create_graph_store("networkx"), NetworkXStore)
        self.assertIsInstance(create_graph_store("NETWORKX"), NetworkXStore)

    def test_unknown_backend(self) -> None:
        with self.assertRaises(ValueError):
            create_graph_store("neptune")

    def test_backend_from_environment(self) -> None:
        with mock.patch.dict(os.environ, {"GRAPH_STORE_BACKEND": "memgraph"}):
            reset_settings()
            with self.assertRaises(ValueError):
                SemanticGraph()

    def test_graph_uses_configured_store(self) -> None:
        with mock.patch.dict(os.environ, {"GRAPH_STORE_BACKEND": "networkx"}):
            reset_settings()
            self.assertIsInstance(SemanticGraph().store, NetworkXStore)


if __name__ == "__main__":
    unittest.main()
