"""Unit tests for provider models and the provider registry."""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from maptile_cache.exceptions import ConfigurationError
from maptile_cache.providers import Provider, ProviderRegistry, load_provider_registry

SAMPLE_CONFIG = {
    "maps": {
        "osm": {
            "name": "OpenStreetMap",
            "description": "Standard tiles",
            "urlTemplate": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
            "maxZoom": 19,
            "cachePrefix": "osm-cache",
            "subdomains": ["a", "b", "c"],
            "headers": {"Referer": "https://example.org/"}
        },
        "satellite": {
            "name": "Satellite",
            "description": "Imagery",
            "urlTemplate": "https://imagery.example.com/{z}/{y}/{x}",
            "maxZoom": 18
        }
    }
}


class TestProvider(unittest.TestCase):
    """Test suite for Provider.from_dict."""

    def test_from_dict_camel_case(self):
        provider = Provider.from_dict("osm", SAMPLE_CONFIG["maps"]["osm"])

        self.assertEqual(provider.id, "osm")
        self.assertEqual(provider.name, "OpenStreetMap")
        self.assertEqual(provider.max_zoom, 19)
        self.assertEqual(provider.cache_namespace, "osm-cache")
        self.assertEqual(provider.subdomains, ("a", "b", "c"))
        self.assertEqual(provider.extra_headers, {"Referer": "https://example.org/"})
        self.assertTrue(provider.uses_subdomains)

    def test_from_dict_snake_case(self):
        provider = Provider.from_dict("topo", {
            "name": "Topo",
            "url_template": "https://topo.example.com/{z}/{x}/{y}.png",
            "max_zoom": 17,
            "cache_namespace": "topo-ns",
            "extra_headers": {"X-Key": "abc"}
        })

        self.assertEqual(provider.max_zoom, 17)
        self.assertEqual(provider.cache_namespace, "topo-ns")
        self.assertEqual(provider.extra_headers, {"X-Key": "abc"})

    def test_namespace_defaults_to_id(self):
        provider = Provider.from_dict("satellite", SAMPLE_CONFIG["maps"]["satellite"])
        self.assertEqual(provider.cache_namespace, "satellite")
        self.assertEqual(provider.subdomains, ())
        self.assertEqual(provider.extra_headers, {})

    def test_missing_placeholder_rejected(self):
        with self.assertRaises(ConfigurationError) as context:
            Provider.from_dict("bad", {"urlTemplate": "https://x.example.com/{z}/{x}.png", "maxZoom": 5})
        self.assertIn("{y}", str(context.exception))

    def test_missing_template_rejected(self):
        with self.assertRaises(ConfigurationError):
            Provider.from_dict("bad", {"maxZoom": 5})

    def test_invalid_max_zoom_rejected(self):
        for value in (-1, "19", None, 2.5, True):
            with self.subTest(value=value):
                with self.assertRaises(ConfigurationError):
                    Provider.from_dict("bad", {
                        "urlTemplate": "https://x.example.com/{z}/{x}/{y}.png",
                        "maxZoom": value
                    })

    def test_invalid_subdomains_rejected(self):
        with self.assertRaises(ConfigurationError):
            Provider.from_dict("bad", {
                "urlTemplate": "https://{s}.example.com/{z}/{x}/{y}.png",
                "maxZoom": 3,
                "subdomains": "abc"
            })

    def test_summary(self):
        provider = Provider.from_dict("osm", SAMPLE_CONFIG["maps"]["osm"])
        self.assertEqual(provider.summary(), {
            "name": "OpenStreetMap",
            "description": "Standard tiles",
            "maxZoom": 19
        })


class TestProviderRegistry(unittest.TestCase):
    """Test suite for ProviderRegistry."""

    def setUp(self):
        self.registry = ProviderRegistry.from_mapping(SAMPLE_CONFIG)

    def test_get_and_exists(self):
        self.assertEqual(self.registry.get("osm").name, "OpenStreetMap")
        self.assertIsNone(self.registry.get("unknown"))
        self.assertTrue(self.registry.exists("satellite"))
        self.assertFalse(self.registry.exists("unknown"))
        self.assertIn("osm", self.registry)

    def test_list_preserves_configuration_order(self):
        self.assertEqual([pid for pid, _ in self.registry.list()], ["osm", "satellite"])
        self.assertEqual(self.registry.ids(), ["osm", "satellite"])
        self.assertEqual(len(self.registry), 2)

    def test_from_inner_mapping(self):
        registry = ProviderRegistry.from_mapping(SAMPLE_CONFIG["maps"])
        self.assertEqual(registry.ids(), ["osm", "satellite"])

    def test_duplicate_ids_rejected(self):
        provider = Provider.from_dict("osm", SAMPLE_CONFIG["maps"]["osm"])
        with self.assertRaises(ConfigurationError):
            ProviderRegistry([provider, provider])

    def test_non_mapping_rejected(self):
        with self.assertRaises(ConfigurationError):
            ProviderRegistry.from_mapping({"maps": ["osm"]})

    def test_empty_registry(self):
        registry = ProviderRegistry()
        self.assertEqual(registry.list(), [])
        self.assertIsNone(registry.get("osm"))


class TestLoadProviderRegistry(unittest.IsolatedAsyncioTestCase):
    """Test suite for loading providers from a JSON file."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    async def test_load_from_file(self):
        config_file = self.temp_path / "maps.json"
        config_file.write_text(json.dumps(SAMPLE_CONFIG), encoding="utf-8")

        registry = await load_provider_registry(config_file)

        self.assertEqual(registry.ids(), ["osm", "satellite"])

    async def test_missing_file(self):
        with self.assertRaises(ConfigurationError) as context:
            await load_provider_registry(self.temp_path / "missing.json")
        self.assertIn("Configuration file not found", str(context.exception))

    async def test_invalid_json(self):
        config_file = self.temp_path / "maps.json"
        config_file.write_text("{not json", encoding="utf-8")

        with self.assertRaises(ConfigurationError):
            await load_provider_registry(config_file)

    async def test_bundled_configuration_is_valid(self):
        bundled = Path(__file__).resolve().parents[2] / "config" / "maps.json"
        registry = await load_provider_registry(bundled)
        self.assertTrue(registry.exists("osm"))


if __name__ == '__main__':
    unittest.main(verbosity=2)
