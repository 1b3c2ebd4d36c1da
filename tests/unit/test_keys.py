"""Unit tests for tile storage key derivation."""

import itertools
import unittest

from maptile_cache.tiles.keys import PROBE_EXTENSION, derive_key


class TestDeriveKey(unittest.TestCase):
    """Test suite for derive_key."""

    def test_basic_layout(self):
        self.assertEqual(derive_key("osm", "3", "1", "2", "png"), "osm/tiles/3/1/2.png")

    def test_integer_tokens(self):
        self.assertEqual(derive_key("osm", 3, 1, 2, "jpg"), "osm/tiles/3/1/2.jpg")

    def test_strips_leading_and_trailing_slashes(self):
        self.assertEqual(derive_key("//maps/osm/", "3", "1", "2", "png"), "maps/osm/tiles/3/1/2.png")

    def test_empty_namespace_drops_prefix(self):
        self.assertEqual(derive_key("", "0", "0", "0", "png"), "tiles/0/0/0.png")
        self.assertEqual(derive_key("///", "0", "0", "0", "png"), "tiles/0/0/0.png")

    def test_tokens_are_used_verbatim(self):
        self.assertEqual(derive_key("osm", "03", "a/b", "2", "png"), "osm/tiles/03/a/b/2.png")

    def test_probe_extension_is_png(self):
        self.assertEqual(PROBE_EXTENSION, "png")

    def test_deterministic(self):
        self.assertEqual(
            derive_key("sat", "5", "10", "12", "jpg"),
            derive_key("sat", "5", "10", "12", "jpg")
        )

    def test_distinct_coordinates_never_collide(self):
        """Test injectivity over a grid of coordinates."""
        coords = list(itertools.product(range(4), range(12), range(12)))
        keys = {derive_key("osm", z, x, y, "png") for z, x, y in coords}
        self.assertEqual(len(keys), len(coords))

    def test_extension_is_part_of_identity(self):
        self.assertNotEqual(
            derive_key("osm", "3", "1", "2", "png"),
            derive_key("osm", "3", "1", "2", "jpg")
        )


if __name__ == '__main__':
    unittest.main(verbosity=2)
