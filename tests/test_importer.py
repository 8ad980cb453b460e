"""Tests for the mask import driver."""

import pytest
import numpy as np
from py_maskmap.core.tile import ANNOTATIONS, GridTile, Layer, Terrain
from py_maskmap.core.mapping import (
    MappingKind,
    colour_to_annotations,
    map_full_range_to_layer,
    map_to_terrain,
    set_layer_value,
    set_terrain_value,
)
from py_maskmap.core.importer import (
    DitherMode,
    ImportStats,
    MaskImporter,
    build_mapping,
    declared_max_value,
)

TILE = 4


class TileStore:
    """Creates tiles on demand and remembers them."""

    def __init__(self, missing=()):
        self.tiles = {}
        self.missing = set(missing)

    def __call__(self, tile_x, tile_y):
        if (tile_x, tile_y) in self.missing:
            return None
        return self.tiles.setdefault((tile_x, tile_y), GridTile(size=TILE))


class TestBuildMapping:
    """Test chain composition."""

    def test_leaf_only(self):
        leaf = set_terrain_value(Terrain.SAND)
        assert build_mapping(leaf) is leaf

    def test_threshold_then_dither(self):
        leaf = set_terrain_value(Terrain.SAND)
        mapping = build_mapping(leaf, threshold=64, dither=DitherMode.ACTUAL_RANGE)

        assert mapping.kind is MappingKind.DITHER_ACTUAL_RANGE
        assert mapping.inner.kind is MappingKind.THRESHOLD
        assert mapping.inner.inner is leaf
        assert leaf.config.threshold == 64

    def test_full_range_dither(self):
        mapping = build_mapping(set_terrain_value(Terrain.SAND), dither=DitherMode.FULL_RANGE)
        assert mapping.kind is MappingKind.DITHER_FULL_RANGE


class TestConfigureFromMask:
    """Test range detection."""

    def test_uint8(self):
        mask = np.array([[10, 50], [200, 30]], dtype=np.uint8)
        mapping = set_terrain_value(Terrain.SAND)
        MaskImporter(mapping, tile_size=TILE).configure_from_mask(mask, threshold=20)

        assert mapping.config.mask_low_value == 10
        assert mapping.config.mask_high_value == 200
        assert mapping.config.mask_max_value == 255
        assert mapping.config.threshold == 20

    def test_explicit_max(self):
        mask = np.array([[0, 1000]], dtype=np.uint16)
        mapping = set_terrain_value(Terrain.SAND)
        MaskImporter(mapping, tile_size=TILE).configure_from_mask(mask, mask_max_value=4095)
        assert mapping.config.mask_max_value == 4095

    def test_signed_mask_full_range(self):
        """Full range of a signed mask comes from its dtype, not its contents."""
        layer = Layer("Resources", 15)
        mask = np.array([[0, 100]], dtype=np.int16)
        importer = MaskImporter(map_full_range_to_layer(layer), tile_size=TILE)
        importer.configure_from_mask(mask)
        store = TileStore()
        importer.import_mask(mask, store)

        assert importer.mapping.config.mask_max_value == 32767
        assert store.tiles[(0, 0)].get_layer_value(layer, 1, 0) == 0

    def test_declared_max_value(self):
        assert declared_max_value(np.zeros((1, 1), dtype=bool)) == 1
        assert declared_max_value(np.zeros((1, 1), dtype=np.uint16)) == 65535
        assert declared_max_value(np.array([[3, 7]], dtype=np.int32)) == 2147483647
        assert declared_max_value(np.array([[0, 100]], dtype=np.int16)) == 32767
        assert declared_max_value(np.array([[3.0, 7.5]])) == 7


class TestImportMask:
    """Test the tile walk."""

    def test_tiles_and_local_coordinates(self):
        mask = np.zeros((6, 6), dtype=np.uint8)
        mask[1, 5] = 200
        mask[4, 0] = 100
        mapping = build_mapping(set_terrain_value(Terrain.WATER), threshold=128)
        store = TileStore()

        stats = MaskImporter(mapping, tile_size=TILE).import_mask(mask, store)

        assert stats == ImportStats(tiles=4, samples=36)
        assert store.tiles[(1, 0)].get_terrain(1, 1) == Terrain.WATER
        assert store.tiles[(0, 1)].get_terrain(0, 0) == Terrain.GRASS
        assert np.count_nonzero(store.tiles[(0, 0)].terrain == int(Terrain.WATER)) == 0

    def test_missing_tiles_skipped(self):
        mask = np.ones((8, 8), dtype=np.uint8)
        store = TileStore(missing=[(1, 1)])

        stats = MaskImporter(set_terrain_value(Terrain.SAND), tile_size=TILE).import_mask(mask, store)

        assert stats.tiles == 3
        assert stats.samples == 48
        assert (1, 1) not in store.tiles

    def test_full_range_layer(self):
        layer = Layer("Resources", 15)
        mask = np.array([[0, 255], [128, 17]], dtype=np.uint8)
        importer = MaskImporter(map_full_range_to_layer(layer), tile_size=TILE)
        importer.configure_from_mask(mask)
        store = TileStore()
        importer.import_mask(mask, store)

        tile = store.tiles[(0, 0)]
        assert tile.get_layer_value(layer, 1, 0) == 15
        assert tile.get_layer_value(layer, 0, 1) == 7
        assert tile.get_layer_value(layer, 1, 1) == 1

    def test_dithered_import_reproducible(self):
        rng = np.random.default_rng(5)
        mask = rng.integers(0, 256, size=(8, 8), dtype=np.uint8)
        results = []
        for _ in range(2):
            layer = Layer("Frost", 1)
            mapping = build_mapping(set_layer_value(layer, 1), dither=DitherMode.FULL_RANGE)
            importer = MaskImporter(mapping, tile_size=TILE)
            importer.configure_from_mask(mask)
            store = TileStore()
            importer.import_mask(mask, store)
            results.append({
                key: [[tile.get_bit_layer_value(layer, x, y) for x in range(TILE)] for y in range(TILE)]
                for key, tile in store.tiles.items()
            })

        for key in results[0]:
            assert results[0][key] == results[1][key]

    def test_colour_mask(self):
        mask = np.array([[0xFFDDDDDD, 0x00000000]], dtype=np.uint32)
        store = TileStore()
        MaskImporter(colour_to_annotations(), tile_size=TILE).import_mask(mask, store)

        tile = store.tiles[(0, 0)]
        assert tile.get_layer_value(ANNOTATIONS, 0, 0) == 1
        assert tile.get_layer_value(ANNOTATIONS, 1, 0) == 0

    def test_bad_index_aborts(self):
        mask = np.full((2, 2), 200, dtype=np.uint8)
        with pytest.raises(IndexError):
            MaskImporter(map_to_terrain(), tile_size=TILE).import_mask(mask, TileStore())

    def test_rejects_non_2d(self):
        with pytest.raises(ValueError):
            MaskImporter(set_terrain_value(Terrain.SAND), tile_size=TILE).import_mask(
                np.zeros((2, 2, 3)), TileStore()
            )


class TestGridTile:
    """Test the in-memory tile."""

    def test_bounds(self):
        tile = GridTile(size=TILE)
        with pytest.raises(IndexError):
            tile.set_terrain(TILE, 0, Terrain.SAND)
        with pytest.raises(IndexError):
            tile.get_layer_value(Layer("Resources", 15), 0, -1)

    def test_defaults(self):
        tile = GridTile(size=TILE)
        layer = Layer("Resources", 15)
        assert tile.get_terrain(0, 0) == Terrain.GRASS
        assert tile.get_layer_value(layer, 0, 0) == 0
        assert not tile.get_bit_layer_value(Layer("Frost", 1), 0, 0)

    def test_layer_descriptor(self):
        assert Layer("Frost", 1).is_bit_layer
        assert not Layer("Resources", 15).is_bit_layer
        assert ANNOTATIONS.is_discrete
        assert ANNOTATIONS.max_value == 15
