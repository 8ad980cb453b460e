"""
Destination grid contracts used by the mapping engine.

The mapping engine only needs a narrow slice of the tile storage: write a
terrain type, write a bit or value layer, and read a layer value back for
max-merging. This module defines that contract, the layer descriptor, the
terrain catalog, and GridTile, an in-memory NumPy implementation.
"""

import numpy as np
from typing import Dict, Protocol
from dataclasses import dataclass
from enum import IntEnum

TILE_SIZE = 128


class Terrain(IntEnum):
    """Terrain types, in catalog order."""

    GRASS = 0
    BARE_GRASS = 1
    DIRT = 2
    PERMADIRT = 3
    PODZOL = 4
    SAND = 5
    RED_SAND = 6
    DESERT = 7
    RED_DESERT = 8
    MESA = 9
    STONE = 10
    ROCK = 11
    COBBLESTONE = 12
    MOSSY_COBBLESTONE = 13
    GRAVEL = 14
    CLAY = 15
    SANDSTONE = 16
    GRANITE = 17
    DIORITE = 18
    ANDESITE = 19
    DEEPSLATE = 20
    SNOW = 21
    DEEP_SNOW = 22
    WATER = 23
    LAVA = 24
    NETHERRACK = 25
    SOUL_SAND = 26
    END_STONE = 27
    MUD = 28
    MYCELIUM = 29
    BEACHES = 30

    def __str__(self):
        return self.name.replace("_", " ").title()


# Ordered catalog indexed by mask value
TERRAIN_VALUES = tuple(Terrain)


@dataclass(frozen=True)
class Layer:
    """Read-only descriptor of a layer's value domain."""

    name: str
    max_value: int
    discrete: bool = False

    @property
    def is_bit_layer(self) -> bool:
        """Boolean layers have a maximum value of 1."""
        return self.max_value == 1

    @property
    def is_discrete(self) -> bool:
        return self.discrete

    def __str__(self):
        return self.name


ANNOTATIONS = Layer("Annotations", 15, discrete=True)


class Tile(Protocol):
    """Write/read contract of one destination grid page."""

    def set_terrain(self, x: int, y: int, terrain: Terrain) -> None: ...

    def set_bit_layer_value(self, layer: Layer, x: int, y: int, value: bool) -> None: ...

    def set_layer_value(self, layer: Layer, x: int, y: int, value: int) -> None: ...

    def get_layer_value(self, layer: Layer, x: int, y: int) -> int: ...


class GridTile:
    """
    In-memory tile backed by NumPy arrays.

    Arrays are indexed [y, x]. Layer arrays are created on first write.
    """

    def __init__(self, size: int = TILE_SIZE, default_terrain: Terrain = Terrain.GRASS):
        """
        Initialize an empty tile.

        Args:
            size: Edge length in cells
            default_terrain: Terrain every cell starts with
        """
        self.size = size
        self.terrain = np.full((size, size), int(default_terrain), dtype=np.uint8)
        self.bit_layers: Dict[Layer, np.ndarray] = {}
        self.layers: Dict[Layer, np.ndarray] = {}

    def _check_bounds(self, x: int, y: int):
        if not (0 <= x < self.size and 0 <= y < self.size):
            raise IndexError(f"Cell ({x}, {y}) outside tile of size {self.size}")

    def set_terrain(self, x: int, y: int, terrain: Terrain) -> None:
        self._check_bounds(x, y)
        self.terrain[y, x] = int(terrain)

    def get_terrain(self, x: int, y: int) -> Terrain:
        self._check_bounds(x, y)
        return Terrain(int(self.terrain[y, x]))

    def set_bit_layer_value(self, layer: Layer, x: int, y: int, value: bool) -> None:
        self._check_bounds(x, y)
        if layer not in self.bit_layers:
            self.bit_layers[layer] = np.zeros((self.size, self.size), dtype=bool)
        self.bit_layers[layer][y, x] = value

    def get_bit_layer_value(self, layer: Layer, x: int, y: int) -> bool:
        self._check_bounds(x, y)
        data = self.bit_layers.get(layer)
        return bool(data[y, x]) if data is not None else False

    def set_layer_value(self, layer: Layer, x: int, y: int, value: int) -> None:
        self._check_bounds(x, y)
        if layer not in self.layers:
            self.layers[layer] = np.zeros((self.size, self.size), dtype=np.int32)
        self.layers[layer][y, x] = value

    def get_layer_value(self, layer: Layer, x: int, y: int) -> int:
        self._check_bounds(x, y)
        data = self.layers.get(layer)
        return int(data[y, x]) if data is not None else 0
