"""
Mask to tile mapping strategies.

A mapping decides, for each mask sample, whether and how to write into the
destination tile. Leaf mappings perform the writes; decorators wrap exactly
one mapping and forward apply() conditionally:

- threshold(): only where the sample is at or above the threshold
- dithered_actual_range(): randomly, in proportion to the sample's position
  in the observed mask range
- dithered_full_range(): randomly, in proportion to sample / mask maximum

All mappings of one chain share a single MappingConfig record, so setting
the tile or the mask bounds on the outermost mapping is seen by every layer.
A chain is meant for one thread and one import pass.
"""

import structlog
from typing import Callable, Optional, Sequence
from dataclasses import dataclass
from enum import Enum

from .tile import ANNOTATIONS, TERRAIN_VALUES, Layer, Terrain, Tile
from .remap import (
    remap_actual_range,
    remap_full_range,
    validate_actual_range,
    validate_full_range,
)
from .annotations import colour_to_annotation, NO_ANNOTATION
from .java_random import JavaRandom
from ..utils.random import create_dither_prng

logger = structlog.get_logger()


class MappingKind(Enum):
    """Closed set of mapping variants."""

    SET_TERRAIN = "set_terrain"
    SET_BIT_LAYER = "set_bit_layer"
    SET_DISCRETE_LAYER = "set_discrete_layer"
    MERGE_CONTINUOUS_LAYER = "merge_continuous_layer"
    TERRAIN_INDEX = "terrain_index"
    LAYER_VALUE = "layer_value"
    RANGE_REMAP = "range_remap"
    COLOUR_CLASSIFY = "colour_classify"
    THRESHOLD = "threshold"
    DITHER_ACTUAL_RANGE = "dither_actual_range"
    DITHER_FULL_RANGE = "dither_full_range"


@dataclass
class MappingConfig:
    """Mutable state shared by every mapping in a chain."""

    tile: Optional[Tile] = None
    threshold: int = 0  # inclusive
    mask_low_value: int = 0
    mask_high_value: int = 0
    mask_max_value: int = 0

    def require_tile(self) -> Tile:
        if self.tile is None:
            raise RuntimeError("No tile set; call set_tile() before apply()")
        return self.tile


Writer = Callable[[MappingConfig, int, int, int], None]


class Mapping:
    """Base class of all mappings."""

    def __init__(
        self,
        kind: MappingKind,
        aspect: str,
        description: str,
        config: Optional[MappingConfig] = None,
        inner: Optional["Mapping"] = None,
    ):
        self.kind = kind
        self.aspect = aspect
        self.description = description
        self.config = config if config is not None else MappingConfig()
        self.inner = inner

    def __repr__(self):
        return f"<{type(self).__name__} {self.kind.value}: {self.description}>"

    def set_tile(self, tile: Tile) -> None:
        self.config.tile = tile

    def set_threshold(self, threshold: int) -> None:
        self.config.threshold = threshold

    def set_mask_low_value(self, mask_low_value: int) -> None:
        self.config.mask_low_value = mask_low_value

    def set_mask_high_value(self, mask_high_value: int) -> None:
        self.config.mask_high_value = mask_high_value

    def set_mask_max_value(self, mask_max_value: int) -> None:
        self.config.mask_max_value = mask_max_value

    def apply(self, x: int, y: int, mask_value: int) -> None:
        """Apply one mask sample to cell (x, y) of the current tile."""
        raise NotImplementedError

    def threshold(self) -> "ThresholdMapping":
        return ThresholdMapping(self)

    def dithered_actual_range(self, prng: Optional[JavaRandom] = None) -> "Mapping":
        return DitheredActualRangeMapping(self, prng)

    def dithered_full_range(self, prng: Optional[JavaRandom] = None) -> "Mapping":
        return DitheredFullRangeMapping(self, prng)


class LeafMapping(Mapping):
    """Mapping that writes to the tile through a writer closure."""

    def __init__(self, kind: MappingKind, aspect: str, description: str, writer: Writer):
        super().__init__(kind, aspect, description)
        self._writer = writer
        logger.debug("Mapping created", kind=kind.value, aspect=aspect)

    def apply(self, x: int, y: int, mask_value: int) -> None:
        self._writer(self.config, x, y, mask_value)


class RangedMapping(LeafMapping):
    """Leaf that rescales the mask range onto a continuous layer."""


class ColourToAnnotationsMapping(LeafMapping):
    """
    Leaf that classifies ARGB samples into the annotations layer.

    The dithered variant only marks that its input was already reduced with
    dither_mask(); the per-pixel logic is the same.
    """

    def __init__(self, dithered: bool = False, config: Optional[MappingConfig] = None):
        description = "Map layer Annotations to mask colours"
        if dithered:
            description += " (dithered)"
        super().__init__(MappingKind.COLOUR_CLASSIFY, "annotations", description, _write_annotation)
        if config is not None:
            self.config = config
        self.dithered = dithered

    def dithered_actual_range(self, prng: Optional[JavaRandom] = None) -> "ColourToAnnotationsMapping":
        return ColourToAnnotationsMapping(dithered=True, config=self.config)


def _write_annotation(config: MappingConfig, x: int, y: int, mask_value: int) -> None:
    value = colour_to_annotation(mask_value)
    if value != NO_ANNOTATION:
        config.require_tile().set_layer_value(ANNOTATIONS, x, y, value)


class _DecoratorMapping(Mapping):
    """Wraps one mapping and shares its configuration record."""

    def __init__(self, inner: Mapping, kind: MappingKind, suffix: str):
        super().__init__(kind, inner.aspect, inner.description + suffix, config=inner.config, inner=inner)


class ThresholdMapping(_DecoratorMapping):
    """Forwards samples at or above the threshold."""

    def __init__(self, inner: Mapping):
        super().__init__(inner, MappingKind.THRESHOLD, " where mask is at or above threshold")

    def apply(self, x: int, y: int, mask_value: int) -> None:
        if mask_value >= self.config.threshold:
            self.inner.apply(x, y, mask_value)


class DitheredActualRangeMapping(_DecoratorMapping):
    """
    Forwards samples randomly, weighted by position in the actual range.

    Samples at or above the high value always pass, samples at or below the
    low value never do.
    """

    def __init__(self, inner: Mapping, prng: Optional[JavaRandom] = None):
        super().__init__(inner, MappingKind.DITHER_ACTUAL_RANGE, " (dithered from actual mask range)")
        self.random = prng if prng is not None else create_dither_prng()

    def apply(self, x: int, y: int, mask_value: int) -> None:
        low, high = self.config.mask_low_value, self.config.mask_high_value
        validate_actual_range(low, high)
        if mask_value >= high or (
            mask_value > low and mask_value > self.random.next_int(high - low) + low
        ):
            self.inner.apply(x, y, mask_value)


class DitheredFullRangeMapping(_DecoratorMapping):
    """Forwards samples with probability mask_value / mask_max_value."""

    def __init__(self, inner: Mapping, prng: Optional[JavaRandom] = None):
        super().__init__(inner, MappingKind.DITHER_FULL_RANGE, " (dithered from full mask range)")
        self.random = prng if prng is not None else create_dither_prng()

    def apply(self, x: int, y: int, mask_value: int) -> None:
        mask_max_value = self.config.mask_max_value
        validate_full_range(mask_max_value)
        if mask_value > 0 and mask_value > self.random.next_int(mask_max_value):
            self.inner.apply(x, y, mask_value)


# Leaf factories


def set_terrain_value(terrain: Terrain) -> Mapping:
    """Set the terrain type wherever the mask is non-zero."""

    def write(config, x, y, mask_value):
        if mask_value != 0:
            config.require_tile().set_terrain(x, y, terrain)

    return LeafMapping(
        MappingKind.SET_TERRAIN,
        "terrain " + str(terrain),
        "Set terrain type to " + str(terrain),
        write,
    )


def set_layer_value(layer: Layer, target_value: int) -> Mapping:
    """
    Set a layer to a fixed value wherever the mask selects it.

    Bit layers are only ever switched on, and only for a non-zero target
    value. Discrete layers are overwritten where the mask is non-zero.
    Continuous layers are max-merged for every sample, zero included.
    """
    aspect = f"layer {layer} (value {target_value})"
    description = f"Set layer {layer} to selected value"

    if layer.is_bit_layer:

        def write(config, x, y, mask_value):
            if target_value != 0 and mask_value != 0:
                config.require_tile().set_bit_layer_value(layer, x, y, True)

        return LeafMapping(MappingKind.SET_BIT_LAYER, aspect, description, write)

    if layer.is_discrete:

        def write(config, x, y, mask_value):
            if mask_value != 0:
                config.require_tile().set_layer_value(layer, x, y, target_value)

        return LeafMapping(MappingKind.SET_DISCRETE_LAYER, aspect, description, write)

    def write(config, x, y, mask_value):
        tile = config.require_tile()
        tile.set_layer_value(layer, x, y, max(target_value, tile.get_layer_value(layer, x, y)))

    return LeafMapping(MappingKind.MERGE_CONTINUOUS_LAYER, aspect, description, write)


def map_to_terrain(catalog: Sequence[Terrain] = TERRAIN_VALUES) -> Mapping:
    """
    Use the mask value as an index into the terrain catalog.

    Raises (on apply):
        IndexError: If the mask value is not a valid catalog index
    """

    def write(config, x, y, mask_value):
        if not 0 <= mask_value < len(catalog):
            raise IndexError(f"Mask value {mask_value} outside terrain catalog of {len(catalog)} entries")
        config.require_tile().set_terrain(x, y, catalog[mask_value])

    return LeafMapping(MappingKind.TERRAIN_INDEX, "terrain", "Set terrain type index to mask value", write)


def map_to_layer(layer: Layer) -> Mapping:
    """Use the mask value as the layer value, max-merged, where non-zero."""
    aspect = f"layer {layer}"
    description = f"Set layer {layer} to mask value"

    if layer.is_bit_layer:

        def write(config, x, y, mask_value):
            if mask_value != 0:
                config.require_tile().set_bit_layer_value(layer, x, y, True)

    else:

        def write(config, x, y, mask_value):
            if mask_value != 0:
                tile = config.require_tile()
                tile.set_layer_value(layer, x, y, max(mask_value, tile.get_layer_value(layer, x, y)))

    return LeafMapping(MappingKind.LAYER_VALUE, aspect, description, write)


def _ranged_mapping(layer: Layer, description: str, scale: Callable[[MappingConfig, int], int]) -> Mapping:
    if layer.is_bit_layer:
        raise ValueError(f"Cannot map a mask range onto bit layer {layer} (max value {layer.max_value})")

    if layer.is_discrete:

        def write(config, x, y, mask_value):
            if mask_value != 0:
                config.require_tile().set_layer_value(layer, x, y, scale(config, mask_value))

        return LeafMapping(MappingKind.RANGE_REMAP, f"layer {layer}", description, write)

    def write(config, x, y, mask_value):
        tile = config.require_tile()
        tile.set_layer_value(layer, x, y, max(scale(config, mask_value), tile.get_layer_value(layer, x, y)))

    return RangedMapping(MappingKind.RANGE_REMAP, f"layer {layer}", description, write)


def map_actual_range_to_layer(layer: Layer) -> Mapping:
    """
    Rescale the observed mask range [low, high] onto [0, layer.max_value].

    Raises:
        ValueError: If layer is a bit layer
    """
    return _ranged_mapping(
        layer,
        f"Map layer {layer} to actual mask range",
        lambda config, value: remap_actual_range(
            value, config.mask_low_value, config.mask_high_value, layer.max_value
        ),
    )


def map_full_range_to_layer(layer: Layer) -> Mapping:
    """
    Rescale the declared mask range [0, max] onto [0, layer.max_value].

    Raises:
        ValueError: If layer is a bit layer
    """
    return _ranged_mapping(
        layer,
        f"Map layer {layer} to full mask range",
        lambda config, value: remap_full_range(value, config.mask_max_value, layer.max_value),
    )


def colour_to_annotations() -> ColourToAnnotationsMapping:
    """Classify ARGB mask colours into the annotations layer."""
    return ColourToAnnotationsMapping()
