"""
Core mask mapping functionality.
"""

from .tile import Terrain, TERRAIN_VALUES, Layer, ANNOTATIONS, Tile, GridTile, TILE_SIZE
from .remap import InvalidRangeError, remap_actual_range, remap_full_range
from .annotations import (
    ANNOTATIONS_PALETTE, COLOUR_ANNOTATION_MAPPING, IndexedImage,
    colour_to_annotation, dither_mask
)
from .java_random import JavaRandom
from .mapping import (
    Mapping, MappingConfig, MappingKind, ThresholdMapping, RangedMapping,
    ColourToAnnotationsMapping, set_terrain_value, set_layer_value,
    map_to_terrain, map_to_layer, map_actual_range_to_layer,
    map_full_range_to_layer, colour_to_annotations
)
from .importer import MaskImporter, DitherMode, ImportStats, build_mapping

__all__ = ['Terrain', 'TERRAIN_VALUES', 'Layer', 'ANNOTATIONS', 'Tile', 'GridTile', 'TILE_SIZE',
           'InvalidRangeError', 'remap_actual_range', 'remap_full_range',
           'ANNOTATIONS_PALETTE', 'COLOUR_ANNOTATION_MAPPING', 'IndexedImage',
           'colour_to_annotation', 'dither_mask', 'JavaRandom',
           'Mapping', 'MappingConfig', 'MappingKind', 'ThresholdMapping', 'RangedMapping',
           'ColourToAnnotationsMapping', 'set_terrain_value', 'set_layer_value',
           'map_to_terrain', 'map_to_layer', 'map_actual_range_to_layer',
           'map_full_range_to_layer', 'colour_to_annotations',
           'MaskImporter', 'DitherMode', 'ImportStats', 'build_mapping']
