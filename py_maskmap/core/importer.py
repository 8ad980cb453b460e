"""
Mask import driver.

Builds a mapping chain for one aspect, configures it from the mask, and
walks the mask tile by tile, applying every sample in raster order with
tile-local coordinates.
"""

import numpy as np
import structlog
from typing import Callable, Optional
from dataclasses import dataclass
from enum import Enum

from .mapping import Mapping
from .tile import Tile
from ..config import settings

logger = structlog.get_logger()


class DitherMode(Enum):
    """How a scalar mask is dithered before the leaf mapping."""

    NONE = "none"
    ACTUAL_RANGE = "actual_range"
    FULL_RANGE = "full_range"


@dataclass
class ImportStats:
    """Counts of work done by one import pass."""

    tiles: int = 0
    samples: int = 0


def build_mapping(
    leaf: Mapping, threshold: Optional[int] = None, dither: DitherMode = DitherMode.NONE
) -> Mapping:
    """
    Compose leaf -> threshold gate -> dither gate.

    Dithering outside the threshold keeps the threshold a hard floor.

    Args:
        leaf: Leaf mapping that performs the writes
        threshold: Inclusive threshold, or None for no threshold gate
        dither: Dither mode of the outermost decorator

    Returns:
        Outermost mapping of the chain
    """
    mapping = leaf
    if threshold is not None:
        mapping = mapping.threshold()
        mapping.set_threshold(threshold)
    if dither is DitherMode.ACTUAL_RANGE:
        mapping = mapping.dithered_actual_range()
    elif dither is DitherMode.FULL_RANGE:
        mapping = mapping.dithered_full_range()
    logger.debug("Mapping chain built", description=mapping.description)
    return mapping


def declared_max_value(mask: np.ndarray) -> int:
    """Largest value the mask's data type can hold (observed max for floats)."""
    if mask.dtype == np.bool_:
        return 1
    if np.issubdtype(mask.dtype, np.integer):
        return int(np.iinfo(mask.dtype).max)
    return int(mask.max())


class MaskImporter:
    """Applies one mapping chain to a whole mask."""

    def __init__(self, mapping: Mapping, tile_size: Optional[int] = None):
        """
        Initialize the importer.

        Args:
            mapping: Outermost mapping of the chain
            tile_size: Tile edge length, settings.tile_size if omitted
        """
        self.mapping = mapping
        self.tile_size = tile_size or settings.tile_size

    def configure_from_mask(
        self,
        mask: np.ndarray,
        threshold: Optional[int] = None,
        mask_max_value: Optional[int] = None,
    ) -> None:
        """
        Push the mask's range into the mapping's shared configuration.

        Args:
            mask: 2D scalar mask
            threshold: Inclusive threshold, left unchanged if None
            mask_max_value: Declared maximum, derived from the dtype if None
        """
        mask = np.asarray(mask)
        low = int(mask.min())
        high = int(mask.max())
        if mask_max_value is None:
            mask_max_value = declared_max_value(mask)

        self.mapping.set_mask_low_value(low)
        self.mapping.set_mask_high_value(high)
        self.mapping.set_mask_max_value(mask_max_value)
        if threshold is not None:
            self.mapping.set_threshold(threshold)

        logger.info(
            "Mapping configured from mask",
            aspect=self.mapping.aspect,
            mask_low_value=low,
            mask_high_value=high,
            mask_max_value=mask_max_value,
            threshold=self.mapping.config.threshold,
        )

    def import_mask(self, mask: np.ndarray, get_tile: Callable[[int, int], Optional[Tile]]) -> ImportStats:
        """
        Apply every mask sample to the tiles covering the mask.

        Args:
            mask: 2D mask, scalar samples or packed ARGB
            get_tile: Returns the tile at (tile_x, tile_y), or None to skip it

        Returns:
            ImportStats with the number of tiles and samples processed
        """
        mask = np.asarray(mask)
        if mask.ndim != 2:
            raise ValueError(f"Expected a 2D mask, got shape {mask.shape}")

        size = self.tile_size
        height, width = mask.shape
        tiles_x = -(-width // size)
        tiles_y = -(-height // size)
        stats = ImportStats()

        logger.info(
            "Starting mask import",
            description=self.mapping.description,
            width=width,
            height=height,
            tiles=tiles_x * tiles_y,
        )

        for tile_y in range(tiles_y):
            for tile_x in range(tiles_x):
                tile = get_tile(tile_x, tile_y)
                if tile is None:
                    continue
                self.mapping.set_tile(tile)

                # Python ints, so range arithmetic cannot wrap around
                block = mask[tile_y * size:(tile_y + 1) * size, tile_x * size:(tile_x + 1) * size].tolist()
                try:
                    for y, row in enumerate(block):
                        for x, value in enumerate(row):
                            self.mapping.apply(x, y, value)
                except Exception as e:
                    logger.error("Mask import failed", tile_x=tile_x, tile_y=tile_y, error=str(e))
                    raise

                stats.tiles += 1
                stats.samples += sum(len(row) for row in block)
                logger.debug("Tile imported", tile_x=tile_x, tile_y=tile_y)

        logger.info("Mask import complete", tiles=stats.tiles, samples=stats.samples)
        return stats
