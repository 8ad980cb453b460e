"""
Colour to annotation classification.

Annotation layers hold one of 15 fixed colours (values 1-15, 0 means no
annotation). True-colour mask pixels are classified by nearest palette
colour through a 4096-entry lookup table keyed on the high four bits of
each channel. For previews, a whole mask can be reduced to the palette
with Pillow's Floyd-Steinberg quantizer first.
"""

import numpy as np
import structlog
from dataclasses import dataclass
from PIL import Image

logger = structlog.get_logger()

# RGB of annotation values 1..15
ANNOTATIONS_PALETTE = np.array(
    [
        [0xDD, 0xDD, 0xDD],
        [0xDB, 0x7D, 0x3E],
        [0xB3, 0x50, 0xBC],
        [0x6A, 0x8A, 0xC9],
        [0xB1, 0xA6, 0x27],
        [0x41, 0xAE, 0x38],
        [0xD0, 0x84, 0x99],
        [0x9A, 0xA1, 0xA1],
        [0x2E, 0x6E, 0x89],
        [0x7E, 0x3D, 0xB5],
        [0x2E, 0x38, 0x8D],
        [0x4F, 0x32, 0x1F],
        [0x35, 0x46, 0x1B],
        [0x96, 0x34, 0x30],
        [0x19, 0x16, 0x16],
    ],
    dtype=np.uint8,
)
ANNOTATIONS_PALETTE.flags.writeable = False

NO_ANNOTATION = 0
ALPHA_THRESHOLD = 0x7F


def _build_colour_annotation_mapping() -> np.ndarray:
    """
    Find the nearest palette entry for every 4-bit quantized colour.

    Index layout is 0xRGB, one nibble per channel. Ties go to the lowest
    annotation value (argmin returns the first minimum).
    """
    i = np.arange(4096)
    colours = np.stack([(i >> 8) & 0xF, (i >> 4) & 0xF, i & 0xF], axis=1) << 4
    diff = colours[:, None, :] - ANNOTATIONS_PALETTE[None, :, :].astype(np.int64)
    distances = (diff ** 2).sum(axis=2)
    table = (np.argmin(distances, axis=1) + 1).astype(np.uint8)
    table.flags.writeable = False
    return table


# Built once at import; read-only afterwards
COLOUR_ANNOTATION_MAPPING = _build_colour_annotation_mapping()


def colour_to_annotation(argb: int) -> int:
    """
    Classify a packed ARGB colour.

    Args:
        argb: 32-bit colour, 0xAARRGGBB

    Returns:
        Annotation value 1-15, or NO_ANNOTATION if the pixel is at most
        half opaque
    """
    argb = int(argb)
    if ((argb >> 24) & 0xFF) <= ALPHA_THRESHOLD:
        return NO_ANNOTATION
    index = ((argb >> 12) & 0xF00) | ((argb >> 8) & 0xF0) | ((argb >> 4) & 0xF)
    return int(COLOUR_ANNOTATION_MAPPING[index])


@dataclass
class IndexedImage:
    """Palette-reduced raster. Index 0 is unset, 1-15 are annotation colours."""

    indices: np.ndarray
    colour_table: np.ndarray

    @property
    def shape(self):
        return self.indices.shape

    def to_argb(self) -> np.ndarray:
        """Expand to packed ARGB; unset pixels become fully transparent."""
        rgb = self.colour_table[self.indices].astype(np.uint32)
        argb = 0xFF000000 | (rgb[..., 0] << 16) | (rgb[..., 1] << 8) | rgb[..., 2]
        return np.where(self.indices > 0, argb, 0).astype(np.uint32)


def _colour_table() -> np.ndarray:
    table = np.zeros((16, 3), dtype=np.uint8)
    table[1:] = ANNOTATIONS_PALETTE
    return table


def _palette_image() -> Image.Image:
    """P-mode image carrying the annotation palette, padded to 256 entries with the last colour."""
    colours = ANNOTATIONS_PALETTE.tolist()
    colours.extend([colours[-1]] * (256 - len(colours)))
    palette_image = Image.new("P", (1, 1))
    palette_image.putpalette([c for rgb in colours for c in rgb])
    return palette_image


def dither_mask(mask: np.ndarray, dither: bool = True) -> IndexedImage:
    """
    Reduce a true-colour mask to the annotation palette.

    The RGB plane is quantized with Floyd-Steinberg error diffusion, so
    colours between two palette entries come out as a mix of both. Pixels
    at most half opaque are unset afterwards.

    Args:
        mask: 2D array of packed ARGB colours
        dither: Diffuse quantization error; nearest colour only if False

    Returns:
        IndexedImage of the same height and width
    """
    mask = np.asarray(mask)
    if mask.ndim != 2:
        raise ValueError(f"Expected a 2D ARGB mask, got shape {mask.shape}")

    argb = mask.astype(np.int64) & 0xFFFFFFFF
    opaque = ((argb >> 24) & 0xFF) > ALPHA_THRESHOLD
    rgb = np.stack(
        [(argb >> 16) & 0xFF, (argb >> 8) & 0xFF, argb & 0xFF], axis=-1
    ).astype(np.uint8)

    method = Image.Dither.FLOYDSTEINBERG if dither else Image.Dither.NONE
    quantized = Image.fromarray(rgb).quantize(palette=_palette_image(), dither=method)

    # Padding entries all repeat the last palette colour
    indices = np.minimum(np.array(quantized, dtype=np.uint8), len(ANNOTATIONS_PALETTE) - 1) + 1
    indices[~opaque] = NO_ANNOTATION

    height, width = mask.shape
    logger.info(
        "Mask dithered to annotation palette",
        width=width,
        height=height,
        dithered=dither,
        unset=int(np.count_nonzero(indices == NO_ANNOTATION)),
    )
    return IndexedImage(indices=indices.astype(np.uint8), colour_table=_colour_table())
