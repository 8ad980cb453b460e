"""
Mask import mapping engine.

Translates raster masks into terrain and layer writes on a tile grid.
"""
