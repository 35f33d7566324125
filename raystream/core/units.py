"""
Conversion between device pixel space and physical millimeters.

Pixels are addressed at a resolution given in dots per inch. Only the X
axis can be mirrored; Y always grows away from the machine origin.
"""
from typing import Tuple


MM_PER_INCH = 25.4


def px_to_mm(px: float, dpi: float) -> float:
    return px * MM_PER_INCH / dpi


def mm_to_px(mm: float, dpi: float) -> float:
    return mm * dpi / MM_PER_INCH


def to_physical(
    x: float,
    y: float,
    resolution: float,
    flip_x: bool = False,
    bed_width: float = 0.0,
) -> Tuple[float, float]:
    """
    Maps a pixel coordinate to millimeters. With flip_x, X is mirrored
    against the bed width (given in mm) before conversion.
    """
    if flip_x:
        x = mm_to_px(bed_width, resolution) - x
    return px_to_mm(x, resolution), px_to_mm(y, resolution)
