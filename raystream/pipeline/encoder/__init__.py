from .base import PartEncoder, UnknownPartKind, UnknownCommandKind
from .gcode import CommandEmitter, EncoderState, VectorEncoder
from .raster import RasterScanLineEncoder, ScanDirection


__all__ = [
    "PartEncoder",
    "UnknownPartKind",
    "UnknownCommandKind",
    "CommandEmitter",
    "EncoderState",
    "VectorEncoder",
    "RasterScanLineEncoder",
    "ScanDirection",
]
