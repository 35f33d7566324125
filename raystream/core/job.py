from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union
import numpy as np
from .units import mm_to_px


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Point:
    """An integer position in device pixel space."""

    x: int
    y: int

    def translated(self, dx: int = 0, dy: int = 0) -> Point:
        return Point(self.x + dx, self.y + dy)


def _check_percent(name: str, value: int):
    if not 0 <= value <= 100:
        raise ValueError(f"{name} must be within 0..100, got {value}")


@dataclass(frozen=True)
class PowerSpeedProperty:
    power: int = 20  # percent of full laser power
    speed: int = 100  # percent of the machine's max laser rate

    def __post_init__(self):
        _check_percent("power", self.power)
        _check_percent("speed", self.speed)


@dataclass(frozen=True)
class PowerSpeedFocusProperty(PowerSpeedProperty):
    focus: float = 0.0  # mm


@dataclass(frozen=True)
class PowerSpeedFocusFrequencyProperty(PowerSpeedFocusProperty):
    frequency: int = 5000  # Hz


LaserProperty = Union[
    PowerSpeedProperty,
    PowerSpeedFocusProperty,
    PowerSpeedFocusFrequencyProperty,
]


@dataclass(frozen=True)
class MoveTo:
    x: int
    y: int


@dataclass(frozen=True)
class LineTo:
    x: int
    y: int


@dataclass(frozen=True)
class SetProperty:
    property: LaserProperty


VectorCommand = Union[MoveTo, LineTo, SetProperty]

# (min_x, min_y, max_x, max_y) in pixels, inclusive
BBox = Tuple[int, int, int, int]


class VectorPart:
    """
    An ordered list of vector commands. The list always begins with a
    SetProperty for the initial laser property.
    """

    def __init__(self, property: LaserProperty, resolution: float):
        self.resolution = float(resolution)
        self.laser_property = property
        self.commands: List[VectorCommand] = [SetProperty(property)]

    def move_to(self, x: int, y: int) -> None:
        self.commands.append(MoveTo(int(x), int(y)))

    def line_to(self, x: int, y: int) -> None:
        self.commands.append(LineTo(int(x), int(y)))

    def set_property(self, property: LaserProperty) -> None:
        self.commands.append(SetProperty(property))

    def bbox(self) -> Optional[BBox]:
        xs = [c.x for c in self.commands if isinstance(c, (MoveTo, LineTo))]
        ys = [c.y for c in self.commands if isinstance(c, (MoveTo, LineTo))]
        if not xs:
            return None
        return min(xs), min(ys), max(xs), max(ys)

    def translate(self, dx: int, dy: int) -> None:
        commands: List[VectorCommand] = []
        for cmd in self.commands:
            if isinstance(cmd, (MoveTo, LineTo)):
                cmd = replace(cmd, x=cmd.x + dx, y=cmd.y + dy)
            commands.append(cmd)
        self.commands = commands

    def __repr__(self) -> str:
        return (
            f"VectorPart(resolution={self.resolution}, "
            f"commands={len(self.commands)})"
        )


class _RasterBase:
    def __init__(
        self,
        image: np.ndarray,
        raster_start: Point,
        property: LaserProperty,
        resolution: float,
    ):
        if image.ndim != 2:
            raise ValueError(
                f"Raster image must be two-dimensional, got {image.ndim}"
            )
        self.image = image
        self.raster_start = raster_start
        self.laser_property = property
        self.resolution = float(resolution)

    @property
    def raster_width(self) -> int:
        return int(self.image.shape[1])

    @property
    def raster_height(self) -> int:
        return int(self.image.shape[0])

    def bbox(self) -> Optional[BBox]:
        if self.raster_width == 0 or self.raster_height == 0:
            return None
        start = self.raster_start
        return (
            start.x,
            start.y,
            start.x + self.raster_width - 1,
            start.y + self.raster_height - 1,
        )

    def translate(self, dx: int, dy: int) -> None:
        self.raster_start = self.raster_start.translated(dx, dy)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(start={self.raster_start}, "
            f"size={self.raster_width}x{self.raster_height}, "
            f"resolution={self.resolution})"
        )


class RasterPart(_RasterBase):
    """A bilevel raster. Any non-zero pixel is engraved at full power."""

    def __init__(
        self,
        image: np.ndarray,
        raster_start: Point,
        property: LaserProperty,
        resolution: float,
    ):
        super().__init__(
            np.asarray(image, dtype=bool), raster_start, property, resolution
        )

    def is_black(self, x: int, line: int) -> bool:
        return bool(self.image[line, x])


class Raster3dPart(_RasterBase):
    """
    A grayscale raster. Samples are 0 (no mark) to 255 (full power).
    """

    def __init__(
        self,
        image: np.ndarray,
        raster_start: Point,
        property: LaserProperty,
        resolution: float,
    ):
        image = np.asarray(image)
        if image.size and (image.min() < 0 or image.max() > 255):
            raise ValueError("Raster3d samples must lie within 0..255")
        super().__init__(
            image.astype(np.uint8), raster_start, property, resolution
        )

    def get_raster_line(self, line: int) -> List[int]:
        return [int(v) for v in self.image[line]]


JobPart = Union[VectorPart, RasterPart, Raster3dPart]


@dataclass
class Job:
    """
    An ordered list of parts. The start point (mm) is the position on the
    bed that becomes the origin once apply_start_point() is called.
    """

    title: str = "job"
    parts: List[JobPart] = field(default_factory=list)
    start_x: float = 0.0
    start_y: float = 0.0

    def add_part(self, part: JobPart) -> None:
        self.parts.append(part)

    def apply_start_point(self) -> None:
        if self.start_x == 0 and self.start_y == 0:
            return
        logger.debug(
            f"Applying start point ({self.start_x}, {self.start_y}) "
            f"to {len(self.parts)} parts"
        )
        for part in self.parts:
            dx = -int(round(mm_to_px(self.start_x, part.resolution)))
            dy = -int(round(mm_to_px(self.start_y, part.resolution)))
            part.translate(dx, dy)
        self.start_x = 0.0
        self.start_y = 0.0
