"""
Boustrophedon raster-to-vector conversion.

Every scan line is reduced to runs of equal intensity. Only run
boundaries produce commands: a non-zero run becomes one draw, a zero run
becomes one travel move. Lines alternate direction so the head never
needs a separate return stroke.
"""
import logging
from enum import Enum, auto
from typing import List, Tuple
import numpy as np
from ...core.job import Point, Raster3dPart, RasterPart
from ...core.units import mm_to_px
from .base import PartEncoder, UnknownPartKind
from .gcode import CommandEmitter


logger = logging.getLogger(__name__)

# (first index, last index, sample value)
Run = Tuple[int, int, int]


class ScanDirection(Enum):
    RIGHT = auto()
    LEFT = auto()

    def reversed(self) -> "ScanDirection":
        if self is ScanDirection.RIGHT:
            return ScanDirection.LEFT
        return ScanDirection.RIGHT


def find_runs(samples) -> List[Run]:
    row = np.asarray(samples, dtype=np.int16)
    if row.size == 0:
        return []
    # index of the first sample of every run after the first one
    bounds = np.flatnonzero(np.diff(row)) + 1
    starts = np.concatenate(([0], bounds))
    ends = np.concatenate((bounds - 1, [row.size - 1]))
    return [
        (int(first), int(last), int(row[first]))
        for first, last in zip(starts, ends)
    ]


def trim_samples(samples, line_start: Point) -> Tuple[np.ndarray, Point]:
    """
    Strips leading and trailing zero samples. The returned start point is
    shifted right by the number of leading zeros removed.
    """
    row = np.asarray(samples)
    marks = np.flatnonzero(row)
    if marks.size == 0:
        return row[:0], line_start
    first, last = int(marks[0]), int(marks[-1])
    return row[first:last + 1], line_start.translated(dx=first)


class RasterScanLineEncoder(PartEncoder):
    """
    Encodes RasterPart (bilevel) and Raster3dPart (grayscale) parts.

    Bilevel lines are padded with a travel margin on both ends, so the
    head reaches constant speed before the first mark and has room to
    decelerate after the last one. Grayscale lines are not padded.
    """

    def __init__(self, margin: float = 0.5):
        self.margin = margin  # mm
        self.direction = ScanDirection.RIGHT

    def encode(self, part, emitter: CommandEmitter) -> None:
        match part:
            case Raster3dPart():
                self._encode_grayscale(part, emitter)
            case RasterPart():
                self._encode_bilevel(part, emitter)
            case _:
                raise UnknownPartKind(
                    f"Not a raster part: {part.__class__.__name__}"
                )

    def reset(self) -> None:
        self.direction = ScanDirection.RIGHT

    def _encode_bilevel(self, part: RasterPart, emitter: CommandEmitter):
        prop = part.laser_property
        self.reset()
        emitter.set_speed(prop.speed)
        emitter.set_power(prop.power)
        lines = np.where(part.image, 255, 0)
        for line in range(part.raster_height):
            self.encode_line(
                lines[line],
                part.raster_start.translated(dy=line),
                prop.power,
                part.resolution,
                emitter,
                pad=True,
            )

    def _encode_grayscale(
        self, part: Raster3dPart, emitter: CommandEmitter
    ):
        prop = part.laser_property
        self.reset()
        emitter.set_speed(prop.speed)
        for line in range(part.raster_height):
            self.encode_line(
                part.image[line],
                part.raster_start.translated(dy=line),
                prop.power,
                part.resolution,
                emitter,
            )

    def encode_line(
        self,
        samples,
        line_start: Point,
        power: int,
        resolution: float,
        emitter: CommandEmitter,
        pad: bool = False,
    ) -> None:
        """
        Encodes one scan line in the current direction, then flips the
        direction. Empty lines emit nothing but still flip it.
        """
        trimmed, start = trim_samples(samples, line_start)
        if trimmed.size:
            runs = find_runs(trimmed)
            if self.direction is ScanDirection.RIGHT:
                self._scan_right(runs, start, power, resolution, emitter, pad)
            else:
                self._scan_left(runs, start, power, resolution, emitter, pad)
        self.direction = self.direction.reversed()

    def _margin_px(self, resolution: float) -> float:
        return mm_to_px(self.margin, resolution)

    def _bed_px(self, emitter: CommandEmitter, resolution: float) -> int:
        return int(mm_to_px(emitter.bed_width, resolution))

    def _run_power(self, power: int, value: int) -> int:
        return power * value // 255

    def _scan_right(
        self,
        runs: List[Run],
        start: Point,
        power: int,
        resolution: float,
        emitter: CommandEmitter,
        pad: bool,
    ):
        x0, y = start.x, start.y
        last = x0 + runs[-1][1]
        if pad:
            left = max(0, int(x0 - self._margin_px(resolution)))
            emitter.move_to(left, y, resolution)
        emitter.move_to(x0, y, resolution)
        for _, end, value in runs[:-1]:
            if value:
                emitter.set_power(self._run_power(power, value))
                emitter.draw_to(x0 + end, y, resolution)
            emitter.move_to(x0 + end + 1, y, resolution)
        # trailing zeros were trimmed, so the final run is always a mark
        emitter.set_power(self._run_power(power, runs[-1][2]))
        emitter.draw_to(last, y, resolution)
        if pad:
            right = min(
                self._bed_px(emitter, resolution),
                int(last + self._margin_px(resolution)),
            )
            emitter.move_to(right, y, resolution)

    def _scan_left(
        self,
        runs: List[Run],
        start: Point,
        power: int,
        resolution: float,
        emitter: CommandEmitter,
        pad: bool,
    ):
        x0, y = start.x, start.y
        last = x0 + runs[-1][1]
        if pad:
            right = min(
                self._bed_px(emitter, resolution),
                int(last + self._margin_px(resolution)),
            )
            emitter.move_to(right, y, resolution)
        emitter.move_to(last, y, resolution)
        for first, _, value in reversed(runs[1:]):
            if value:
                emitter.set_power(self._run_power(power, value))
                emitter.draw_to(x0 + first, y, resolution)
            emitter.move_to(x0 + first - 1, y, resolution)
        emitter.set_power(self._run_power(power, runs[0][2]))
        emitter.draw_to(x0, y, resolution)
        if pad:
            left = max(0, int(x0 - self._margin_px(resolution)))
            emitter.move_to(left, y, resolution)
