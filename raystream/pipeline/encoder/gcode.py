import math
import logging
from dataclasses import dataclass
from typing import List, Optional
from ...core.job import LineTo, MoveTo, SetProperty, VectorPart
from ...core.units import to_physical
from .base import PartEncoder, UnknownCommandKind


logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class EncoderState:
    """
    The power and speed last sent to the device, in percent. None means
    unknown, so the next request always produces a command. One instance
    lives for exactly one job.
    """

    power: Optional[int] = None
    speed: Optional[int] = None

    def reset(self) -> None:
        self.power = None
        self.speed = None


class CommandEmitter:
    """
    Appends G-code lines to a buffer. State commands (S, F) are only
    written when the value differs from the one in the shared state;
    motion commands are always written.
    """

    def __init__(
        self,
        state: EncoderState,
        max_laser_rate: float,
        flip_x: bool = False,
        bed_width: float = 0.0,
    ):
        self.state = state
        self.max_laser_rate = max_laser_rate
        self.flip_x = flip_x
        self.bed_width = bed_width  # mm
        self._lines: List[str] = []

    def set_power(self, power: int) -> None:
        if power == self.state.power:
            return
        self._lines.append(f"S{_round_half_up(255 * power / 100)}\n")
        self.state.power = power

    def set_speed(self, speed: int) -> None:
        if speed == self.state.speed:
            return
        feed = _round_half_up(speed * self.max_laser_rate / 100)
        self._lines.append(f"G1 F{feed}\n")
        self.state.speed = speed

    def move_to(self, x: int, y: int, resolution: float) -> None:
        self._motion("G0", x, y, resolution)

    def draw_to(self, x: int, y: int, resolution: float) -> None:
        self._motion("G1", x, y, resolution)

    def _motion(self, code: str, x: int, y: int, resolution: float) -> None:
        px, py = to_physical(
            x, y, resolution, self.flip_x, self.bed_width
        )
        self._lines.append(f"{code} X{px:f} Y{py:f}\n")

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def getvalue(self) -> bytes:
        return "".join(self._lines).encode("ascii")


class VectorEncoder(PartEncoder):
    """Translates vector commands one by one, in order."""

    def encode(self, part: VectorPart, emitter: CommandEmitter) -> None:
        for cmd in part.commands:
            self._handle_command(cmd, part.resolution, emitter)

    def _handle_command(
        self, cmd, resolution: float, emitter: CommandEmitter
    ) -> None:
        match cmd:
            case MoveTo(x=x, y=y):
                emitter.move_to(x, y, resolution)
            case LineTo(x=x, y=y):
                emitter.draw_to(x, y, resolution)
            case SetProperty(property=prop):
                emitter.set_power(prop.power)
                emitter.set_speed(prop.speed)
            case _:
                raise UnknownCommandKind(
                    f"Unsupported vector command: {cmd!r}"
                )
