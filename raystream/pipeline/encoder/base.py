from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .gcode import CommandEmitter


class UnknownPartKind(TypeError):
    """Raised when a job part is none of the supported kinds."""

    pass


class UnknownCommandKind(TypeError):
    """Raised when a vector part contains an unsupported command."""

    pass


class PartEncoder(ABC):
    """
    Encodes one job part into device commands.
    Encoding means: walking the part and calling the emitter for every
    motion and state change, in drawing order. The emitter carries the
    job-wide machine state (current power and speed).
    """

    @abstractmethod
    def encode(self, part: Any, emitter: "CommandEmitter") -> None:
        pass
