from abc import ABC, abstractmethod
from enum import Enum, auto
from blinker import Signal


class TransportStatus(Enum):
    UNKNOWN = auto()
    IDLE = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    ERROR = auto()
    CLOSING = auto()
    DISCONNECTED = auto()


class Transport(ABC):
    """
    Abstract base class for asynchronous, flow-controlled byte links.

    Signals:
        received: sent with data=bytes for every inbound chunk
        status_changed: sent with status=TransportStatus and an optional
            message=str
    """

    def __init__(self):
        self.received = Signal()
        self.status_changed = Signal()

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @property
    @abstractmethod
    def is_clear_to_send(self) -> bool:
        """
        True while the device's hardware ready line is asserted.
        """
        pass

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection and start data flow.
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Gracefully terminate connection and cleanup resources.
        """
        pass

    @abstractmethod
    async def send(self, data: bytes) -> None:
        """
        Send binary data through the transport.

        Raises:
            ConnectionError: If transport is not connected
        """
        pass

    @abstractmethod
    def read_nowait(self, max_bytes: int = 1) -> bytes:
        """
        Returns up to max_bytes of already received data without waiting.
        Returns b"" if nothing is pending.
        """
        pass
