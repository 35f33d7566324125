from typing import Callable, Optional, Union
import pytest
from raystream.machine.transport import Transport


class FakeTransport(Transport):
    """
    In-memory transport. The ready line is either a constant or a callable
    evaluated on every check.
    """

    def __init__(
        self,
        cts: Union[bool, Callable[[], bool]] = True,
        inbound: bytes = b"",
        connect_error: Optional[Exception] = None,
    ):
        super().__init__()
        self.cts = cts
        self.inbound = bytearray(inbound)
        self.connect_error = connect_error
        self.connected = False
        self.writes = []
        self.cts_checks = 0
        self.connects = 0
        self.disconnects = 0

    @property
    def is_connected(self) -> bool:
        return self.connected

    @property
    def is_clear_to_send(self) -> bool:
        self.cts_checks += 1
        if callable(self.cts):
            return self.cts()
        return self.cts

    async def connect(self) -> None:
        self.connects += 1
        if self.connect_error:
            raise self.connect_error
        self.connected = True

    async def disconnect(self) -> None:
        self.disconnects += 1
        self.connected = False

    async def send(self, data: bytes) -> None:
        if not self.connected:
            raise ConnectionError("Fake transport not open")
        self.writes.append(bytes(data))

    def read_nowait(self, max_bytes: int = 1) -> bytes:
        data = bytes(self.inbound[:max_bytes])
        del self.inbound[:max_bytes]
        return data

    @property
    def sent(self) -> bytes:
        return b"".join(self.writes)


@pytest.fixture
def fake_transport_cls():
    return FakeTransport
