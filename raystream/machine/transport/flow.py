"""
Flow-controlled delivery of encoded streams.

The device signals readiness on its hardware ready (CTS) line. Every
chunk is preceded by a bounded wait for that line; if it never asserts,
the transmission fails. Inbound bytes are drained opportunistically after
each chunk so a half-duplex style link never overflows on our side.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
from .transport import Transport


logger = logging.getLogger(__name__)


class FlowControlTimeout(TimeoutError):
    """The ready signal did not assert within the configured bound."""

    pass


class TransmissionCancelled(Exception):
    """Cancellation was requested and observed at a chunk boundary."""

    pass


class TransmitterState(Enum):
    IDLE = auto()
    CONNECTED = auto()
    SENDING = auto()
    DRAINING = auto()
    CLOSED = auto()
    FAILED = auto()


@dataclass
class FlowControl:
    """
    Tuning for the chunk loop.

    chunk_size: bytes per write, half of the 8 byte GRBL UART buffer.
    max_poll_attempts: ready-line checks before giving up.
    poll_interval: seconds to yield between two checks.
    ready_timeout: optional wall-clock bound in seconds for one wait.
    drop_final_byte: leave the last byte of every stream unsent.
    """

    chunk_size: int = 4
    max_poll_attempts: int = 100
    poll_interval: float = 0.001
    ready_timeout: Optional[float] = 1.0
    drop_final_byte: bool = False

    def __post_init__(self):
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        if self.max_poll_attempts < 1:
            raise ValueError("max_poll_attempts must be positive")


class InboundDrain(ABC):
    """
    Consumes unsolicited inbound bytes between chunks. Subclasses may
    interpret them; this is where device error frames would be parsed.
    """

    @abstractmethod
    def drain(self, transport: Transport) -> None:
        pass


class DiscardingDrain(InboundDrain):
    """Removes at most one pending byte per call and ignores it."""

    def __init__(self):
        self.discarded = 0

    def drain(self, transport: Transport) -> None:
        data = transport.read_nowait(1)
        if data:
            self.discarded += len(data)
            logger.debug(f"Discarded inbound byte {data!r}")


class Transmitter:
    """
    Owns a transport for the duration of one job and streams byte buffers
    to it in chunks gated by the ready signal.

    Use as an async context manager; the transport is disconnected on
    every exit path.
    """

    def __init__(
        self,
        transport: Transport,
        flow: Optional[FlowControl] = None,
        drain: Optional[InboundDrain] = None,
    ):
        self.transport = transport
        self.flow = flow or FlowControl()
        self.drain = drain or DiscardingDrain()
        self.state = TransmitterState.IDLE
        self.poll_attempts = 0
        self.writes = 0
        self._cancel_requested = False
        if self.flow.drop_final_byte:
            logger.warning(
                "drop_final_byte is enabled: the last byte of every "
                "stream will not be transmitted"
            )

    def _set_state(self, state: TransmitterState):
        logger.debug(f"Transmitter {self.state.name} -> {state.name}")
        self.state = state

    async def open(self) -> None:
        await self.transport.connect()
        self._set_state(TransmitterState.CONNECTED)

    async def close(self) -> None:
        if self.state not in (TransmitterState.FAILED, TransmitterState.IDLE):
            self._set_state(TransmitterState.DRAINING)
            while self.transport.read_nowait(64):
                pass
        if self.transport.is_connected:
            await self.transport.disconnect()
        if self.state is not TransmitterState.FAILED:
            self._set_state(TransmitterState.CLOSED)

    async def __aenter__(self) -> "Transmitter":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            self._set_state(TransmitterState.FAILED)
        await self.close()

    def cancel(self) -> None:
        """Requests cancellation at the next chunk boundary."""
        self._cancel_requested = True

    async def send(self, data: bytes) -> int:
        """
        Streams data in chunks and returns the number of chunk writes.

        Raises:
            FlowControlTimeout: if the ready signal never asserts.
            TransmissionCancelled: if cancel() was called.
        """
        if self.state not in (
            TransmitterState.CONNECTED,
            TransmitterState.SENDING,
        ):
            raise ConnectionError(
                f"Cannot send while transmitter is {self.state.name}"
            )
        self._set_state(TransmitterState.SENDING)

        end = len(data)
        if self.flow.drop_final_byte:
            end -= 1
        offset = 0
        writes = 0
        try:
            while offset < end:
                if self._cancel_requested:
                    raise TransmissionCancelled(
                        f"Cancelled after {offset} of {len(data)} bytes"
                    )
                await self._wait_until_ready()
                stride = min(self.flow.chunk_size, end - offset)
                await self.transport.send(data[offset:offset + stride])
                offset += stride
                writes += 1
                self.drain.drain(self.transport)
        except (FlowControlTimeout, TransmissionCancelled):
            self._set_state(TransmitterState.FAILED)
            raise
        finally:
            self.writes += writes
        logger.debug(f"Sent {offset} bytes in {writes} chunks")
        return writes

    async def _wait_until_ready(self) -> None:
        loop = asyncio.get_running_loop()
        timeout = self.flow.ready_timeout
        deadline = None if timeout is None else loop.time() + timeout
        last = self.flow.max_poll_attempts - 1
        for attempt in range(self.flow.max_poll_attempts):
            self.poll_attempts += 1
            if self.transport.is_clear_to_send:
                return
            if attempt == last:
                break
            if deadline is not None and loop.time() >= deadline:
                break
            await asyncio.sleep(self.flow.poll_interval)
        logger.error(
            f"Ready signal not asserted after {attempt + 1} polls"
        )
        raise FlowControlTimeout(
            _("Error: COM port ClearToSend never signaled!")
        )
