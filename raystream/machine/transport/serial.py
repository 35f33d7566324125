import logging
import asyncio
import os
import stat
import serial
import serial_asyncio
from typing import Optional, List
from serial.tools import list_ports
from .transport import Transport, TransportStatus

logger = logging.getLogger(__name__)

# Inbound bytes that are kept until drained; older bytes are discarded.
MAX_INBOUND_BUFFER = 4096


class SerialPort(str):
    """A string subclass for identifying serial ports, for UI generation."""

    pass


class ConfigurationError(Exception):
    """The configured port cannot be used."""

    pass


class PortNotFoundError(ConfigurationError):
    pass


class NotASerialPortError(ConfigurationError):
    pass


class ChannelOpenError(ConnectionError):
    """The configured port exists but could not be opened."""

    pass


class SerialTransport(Transport):
    """
    Asynchronous serial port transport with RTS/CTS hardware flow control.
    """

    @staticmethod
    def list_ports() -> List[str]:
        """Lists available serial ports."""
        try:
            return [port.device for port in list_ports.comports()]
        except TypeError:
            # pyserial can fail to read device properties in a confined
            # environment.
            logger.warning(
                "Could not list serial ports. This may be due to a "
                "permission error."
            )
            return []

    @staticmethod
    def list_baud_rates() -> List[int]:
        """Returns a list of common serial baud rates."""
        return [
            9600,
            19200,
            38400,
            57600,
            115200,
            230400,
            460800,
        ]

    @classmethod
    def locate(cls, port: str) -> SerialPort:
        """
        Checks that the port can be found and is a serial device.

        Raises:
            ConfigurationError: if the port is unknown or not a serial port.
        """
        if "://" in port:
            raise NotASerialPortError(
                _("Port '{port}' is not a serial port.").format(port=port)
            )
        known = port in cls.list_ports()
        if not known and not os.path.exists(port):
            raise PortNotFoundError(
                _("Error: No such COM-Port '{port}'").format(port=port)
            )
        if os.path.exists(port):
            mode = os.stat(port).st_mode
            if not stat.S_ISCHR(mode):
                raise NotASerialPortError(
                    _("Port '{port}' is not a serial port.").format(
                        port=port
                    )
                )
        return SerialPort(port)

    def __init__(self, port: str, baudrate: int):
        """
        Initialize serial transport.

        Args:
            port: Device path (e.g., '/dev/ttyUSB0')
            baudrate: Communication speed in bits per second
        """
        super().__init__()
        self.port = port
        self.baudrate = baudrate
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._running = False
        self._receive_task: Optional[asyncio.Task] = None
        self._inbound = bytearray()

    @property
    def is_connected(self) -> bool:
        """Check if the transport is actively connected."""
        return self._writer is not None and self._running

    @property
    def is_clear_to_send(self) -> bool:
        if not self._writer:
            return False
        return bool(self._writer.transport.serial.cts)

    async def connect(self) -> None:
        logger.debug(f"Opening serial port {self.port} at {self.baudrate}")
        self.status_changed.send(self, status=TransportStatus.CONNECTING)
        try:
            result = await serial_asyncio.open_serial_connection(
                url=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                rtscts=True,
            )
        except (serial.SerialException, OSError) as e:
            logger.error(f"Failed to open serial port {self.port}: {e}")
            self.status_changed.send(
                self, status=TransportStatus.ERROR, message=str(e)
            )
            raise ChannelOpenError(
                _("Error: Could not Open COM-Port '{port}'").format(
                    port=self.port
                )
            ) from e
        self._reader, self._writer = result
        self._running = True
        self.status_changed.send(self, status=TransportStatus.CONNECTED)
        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.debug("Serial port connected successfully.")

    async def disconnect(self) -> None:
        """
        Gracefully terminate the serial connection and cleanup resources.
        """
        logger.debug("Attempting to disconnect serial port...")
        self.status_changed.send(self, status=TransportStatus.CLOSING)
        self._running = False

        if self._receive_task:
            self._receive_task.cancel()
            try:
                await asyncio.wait_for(self._receive_task, timeout=2.0)
            except asyncio.CancelledError:
                logger.debug("Receive task cancelled successfully.")
            except asyncio.TimeoutError:
                logger.warning("Timeout waiting for receive task to cancel.")
            self._receive_task = None

        if self._writer:
            self._writer.close()
            self._writer = None
        self._reader = None
        self._inbound.clear()

        self.status_changed.send(self, status=TransportStatus.DISCONNECTED)
        logger.debug("Serial port disconnected.")

    async def send(self, data: bytes) -> None:
        """
        Write data to serial port.
        """
        if not self._writer:
            raise ConnectionError("Serial port not open")
        logger.debug(f"Sending data: {data!r}")
        self._writer.write(data)
        await self._writer.drain()

    def read_nowait(self, max_bytes: int = 1) -> bytes:
        data = bytes(self._inbound[:max_bytes])
        del self._inbound[:max_bytes]
        return data

    async def _receive_loop(self) -> None:
        """
        Moves inbound data from the stream into the bounded inbound buffer
        so the OS side never stalls.
        """
        while self._running and self._reader:
            try:
                data = await self._reader.read(100)
            except asyncio.CancelledError:
                logger.debug("_receive_loop cancelled.")
                break
            except (serial.SerialException, OSError) as e:
                logger.error(f"Error in _receive_loop: {e}")
                self.status_changed.send(
                    self, status=TransportStatus.ERROR, message=str(e)
                )
                break
            if not data:
                logger.debug("Serial stream closed by peer.")
                break
            logger.debug(f"Received data: {data!r}")
            self._inbound.extend(data)
            overflow = len(self._inbound) - MAX_INBOUND_BUFFER
            if overflow > 0:
                logger.warning(f"Inbound buffer full, dropping {overflow}")
                del self._inbound[:overflow]
            self.received.send(self, data=data)
