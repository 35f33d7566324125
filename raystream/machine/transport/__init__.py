from .transport import Transport, TransportStatus
from .serial import (
    SerialPort,
    SerialTransport,
    ConfigurationError,
    PortNotFoundError,
    NotASerialPortError,
    ChannelOpenError,
)
from .flow import (
    FlowControl,
    FlowControlTimeout,
    TransmissionCancelled,
    InboundDrain,
    DiscardingDrain,
    Transmitter,
    TransmitterState,
)


__all__ = [
    "Transport",
    "TransportStatus",
    "SerialPort",
    "SerialTransport",
    "ConfigurationError",
    "PortNotFoundError",
    "NotASerialPortError",
    "ChannelOpenError",
    "FlowControl",
    "FlowControlTimeout",
    "TransmissionCancelled",
    "InboundDrain",
    "DiscardingDrain",
    "Transmitter",
    "TransmitterState",
]
