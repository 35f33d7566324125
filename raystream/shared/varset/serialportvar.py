from typing import Optional
from ...machine.transport.serial import SerialPort
from .var import Var, ValidationError


class SerialPortVar(Var[SerialPort]):
    """A Var holding a serial port device name."""

    def __init__(
        self,
        key: str,
        label: str,
        description: Optional[str] = None,
        default: Optional[str] = None,
        value: Optional[str] = None,
    ):
        super().__init__(
            key,
            label,
            SerialPort,
            description=description,
            default=SerialPort(default) if default else None,
            value=SerialPort(value) if value else None,
            validator=self._check_port,
        )

    @staticmethod
    def _check_port(value: Optional[SerialPort]):
        if not value or not value.strip():
            raise ValidationError("A serial port must be selected")
