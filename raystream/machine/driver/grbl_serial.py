import logging
from typing import Callable, Iterator, Optional, TYPE_CHECKING
from ...core.job import Job, JobPart, Raster3dPart, RasterPart, VectorPart
from ...core.units import px_to_mm
from ...pipeline.encoder import (
    CommandEmitter,
    EncoderState,
    RasterScanLineEncoder,
    UnknownPartKind,
    VectorEncoder,
)
from ..transport import (
    ChannelOpenError,
    FlowControlTimeout,
    NotASerialPortError,
    PortNotFoundError,
    SerialTransport,
    TransmissionCancelled,
    Transmitter,
    Transport,
)
from .driver import Driver, JobValidationError

if TYPE_CHECKING:
    from ..models.machine import Machine


logger = logging.getLogger(__name__)

TransportFactory = Callable[[str, int], Transport]


def _serial_factory(port: str, baudrate: int) -> Transport:
    SerialTransport.locate(port)
    return SerialTransport(port, baudrate)


def format_preamble(text: str) -> bytes:
    return (text.replace(";", "\n") + "\n").encode("ascii")


def format_postscript(text: str) -> bytes:
    return ("\n" + text.replace(";", "\n") + "\n").encode("ascii")


class GrblSerialDriver(Driver):
    """
    Drives GRBL-compatible controllers (Smoothieboard, Arduino GRBL)
    over a serial link with RTS/CTS hardware flow control.

    A job is sent in three phases: the preamble, one encoded stream per
    part, and the postscript. The current power and speed are tracked
    across the whole job so that repeated values are never re-sent.
    """

    label = _("GRBL (Serial)")
    subtitle = _("GRBL over a hardware flow-controlled serial port")
    model_name = "Grbl"
    resolutions = [500.0]

    def __init__(
        self,
        machine: "Machine",
        transport_factory: Optional[TransportFactory] = None,
    ):
        super().__init__(machine)
        self.transport_factory = transport_factory or _serial_factory
        self.state = EncoderState()
        self._transmitter: Optional[Transmitter] = None

    def check_job(self, job: Job) -> None:
        if not job.parts:
            raise JobValidationError(_("The job contains no parts."))
        for part in job.parts:
            if part.resolution not in self.resolutions:
                raise JobValidationError(
                    _("Resolution {dpi} DPI is not supported.").format(
                        dpi=part.resolution
                    )
                )
            bbox = part.bbox()
            if bbox is None:
                continue
            min_x, min_y, max_x, max_y = (
                px_to_mm(v, part.resolution) for v in bbox
            )
            if (
                min_x < 0
                or min_y < 0
                or max_x > self.machine.bed_width
                or max_y > self.machine.bed_height
            ):
                raise JobValidationError(
                    _("Part {part} exceeds the laser bed.").format(
                        part=part
                    )
                )

    def _make_emitter(self) -> CommandEmitter:
        return CommandEmitter(
            self.state,
            max_laser_rate=self.machine.laser_rate,
            flip_x=self.machine.flip_x,
            bed_width=self.machine.bed_width,
        )

    def encode_part(self, part: JobPart) -> bytes:
        """
        Encodes one part against the job-wide state. The state is not
        reset, so unchanged power and speed are not repeated.
        """
        emitter = self._make_emitter()
        match part:
            case VectorPart():
                VectorEncoder().encode(part, emitter)
            case Raster3dPart() | RasterPart():
                encoder = RasterScanLineEncoder(self.machine.raster_margin)
                encoder.encode(part, emitter)
            case _:
                raise UnknownPartKind(
                    _("Unknown job type: {kind}").format(
                        kind=part.__class__.__name__
                    )
                )
        return emitter.getvalue()

    def encode_job(self, job: Job) -> Iterator[bytes]:
        """
        Yields every stream of the job without touching a channel.
        """
        self.check_job(job)
        job.apply_start_point()
        self.state.reset()
        yield format_preamble(self.machine.preamble)
        for part in job.parts:
            yield self.encode_part(part)
        yield format_postscript(self.machine.postscript)

    def cancel(self) -> None:
        if self._transmitter:
            self._transmitter.cancel()

    async def run(self, job: Job) -> None:
        self._on_progress(0)
        self.state.reset()

        self._on_task(_("checking job"))
        self.check_job(job)
        job.apply_start_point()

        self._on_task(_("connecting"))
        try:
            transport = self.transport_factory(
                self.machine.port, self.machine.baudrate
            )
        except PortNotFoundError as e:
            logger.error(str(e))
            self._on_task(_("COM-Port not found"))
            raise
        except NotASerialPortError as e:
            logger.error(str(e))
            self._on_task(_("Not a serial port"))
            raise

        self._transmitter = Transmitter(transport, self.machine.flow)
        try:
            async with self._transmitter as transmitter:
                await self._send_all(transmitter, job)
        except ChannelOpenError as e:
            logger.error(str(e))
            self._on_task(_("Couldn't open COM-Port"))
            raise
        except FlowControlTimeout:
            self._on_task(_("CTS timeout"))
            raise
        except TransmissionCancelled:
            self._on_task(_("cancelled"))
            raise
        except Exception:
            self._on_task(_("failed"))
            raise
        finally:
            self._transmitter = None

        self._on_task(_("sent."))
        self._on_progress(100)

    async def _send_all(self, transmitter: Transmitter, job: Job):
        self._on_progress(20)
        self._on_task(_("sending"))
        await transmitter.send(format_preamble(self.machine.preamble))

        total = len(job.parts)
        for i, part in enumerate(job.parts, start=1):
            stream = self.encode_part(part)
            logger.debug(f"Part {i}/{total}: {len(stream)} bytes")
            await transmitter.send(stream)
            self._on_progress(20 + int(i * 60 / total))

        self._on_task(_("finishing"))
        await transmitter.send(format_postscript(self.machine.postscript))
