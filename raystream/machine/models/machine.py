import yaml
import uuid
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from blinker import Signal
from ...shared.varset import (
    FloatVar,
    IntVar,
    SerialPortVar,
    Var,
    VarSet,
)
from ..transport.flow import FlowControl


logger = logging.getLogger(__name__)


SETTING_COMPORT = "COM-Port"
SETTING_COMBAUD = "COM-Port baud rate"
SETTING_BEDWIDTH = "Laserbed width"
SETTING_BEDHEIGHT = "Laserbed height"
SETTING_FLIPX = "X axis goes right to left (yes/no)"
SETTING_RASTER_WHITESPACE = "Additional space per Raster line (mm)"
SETTING_SEEK_RATE = "Max. Seek Rate (mm/min)"
SETTING_LASER_RATE = "Max. Laser Rate (mm/min)"
SETTING_JOB_PRE_GCODE = (
    "G-Code to send before each job (use ; between commands)"
)
SETTING_JOB_POST_GCODE = (
    "G-Code to send after each job (use ; between commands)"
)

# Setting key -> Machine attribute
PROPERTY_ATTRIBUTES: Dict[str, str] = {
    SETTING_BEDWIDTH: "bed_width",
    SETTING_BEDHEIGHT: "bed_height",
    SETTING_FLIPX: "flip_x",
    SETTING_COMPORT: "port",
    SETTING_COMBAUD: "baudrate",
    SETTING_LASER_RATE: "laser_rate",
    SETTING_SEEK_RATE: "seek_rate",
    SETTING_RASTER_WHITESPACE: "raster_margin",
    SETTING_JOB_PRE_GCODE: "preamble",
    SETTING_JOB_POST_GCODE: "postscript",
}


class Machine:
    """
    Settings of one GRBL laser cutter. Every mutation emits `changed`.
    """

    def __init__(self):
        self.id = str(uuid.uuid4())
        self.name: str = _("Default Machine")
        self.port: str = "/dev/ttyACM0"
        self.baudrate: int = 115200
        self.bed_width: float = 250.0  # mm
        self.bed_height: float = 280.0  # mm
        self.flip_x: bool = False
        self.raster_margin: float = 0.5  # mm
        self.seek_rate: float = 2000.0  # mm/min
        self.laser_rate: float = 2000.0  # mm/min
        self.preamble: str = "G28;G21;G90"
        self.postscript: str = "G28"
        self.flow = FlowControl()

        self.changed = Signal()

    def set_name(self, name: str):
        self.name = str(name)
        self.changed.send(self)

    def set_port(self, port: str, baudrate: Optional[int] = None):
        self.port = str(port)
        if baudrate is not None:
            self.baudrate = int(baudrate)
        self.changed.send(self)

    def set_dimensions(self, width: float, height: float):
        self.bed_width = float(width)
        self.bed_height = float(height)
        self.changed.send(self)

    def set_flip_x(self, flip_x: bool):
        self.flip_x = bool(flip_x)
        self.changed.send(self)

    def set_raster_margin(self, margin: float):
        self.raster_margin = float(margin)
        self.changed.send(self)

    def set_rates(
        self,
        laser_rate: Optional[float] = None,
        seek_rate: Optional[float] = None,
    ):
        if laser_rate is not None:
            self.laser_rate = float(laser_rate)
        if seek_rate is not None:
            self.seek_rate = float(seek_rate)
        self.changed.send(self)

    def set_preamble(self, preamble: str):
        self.preamble = preamble
        self.changed.send(self)

    def set_postscript(self, postscript: str):
        self.postscript = postscript
        self.changed.send(self)

    def set_flow_control(self, flow: FlowControl):
        self.flow = flow
        self.changed.send(self)

    def get_setting_vars(self) -> VarSet:
        """
        Returns the named settings as a VarSet, filled with the current
        values.
        """
        vs = VarSet(title=_("GRBL settings"))
        vs.add(FloatVar(SETTING_BEDWIDTH, _("Bed width"), min_val=1.0))
        vs.add(FloatVar(SETTING_BEDHEIGHT, _("Bed height"), min_val=1.0))
        vs.add(Var(SETTING_FLIPX, _("Flip X axis"), bool))
        vs.add(SerialPortVar(SETTING_COMPORT, _("Port")))
        vs.add(IntVar(SETTING_COMBAUD, _("Baud rate"), min_val=1))
        vs.add(FloatVar(SETTING_LASER_RATE, _("Laser rate"), min_val=1.0))
        vs.add(FloatVar(SETTING_SEEK_RATE, _("Seek rate"), min_val=1.0))
        vs.add(
            FloatVar(SETTING_RASTER_WHITESPACE, _("Raster margin"), min_val=0)
        )
        vs.add(Var(SETTING_JOB_PRE_GCODE, _("Preamble"), str))
        vs.add(Var(SETTING_JOB_POST_GCODE, _("Postscript"), str))
        vs.set_values(
            {
                key: getattr(self, attr)
                for key, attr in PROPERTY_ATTRIBUTES.items()
            }
        )
        return vs

    def get_property(self, key: str) -> Any:
        try:
            return getattr(self, PROPERTY_ATTRIBUTES[key])
        except KeyError:
            raise KeyError(f"Unknown setting '{key}'") from None

    def set_property(self, key: str, value: Any):
        """
        Coerces and validates the value like the settings UI would, then
        stores it.

        Raises:
            KeyError: for unknown keys.
            TypeError: if the value cannot be coerced.
            ValidationError: if the value is out of range.
        """
        var = self.get_setting_vars().get(key)
        if var is None:
            raise KeyError(f"Unknown setting '{key}'")
        var.value = value
        var.validate()
        value = var.value
        if isinstance(value, str):
            value = str(value)  # plain str, SerialPort is not YAML-safe
        setattr(self, PROPERTY_ATTRIBUTES[key], value)
        self.changed.send(self)

    def clone(self) -> "Machine":
        machine = Machine.from_dict(self.to_dict())
        machine.id = self.id
        return machine

    def to_dict(self) -> Dict[str, Any]:
        return {
            "machine": {
                "name": self.name,
                "connection": {
                    "port": self.port,
                    "baudrate": self.baudrate,
                },
                "dimensions": [self.bed_width, self.bed_height],
                "flip_x": self.flip_x,
                "raster_margin": self.raster_margin,
                "speeds": {
                    "laser_rate": self.laser_rate,
                    "seek_rate": self.seek_rate,
                },
                "gcode": {
                    "preamble": self.preamble,
                    "postscript": self.postscript,
                },
                "flow_control": {
                    "chunk_size": self.flow.chunk_size,
                    "max_poll_attempts": self.flow.max_poll_attempts,
                    "poll_interval": self.flow.poll_interval,
                    "ready_timeout": self.flow.ready_timeout,
                    "drop_final_byte": self.flow.drop_final_byte,
                },
            }
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Machine":
        ma = cls()
        ma_data = data.get("machine", {})
        ma.name = ma_data.get("name", ma.name)
        conn = ma_data.get("connection", {})
        ma.port = conn.get("port", ma.port)
        ma.baudrate = int(conn.get("baudrate", ma.baudrate))
        width, height = ma_data.get(
            "dimensions", (ma.bed_width, ma.bed_height)
        )
        ma.bed_width, ma.bed_height = float(width), float(height)
        ma.flip_x = bool(ma_data.get("flip_x", ma.flip_x))
        ma.raster_margin = float(
            ma_data.get("raster_margin", ma.raster_margin)
        )
        speeds = ma_data.get("speeds", {})
        ma.laser_rate = float(speeds.get("laser_rate", ma.laser_rate))
        ma.seek_rate = float(speeds.get("seek_rate", ma.seek_rate))
        gcode = ma_data.get("gcode", {})

        # Values might be None in hand-edited files.
        preamble = gcode.get("preamble")
        postscript = gcode.get("postscript")
        ma.preamble = preamble if preamble is not None else ma.preamble
        ma.postscript = (
            postscript if postscript is not None else ma.postscript
        )

        flow = ma_data.get("flow_control", {})
        defaults = FlowControl()
        ma.flow = FlowControl(
            chunk_size=flow.get("chunk_size", defaults.chunk_size),
            max_poll_attempts=flow.get(
                "max_poll_attempts", defaults.max_poll_attempts
            ),
            poll_interval=flow.get("poll_interval", defaults.poll_interval),
            ready_timeout=flow.get("ready_timeout", defaults.ready_timeout),
            drop_final_byte=flow.get(
                "drop_final_byte", defaults.drop_final_byte
            ),
        )
        return ma


class MachineManager:
    def __init__(self, base_dir: Path):
        base_dir.mkdir(parents=True, exist_ok=True)
        self.base_dir = base_dir
        self.machines: Dict[str, Machine] = dict()
        self.machine_added = Signal()
        self.machine_updated = Signal()
        self.load()

    def filename_from_id(self, machine_id: str) -> Path:
        return self.base_dir / f"{machine_id}.yaml"

    def add_machine(self, machine: Machine):
        if machine.id in self.machines:
            return
        self.machines[machine.id] = machine
        machine.changed.connect(self.on_machine_changed)
        self.save_machine(machine)
        self.machine_added.send(self, machine_id=machine.id)

    def get_machine_by_id(self, machine_id: str) -> Optional[Machine]:
        return self.machines.get(machine_id)

    def create_default_machine(self) -> Machine:
        machine = Machine()
        self.add_machine(machine)
        return machine

    def save_machine(self, machine: Machine):
        logger.debug(f"Saving machine {machine.id}")
        machine_file = self.filename_from_id(machine.id)
        with open(machine_file, "w") as f:
            yaml.safe_dump(machine.to_dict(), f)

    def load_machine(self, machine_id: str) -> Optional[Machine]:
        machine_file = self.filename_from_id(machine_id)
        if not machine_file.exists():
            raise FileNotFoundError(f"Machine file {machine_file} not found")
        with open(machine_file, "r") as f:
            data = yaml.safe_load(f)
            if not data:
                logger.warning(f"skipping invalid machine file {f.name}")
                return None
        machine = Machine.from_dict(data)
        machine.id = machine_id
        self.machines[machine.id] = machine
        machine.changed.connect(self.on_machine_changed)
        return machine

    def on_machine_changed(self, machine, **kwargs):
        self.save_machine(machine)
        self.machine_updated.send(self, machine_id=machine.id)

    def load(self):
        for file in self.base_dir.glob("*.yaml"):
            try:
                self.load_machine(file.stem)
            except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
                logger.error(f"Failed to load machine from {file}: {e}")
