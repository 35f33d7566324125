import unittest
from raystream.machine.models.machine import (
    SETTING_BEDWIDTH,
    SETTING_COMBAUD,
    SETTING_COMPORT,
    SETTING_FLIPX,
    SETTING_JOB_POST_GCODE,
    SETTING_JOB_PRE_GCODE,
    SETTING_LASER_RATE,
    SETTING_RASTER_WHITESPACE,
    Machine,
)
from raystream.shared.varset import IntVar, ValidationError, Var, VarSet


class TestVarSet(unittest.TestCase):
    def setUp(self):
        self.vs = VarSet(
            [
                Var("port", "Port", str, default="/dev/ttyACM0"),
                IntVar("baud", "Baud", min_val=1, default=115200),
            ],
            title="Connection",
        )

    def test_lookup(self):
        self.assertEqual(self.vs.keys(), ["port", "baud"])
        self.assertIn("baud", self.vs)
        self.assertIsNone(self.vs.get("flip"))
        self.assertEqual(self.vs["baud"].value, 115200)

    def test_duplicate_key(self):
        with self.assertRaises(KeyError):
            self.vs.add(Var("port", "Other port", str))

    def test_item_assignment_coerces(self):
        self.vs["baud"] = "9600"
        self.assertEqual(self.vs["baud"].value, 9600)
        with self.assertRaises(KeyError):
            self.vs["flip"] = True

    def test_set_values_skips_unknown_keys(self):
        self.vs.set_values({"port": "COM3", "colour": "red"})
        self.assertEqual(
            self.vs.get_values(), {"port": "COM3", "baud": 115200}
        )

    def test_validate(self):
        self.vs.validate()
        self.vs["baud"] = 0
        with self.assertRaisesRegex(ValidationError, "at least 1"):
            self.vs.validate()

    def test_clear(self):
        self.vs.clear()
        self.assertEqual(len(self.vs), 0)
        self.assertEqual(list(self.vs), [])


class TestMachineSettings(unittest.TestCase):
    def setUp(self):
        self.machine = Machine()
        self.vs = self.machine.get_setting_vars()

    def test_named_keys(self):
        self.assertEqual(
            self.vs.keys(),
            [
                "Laserbed width",
                "Laserbed height",
                "X axis goes right to left (yes/no)",
                "COM-Port",
                "COM-Port baud rate",
                "Max. Laser Rate (mm/min)",
                "Max. Seek Rate (mm/min)",
                "Additional space per Raster line (mm)",
                "G-Code to send before each job (use ; between commands)",
                "G-Code to send after each job (use ; between commands)",
            ],
        )

    def test_values_follow_machine(self):
        self.machine.set_dimensions(300, 200)
        vs = self.machine.get_setting_vars()
        self.assertEqual(vs[SETTING_BEDWIDTH].value, 300.0)
        self.assertEqual(vs[SETTING_JOB_PRE_GCODE].value, "G28;G21;G90")
        self.assertEqual(vs[SETTING_JOB_POST_GCODE].value, "G28")

    def test_set_property_answers(self):
        self.machine.set_property(SETTING_FLIPX, "yes")
        self.assertIs(self.machine.flip_x, True)
        self.machine.set_property(SETTING_FLIPX, "no")
        self.assertIs(self.machine.flip_x, False)
        self.machine.set_property(SETTING_COMBAUD, "57600.0")
        self.assertEqual(self.machine.baudrate, 57600)

    def test_set_property_bounds(self):
        with self.assertRaises(ValidationError):
            self.machine.set_property(SETTING_LASER_RATE, "0")
        with self.assertRaises(ValidationError):
            self.machine.set_property(SETTING_RASTER_WHITESPACE, -1)
        self.assertEqual(self.machine.laser_rate, 2000.0)
        self.assertEqual(self.machine.raster_margin, 0.5)

    def test_port_roundtrip(self):
        self.machine.set_property(SETTING_COMPORT, "COM5")
        self.assertEqual(self.machine.get_property(SETTING_COMPORT), "COM5")
