import unittest
from raystream.machine.transport.serial import SerialPort
from raystream.shared.varset import (
    FloatVar,
    IntVar,
    SerialPortVar,
    ValidationError,
    Var,
)


class TestBoolCoercion(unittest.TestCase):
    def setUp(self):
        self.flip = Var("flip", "Flip X", bool)

    def test_yes_no_answers(self):
        for answer, expected in (
            ("yes", True),
            ("Yes", True),
            (" on ", True),
            ("1", True),
            ("no", False),
            ("OFF", False),
            ("0", False),
            ("false", False),
        ):
            self.flip.value = answer
            self.assertIs(self.flip.value, expected, answer)

    def test_numbers(self):
        self.flip.value = 2
        self.assertIs(self.flip.value, True)
        self.flip.value = 0.0
        self.assertIs(self.flip.value, False)

    def test_unknown_answer(self):
        with self.assertRaisesRegex(TypeError, "'flip'.*type bool"):
            self.flip.value = "sometimes"


class TestNumericCoercion(unittest.TestCase):
    def test_int_from_decimal_string_is_truncated(self):
        baud = Var("baud", "Baud", int)
        baud.value = "115200.7"
        self.assertEqual(baud.value, 115200)
        self.assertIsInstance(baud.value, int)

    def test_float_from_string(self):
        margin = Var("margin", "Margin", float, value="0.25")
        self.assertEqual(margin.value, 0.25)

    def test_garbage(self):
        baud = Var("baud", "Baud", int, default=9600)
        with self.assertRaisesRegex(TypeError, "coerced to type int"):
            baud.value = "fast"
        self.assertEqual(baud.value, 9600)

    def test_none_clears(self):
        baud = Var("baud", "Baud", int, default=9600)
        baud.value = None
        self.assertIsNone(baud.value)


class TestValidation(unittest.TestCase):
    def test_assignment_does_not_validate(self):
        width = FloatVar("width", "Bed width", min_val=1.0, value=250)
        width.value = 0.5
        self.assertEqual(width.value, 0.5)
        with self.assertRaisesRegex(ValidationError, "at least 1.0"):
            width.validate()

    def test_int_bounds(self):
        power = IntVar("power", "Power", min_val=0, max_val=100)
        power.value = "100"
        power.validate()
        power.value = 101
        with self.assertRaisesRegex(ValidationError, "at most 100"):
            power.validate()

    def test_extra_validator_runs_after_bounds(self):
        def multiple_of_4(value):
            if value % 4:
                raise ValidationError("Chunk size must be a multiple of 4")

        chunk = IntVar(
            "chunk", "Chunk", min_val=4, validator=multiple_of_4, value=6
        )
        with self.assertRaisesRegex(ValidationError, "multiple of 4"):
            chunk.validate()
        chunk.value = 0
        with self.assertRaisesRegex(ValidationError, "at least 4"):
            chunk.validate()

    def test_validation_error_is_value_error(self):
        self.assertTrue(issubclass(ValidationError, ValueError))


class TestSerialPortVar(unittest.TestCase):
    def test_value_is_serial_port(self):
        port = SerialPortVar("port", "Port", default="/dev/ttyACM0")
        self.assertIsInstance(port.value, SerialPort)
        port.value = "COM3"
        self.assertIsInstance(port.value, SerialPort)
        port.validate()

    def test_blank_port(self):
        port = SerialPortVar("port", "Port")
        for blank in (None, "", "   "):
            port.value = blank
            with self.assertRaisesRegex(ValidationError, "must be selected"):
                port.validate()
