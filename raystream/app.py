import argparse
import asyncio
import gettext
import logging
import sys
from pathlib import Path

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# --------------------------------------------------------
# Gettext MUST be initialized before importing app modules
# --------------------------------------------------------
locale_dir = Path(__file__).parent / 'locale'
gettext.install("raystream", locale_dir)

from raystream import config  # noqa: E402
from raystream.core.jobfile import JobFileError, load_job  # noqa: E402
from raystream.machine.driver.driver import JobValidationError  # noqa: E402
from raystream.machine.driver.grbl_serial import GrblSerialDriver  # noqa: E402
from raystream.machine.transport import (  # noqa: E402
    ConfigurationError,
    FlowControlTimeout,
    SerialTransport,
    TransmissionCancelled,
)
from raystream.shared.varset import ValidationError  # noqa: E402


logger = logging.getLogger(__name__)


def cmd_ports(args) -> int:
    for port in SerialTransport.list_ports():
        print(port)
    return 0


def cmd_encode(args) -> int:
    driver = GrblSerialDriver(config.machine)
    job = load_job(args.job)
    data = b"".join(driver.encode_job(job))
    if args.output:
        args.output.write_bytes(data)
        logger.info(f"Wrote {len(data)} bytes to {args.output}")
    else:
        sys.stdout.write(data.decode("ascii"))
    return 0


def cmd_send(args) -> int:
    machine = config.machine.clone()
    if args.port:
        machine.port = args.port
    if args.baud:
        machine.baudrate = args.baud
    driver = GrblSerialDriver(machine)
    driver.progress_changed.connect(
        lambda sender, progress: logger.info(f"Progress: {progress}%"),
        weak=False,
    )
    job = load_job(args.job)
    asyncio.run(driver.run(job))
    return 0


def cmd_settings(args) -> int:
    machine = config.machine
    if args.key is not None:
        if args.value is None:
            print(machine.get_property(args.key))
            return 0
        machine.set_property(args.key, args.value)
    for var in machine.get_setting_vars():
        print(f"{var.key}: {var.value}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description=_("Streams laser jobs to GRBL controllers.")
    )
    parser.add_argument(
        '--loglevel',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help=_('Set the logging level (default: INFO)')
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("ports", help=_("List serial ports."))
    p.set_defaults(func=cmd_ports)

    p = sub.add_parser("encode", help=_("Write the G-code for a job."))
    p.add_argument("job", type=Path, help=_("Path to the YAML job file."))
    p.add_argument("-o", "--output", type=Path, help=_("Output file."))
    p.set_defaults(func=cmd_encode)

    p = sub.add_parser("send", help=_("Send a job to the machine."))
    p.add_argument("job", type=Path, help=_("Path to the YAML job file."))
    p.add_argument("--port", help=_("Override the configured port."))
    p.add_argument("--baud", type=int, help=_("Override the baud rate."))
    p.set_defaults(func=cmd_send)

    p = sub.add_parser("settings", help=_("Show or change a setting."))
    p.add_argument("key", nargs="?")
    p.add_argument("value", nargs="?")
    p.set_defaults(func=cmd_settings)

    args = parser.parse_args()

    # Set logging level based on the command-line argument
    log_level = getattr(logging, args.loglevel.upper(), logging.INFO)
    logging.getLogger().setLevel(log_level)

    config.initialize_managers()
    try:
        return args.func(args)
    except (
        ConfigurationError,
        ConnectionError,
        FlowControlTimeout,
        TransmissionCancelled,
        JobFileError,
        JobValidationError,
        ValidationError,
        KeyError,
        TypeError,
    ) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
