import os
from pathlib import Path
from typing import Optional
from platformdirs import user_config_dir
from .machine.models.machine import Machine, MachineManager
import logging


logger = logging.getLogger(__name__)


CONFIG_DIR = Path(user_config_dir("raystream"))
MACHINE_DIR = CONFIG_DIR / "machines"


# Initialized by initialize_managers() so that importing this module has
# no side effects on disk.
machine_mgr: Optional[MachineManager] = None
machine: Optional[Machine] = None


def initialize_managers():
    """
    Loads all machines, creating a default one if none exist, and selects
    the active machine (RAYSTREAM_MACHINE, or the first by id).
    Safe to call multiple times.
    """
    global machine_mgr, machine

    if machine_mgr is not None:
        return

    logger.info(f"Initializing configuration from {CONFIG_DIR}")
    machine_mgr = MachineManager(MACHINE_DIR)
    logger.info(f"Loaded {len(machine_mgr.machines)} machines")
    if not machine_mgr.machines:
        default = machine_mgr.create_default_machine()
        logger.info(f"Created default machine {default.id}")

    wanted = os.environ.get("RAYSTREAM_MACHINE")
    if wanted and wanted in machine_mgr.machines:
        machine = machine_mgr.machines[wanted]
    else:
        # Sort by ID for deterministic selection
        machine = sorted(
            machine_mgr.machines.values(), key=lambda m: m.id
        )[0]
    logger.info(f"Using machine {machine.id}")
