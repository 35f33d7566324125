import logging
from abc import ABC, abstractmethod
from typing import List, Optional, TYPE_CHECKING
from blinker import Signal

if TYPE_CHECKING:
    from ...core.job import Job
    from ..models.machine import Machine


logger = logging.getLogger(__name__)


class JobValidationError(ValueError):
    """The job cannot be executed on this machine."""

    pass


class Driver(ABC):
    """
    Abstract base class for all drivers.
    All drivers must provide the following methods:

       check_job()
       run()
       cancel()

    All drivers provide the following signals:
       progress_changed: sent with progress=int (0..100)
       task_changed: sent with message=str, a human readable phase label

    Subclasses MUST NOT emit these signals directly; they should call
    self._on_progress and self._on_task instead.
    """

    label: str
    subtitle: str
    model_name: str
    resolutions: List[float] = []

    def __init__(self, machine: "Machine"):
        self.machine = machine
        self.progress_changed = Signal()
        self.task_changed = Signal()
        self.progress = 0
        self.task: Optional[str] = None

    @abstractmethod
    def check_job(self, job: "Job") -> None:
        """
        Pre-flight validation. Raises JobValidationError if the job
        cannot be executed.
        """
        pass

    @abstractmethod
    async def run(self, job: "Job") -> None:
        """
        Converts the job into commands for the machine and sends them.
        Either every part is delivered or an exception is raised.
        """
        pass

    @abstractmethod
    def cancel(self) -> None:
        """
        Requests that the running job stops at the next safe point.
        """
        pass

    def _on_progress(self, progress: int):
        self.progress = progress
        logger.debug(f"{self.__class__.__name__} progress {progress}%")
        self.progress_changed.send(self, progress=progress)

    def _on_task(self, message: str):
        self.task = message
        logger.info(f"{self.__class__.__name__}: {message}")
        self.task_changed.send(self, message=message)
