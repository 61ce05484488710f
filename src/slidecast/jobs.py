"""Job store for assembly runs."""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from .models import FinalVideo, Job, JobState

logger = logging.getLogger(__name__)


class JobStore(ABC):
    """Keeps track of assembly jobs by id."""

    @abstractmethod
    def create(self, job_id: Optional[str] = None) -> Job:
        """Register a new job in the ``idle`` state."""
        ...

    @abstractmethod
    def get(self, job_id: str) -> Optional[Job]:
        """Return a snapshot of the job, or None if unknown."""
        ...

    @abstractmethod
    def transition(
        self,
        job_id: str,
        state: JobState,
        result: Optional[FinalVideo] = None,
        error: Optional[str] = None,
    ) -> Job:
        """Move a job to ``state``, recording result or error."""
        ...

    @abstractmethod
    def list(self) -> List[Job]:
        """All known jobs, oldest first."""
        ...


class InMemoryJobStore(JobStore):
    """Thread-safe, process-local job store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: Dict[str, Job] = {}

    def create(self, job_id: Optional[str] = None) -> Job:
        job_id = job_id or uuid.uuid4().hex
        with self._lock:
            if job_id in self._jobs:
                raise ValueError(f"Job already exists: {job_id}")
            job = Job(id=job_id)
            self._jobs[job_id] = job
            return job.model_copy(deep=True)

    def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def transition(
        self,
        job_id: str,
        state: JobState,
        result: Optional[FinalVideo] = None,
        error: Optional[str] = None,
    ) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise KeyError(f"Unknown job: {job_id}")
            if job.state.is_terminal:
                raise ValueError(f"Job {job_id} already finished ({job.state.value})")

            job.state = state
            job.history.append(state)
            job.updated_at = datetime.now()
            if result is not None:
                job.result = result
            if error is not None:
                job.error = error

            logger.debug(f"Job {job_id} -> {state.value}")
            return job.model_copy(deep=True)

    def list(self) -> List[Job]:
        with self._lock:
            return [j.model_copy(deep=True) for j in self._jobs.values()]
