"""Print job models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from printpool.models.request import PrintRequest


class JobStatus(StrEnum):
    """Status of a print job."""

    QUEUED = "queued"
    SENDING = "sending"
    SUCCEEDED = "succeeded"
    PARTIAL = "partial"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition can occur from this status."""
        return self in _TERMINAL

    def can_transition_to(self, other: "JobStatus") -> bool:
        """Check if moving from this status to `other` is allowed."""
        return other in _TRANSITIONS[self]


_TERMINAL = frozenset({JobStatus.SUCCEEDED, JobStatus.PARTIAL, JobStatus.FAILED})

_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.SENDING, JobStatus.FAILED}),
    JobStatus.SENDING: _TERMINAL,
    JobStatus.SUCCEEDED: frozenset(),
    JobStatus.PARTIAL: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class TargetResult(BaseModel):
    """Outcome of sending a job to one printer."""

    ok: bool
    error: str | None = None


class PrintJob(BaseModel):
    """Runtime record of one submitted request."""

    id: UUID = Field(default_factory=uuid4)
    request: PrintRequest
    status: JobStatus = JobStatus.QUEUED
    target_results: dict[str, TargetResult] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error_message: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def failed_targets(self) -> list[str]:
        """IDs of printers whose transmission failed."""
        return [printer_id for printer_id, result in self.target_results.items() if not result.ok]

    def transition(self, status: JobStatus) -> None:
        """Move the job to a new status.

        Raises:
            InvalidTransitionError: If the lifecycle does not allow the move.
        """
        if not self.status.can_transition_to(status):
            raise InvalidTransitionError(f"Job {self.id}: cannot move from {self.status} to {status}")
        self.status = status
        if status.is_terminal:
            self.completed_at = datetime.now()


class InvalidTransitionError(Exception):
    """Exception raised for a job status change the lifecycle forbids."""

    pass
