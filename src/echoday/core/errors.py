"""Domain errors shared by the core and the services."""


class EchoDayError(Exception):
    """Base class for all EchoDay errors."""

    pass


class ValidationError(EchoDayError, ValueError):
    """Raised when a task, reminder or recurrence rule is malformed."""

    pass


class RemoteSyncError(EchoDayError):
    """Raised when the remote backend rejects a mirrored mutation.

    The local mutation has already been rolled back when this is raised.
    """

    def __init__(self, message: str, task_id: str | None = None):
        super().__init__(message)
        self.task_id = task_id


class ArchiveCommitError(EchoDayError):
    """Raised when the archive collaborator fails to commit a rollover."""

    pass


class SchedulingDriftError(EchoDayError):
    """Raised when timer math is handed an instant outside the local wall clock."""

    pass


class TaskNotFoundError(EchoDayError, LookupError):
    """Raised when a mutation names a task id that is not in the collection."""

    pass
