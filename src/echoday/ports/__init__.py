"""Ports - interfaces/protocols for external dependencies."""

from .task_store import TaskStore
from .remote_backend import RemoteBackend
from .archive_repo import ArchiveRepository
from .notifier import Notifier
from .location_provider import LocationProvider

__all__ = [
    "TaskStore",
    "RemoteBackend",
    "ArchiveRepository",
    "Notifier",
    "LocationProvider",
]
