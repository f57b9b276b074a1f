"""Adapters - I/O implementations of ports."""

from .json_store import JsonTaskStore
from .http_backend import HttpRemoteBackend
from .offline_backend import OfflineBackend
from .file_archive import FileArchive
from .console_notifier import ConsoleNotifier
from .file_location import FileLocationProvider

__all__ = [
    "JsonTaskStore",
    "HttpRemoteBackend",
    "OfflineBackend",
    "FileArchive",
    "ConsoleNotifier",
    "FileLocationProvider",
]
