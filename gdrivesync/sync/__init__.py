"""Sync engine for gdrivesync - one-way mirroring of Drive folders."""

from .engine import SyncEngine
from .local import LocalChildren, LocalFile, LocalTreeAccessor
from .modes import SyncMode, SyncResult, WalkOutcome
from .provider import DriveTreeProvider, RemoteTreeProvider
from .reconciler import DirectoryReconciler
from .stats import ErrorBudget, RunStats

__all__ = [
    "SyncEngine",
    "SyncMode",
    "SyncResult",
    "WalkOutcome",
    "DirectoryReconciler",
    "DriveTreeProvider",
    "RemoteTreeProvider",
    "LocalTreeAccessor",
    "LocalChildren",
    "LocalFile",
    "ErrorBudget",
    "RunStats",
]
