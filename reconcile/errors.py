from __future__ import annotations


class ReconcileError(Exception):
    """Base class for errors raised by the reconciliation engine and its collaborators."""


class SnapshotError(ReconcileError):
    """A snapshot was handed to the engine with a collection missing.

    A collection that failed to load must be passed as ``SourceUnavailable``;
    ``None`` is rejected so that a failed fetch is never read as "no records".
    """


class SourceFetchError(ReconcileError):
    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message
