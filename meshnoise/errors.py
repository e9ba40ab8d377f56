"""Exceptions raised at the boundaries of the noise estimator."""


class MeshNoiseError(Exception):
    """Base class for errors the CLI reports instead of crashing on."""


class RecordValidationError(MeshNoiseError, ValueError):
    """A topology or link-statistics row could not be turned into a record."""

    def __init__(self, kind, row, reason):
        self.kind = kind
        self.row = row
        self.reason = reason
        super().__init__(f"invalid {kind} row ({reason}): {row!r}")


class DataFetchError(MeshNoiseError):
    """Inputs could not be retrieved; no estimate is produced."""
