"""Custom exceptions for the data export/import pipeline."""


class DataTransferError(Exception):
    """Base class for export/import failures."""

    pass


class StructuralError(DataTransferError):
    """Raised when the overall shape of an import file is not recognized.

    Aborts an import before any per-record validation runs.
    """

    pass


class FormatError(DataTransferError):
    """Raised for an unsupported format value or text outside a format grammar."""

    pass


class StoreError(DataTransferError):
    """Raised when the record store rejects a read or write."""

    def __init__(self, message: str, entity_type: str | None = None, record_id: str | None = None):
        super().__init__(message)
        self.entity_type = entity_type
        self.record_id = record_id
