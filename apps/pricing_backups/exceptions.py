"""
Exceptions raised by the pricing backup system.
"""


class PricingBackupError(Exception):
    """Base class for pricing backup errors."""

    pass


class CollectionError(PricingBackupError):
    """Raised when a configuration store cannot be read for a snapshot."""

    pass


class CompressionError(PricingBackupError):
    """Raised when a snapshot payload cannot be serialized or compressed."""

    pass


class DecompressionError(CompressionError):
    """Raised when stored snapshot bytes cannot be inflated or parsed."""

    pass


class DuplicateSnapshotError(PricingBackupError):
    """Raised when a snapshot for the same change-day slot already exists."""

    pass


class SnapshotNotFoundError(PricingBackupError):
    """Raised when no snapshot matches the requested change-day id."""

    def __init__(self, change_day_id):
        self.change_day_id = change_day_id
        super().__init__(f"Backup not found: {change_day_id}")


class OperationInProgressError(PricingBackupError):
    """Raised when another backup or restore currently holds the store lock."""

    def __init__(self, message, holder=None):
        self.holder = holder
        super().__init__(message)


class PartialRestoreError(PricingBackupError):
    """Raised when a restore completed for some data types but not all."""

    def __init__(self, result):
        self.result = result
        super().__init__(
            f"Restored {result['total_restored']} documents with {result['total_errors']} errors"
        )
