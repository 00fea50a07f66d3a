"""Storage-related exceptions."""


class StorageError(Exception):
    """Base class for storage errors."""


class StaleItemError(StorageError):
    """The item was committed by someone else since it was loaded."""
