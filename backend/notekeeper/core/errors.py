"""Error taxonomy for the storage layer.

A missing row is never an error: lookups return ``None`` instead.
"""


class StorageError(Exception):
    """Base class for failures raised by a storage backend."""
    pass


class InvalidInputError(StorageError):
    """Raised when a required field is empty or missing."""
    pass


class TransportError(StorageError):
    """Raised when a call cannot reach its backend (bridge or network)."""
    pass


class TransactionError(StorageError):
    """Raised when a multi-statement write was rolled back."""
    pass


class BackendUnavailableError(StorageError):
    """Raised when a backend is constructed without its configuration."""
    pass
