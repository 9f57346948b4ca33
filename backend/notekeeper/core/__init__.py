from .config import settings, Settings
from .errors import (
    StorageError,
    InvalidInputError,
    TransportError,
    TransactionError,
    BackendUnavailableError,
)

__all__ = [
    "settings", "Settings",
    "StorageError", "InvalidInputError", "TransportError",
    "TransactionError", "BackendUnavailableError",
]
