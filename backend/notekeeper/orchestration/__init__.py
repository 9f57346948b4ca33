from .autosave import AutosaveCoordinator
from .search import SearchService

__all__ = ["AutosaveCoordinator", "SearchService"]
