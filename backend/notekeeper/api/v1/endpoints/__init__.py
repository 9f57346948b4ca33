from .notebooks import router as notebooks_router
from .notes import router as notes_router
from .search import router as search_router
from .images import router as images_router

__all__ = ["notebooks_router", "notes_router", "search_router", "images_router"]
