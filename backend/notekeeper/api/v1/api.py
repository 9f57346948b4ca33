from fastapi import APIRouter
from .endpoints import (
    notebooks_router,
    notes_router,
    search_router,
    images_router
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(notebooks_router, prefix="/notebooks", tags=["notebooks"])
api_router.include_router(notes_router, prefix="/notes", tags=["notes"])
api_router.include_router(search_router, tags=["search"])
api_router.include_router(images_router, tags=["images"])
