from fastapi import APIRouter, Depends, HTTPException, Query, Request
from notekeeper.context import AppContext
from notekeeper.schemas import ImageUploadResponse, StorageInfoResponse
from notekeeper.api.deps import get_context

router = APIRouter()


@router.post("/images", response_model=ImageUploadResponse)
async def upload_image(
    request: Request,
    filename: str = Query(..., min_length=1),
    context: AppContext = Depends(get_context)
):
    """Upload raw image bytes (request body); returns a URL to embed"""
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Image body is empty")
    url = await context.storage.upload_image(data, filename)
    return ImageUploadResponse(url=url)


@router.delete("/images")
async def delete_image(url: str = Query(..., min_length=1), context: AppContext = Depends(get_context)):
    """Delete an uploaded image by its URL"""
    await context.storage.delete_image(url)
    return {"status": "ok"}


@router.get("/storage", response_model=StorageInfoResponse)
async def storage_info(context: AppContext = Depends(get_context)):
    """Which backend is active, and where it keeps its data"""
    return StorageInfoResponse(
        kind=context.storage.kind,
        local_only=context.local_only,
        path=await context.storage.get_storage_path(),
    )
