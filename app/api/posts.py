"""
post endpoints implementation
- Post creation with image upload
- Listing
- Deletion
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.error_codes import POST_IMAGE_REQUIRED
from app.core.exceptions import CustomHTTPException
from app.core.security import get_current_user
from app.crud.post import create_post, delete_post, get_post_read, list_posts
from app.db.database import get_db
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.post import PostList, PostRead
from app.utils.file_handling import delete_media, save_post_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.post("", response_model=ApiResponse[PostRead], status_code=status.HTTP_201_CREATED)
async def create_new_post(
    request: Request,
    caption: str = Form("", max_length=2200),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Create a post. An image is required; the caption is optional.
    """
    if image is None or not image.filename:
        raise CustomHTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image required",
            error_code=POST_IMAGE_REQUIRED
        )

    app_settings = request.app.state.settings
    stored = await save_post_image(
        request.app.state.media_storage,
        image,
        user_id=current_user.id,
        max_size=app_settings.MAX_POST_IMAGE_SIZE,
        base_path=app_settings.GCS_POST_MEDIA_BASE_PATH,
    )

    try:
        post = await create_post(db, current_user, caption, stored.url, stored.file_id)
    except Exception:
        # Do not leave an orphaned upload behind
        await delete_media(request.app.state.media_storage, stored.file_id)
        raise
    return ApiResponse(message="Post created successfully", data=post)


@router.get("", response_model=ApiResponse[PostList])
async def read_posts(
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    posts, total = await list_posts(db, offset=offset, limit=limit)
    return ApiResponse(message="Posts retrieved", data=PostList(posts=posts, total=total))


@router.get("/me", response_model=ApiResponse[PostList])
async def read_my_posts(
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    posts, total = await list_posts(db, user_id=current_user.id, offset=offset, limit=limit)
    return ApiResponse(message="Posts retrieved", data=PostList(posts=posts, total=total))


@router.get("/{post_id}", response_model=ApiResponse[PostRead])
async def read_post(post_id: str, db: AsyncSession = Depends(get_db)):
    post = await get_post_read(db, post_id)
    return ApiResponse(message="Post retrieved", data=post)


@router.delete("/{post_id}", response_model=ApiResponse[None])
async def remove_post(
    post_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    post = await delete_post(db, post_id, current_user)
    await delete_media(request.app.state.media_storage, post.image_file_id)
    return ApiResponse(message="Post deleted successfully")
