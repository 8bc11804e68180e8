"""Video endpoints.

This module provides endpoints for:
- Listing videos with cursor or offset pagination
- Registering discovered videos
- Getting and deleting a video
- Recording clicks and toggling favorites
"""

from datetime import datetime
from typing import Literal, Union

from fastapi import APIRouter, Depends, Path, Query, status

from ytdash.api.dependencies import clamp_page_size, get_settings_dep, get_video_service
from ytdash.api.models.errors import ErrorResponse
from ytdash.api.models.requests import CreatedResponse, FavoriteResponse, MutationResponse
from ytdash.core.config import Settings
from ytdash.core.exceptions import VideoNotFoundError
from ytdash.core.schemas import CursorPage, DateRange, OffsetPage, Video, VideoCreate, VideoFilters
from ytdash.services import CursorPagination, OffsetPagination, VideoService

router = APIRouter(prefix="/videos", tags=["videos"])

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Video not found"}}


@router.get(
    "",
    response_model=Union[CursorPage[Video], OffsetPage[Video]],
    summary="List videos",
    description="""
    List discovered videos, newest first.

    **Pagination** (`mode`):
    - `cursor` (default): `page_size` rows after `cursor`; follow `next_cursor`
    - `offset`: `page` and `limit`, with a `total` count

    **Filtering:**
    - `start` / `end`: inclusive discovery time window
    - `favorites_only`, `unviewed_only`
    - `search_term`: case-insensitive match on title or channel title, applied
      to each fetched page, so pages may hold fewer rows than requested
    """,
    operation_id="list_videos",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed or stale cursor"},
        500: {"model": ErrorResponse, "description": "Videos could not be fetched"},
    },
)
async def list_videos(
    mode: Literal["cursor", "offset"] = Query(default="cursor", description="Pagination mode"),
    page_size: int | None = Query(default=None, ge=1, description="Rows per page (cursor mode)"),
    cursor: str | None = Query(default=None, description="Token from a previous next_cursor"),
    page: int = Query(default=1, ge=1, description="Page number (offset mode)"),
    limit: int | None = Query(default=None, ge=1, description="Rows per page (offset mode)"),
    search_term: str = Query(default="", description="Substring to match"),
    start: datetime | None = Query(default=None, description="Earliest discovery time"),
    end: datetime | None = Query(default=None, description="Latest discovery time"),
    favorites_only: bool = Query(default=False),
    unviewed_only: bool = Query(default=False),
    service: VideoService = Depends(get_video_service),
    settings: Settings = Depends(get_settings_dep),
) -> CursorPage | OffsetPage:
    """List videos.

    Returns:
        Cursor or offset page of videos
    """
    filters = VideoFilters(
        search_term=search_term,
        date_range=DateRange(start=start, end=end),
        show_favorites_only=favorites_only,
        show_unviewed_only=unviewed_only,
    )

    default_size = settings.default_video_page_size
    if mode == "offset":
        pagination = OffsetPagination(page=page, limit=clamp_page_size(limit, default_size, settings))
    else:
        pagination = CursorPagination(
            page_size=clamp_page_size(page_size, default_size, settings),
            cursor=cursor or None,
        )

    return await service.list_videos(filters, pagination)


@router.post(
    "",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register video",
    description="Store a newly discovered video. Click count and flags start cleared.",
    operation_id="create_video",
    responses={409: {"model": ErrorResponse, "description": "Video id already exists"}},
)
async def create_video(
    payload: VideoCreate,
    service: VideoService = Depends(get_video_service),
) -> CreatedResponse:
    video_id = await service.create_video(payload)
    return CreatedResponse(id=video_id, message="Video created successfully")


@router.get(
    "/{video_id}",
    response_model=Video,
    summary="Get video",
    operation_id="get_video",
    responses=NOT_FOUND_RESPONSE,
)
async def get_video(
    video_id: str = Path(..., description="Video document id"),
    service: VideoService = Depends(get_video_service),
) -> Video:
    """Get a single video.

    Raises:
        VideoNotFoundError: If the video does not exist (404)
    """
    video = await service.get_video(video_id)
    if video is None:
        raise VideoNotFoundError(video_id)
    return video


@router.delete(
    "/{video_id}",
    response_model=MutationResponse,
    summary="Delete video",
    operation_id="delete_video",
    responses=NOT_FOUND_RESPONSE,
)
async def delete_video(
    video_id: str = Path(..., description="Video document id"),
    service: VideoService = Depends(get_video_service),
) -> MutationResponse:
    await service.delete_video(video_id)
    return MutationResponse(message="Video deleted successfully")


@router.put(
    "/{video_id}/click",
    response_model=MutationResponse,
    summary="Record click",
    description="Increment the click counter and mark the video as viewed.",
    operation_id="record_video_click",
    responses=NOT_FOUND_RESPONSE,
)
async def record_click(
    video_id: str = Path(..., description="Video document id"),
    service: VideoService = Depends(get_video_service),
) -> MutationResponse:
    await service.record_click(video_id)
    return MutationResponse(message="Click recorded")


@router.put(
    "/{video_id}/favorite",
    response_model=FavoriteResponse,
    summary="Toggle favorite",
    operation_id="toggle_video_favorite",
    responses=NOT_FOUND_RESPONSE,
)
async def toggle_favorite(
    video_id: str = Path(..., description="Video document id"),
    service: VideoService = Depends(get_video_service),
) -> FavoriteResponse:
    is_favorite = await service.toggle_favorite(video_id)
    return FavoriteResponse(
        video_id=video_id,
        is_favorite=is_favorite,
        message="Favorite status updated",
    )
