"""Channel endpoints.

This module provides endpoints for:
- Listing subscribed channels
- Subscribing and unsubscribing
- Toggling notifications, individually or in bulk
"""

from typing import Literal, Union

from fastapi import APIRouter, Depends, Path, Query, status

from ytdash.api.dependencies import clamp_page_size, get_channel_service, get_settings_dep
from ytdash.api.models.errors import ErrorResponse
from ytdash.api.models.requests import (
    BulkNotifyRequest,
    BulkNotifyResponse,
    CreatedResponse,
    MutationResponse,
    NotifyResponse,
)
from ytdash.core.config import Settings
from ytdash.core.exceptions import ChannelNotFoundError
from ytdash.core.schemas import (
    Channel,
    ChannelCreate,
    ChannelFilters,
    ChannelSortField,
    CursorPage,
    NotificationFilter,
    OffsetPage,
    SortOrder,
)
from ytdash.services import ChannelService, CursorPagination, OffsetPagination

router = APIRouter(prefix="/channels", tags=["channels"])

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Channel not found"}}


@router.get(
    "",
    response_model=Union[CursorPage[Channel], OffsetPage[Channel]],
    summary="List channels",
    description="""
    List subscribed channels.

    **Sorting:** `sort_by` (name, subscribers, last_video, last_upload) and
    `sort_order`. If the database lacks the index needed for the combination
    of filter and sort, the page is returned unsorted and `fallback_used` is
    true.

    **Filtering:** `notification_filter` (all, notify-on, notify-off) and a
    case-insensitive `search_term` on the channel title.
    """,
    operation_id="list_channels",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed or stale cursor"},
        500: {"model": ErrorResponse, "description": "Channels could not be fetched"},
    },
)
async def list_channels(
    mode: Literal["cursor", "offset"] = Query(default="cursor", description="Pagination mode"),
    page_size: int | None = Query(default=None, ge=1, description="Rows per page (cursor mode)"),
    cursor: str | None = Query(default=None, description="Token from a previous next_cursor"),
    page: int = Query(default=1, ge=1, description="Page number (offset mode)"),
    limit: int | None = Query(default=None, ge=1, description="Rows per page (offset mode)"),
    search_term: str = Query(default=""),
    notification_filter: NotificationFilter = Query(default="all"),
    sort_by: ChannelSortField = Query(default="name"),
    sort_order: SortOrder = Query(default="asc"),
    service: ChannelService = Depends(get_channel_service),
    settings: Settings = Depends(get_settings_dep),
) -> CursorPage | OffsetPage:
    filters = ChannelFilters(
        search_term=search_term,
        notification_filter=notification_filter,
        sort_by=sort_by,
        sort_order=sort_order,
    )

    default_size = settings.default_channel_page_size
    if mode == "offset":
        pagination = OffsetPagination(page=page, limit=clamp_page_size(limit, default_size, settings))
    else:
        pagination = CursorPagination(
            page_size=clamp_page_size(page_size, default_size, settings),
            cursor=cursor or None,
        )

    return await service.list_channels(filters, pagination)


@router.post(
    "",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe channel",
    operation_id="create_channel",
    responses={409: {"model": ErrorResponse, "description": "Channel already exists"}},
)
async def create_channel(
    payload: ChannelCreate,
    service: ChannelService = Depends(get_channel_service),
) -> CreatedResponse:
    channel_id = await service.create_channel(payload)
    return CreatedResponse(id=channel_id, message="Channel created successfully")


@router.post(
    "/bulk-notify",
    response_model=BulkNotifyResponse,
    summary="Bulk set notifications",
    description="Set the notify flag on every listed channel.",
    operation_id="bulk_notify_channels",
    responses=NOT_FOUND_RESPONSE,
)
async def bulk_notify(
    payload: BulkNotifyRequest,
    service: ChannelService = Depends(get_channel_service),
) -> BulkNotifyResponse:
    await service.bulk_set_notifications(payload.channel_ids, payload.notify)
    return BulkNotifyResponse(
        updated=len(set(payload.channel_ids)),
        notify=payload.notify,
        message=f"Updated {len(set(payload.channel_ids))} channels",
    )


@router.get(
    "/{channel_id}",
    response_model=Channel,
    summary="Get channel",
    operation_id="get_channel",
    responses=NOT_FOUND_RESPONSE,
)
async def get_channel(
    channel_id: str = Path(..., description="Channel document id"),
    service: ChannelService = Depends(get_channel_service),
) -> Channel:
    """Get channel details.

    Raises:
        ChannelNotFoundError: If the channel does not exist (404)
    """
    channel = await service.get_channel(channel_id)
    if channel is None:
        raise ChannelNotFoundError(channel_id)
    return channel


@router.delete(
    "/{channel_id}",
    response_model=MutationResponse,
    summary="Unsubscribe channel",
    operation_id="delete_channel",
    responses=NOT_FOUND_RESPONSE,
)
async def delete_channel(
    channel_id: str = Path(..., description="Channel document id"),
    service: ChannelService = Depends(get_channel_service),
) -> MutationResponse:
    await service.delete_channel(channel_id)
    return MutationResponse(message="Channel deleted successfully")


@router.put(
    "/{channel_id}/notify",
    response_model=NotifyResponse,
    summary="Toggle notifications",
    operation_id="toggle_channel_notify",
    responses=NOT_FOUND_RESPONSE,
)
async def toggle_notification(
    channel_id: str = Path(..., description="Channel document id"),
    service: ChannelService = Depends(get_channel_service),
) -> NotifyResponse:
    notify = await service.toggle_notification(channel_id)
    return NotifyResponse(
        channel_id=channel_id,
        notify=notify,
        message="Notification setting updated",
    )
