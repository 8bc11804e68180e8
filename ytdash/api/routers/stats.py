"""Dashboard statistics endpoints."""

from fastapi import APIRouter, Depends

from ytdash.api.dependencies import get_stats_service
from ytdash.api.models.errors import ErrorResponse
from ytdash.core.schemas import HeaderData
from ytdash.services import StatsService

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get(
    "/header",
    response_model=HeaderData,
    summary="Header statistics",
    description="""
    Counters for the dashboard header: notify-enabled and total channels,
    new and total videos, and the time of the last bot sync ("-" if unknown).

    Results are cached and refreshed after any video or channel change.
    """,
    operation_id="get_header_stats",
    responses={
        200: {
            "description": "Header statistics",
            "content": {
                "application/json": {
                    "example": {
                        "stats": {
                            "enabled_channels": 2,
                            "total_channels": 5,
                            "new_videos": 1,
                            "total_videos": 4,
                        },
                        "last_sync_time": "2024-08-16T14:30:25Z",
                    }
                }
            },
        },
        500: {"model": ErrorResponse, "description": "Statistics could not be computed"},
    },
)
async def get_header_stats(service: StatsService = Depends(get_stats_service)) -> HeaderData:
    return await service.get_header_stats()
