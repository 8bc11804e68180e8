"""REST API for the subscription dashboard."""

from ytdash.api.app import create_app

__all__ = ["create_app"]
