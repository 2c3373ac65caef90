"""Utility functions and classes for year-builder."""

from year_builder.utils.notion_client import NotionAPIError, NotionClient
from year_builder.utils.rate_limiter import TokenBucket, Unlimited

__all__ = ["NotionClient", "NotionAPIError", "TokenBucket", "Unlimited"]
