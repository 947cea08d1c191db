"""Pagination helpers for list endpoints."""


from fastapi import Query
from pydantic import BaseModel


class PaginationParams:
    """FastAPI dependency for `?limit=50&offset=0`."""

    def __init__(
        self,
        limit: int = Query(default=50, ge=1, le=500, description="Items per page"),
        offset: int = Query(default=0, ge=0, description="Number of items to skip"),
    ):
        self.limit = limit
        self.offset = offset


class PageMeta(BaseModel):
    total: int
    limit: int
    offset: int

    model_config = {"populate_by_name": True}
