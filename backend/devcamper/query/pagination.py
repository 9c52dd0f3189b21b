"""
DevCamper Backend: Paginator
==============================

What:  Offset pagination for list endpoints: clamps page/limit, computes the
       skip offset, and builds previous/next page links.
How:   Pure arithmetic, no I/O. `paginate` never raises.

Invariants:
    skip = (page - 1) * limit
    previous present  iff  page > 1
    next present      iff  page * limit < total
    skip >= total is a valid (empty) page, not an error
"""

from typing import Any, Dict, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from devcamper.config import settings


class PageLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int
    limit: int


class PaginationResult(BaseModel):
    """
    Pagination metadata of one envelope.

    `total` is kept on the object for handlers (it becomes the X-Total-Count
    header) but is not part of the serialized body; absent previous/next
    links are omitted from the body rather than serialized as null.
    """

    model_config = ConfigDict(frozen=True)

    total: int = Field(exclude=True)
    page: int
    limit: int
    previous: Optional[PageLink] = None
    next: Optional[PageLink] = None

    @model_serializer(mode="wrap")
    def omit_absent_links(self, handler) -> Dict[str, Any]:
        data = handler(self)
        for key in ("previous", "next"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


class PageWindow(NamedTuple):
    pagination: PaginationResult
    skip: int
    limit: int


def paginate(
    page: int,
    limit: int,
    total: int,
    max_limit: Optional[int] = None,
) -> PageWindow:
    """
    Compute the page window for `total` matching records.

    Args:
        page:       1-based page number (values below 1 are treated as 1)
        limit:      page size (clamped to 1..max_limit)
        total:      number of records matching the filter, before pagination
        max_limit:  cap for `limit` (settings.max_page_limit by default)

    Returns:
        PageWindow(pagination, skip, limit) where skip/limit go to the fetch.
    """
    max_limit = max_limit or settings.max_page_limit
    page = max(1, page)
    limit = max(1, min(limit, max_limit))
    total = max(0, total)

    skip = (page - 1) * limit

    previous = PageLink(page=page - 1, limit=limit) if page > 1 else None
    next_link = PageLink(page=page + 1, limit=limit) if page * limit < total else None

    pagination = PaginationResult(
        total=total,
        page=page,
        limit=limit,
        previous=previous,
        next=next_link,
    )
    return PageWindow(pagination=pagination, skip=skip, limit=limit)
