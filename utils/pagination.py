from dataclasses import dataclass

from fastapi import Query

MAX_PAGE_SIZE = 100


@dataclass
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_pagination(
    page: int = Query(default=1),
    limit: int = Query(default=10),
) -> Pagination:
    """Clamp page to >= 1 and limit to 1..100 instead of rejecting the request."""
    return Pagination(page=max(1, page), limit=max(1, min(MAX_PAGE_SIZE, limit)))
