from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from fastapi import Query
from sqlalchemy.orm import Query as SAQuery

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
) -> PageParams:
    return PageParams(page=page, limit=limit)


def build_page(items: Sequence[Any], *, total: int, params: PageParams) -> dict:
    total_pages = math.ceil(total / params.limit) if total else 0
    return {
        "items": list(items),
        "total": total,
        "page": params.page,
        "limit": params.limit,
        "total_pages": total_pages,
        "has_next_page": params.page < total_pages,
        "has_prev_page": params.page > 1,
    }


def paginate(qry: SAQuery, params: PageParams) -> tuple[list[Any], int]:
    """
    Returns (rows for the requested page, total matching rows).
    `qry` must already carry its ordering.
    """
    total = qry.order_by(None).count()
    rows = qry.offset(params.offset).limit(params.limit).all()
    return rows, total
