from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Mapping, Sequence

from sqlalchemy.orm import Query

from feedback_service.utils.helpers import to_int


@dataclass(frozen=True)
class Page:
    items: List
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def parse_page_args(args: Mapping, *, default_limit: int = 20, max_limit: int = 100) -> tuple[int, int]:
    """
    page: 1-indexed; missing/invalid/<1 -> 1.
    limit: outside 1..max_limit or invalid -> default_limit (not clamped).
    """
    page = to_int(args.get("page"), 1)
    limit = to_int(args.get("limit"), default_limit)
    if page is None or page < 1:
        page = 1
    if limit is None or limit < 1 or limit > max_limit:
        limit = default_limit
    return page, limit


def paginate(query: Query, *, page: int, limit: int, order_by: Sequence) -> Page:
    """
    Count and slice on the same session so total/items come from one transaction.
    order_by must end in a unique column or pages can overlap.
    """
    total = query.order_by(None).count()
    offset = (page - 1) * limit
    if offset >= total:
        # Past the end; also keeps huge page numbers out of OFFSET
        return Page(items=[], total=total, page=page, limit=limit)
    items = (
        query.order_by(*order_by)
        .limit(limit)
        .offset(offset)
        .all()
    )
    return Page(items=items, total=total, page=page, limit=limit)
