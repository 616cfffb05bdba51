"""
Pagination and sorting helpers shared by the list endpoints
"""
import math
from typing import Dict, List, Tuple
from sqlalchemy.orm import Query

SORT_ASC = "asc"
SORT_DESC = "desc"


def apply_sort(query: Query, sortable: Dict[str, object], sort_by: str, sort_order: str,
               default: str) -> Query:
    """Order by a whitelisted column; unknown keys fall back to `default`"""
    column = sortable.get(sort_by, sortable[default])
    ordered = column.desc() if sort_order == SORT_DESC else column.asc()
    # id as tie-breaker keeps pages stable
    id_column = sortable["id"]
    return query.order_by(ordered, id_column.desc() if sort_order == SORT_DESC else id_column.asc())


def paginate(query: Query, page: int, limit: int) -> Tuple[List, int]:
    """Returns (items on the page, total matching rows)"""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
