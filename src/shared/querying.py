"""Repository read helpers: exhaustive fetch and page slicing."""

import math

from protean.utils.reflection import id_field

_BATCH_SIZE = 100


def fetch_all(dao, **filters) -> list:
    """Return every record matching ``filters``, reading in batches.

    Batches are ordered by the aggregate's identifier so that offsets stay
    stable on providers without an implicit row order.
    """
    query = dao.query.filter(**filters) if filters else dao.query
    query = query.order_by(id_field(dao.entity_cls).field_name)
    records = []
    offset = 0
    while True:
        batch = query.offset(offset).limit(_BATCH_SIZE).all().items
        records.extend(batch)
        if len(batch) < _BATCH_SIZE:
            return records
        offset += _BATCH_SIZE


def paginate(records: list, page: int = 1, limit: int = 10) -> tuple[list, dict]:
    """Slice ``records`` for ``page`` and describe the pagination."""
    page = max(page, 1)
    total = len(records)
    pages = math.ceil(total / limit) if limit else 0
    start = (page - 1) * limit
    meta = {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": pages,
        "has_next": page < pages,
        "has_prev": page > 1,
    }
    return records[start : start + limit], meta
