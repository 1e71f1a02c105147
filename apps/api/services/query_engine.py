"""Filtering, sorting, pagination and bulk re-ordering shared by the entity stores."""

from __future__ import annotations

import math
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from services.errors import ValidationError


MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


def validate_pagination(page: Any, limit: Any) -> Tuple[int, int]:
    try:
        page_value = int(page)
        limit_value = int(limit)
    except (TypeError, ValueError) as exc:
        raise ValidationError("page and limit must be integers", field="page") from exc
    if page_value < 1:
        raise ValidationError("Page must be a positive integer", field="page")
    if limit_value < 1 or limit_value > MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must be between 1-{MAX_PAGE_SIZE}", field="limit")
    return page_value, limit_value


def validate_limit(limit: Any, maximum: int, field: str = "limit") -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be an integer", field=field) from exc
    if value < 1 or value > maximum:
        raise ValidationError(f"Limit must be between 1-{maximum}", field=field)
    return value


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_items": total,
        "items_per_page": limit,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }


async def paginate(
    db: AsyncSession,
    stmt: Select,
    *,
    page: int,
    limit: int,
) -> Tuple[List[Any], Dict[str, Any]]:
    """Run ``stmt`` for one page and count the full filtered result."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int((await db.execute(count_stmt)).scalar() or 0)
    result = await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    return list(result.scalars().all()), pagination_meta(page, limit, total)


def sort_clause(
    sort_field: Optional[str],
    direction: Optional[str],
    allowed: Mapping[str, ColumnElement],
    default: str,
) -> ColumnElement:
    field = sort_field or default
    if field not in allowed:
        raise ValidationError(
            f"Invalid sort field. Allowed: {', '.join(allowed)}",
            field="sort",
        )
    order = (direction or "asc").lower()
    if order not in ("asc", "desc"):
        raise ValidationError("Order must be asc or desc", field="order")
    column = allowed[field]
    return column.desc() if order == "desc" else column.asc()


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def substring_filter(term: Optional[str], columns: Sequence[ColumnElement]) -> Optional[ColumnElement]:
    """Case-insensitive substring match of ``term`` against any of ``columns``."""
    text = (term or "").strip()
    if not text:
        return None
    pattern = f"%{_escape_like(text.lower())}%"
    return or_(*(func.lower(column).like(pattern, escape="\\") for column in columns))


async def bulk_reorder(
    db: AsyncSession,
    model: Any,
    updates: Iterable[Mapping[str, Any]],
    actor_id: str,
) -> Dict[str, int]:
    """Apply every ``(id, order)`` pair in one transaction and one UPDATE statement.

    Ids without a row simply do not match. When an id is listed twice the
    last entry wins.
    """
    orders: "OrderedDict[str, int]" = OrderedDict()
    for index, entry in enumerate(updates):
        item_id = str(entry.get("id") or "").strip()
        if not item_id:
            raise ValidationError("Each update must have an id", field=f"updates[{index}].id")
        try:
            order = int(entry.get("order"))
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                "Each update must have a valid order number", field=f"updates[{index}].order"
            ) from exc
        if order < 0:
            raise ValidationError("Order must be a positive integer", field=f"updates[{index}].order")
        orders[item_id] = order
    if not orders:
        raise ValidationError("Updates must be a non-empty array", field="updates")

    ids = list(orders)
    new_order = case(orders, value=model.id)
    try:
        matched = await db.execute(select(func.count()).select_from(model).where(model.id.in_(ids)))
        result = await db.execute(
            update(model)
            .where(model.id.in_(ids), model.order != new_order)
            .values(order=new_order, last_modified_by=actor_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return {
        "matched_count": int(matched.scalar() or 0),
        "modified_count": int(result.rowcount or 0),
    }


def group_by(items: Iterable[Dict[str, Any]], key: Callable[[Dict[str, Any]], str]) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for item in items:
        grouped.setdefault(key(item), []).append(item)
    return grouped
