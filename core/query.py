"""
Collection-style access over the ORM models.

Where expressions are plain dicts, the same shape the storefront builds:

    {"category": "books"}                          equality
    {"name": {"contains": "lamp"}}                 case-insensitive substring
    {"AND": [expr, ...]}, {"OR": [expr, ...]}      boolean composition

Several keys in one dict are ANDed. Field names may be given in camelCase or
snake_case; they are resolved against the model's columns, which are always
snake_case.
"""
import re
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import and_, or_, func, true, false
from sqlalchemy.orm import Session

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

OrderBy = Union[str, Dict[str, str], None]


class QueryError(ValueError):
    pass


def to_snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name or "").lower()


def column_for(model, field: str):
    key = to_snake(field)
    if key not in model.__table__.c:
        raise QueryError(f"Unknown field '{field}' for {model.__tablename__}")
    return getattr(model, key)


def _predicate(model, field: str, value: Any):
    col = column_for(model, field)
    if isinstance(value, dict):
        if set(value.keys()) != {"contains"}:
            raise QueryError(f"Unsupported operator for '{field}': {sorted(value.keys())}")
        needle = str(value["contains"] or "")
        return func.lower(col).contains(needle.lower(), autoescape=True)
    if value is None:
        return col.is_(None)
    return col == value


def compile_where(model, expr: Optional[Dict[str, Any]]):
    """Turn a where expression into a SQLAlchemy clause. Empty means match all."""
    if not expr:
        return true()
    clauses = []
    for key, value in expr.items():
        if key in ("AND", "OR"):
            if not isinstance(value, list):
                raise QueryError(f"{key} expects a list")
            parts = [compile_where(model, sub) for sub in value]
            if key == "AND":
                clauses.append(and_(*parts) if parts else true())
            else:
                clauses.append(or_(*parts) if parts else false())
        else:
            clauses.append(_predicate(model, key, value))
    return clauses[0] if len(clauses) == 1 else and_(*clauses)


def _order_clauses(model, order_by: OrderBy) -> List[Any]:
    if not order_by:
        return []
    if isinstance(order_by, str):
        order_by = {order_by: "asc"}
    out = []
    for field, direction in order_by.items():
        col = column_for(model, field)
        d = (direction or "asc").lower()
        if d not in ("asc", "desc"):
            raise QueryError(f"Invalid sort direction '{direction}'")
        out.append(col.desc() if d == "desc" else col.asc())
    return out


def list_rows(db: Session, model, where: Optional[Dict[str, Any]] = None, order_by: OrderBy = None, limit: Optional[int] = None, for_update: bool = False):
    q = db.query(model).filter(compile_where(model, where))
    clauses = _order_clauses(model, order_by)
    if clauses:
        q = q.order_by(*clauses)
    if limit is not None:
        q = q.limit(max(1, int(limit)))
    if for_update:
        # Rows already in the session must be refreshed from the locked read
        q = q.with_for_update().populate_existing()
    return q.all()


def get_row(db: Session, model, row_id: str, for_update: bool = False):
    rows = list_rows(db, model, where={"id": row_id}, limit=1, for_update=for_update)
    return rows[0] if rows else None


def patch_row(row, patch: Dict[str, Any]):
    """Apply a camelCase or snake_case patch to an ORM row."""
    model = type(row)
    for field, value in (patch or {}).items():
        col = column_for(model, field)
        setattr(row, col.key, value)
    return row
