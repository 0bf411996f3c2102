from __future__ import annotations

import math
from typing import Tuple

from flask import request, abort

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", str(DEFAULT_LIMIT)))
    except ValueError:
        abort(400, description="page and limit must be integers")
    page = max(page, 1)
    limit = max(1, min(limit, MAX_LIMIT))
    return page, limit


def parse_bool_arg(name: str) -> bool | None:
    """Tri-state query flag: None when absent."""
    val = request.args.get(name)
    if val is None or val == "":
        return None
    lowered = val.strip().lower()
    if lowered in ("1", "true", "yes"):
        return True
    if lowered in ("0", "false", "no"):
        return False
    abort(400, description=f"{name} must be true or false")


def parse_choice_arg(name: str, choices):
    val = request.args.get(name)
    if not val:
        return None
    if val not in choices:
        abort(400, description=f"Unsupported {name}. Allowed: {', '.join(choices)}")
    return val


def paginate(query, order_by, page: int, limit: int):
    """Apply ordering + offset/limit; return (rows, meta)."""
    total = query.count()
    rows = query.order_by(*order_by).offset((page - 1) * limit).limit(limit).all()
    meta = {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
    return rows, meta
