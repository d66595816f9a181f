from typing import Any, Optional


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    """Build the standard success envelope."""
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def paginate(items: list, page: int, limit: int, total: int) -> dict:
    return {
        "items": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit if limit else 0,
        },
    }
