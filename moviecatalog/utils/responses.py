"""JSON envelope helpers: every response is {success, data|message|error}"""
from typing import Any, Dict, Optional


def ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error_body(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


def paginated(items: list, page: int, limit: int, total: int) -> Dict[str, Any]:
    """Pagination block in the shape the admin listings return"""
    return {
        "items": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit if limit else 0,
        },
    }
