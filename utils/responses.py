import math
from datetime import datetime
from typing import Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from utils.date_utils import to_utc_iso

# Datetimes always leave the API as UTC ISO-8601 strings with a "Z" suffix
ENCODERS = {datetime: to_utc_iso}


def success_response(data=None, status=200, meta: Optional[dict] = None):
    content = {
        "success": True,
        "data": jsonable_encoder(data, custom_encoder=ENCODERS),
    }
    if meta:
        content["meta"] = meta
    return JSONResponse(status_code=status, content=content)


def error_response(code, message, status=400, details=None):
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = jsonable_encoder(details, custom_encoder=ENCODERS)
    return JSONResponse(
        status_code=status,
        content={
            "success": False,
            "error": error,
        }
    )


def calculate_pagination(total: int, page: int = 1, limit: int = 10) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
