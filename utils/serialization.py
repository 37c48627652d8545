from datetime import datetime
from typing import Iterable, Optional

from utils.date_utils import ensure_utc


def camelize(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def row_to_dict(row, exclude: Optional[Iterable[str]] = None) -> Optional[dict]:
    """
    Convert an ORM row to the camelCase dict the mobile app consumes.
    """
    if row is None:
        return None
    skip = set(exclude or ())
    return {
        camelize(column.name): getattr(row, column.name)
        for column in row.__table__.columns
        if column.name not in skip
    }


def snakeize(name: str) -> str:
    return "".join(f"_{ch.lower()}" if ch.isupper() else ch for ch in name)


def to_columns(data: dict) -> dict:
    """camelCase request fields to snake_case column names; datetimes normalised to UTC."""
    columns = {}
    for key, value in data.items():
        if isinstance(value, datetime):
            value = ensure_utc(value)
        columns[snakeize(key)] = value
    return columns
