# app/utils/pagination.py
from dataclasses import dataclass
from typing import Any, List

from fastapi import Query


def get_pagination_params(page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
    return {"page": page, "limit": limit}


@dataclass
class Page:
    items: List[Any]
    total: int
    page: int
    limit: int
