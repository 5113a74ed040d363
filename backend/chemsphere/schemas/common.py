"""Common schemas used across the application."""

from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class PagedResponse(BaseModel, Generic[T]):
    """Generic page of an in-memory list.

    Usage:
        response_model=PagedResponse[ChemicalOut]

    Returns:
        {
            "items": [...],
            "total": 23,
            "page": 3,
            "page_size": 10,
            "total_pages": 3
        }
    """
    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int


class MessageResponse(BaseModel):
    message: str
