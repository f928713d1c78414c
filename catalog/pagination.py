import math
from dataclasses import dataclass, field
from typing import Optional

from .exceptions import ValidationError


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page index plus page size. ``size=None`` means unpaged."""

    page: int = 0
    size: Optional[int] = 20

    def __post_init__(self):
        if self.page < 0:
            raise ValidationError(f"page must be >= 0, got {self.page}")
        if self.size is not None and self.size < 1:
            raise ValidationError(f"size must be >= 1, got {self.size}")

    @classmethod
    def unpaged(cls) -> 'PageRequest':
        """The whole collection. Index searches still stop at the index's result window."""
        return cls(page=0, size=None)

    @property
    def is_unpaged(self) -> bool:
        return self.size is None

    @property
    def offset(self) -> int:
        return 0 if self.is_unpaged else self.page * self.size


@dataclass
class Page:
    items: list = field(default_factory=list)
    total: int = 0
    page_request: PageRequest = field(default_factory=PageRequest)

    @property
    def total_pages(self) -> int:
        if self.page_request.is_unpaged:
            return 1 if self.total else 0
        return math.ceil(self.total / self.page_request.size)

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)


def paginate(queryset, page_request: PageRequest) -> Page:
    """Slice a queryset according to ``page_request``."""
    if page_request.is_unpaged:
        items = list(queryset)
        return Page(items=items, total=len(items), page_request=page_request)

    total = queryset.count()
    start = page_request.offset
    items = list(queryset[start:start + page_request.size])
    return Page(items=items, total=total, page_request=page_request)
