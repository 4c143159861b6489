"""
Offset pagination for admin tables.
"""

import math
from dataclasses import dataclass, replace
from typing import List, Union

PAGE_SIZE_OPTIONS = [10, 25, 50, 100]
MAX_VISIBLE_PAGES = 5
ELLIPSIS = "..."


@dataclass(frozen=True)
class PageWindow:
    """One page of a `limit`/`offset` listing."""

    page: int = 1
    page_size: int = 10
    total: int = 0

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.total < 0:
            raise ValueError("total must be >= 0")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)

    @property
    def start_item(self) -> int:
        return 0 if self.total == 0 else self.offset + 1

    @property
    def end_item(self) -> int:
        return min(self.page * self.page_size, self.total)

    @property
    def label(self) -> str:
        return f"Mostrando {self.start_item} - {self.end_item} de {self.total}"

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def page_numbers(self) -> List[Union[int, str]]:
        """
        Page links to render. All pages when there are few, otherwise the first,
        the last and the neighbours of the current page with "..." gaps.
        """
        total_pages = self.total_pages
        if total_pages <= MAX_VISIBLE_PAGES + 2:
            return list(range(1, total_pages + 1))

        pages: List[Union[int, str]] = [1]
        if self.page > 3:
            pages.append(ELLIPSIS)

        start = max(2, self.page - 1)
        end = min(total_pages - 1, self.page + 1)
        pages.extend(range(start, end + 1))

        if self.page < total_pages - 2:
            pages.append(ELLIPSIS)
        pages.append(total_pages)
        return pages

    def go_to(self, page: int) -> "PageWindow":
        """Move to `page`; out of range pages leave the window unchanged."""
        if 1 <= page <= self.total_pages:
            return replace(self, page=page)
        return self

    def with_page_size(self, page_size: int) -> "PageWindow":
        return replace(self, page=1, page_size=page_size)

    def with_total(self, total: int) -> "PageWindow":
        return replace(self, total=total)

    def after_delete(self) -> "PageWindow":
        """Window to show once one item of the current page has been deleted."""
        remaining = max(self.total - 1, 0)
        total_pages = math.ceil(remaining / self.page_size)
        page = self.page
        if page > total_pages > 0:
            page = total_pages
        return replace(self, page=page, total=remaining)

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
            "totalPages": self.total_pages,
            "offset": self.offset,
            "startItem": self.start_item,
            "endItem": self.end_item,
            "label": self.label,
            "pages": self.page_numbers(),
        }
