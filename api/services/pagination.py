"""Page/limit arithmetic shared by every paginated listing.

``resolve_page`` clamps the requested page and size; ``page_meta`` computes
the envelope metadata once the total and the returned slice are known.
"""

import math
from typing import NamedTuple

from services.errors import ValidationError
from services.validation import coerce_int

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50
# Keeps LIMIT/OFFSET within what the database drivers can bind
MAX_PAGE = 1_000_000


class PageRequest(NamedTuple):
    page: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


class PageMeta(NamedTuple):
    total: int
    page: int
    per_page: int
    last_page: int
    from_: int
    to: int
    has_next_page: bool
    has_previous_page: bool


def resolve_page(page: object = None, page_size: object = None) -> PageRequest:
    """Clamp page to >= 1 and page size to [1, 50]; defaults are 1 and 20.

    Pages beyond MAX_PAGE are rejected rather than clamped.
    """
    current = DEFAULT_PAGE if page is None else coerce_int(page, "Page must be an integer.")
    if current > MAX_PAGE:
        raise ValidationError(f"Page must not exceed {MAX_PAGE}.")
    size = (
        DEFAULT_PAGE_SIZE
        if page_size is None
        else coerce_int(page_size, "Page size must be an integer.")
    )
    return PageRequest(page=max(1, current), per_page=min(MAX_PAGE_SIZE, max(1, size)))


def page_meta(request: PageRequest, total: int, returned: int) -> PageMeta:
    """Metadata for a slice of ``returned`` rows out of ``total``.

    A page past the end returns no rows, so ``to`` ends up below ``from_``.
    """
    last_page = math.ceil(total / request.per_page)
    return PageMeta(
        total=total,
        page=request.page,
        per_page=request.per_page,
        last_page=last_page,
        from_=request.offset + 1,
        to=request.offset + returned,
        has_next_page=request.page < last_page,
        has_previous_page=request.page > 1,
    )
