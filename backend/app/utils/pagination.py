"""
Pagination helpers for bulk PostgREST reads

PostgREST caps every response at its max-rows setting (1000 by default), so
reads that can grow past that walk the result in fixed-size pages until a
short page comes back. Queries must be ordered on a unique key for the pages
to be stable.
"""
from typing import Any, Callable, Dict, List

DEFAULT_PAGE_SIZE = 1000


def fetch_all(build_query: Callable[[], Any], page_size: int = DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
    """
    Execute a query page by page and return every row

    Args:
        build_query: Returns a fresh, ordered query builder for each page
        page_size: Rows requested per page

    Returns:
        All rows in query order
    """
    rows: List[Dict[str, Any]] = []
    start = 0
    while True:
        page = build_query().range(start, start + page_size - 1).execute().data
        rows.extend(page)
        if len(page) < page_size:
            return rows
        start += page_size
