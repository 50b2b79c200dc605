"""Paginated retrieval of a whole remote collection."""

from __future__ import annotations

import logging
from typing import Any

from docsync.client.sync.types import PaginationError, QueryFunction
from docsync.core.regulator import MAX_DOCUMENTS_PER_QUERY

logger = logging.getLogger(__name__)

# Upper bound on pages fetched in one call (100k documents at the default page size)
DEFAULT_MAX_PAGES = 1000


def fetch_all(
    query_fn: QueryFunction,
    query: dict[str, Any] | None = None,
    page_size: int = MAX_DOCUMENTS_PER_QUERY,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> list[Any]:
    """Fetch every document matching a query, one page at a time.

    Each request carries ``startAt`` and ``limit`` on top of the base query.
    The first page is always requested; fetching stops as soon as a page
    comes back short.

    Args:
        query_fn: Remote query capability.
        query: Base query (conditions, ordering). Not modified.
        page_size: Documents requested per page.
        max_pages: Pages fetched before giving up.

    Returns:
        All documents, in the order the pages returned them.

    Raises:
        PaginationError: If the remote keeps returning full pages past
            ``max_pages``.
    """
    base_query = dict(query or {})
    results: list[Any] = []
    page = 0

    while len(results) >= page * page_size:
        if page >= max_pages:
            logger.warning(
                f"Stopped after {page} full pages of {page_size}; "
                "the remote may be ignoring the page limit"
            )
            raise PaginationError(f"Query did not terminate after {page} pages")

        paged_query = {
            **base_query,
            "startAt": page * page_size,
            "limit": page_size,
        }
        results.extend(query_fn(paged_query))
        page += 1

    logger.debug(f"Fetched {len(results)} documents in {page} pages")
    return results
