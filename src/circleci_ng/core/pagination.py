# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Page-token pagination helpers.

The REST API returns lists as ``{"items": [...], "next_page_token": ...}``.
These helpers walk such an API to completion by re-issuing the same request
with the returned token until it comes back empty or null.
"""

from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")

Page = Tuple[List[T], Optional[str]]
PageFetcher = Callable[[Optional[str]], Page]


def split_page(body: Optional[Dict[str, Any]], items_key: str = "items") -> Tuple[List[Any], Optional[str]]:
    """Split a raw list response into its items and next page token."""
    if not body:
        return [], None
    return list(body.get(items_key) or []), body.get("next_page_token") or None


def iter_pages(fetch_page: PageFetcher) -> Iterator[List[T]]:
    """Yield the items of each page in server order."""
    token: Optional[str] = None
    while True:
        items, token = fetch_page(token)
        yield items
        if not token:
            return


def collect_pages(fetch_page: PageFetcher) -> List[T]:
    """Fetch every page and return the concatenation of their items.

    Any exception raised while fetching a page propagates and the pages
    already fetched are discarded.
    """
    collected: List[T] = []
    for items in iter_pages(fetch_page):
        collected.extend(items)
    return collected


def find_in_pages(fetch_page: PageFetcher, predicate: Callable[[T], bool]) -> Optional[T]:
    """Return the first item matching ``predicate``, fetching pages lazily."""
    for items in iter_pages(fetch_page):
        for item in items:
            if predicate(item):
                return item
    return None
