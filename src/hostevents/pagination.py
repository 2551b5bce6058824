"""Helpers for walking paginated GitHub collections via the Link header."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Tuple
from urllib.parse import parse_qs, urlparse

from requests.utils import parse_header_links


@dataclass(frozen=True)
class PageInfo:
    last_page: int = 0
    next_page: int | None = None


# page_request(page_number) -> (items on that page, pagination metadata)
PageRequest = Callable[[int], Tuple[List[Any], PageInfo]]


def _page_param(url: str) -> int:
    try:
        values = parse_qs(urlparse(url).query).get("page")
    except ValueError:
        return 0
    if not values:
        return 0
    try:
        page = int(values[0])
    except ValueError:
        return 0
    return page if page > 0 else 0


def _page_for_rel(link: str, rel: str) -> int:
    if not link or not link.strip():
        return 0
    for entry in parse_header_links(link):
        rels = (entry.get("rel") or "").split()
        if rel in rels:
            return _page_param(entry.get("url", ""))
    return 0


def parse_num_pages_from_link(link: str) -> int:
    """Return the ``page`` of the ``rel="last"`` link, or 0 when it cannot be read."""
    return _page_for_rel(link, "last")


def parse_next_page_from_link(link: str) -> int | None:
    return _page_for_rel(link, "next") or None


def _link_header(headers: Mapping[str, str] | None) -> str:
    if not headers:
        return ""
    link = headers.get("Link") or headers.get("link") or ""
    return link.strip()


def parse_num_pages(headers: Mapping[str, str] | None) -> int:
    return parse_num_pages_from_link(_link_header(headers))


def page_info_from_headers(headers: Mapping[str, str] | None) -> PageInfo:
    link = _link_header(headers)
    return PageInfo(
        last_page=parse_num_pages_from_link(link),
        next_page=parse_next_page_from_link(link),
    )


def fetch_all(page_request: PageRequest) -> List[Any]:
    """
    Request page 1, then every page up to the ``rel="last"`` hint, in order.

    Pages are fetched one at a time. A missing or unreadable hint means only
    page 1 is fetched. Any error raised by ``page_request`` propagates and the
    items gathered so far are dropped.
    """
    items, info = page_request(1)
    results: List[Any] = list(items)

    total = info.last_page if info.last_page > 0 else 1
    page = 2
    while page <= total:
        # stop early when the server no longer advertises a page past the last one read
        if info.next_page is None or info.next_page <= page - 1:
            break
        items, info = page_request(page)
        results.extend(items)
        page += 1

    return results
