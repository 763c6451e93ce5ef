from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Protocol

from clients.coinbase import LedgerPage

logger = logging.getLogger(__name__)

API_PREFIX = "/v2"


class PagedLedgerClient(Protocol):
    def fetch_page(self, path: str) -> LedgerPage: ...


@dataclass(frozen=True)
class ResourceContext:
    """Parent resource a listing is nested under, e.g. ``accounts/<id>/transactions``."""

    collection: str
    id: str


def first_page_path(resource: str, context: ResourceContext | None = None) -> str:
    context_path = f"{context.collection}/{context.id}/" if context else ""
    return f"{API_PREFIX}/{context_path}{resource}"


def fetch_new_items(
    client: PagedLedgerClient,
    resource: str,
    known_ids: Iterable[str],
    *,
    context: ResourceContext | None = None,
    walk_all_pages: bool = False,
) -> list[dict[str, Any]]:
    """Walk a newest-first cursor listing and return only records not seen before.

    Stops at the first page that contains any known record: everything older is
    assumed to be stored already. ``walk_all_pages`` disables that shortcut and
    follows the cursor to the end, relying on the id check alone.
    """
    seen = set(known_ids)
    items: list[dict[str, Any]] = []
    path: str | None = first_page_path(resource, context)
    pages = 0

    while path:
        page = client.fetch_page(path)
        pages += 1
        new_items: list[dict[str, Any]] = []
        page_ids: set[str] = set()
        all_new = True
        for item in page.items:
            item_id = str(item["id"])
            if item_id in page_ids:
                continue
            page_ids.add(item_id)
            if item_id in seen:
                all_new = False
                continue
            seen.add(item_id)
            new_items.append(item)
        items.extend(new_items)

        logger.debug(
            "Fetched page=%d path=%s items=%d new=%d cursor=%s",
            pages,
            path,
            len(page.items),
            len(new_items),
            page.next_cursor,
        )
        path = page.next_cursor if (all_new or walk_all_pages) else None

    logger.info("Fetched %d new %s in %d page(s)", len(items), resource, pages)
    return items


__all__ = ["PagedLedgerClient", "ResourceContext", "fetch_new_items", "first_page_path"]
