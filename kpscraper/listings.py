"""
Search results pages: one page of listing summaries per call.
"""
import logging
from typing import Any, List, Optional, Union
from urllib.parse import urljoin

from .categories import CategoryIdMapping
from .config import Config, config as default_config
from .errors import ExtractionError, NavigationError
from .extraction import FieldSet, attempt, read_attribute, read_text
from .models import Category, ListingSummary, SubCategory
from .session import BrowsingSession
from .utils import get_logger


def resolve_listing_url(href: Optional[str], base_url: str) -> Optional[str]:
    """Absolute listing URL for an entry link, or None if it points nowhere."""
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith("#") or href.lower().startswith("javascript:"):
        return None
    return urljoin(base_url + "/", href)


class ListingPageFetcher:
    """
    Reads listing summaries from category search pages.

    Entries come back in the order the site presents them; that order is
    the site's own ranking and is never re-sorted.
    """

    def __init__(
        self,
        session: BrowsingSession,
        mapping: CategoryIdMapping,
        config: Optional[Config] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.session = session
        self.mapping = mapping
        self.config = config or default_config
        self.logger = get_logger(logger)
        # Entries on the last fetched page, before unlinked ones are dropped
        self.last_entry_count = 0

    def page_url(self, category: Union[Category, SubCategory], page_number: int) -> str:
        if page_number < 1:
            raise ValueError(f"page numbers start at 1, got {page_number}")
        category_id = self.mapping.lookup(category.slug)
        return self.config.search_url(category.slug, category_id, page_number)

    async def fetch_page(
        self, category: Union[Category, SubCategory], page_number: int
    ) -> List[ListingSummary]:
        """
        Fetch one page of summaries for a category or sub-category.

        A page past the last one has no entries and gives an empty list.
        Entries without a usable link are dropped; any other unreadable
        field is left empty on its summary.
        """
        url = self.page_url(category, page_number)
        sel = self.config.SELECTORS
        self.last_entry_count = 0

        self.logger.info(f">>> Opening listings page {page_number}: {url}")
        await self.session.navigate(url, self.config.NAVIGATION_TIMEOUT_MS)
        if not await self.session.wait_for_ready(sel.listing_entry, self.config.READY_TIMEOUT_MS):
            self.logger.info(f">>> No listings on page {page_number} of {category.slug}")
            return []

        try:
            entries = await self.session.query_all(sel.listing_entry)
        except ExtractionError as e:
            raise NavigationError(url, str(e)) from e
        self.last_entry_count = len(entries)

        summaries: List[ListingSummary] = []
        for position, entry in enumerate(entries, 1):
            summary = await self.extract_summary(entry)
            if summary is None:
                self.logger.warning(f"Dropping entry #{position} on {url}: no listing link")
                continue
            summaries.append(summary)

        self.logger.info(f">>> Collected {len(summaries)} of {len(entries)} entries from page {page_number}")
        return summaries

    async def extract_summary(self, entry: Any) -> Optional[ListingSummary]:
        """Read the six summary fields of one entry; None when it has no link."""
        s = self.session
        sel = self.config.SELECTORS
        base = self.config.BASE_URL

        async def read_url():
            return resolve_listing_url(await read_attribute(s, sel.listing_link, "href", root=entry), base)

        async def read_image():
            handle = await s.query_one(sel.listing_image, root=entry)
            if handle is None:
                return None
            # Lazy-loaded thumbnails keep the real address in data-src
            src = await s.extract_attribute(handle, "src") or await s.extract_attribute(handle, "data-src")
            return urljoin(base + "/", src.strip()) if src and src.strip() else None

        fields = FieldSet()
        if not fields.add(await attempt("url", read_url, self.logger)).present:
            return None
        fields.add(await attempt("title", lambda: read_text(s, sel.listing_title, root=entry), self.logger))
        fields.add(await attempt("price", lambda: read_text(s, sel.listing_price, root=entry), self.logger))
        fields.add(await attempt("location", lambda: read_text(s, sel.listing_location, root=entry), self.logger))
        fields.add(await attempt("cover_image_url", read_image, self.logger))
        fields.add(await attempt(
            "short_description", lambda: read_text(s, sel.listing_description, root=entry), self.logger
        ))

        return ListingSummary(
            url=fields["url"].value,
            title=fields.get("title", ""),
            price=fields.get("price", ""),
            location=fields.get("location", ""),
            cover_image_url=fields.get("cover_image_url", ""),
            short_description=fields.get("short_description", ""),
            missing=fields.missing,
        )
