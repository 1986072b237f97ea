"""
Listing detail pages: turning a summary into a full record.
"""
import asyncio
import logging
from typing import Any, List, Optional, Sequence, Tuple
from urllib.parse import urljoin

from .config import VEHICLE_CATEGORY_SLUGS, Config, config as default_config
from .errors import DetailUnavailableError, NavigationError
from .extraction import Field, FieldSet, attempt, read_text, read_texts
from .models import LISTING_KINDS, ListingDetail, ListingSummary, VehicleAttributes, subcategory_from_url
from .session import BrowsingSession, ContextPool
from .utils import clean_text, get_logger


def kind_for_category(slug: str) -> str:
    """Listing kind implied by the category a listing was reached through."""
    return "vehicle" if slug in VEHICLE_CATEGORY_SLUGS else "generic"


def pair_cells(cells: Sequence[str]) -> Tuple[Tuple[str, str], ...]:
    """
    Pair up table cells read left to right as key, value, key, value...

    A trailing cell without a partner is dropped, and so are pairs whose
    key is blank.
    """
    pairs = []
    for key, value in zip(cells[0::2], cells[1::2]):
        key = key.rstrip(":").strip()
        if key:
            pairs.append((key, value))
    return tuple(pairs)


class ListingDetailEnricher:
    """
    Visits listing detail pages and reads their full fields.

    Every field is read on its own; one that cannot be read keeps its
    empty default and is named in the record's ``missing`` tuple. Only a
    page that cannot be reached at all fails the call, with
    ``DetailUnavailableError``.
    """

    def __init__(
        self,
        session: BrowsingSession,
        config: Optional[Config] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.session = session
        self.config = config or default_config
        self.logger = get_logger(logger)

    async def enrich(
        self,
        summary: ListingSummary,
        kind: str = "generic",
        session: Optional[BrowsingSession] = None,
    ) -> ListingDetail:
        """
        Enrich one summary from its detail page.

        ``kind`` selects the extraction strategy ("generic" or "vehicle").
        ``session`` overrides the enricher's own session, which is how a
        pooled isolated context is passed in.
        """
        if kind not in LISTING_KINDS:
            raise ValueError(f"unknown listing kind {kind!r}, expected one of {LISTING_KINDS}")
        s = session if session is not None else self.session
        sel = self.config.SELECTORS

        try:
            await s.navigate(summary.url, self.config.NAVIGATION_TIMEOUT_MS)
        except NavigationError as e:
            raise DetailUnavailableError(summary.url, e.reason) from e
        if not await s.wait_for_ready(sel.detail_ready, self.config.READY_TIMEOUT_MS):
            raise DetailUnavailableError(summary.url, "detail view did not appear")

        fields = FieldSet()
        fields.add(Field.of("subcategory", subcategory_from_url(summary.url)))
        sections = _Sections(s, sel.detail_section)

        fields.add(await attempt(
            "full_description", lambda: sections.text(sel.description_section_index), self.logger
        ))
        fields.add(await attempt("images", lambda: self._read_images(s), self.logger))
        fields.add(await attempt("seller", lambda: read_text(s, sel.detail_seller), self.logger))

        vehicle = None
        if kind == "vehicle":
            fields.add(await attempt("characteristics", lambda: self._read_characteristics(s), self.logger))
            fields.add(await attempt(
                "gear", lambda: sections.items(sel.gear_section_index, sel.detail_section_item), self.logger
            ))
            fields.add(await attempt(
                "warnings",
                lambda: sections.items(sel.warnings_section_index, sel.detail_section_item),
                self.logger,
            ))
            vehicle = VehicleAttributes(
                characteristics=fields.get("characteristics", ()),
                gear=tuple(fields.get("gear", [])),
                warnings=tuple(fields.get("warnings", [])),
            )

        detail = ListingDetail(
            url=summary.url,
            title=summary.title,
            price=summary.price,
            location=summary.location,
            cover_image_url=summary.cover_image_url,
            short_description=summary.short_description,
            kind=kind,
            subcategory=fields.get("subcategory", ""),
            full_description=fields.get("full_description", ""),
            images=tuple(fields.get("images", [])),
            seller=fields.get("seller", ""),
            vehicle=vehicle,
            missing=summary.missing + fields.missing,
        )
        if fields.missing:
            self.logger.debug(f"{summary.url}: missing {', '.join(fields.missing)}")
        return detail

    async def enrich_concurrently(
        self,
        summaries: Sequence[ListingSummary],
        kind: str,
        pool: ContextPool,
    ) -> List[ListingDetail]:
        """
        Enrich many summaries, each in its own pooled context.

        Results keep the order of ``summaries``. Summaries whose detail
        page is unavailable are skipped; a failure in one context does not
        cancel the others.
        """
        async def one(summary: ListingSummary) -> ListingDetail:
            async with pool.context() as ctx:
                return await self.enrich(summary, kind, session=ctx)

        results = await asyncio.gather(*(one(s) for s in summaries), return_exceptions=True)

        details: List[ListingDetail] = []
        for summary, result in zip(summaries, results):
            if isinstance(result, DetailUnavailableError):
                self.logger.warning(f"Skipping {summary.url}: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            details.append(result)
        return details

    async def _read_images(self, s: BrowsingSession) -> List[str]:
        images = []
        for handle in await s.query_all(self.config.SELECTORS.detail_gallery_image):
            src = await s.extract_attribute(handle, "src") or await s.extract_attribute(handle, "data-src")
            if src and src.strip():
                images.append(urljoin(self.config.BASE_URL + "/", src.strip()))
        return images

    async def _read_characteristics(self, s: BrowsingSession) -> Tuple[Tuple[str, str], ...]:
        cells = []
        for handle in await s.query_all(self.config.SELECTORS.detail_characteristic_cell):
            cells.append(clean_text(await s.extract_text(handle)))
        return pair_cells(cells)


class _Sections:
    """Description sections of a detail page, queried once and read by position."""

    def __init__(self, session: BrowsingSession, selector: str):
        self.session = session
        self.selector = selector
        self._handles: Optional[List[Any]] = None

    async def at(self, index: int) -> Optional[Any]:
        if self._handles is None:
            self._handles = await self.session.query_all(self.selector)
        return self._handles[index] if index < len(self._handles) else None

    async def text(self, index: int) -> Optional[str]:
        handle = await self.at(index)
        if handle is None:
            return None
        return clean_text(await self.session.extract_text(handle)) or None

    async def items(self, index: int, item_selector: str) -> List[str]:
        handle = await self.at(index)
        if handle is None:
            return []
        return await read_texts(self.session, item_selector, root=handle)
