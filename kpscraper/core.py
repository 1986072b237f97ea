"""
Result aggregation and category traversal orchestration.
"""
import logging
from typing import AsyncIterable, AsyncIterator, Iterable, List, Optional, Sequence, Set, Union

from .categories import CategoryIdMapping, CategoryIndex, find_subcategory
from .config import Config, config as default_config
from .details import ListingDetailEnricher, kind_for_category
from .errors import DetailUnavailableError
from .export import ResultSink
from .listings import ListingPageFetcher
from .models import Category, CollectStats, ListingDetail, ListingSummary, SubCategory
from .session import BrowsingSession, ContextPool
from .utils import get_logger

Record = Union[ListingSummary, ListingDetail]
Pages = Union[Iterable[Sequence[ListingSummary]], AsyncIterable[Sequence[ListingSummary]]]


async def _iter_pages(pages: Pages) -> AsyncIterator[Sequence[ListingSummary]]:
    if hasattr(pages, "__aiter__"):
        async for page in pages:
            yield page
    else:
        for page in pages:
            yield page


class ResultAggregator:
    """
    Merges pages of summaries into one ordered, de-duplicated collection.

    With an enricher, each new summary is turned into a detail record
    before it is kept. Every finished record is handed to the sink as soon
    as it is ready.
    """

    def __init__(
        self,
        sink: Optional[ResultSink] = None,
        enricher: Optional[ListingDetailEnricher] = None,
        pool: Optional[ContextPool] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.sink = sink
        self.enricher = enricher
        self.pool = pool
        self.logger = get_logger(logger)
        self.stats = CollectStats()

    async def collect(self, pages: Pages, kind: str = "generic") -> List[Record]:
        """
        Consume pages lazily and return the finished records.

        Input order is kept and the first occurrence of a URL wins; a
        listing can show up twice when the site shifts between page loads.
        """
        seen: Set[str] = set()
        results: List[Record] = []

        async for page in _iter_pages(pages):
            self.stats.pages += 1
            fresh: List[ListingSummary] = []
            for summary in page:
                self.stats.seen += 1
                if not summary.url:
                    self.logger.warning("Dropping summary without url")
                    self.stats.skipped += 1
                    continue
                if summary.url in seen:
                    self.stats.duplicates += 1
                    continue
                seen.add(summary.url)
                fresh.append(summary)

            for record in await self._finish(fresh, kind):
                results.append(record)
                self.stats.emitted += 1
                if self.sink is not None:
                    self.sink.append(record)

        self.logger.info(
            f">>> Collected {self.stats.emitted} records from {self.stats.pages} pages "
            f"({self.stats.duplicates} duplicates, {self.stats.skipped} skipped)"
        )
        return results

    async def _finish(self, summaries: List[ListingSummary], kind: str) -> List[Record]:
        if self.enricher is None or not summaries:
            return list(summaries)

        if self.pool is not None:
            details = await self.enricher.enrich_concurrently(summaries, kind, self.pool)
            done = {d.url for d in details}
            for s in summaries:
                if s.url not in done:
                    self.stats.skipped += 1
                    self.stats.skipped_urls.append(s.url)
            return list(details)

        details = []
        for summary in summaries:
            try:
                details.append(await self.enricher.enrich(summary, kind))
            except DetailUnavailableError as e:
                self.logger.warning(f"Skipping {summary.url}: {e}")
                self.stats.skipped += 1
                self.stats.skipped_urls.append(summary.url)
        return details


async def iter_pages(
    fetcher: ListingPageFetcher,
    category: Union[Category, SubCategory],
    max_pages: int,
    start: int = 1,
) -> AsyncIterator[List[ListingSummary]]:
    """
    Yield pages start..start+max_pages-1, stopping at the first page
    without any entries.

    A page whose entries were all dropped for lacking a link is still
    yielded (empty) and paging goes on.
    """
    for page_number in range(start, start + max_pages):
        page = await fetcher.fetch_page(category, page_number)
        if not page and fetcher.last_entry_count == 0:
            break
        yield page


async def run_traversal(
    session: BrowsingSession,
    category_name: str,
    mapping: CategoryIdMapping,
    pages: int = 1,
    subcategory: Optional[str] = None,
    details: bool = False,
    kind: Optional[str] = None,
    sink: Optional[ResultSink] = None,
    config: Optional[Config] = None,
    logger: Optional[logging.Logger] = None,
) -> List[Record]:
    """
    Main scraping orchestration function.

    Resolves the category (and optionally one of its sub-categories),
    walks its search pages in order and, with ``details``, enriches every
    listing. The listing kind follows the category unless given.
    """
    cfg = config or default_config
    cfg.validate()
    logger = get_logger(logger)

    index = CategoryIndex(session, cfg, logger)
    category = await index.resolve(category_name)
    target = find_subcategory(category, subcategory) if subcategory else category
    kind = kind or kind_for_category(category.slug)
    logger.info(f">>> Traversing {target.display_name} ({kind}), up to {pages} pages")

    fetcher = ListingPageFetcher(session, mapping, cfg, logger)
    enricher = None
    pool = None
    if details:
        enricher = ListingDetailEnricher(session, cfg, logger)
        if cfg.DETAIL_CONCURRENCY > 1:
            pool = ContextPool(session, cfg.DETAIL_CONCURRENCY, logger)

    aggregator = ResultAggregator(sink=sink, enricher=enricher, pool=pool, logger=logger)
    return await aggregator.collect(iter_pages(fetcher, target, pages), kind=kind)
