"""
Category tree navigation and the slug -> category id table.
"""
import json
import logging
from dataclasses import replace
from typing import Dict, Iterator, List, Mapping, Optional, Tuple
from urllib.parse import urljoin

from .config import Config, config as default_config
from .errors import CategoryMappingError, ConfigError, ExtractionError, NavigationError, NotFoundError
from .models import Category, SubCategory
from .session import BrowsingSession
from .utils import clean_text, get_logger, transform_slug


class CategoryIdMapping(Mapping[str, int]):
    """
    Read-only table of category slug -> numeric category id.

    The site needs the id next to the slug to build a search address. The
    table is supplied from outside (a dict or a JSON file); keys are
    normalized to slugs on load.
    """

    def __init__(self, ids: Mapping[str, int]):
        self._ids: Dict[str, int] = {transform_slug(k): int(v) for k, v in ids.items()}

    @classmethod
    def from_json(cls, path: str) -> "CategoryIdMapping":
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot read category ids from {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Category id file {path} must hold a JSON object")
        return cls(data)

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None) -> "CategoryIdMapping":
        cfg = cfg or default_config
        if not cfg.CATEGORY_IDS_PATH:
            return cls({})
        return cls.from_json(cfg.CATEGORY_IDS_PATH)

    def __getitem__(self, slug: str) -> int:
        return self._ids[slug]

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def lookup(self, slug: str) -> int:
        """Category id for slug; an unmapped slug is a data error."""
        try:
            return self._ids[slug]
        except KeyError:
            raise CategoryMappingError(slug) from None


class CategoryIndex:
    """
    The site's two-level category tree.

    The top-level list is read from the home page once and cached.
    Resolving a category navigates the session to the category page, so
    the session's current page changes on every ``resolve`` call.
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
        self._categories: Optional[Tuple[Category, ...]] = None

    async def list_categories(self) -> List[Category]:
        """Top-level categories in site order; sub-categories are not loaded."""
        if self._categories is not None:
            return list(self._categories)

        sel = self.config.SELECTORS
        home = self.config.BASE_URL + "/"
        self.logger.info(f">>> Opening home page: {home}")
        await self.session.navigate(home, self.config.NAVIGATION_TIMEOUT_MS)
        if not await self.session.wait_for_ready(sel.category_list, self.config.READY_TIMEOUT_MS):
            raise NavigationError(home, "category list did not appear")

        categories: List[Category] = []
        seen = set()
        for name, url in await self._read_links(sel.category_link, home):
            category = Category.from_link(name, url)
            if category.slug in seen:
                continue
            seen.add(category.slug)
            categories.append(category)

        self.logger.info(f">>> Found {len(categories)} categories")
        self._categories = tuple(categories)
        return list(self._categories)

    async def resolve(self, slug: str) -> Category:
        """
        Look a category up by slug and load its sub-categories.

        A display name works too, since it is slugged before comparing.
        Raises ``NotFoundError`` for an unknown slug and ``NavigationError``
        when the category page does not load in time.
        """
        key = transform_slug(slug)
        category = next((c for c in await self.list_categories() if c.slug == key), None)
        if category is None:
            raise NotFoundError(key)

        sel = self.config.SELECTORS
        self.logger.info(f">>> Opening category: {category.canonical_url}")
        await self.session.navigate(category.canonical_url, self.config.NAVIGATION_TIMEOUT_MS)
        if not await self.session.wait_for_ready(sel.subcategory_link, self.config.READY_TIMEOUT_MS):
            raise NavigationError(category.canonical_url, "subcategory list did not appear")

        subs = tuple(
            SubCategory(display_name=name, canonical_url=url)
            for name, url in await self._read_links(sel.subcategory_link, category.canonical_url)
        )
        self.logger.info(f">>> {category.display_name}: {len(subs)} subcategories")
        return replace(category, sub_categories=subs)

    async def _read_links(self, selector: str, base_url: str) -> List[Tuple[str, str]]:
        try:
            handles = await self.session.query_all(selector)
        except ExtractionError as e:
            raise NavigationError(base_url, str(e)) from e
        links = []
        for handle in handles:
            try:
                name = clean_text(await self.session.extract_text(handle))
                href = await self.session.extract_attribute(handle, "href")
            except ExtractionError as e:
                self.logger.debug(f"Skipping unreadable category link: {e}")
                continue
            if not name or not href:
                continue
            links.append((name, urljoin(base_url, href)))
        return links


def find_subcategory(category: Category, name_or_slug: str) -> SubCategory:
    """Pick a loaded sub-category of ``category`` by display name or slug."""
    key = transform_slug(name_or_slug)
    for sub in category.sub_categories:
        if sub.slug == key:
            return sub
    raise NotFoundError(key)
