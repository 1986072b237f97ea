"""
Scraper configuration and settings management.
"""
import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError


# Categories whose listings are enriched with vehicle attributes
VEHICLE_CATEGORY_SLUGS = frozenset({
    "automobili",
    "motocikli",
    "kamioni",
    "kombi-vozila",
    "kamperi-i-prikolice",
})


@dataclass(frozen=True)
class SiteSelectors:
    """
    CSS selectors for every page the scraper reads.

    The site ships CSS-module class names with a build hash suffix
    (``AdItem_name__RhGAZ``), so selectors match on the stable prefix.
    """

    # Home page
    category_list: str = "[class*='CategoryList_list__']"
    category_link: str = "[class*='CategoryList_list__'] a[class*='CategoryList_name__']"

    # Category page
    subcategory_link: str = "a[class*='CategoryBox_name__']"

    # Search results page
    listing_entry: str = "[class*='AdItem_adHolder__']"
    listing_link: str = "[class*='AdItem_adTextHolder__'] a"
    listing_title: str = "[class*='AdItem_name__']"
    listing_price: str = "[class*='AdItem_price__']"
    listing_location: str = "[class*='AdItem_originAndPromoLocation__'] p"
    listing_image: str = "[class*='AdItem_imageHolder__'] img"
    listing_description: str = "[class*='AdItem_descriptionHolder__'] p"

    # Listing detail page; any of its main blocks marks it as rendered
    detail_ready: str = (
        "[class*='AdViewInfo_adInfoHolder__'], "
        "[class*='AdViewGallery_galleryHolder__'], "
        "[class*='AdViewDescription_adViewDescription__']"
    )
    detail_section: str = "[class*='AdViewDescription_descriptionHolder__']"
    detail_gallery_image: str = "[class*='AdViewGallery_galleryHolder__'] img"
    detail_seller: str = "[class*='UserSummary_userName__']"
    detail_characteristic_cell: str = "[class*='AdViewInfo_adInfoHolder__'] table td"
    detail_section_item: str = "li"

    # Position of the bullet-list sections among description sections
    description_section_index: int = 0
    gear_section_index: int = 1
    warnings_section_index: int = 2


class Config:
    """Scraper configuration."""

    # Site addressing
    BASE_URL: str = os.getenv("KP_BASE_URL", "https://www.kupujemprodajem.com").rstrip("/")
    SEARCH_PATH: str = os.getenv(
        "KP_SEARCH_PATH", "/{slug}/pretraga?categoryId={category_id}&page={page}"
    )

    # Timeouts
    NAVIGATION_TIMEOUT_MS: int = int(os.getenv("KP_NAVIGATION_TIMEOUT_MS", str(2 * 60 * 1000)))
    READY_TIMEOUT_MS: int = int(os.getenv("KP_READY_TIMEOUT_MS", "15000"))

    # Isolated browsing contexts open at once during detail enrichment
    DETAIL_CONCURRENCY: int = int(os.getenv("KP_DETAIL_CONCURRENCY", "3"))

    # JSON file with {"slug": category_id}
    CATEGORY_IDS_PATH: Optional[str] = os.getenv("KP_CATEGORY_IDS") or None

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    SELECTORS: SiteSelectors = SiteSelectors()

    def search_url(self, slug: str, category_id: int, page: int) -> str:
        """Build the search results address for one page of a category."""
        path = self.SEARCH_PATH.format(slug=slug, category_id=category_id, page=page)
        return f"{self.BASE_URL}{path}"

    def validate(self) -> None:
        """Validate configuration on startup."""
        if self.NAVIGATION_TIMEOUT_MS <= 0 or self.READY_TIMEOUT_MS <= 0:
            raise ConfigError("timeouts must be positive")
        if self.DETAIL_CONCURRENCY < 1:
            raise ConfigError("KP_DETAIL_CONCURRENCY must be at least 1")
        if self.CATEGORY_IDS_PATH and not os.path.exists(self.CATEGORY_IDS_PATH):
            raise ConfigError(f"Category id file not found: {self.CATEGORY_IDS_PATH}")


# Global config instance
config = Config()
