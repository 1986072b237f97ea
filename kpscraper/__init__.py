"""
KupujemProdajem Scraper Package
"""
from .models import Category, SubCategory, ListingSummary, ListingDetail, VehicleAttributes
from .errors import (
    ScraperError,
    NavigationError,
    NotFoundError,
    DetailUnavailableError,
    CategoryMappingError,
    ExtractionError,
    ConfigError,
)
from .config import Config, SiteSelectors, config
from .session import BrowsingSession, PlaywrightSession, ContextPool
from .categories import CategoryIdMapping, CategoryIndex, find_subcategory
from .listings import ListingPageFetcher
from .details import ListingDetailEnricher, kind_for_category
from .core import ResultAggregator, iter_pages, run_traversal
from .export import ListSink, DataFrameSink
from .utils import init_logger, transform_slug, parse_price

__version__ = "1.0.0"

__all__ = [
    "Category",
    "SubCategory",
    "ListingSummary",
    "ListingDetail",
    "VehicleAttributes",
    "ScraperError",
    "NavigationError",
    "NotFoundError",
    "DetailUnavailableError",
    "CategoryMappingError",
    "ExtractionError",
    "ConfigError",
    "Config",
    "SiteSelectors",
    "config",
    "BrowsingSession",
    "PlaywrightSession",
    "ContextPool",
    "CategoryIdMapping",
    "CategoryIndex",
    "find_subcategory",
    "ListingPageFetcher",
    "ListingDetailEnricher",
    "kind_for_category",
    "ResultAggregator",
    "iter_pages",
    "run_traversal",
    "ListSink",
    "DataFrameSink",
    "init_logger",
    "transform_slug",
    "parse_price",
]
