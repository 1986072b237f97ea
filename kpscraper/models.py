"""
Data models for the KupujemProdajem scraper.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .utils import extract_first_number_km, extract_year, transform_slug


LISTING_KINDS = ("generic", "vehicle")


def listing_id_from_url(url: str) -> str:
    """Numeric id from a listing URL, or the URL itself when it has none."""
    m = re.search(r"/oglas/(\d+)", url)
    return m.group(1) if m else url


@dataclass(frozen=True)
class SubCategory:
    """A second-level category as linked from its parent's page."""

    display_name: str
    canonical_url: str

    @property
    def slug(self) -> str:
        return transform_slug(self.display_name)


@dataclass(frozen=True)
class Category:
    """
    A top-level category.

    ``sub_categories`` is empty until the category is resolved through
    ``CategoryIndex.resolve``, which returns a new instance.
    """

    display_name: str
    slug: str
    canonical_url: str
    sub_categories: Tuple[SubCategory, ...] = ()

    @classmethod
    def from_link(cls, display_name: str, canonical_url: str) -> "Category":
        return cls(
            display_name=display_name,
            slug=transform_slug(display_name),
            canonical_url=canonical_url,
        )


@dataclass(frozen=True)
class ListingSummary:
    """A listing as shown on a search results page."""

    url: str
    title: str = ""
    price: str = ""
    location: str = ""
    cover_image_url: str = ""
    short_description: str = ""
    # Names of fields that could not be read and hold their default
    missing: Tuple[str, ...] = ()

    @property
    def listing_id(self) -> str:
        return listing_id_from_url(self.url)


@dataclass(frozen=True)
class VehicleAttributes:
    """Extra fields read from vehicle detail pages."""

    characteristics: Tuple[Tuple[str, str], ...] = ()
    gear: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, str]:
        return dict(self.characteristics)

    def get(self, key: str, default: str = "") -> str:
        for k, v in self.characteristics:
            if k.lower() == key.lower():
                return v
        return default

    @property
    def year(self) -> Optional[int]:
        return extract_year(self.get("Godište"))

    @property
    def mileage_km(self) -> Optional[int]:
        return extract_first_number_km(self.get("Kilometraža"))


@dataclass(frozen=True)
class ListingDetail:
    """
    A listing enriched from its detail page.

    The summary fields are copied through unchanged. ``vehicle`` is set
    only for ``kind == "vehicle"``.
    """

    url: str
    title: str = ""
    price: str = ""
    location: str = ""
    cover_image_url: str = ""
    short_description: str = ""
    kind: str = "generic"
    subcategory: str = ""
    full_description: str = ""
    images: Tuple[str, ...] = ()
    seller: str = ""
    vehicle: Optional[VehicleAttributes] = None
    missing: Tuple[str, ...] = ()

    @property
    def listing_id(self) -> str:
        return listing_id_from_url(self.url)

    @property
    def is_vehicle(self) -> bool:
        return self.vehicle is not None


def subcategory_from_url(url: str) -> str:
    """
    Return the subcategory path segment of a listing URL.

    Listing addresses look like
    ``/alati-i-orudja/aku-alati/aku-busilica-makita/oglas/148811234``,
    so the subcategory is the second path segment before ``oglas``.
    """
    segments = [s for s in urlparse(url).path.split("/") if s]
    end = segments.index("oglas") if "oglas" in segments else len(segments)
    return segments[1] if end >= 2 else ""


@dataclass
class CollectStats:
    """Counters for one aggregation run."""

    pages: int = 0
    seen: int = 0
    duplicates: int = 0
    skipped: int = 0
    emitted: int = 0
    skipped_urls: List[str] = field(default_factory=list)
