"""
Result sinks: where finished records are streamed to.
"""
import json
from typing import Dict, List, Protocol, Union

import pandas as pd

from .models import ListingDetail, ListingSummary
from .utils import now_iso, parse_price


class ResultSink(Protocol):
    def append(self, record: Union[ListingSummary, ListingDetail]) -> None: ...


class ListSink:
    """Keeps records in memory, in arrival order."""

    def __init__(self) -> None:
        self.records: List[Union[ListingSummary, ListingDetail]] = []

    def append(self, record: Union[ListingSummary, ListingDetail]) -> None:
        self.records.append(record)

    def __len__(self) -> int:
        return len(self.records)


def record_to_row(record: Union[ListingSummary, ListingDetail]) -> Dict:
    """Flatten a record into one table row."""
    price_value, price_currency = parse_price(record.price)
    row = {
        "listing_id": record.listing_id,
        "title": record.title,
        "price_text": record.price,
        "price_value": price_value,
        "price_currency": price_currency,
        "location": record.location,
        "cover_image_url": record.cover_image_url,
        "short_description": record.short_description,
        "url": record.url,
        "missing": ",".join(record.missing),
    }
    if isinstance(record, ListingDetail):
        row.update({
            "kind": record.kind,
            "subcategory": record.subcategory,
            "seller": record.seller,
            "full_description": record.full_description,
            "img_urls": "|".join(record.images),
        })
        if record.vehicle is not None:
            row.update({
                "year": record.vehicle.year,
                "mileage_km": record.vehicle.mileage_km,
                "characteristics_json": json.dumps(record.vehicle.as_dict(), ensure_ascii=False),
                "gear": "|".join(record.vehicle.gear),
                "warnings": "|".join(record.vehicle.warnings),
            })
    return row


class DataFrameSink:
    """Collects flattened rows and exposes them as a pandas DataFrame."""

    def __init__(self) -> None:
        self.rows: List[Dict] = []

    def append(self, record: Union[ListingSummary, ListingDetail]) -> None:
        row = record_to_row(record)
        row["scraped_at"] = now_iso()
        self.rows.append(row)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows)
