"""
Utility functions for text processing, slugs, price parsing, and logging.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Optional, Tuple


# Serbian Latin diacritics and their ASCII spelling in site URLs
SLUG_REPLACEMENTS = {
    "đ": "dj",
    "š": "s",
    "ž": "z",
    "ć": "c",
    "č": "c",
}
_SLUG_CHARS_RE = re.compile("[" + "".join(SLUG_REPLACEMENTS) + "]")
_WHITESPACE_RE = re.compile(r"\s+")


def init_logger(
    name: str = "kpscraper",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = None
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def get_logger(logger: Optional[logging.Logger] = None) -> logging.Logger:
    """Return the given logger or the package logger."""
    return logger or logging.getLogger("kpscraper")


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = _WHITESPACE_RE.sub(" ", s)
    return s.strip()


def transform_slug(display_name: str) -> str:
    """
    Map a category display name to the slug the site uses in addresses.

    Lower-cases, collapses whitespace runs into one hyphen and spells the
    Serbian diacritics in ASCII. Every other character is kept as is, so
    the result of an already slugged name is unchanged.

        >>> transform_slug("Alati i oruđa")
        'alati-i-orudja'
    """
    if not display_name:
        return ""
    slug = display_name.lower()
    slug = _WHITESPACE_RE.sub("-", slug)
    return _SLUG_CHARS_RE.sub(lambda m: SLUG_REPLACEMENTS[m.group(0)], slug)


def parse_price(price_text: str) -> Tuple[Optional[float], Optional[str]]:
    """
    Parse price text to extract numeric value and currency.

    Understands the site formats: "1.500 din", "12.000,50 din", "250 €",
    "3.200 EUR". Free-form prices such as "Dogovor" give (None, None).
    """
    if not price_text:
        return (None, None)

    s = price_text.replace("\xa0", " ")
    m = re.search(r"(\d{1,3}(?:\.\d{3})+|\d+)(?:,(\d+))?", s)
    val = None
    if m:
        intpart = m.group(1).replace(".", "")
        dec = m.group(2)
        try:
            val = float(f"{intpart}.{dec}" if dec else intpart)
        except ValueError:
            val = None

    cur = None
    if "€" in s or re.search(r"\bEUR\b", s, re.I):
        cur = "EUR"
    elif re.search(r"\b(din|rsd)\b", s, re.I):
        cur = "RSD"

    if val is None:
        return (None, None)
    return (val, cur)


def extract_first_number_km(text: str) -> Optional[int]:
    """
    Extract the first number that looks like a mileage in kilometers.

    Handles "180.000 km", "180 000 km" and bare "180000".
    """
    if not text:
        return None

    t = text.replace(".", " ").replace(",", " ")
    m = re.search(r"(\d[\d\s]{0,12})\s?km\b", t, re.I)
    if m:
        return int(re.sub(r"\s+", "", m.group(1)))

    m2 = re.search(r"\b(\d{4,7})\b", t)
    if m2:
        return int(m2.group(1))

    return None


def extract_year(text: str) -> Optional[int]:
    """Pick the first plausible model year (1950-2039) from text."""
    if not text:
        return None
    m = re.search(r"\b(19[5-9]\d|20[0-3]\d)\b", text)
    return int(m.group(1)) if m else None
