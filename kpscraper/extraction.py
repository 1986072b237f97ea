"""
Per-field extraction results.

Each field read from a page yields a ``Field`` that is either present with
a value or absent with a reason. Records keep plain values; the names of
absent fields travel with them in ``missing``.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from .errors import ExtractionError
from .utils import clean_text, get_logger

T = TypeVar("T")


@dataclass(frozen=True)
class Field(Generic[T]):
    name: str
    value: Optional[T] = None
    present: bool = False
    reason: str = ""

    @classmethod
    def of(cls, name: str, value: Optional[T]) -> "Field[T]":
        """Present when the value is non-empty, otherwise absent."""
        if value is None or (hasattr(value, "__len__") and len(value) == 0):
            return cls(name=name, reason="not found")
        return cls(name=name, value=value, present=True)

    @classmethod
    def absent(cls, name: str, reason: str) -> "Field[T]":
        return cls(name=name, reason=reason)

    def or_default(self, default: T) -> T:
        return self.value if self.present else default


class FieldSet:
    """Ordered collection of extraction results for one record."""

    def __init__(self) -> None:
        self._fields: Dict[str, Field] = {}

    def add(self, f: Field) -> Field:
        self._fields[f.name] = f
        return f

    def __getitem__(self, name: str) -> Field:
        return self._fields[name]

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def get(self, name: str, default: Any) -> Any:
        f = self._fields.get(name)
        return f.or_default(default) if f is not None else default

    @property
    def missing(self) -> Tuple[str, ...]:
        return tuple(name for name, f in self._fields.items() if not f.present)


async def attempt(
    name: str,
    step: Callable[[], Awaitable[Optional[T]]],
    logger: Optional[logging.Logger] = None,
) -> Field[T]:
    """Run one extraction step; a failing element read degrades to absent."""
    try:
        value = await step()
    except ExtractionError as e:
        get_logger(logger).debug(f"Field '{name}' unreadable: {e}")
        return Field.absent(name, str(e))
    f = Field.of(name, value)
    if not f.present:
        get_logger(logger).debug(f"Field '{name}' not found")
    return f


async def read_text(session, selector: str, root=None) -> Optional[str]:
    """Text of the first element matching selector, whitespace-normalized."""
    handle = await session.query_one(selector, root=root)
    if handle is None:
        return None
    return clean_text(await session.extract_text(handle)) or None


async def read_attribute(session, selector: str, name: str, root=None) -> Optional[str]:
    """Attribute of the first element matching selector."""
    handle = await session.query_one(selector, root=root)
    if handle is None:
        return None
    value = await session.extract_attribute(handle, name)
    return value.strip() if value else None


async def read_texts(session, selector: str, root=None) -> List[str]:
    """Non-empty texts of every element matching selector, in document order."""
    texts = []
    for handle in await session.query_all(selector, root=root):
        text = clean_text(await session.extract_text(handle))
        if text:
            texts.append(text)
    return texts
