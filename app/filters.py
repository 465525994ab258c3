"""Structured filtering over the stored strings.

Query parameters arrive loosely typed (scalars, text, or lists when a key is
repeated). `parse_filters` turns each recognized field into either nothing, a
typed value, or a `ValidationError` before any record is examined.
"""

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from app.errors import ValidationError
from app.schemas import StringRecord

Number = Union[int, float]

_BOOLEAN_TOKENS = {"true": True, "false": False}

# plain ASCII decimal notation only; no digit separators
_NUMBER_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


@dataclass(frozen=True)
class Predicate:
    """One named constraint, e.g. `min_length >= 11`."""

    field: str
    value: Any

    def describe(self) -> str:
        if isinstance(self.value, bool):
            rendered = "true" if self.value else "false"
        elif isinstance(self.value, str):
            rendered = json.dumps(self.value)
        else:
            rendered = str(self.value)
        return f"{self.field}: {rendered}"


@dataclass(frozen=True)
class StringFilters:
    is_palindrome: Optional[bool] = None
    min_length: Optional[Number] = None
    max_length: Optional[Number] = None
    word_count: Optional[Number] = None
    # any-of: a record matches if it contains one of these
    contains_character: Tuple[str, ...] = ()

    @classmethod
    def from_predicates(cls, predicates: Iterable[Predicate]) -> "StringFilters":
        values: Dict[str, Any] = {}
        contains: List[str] = []
        for predicate in predicates:
            if predicate.field == "contains_character":
                contains.append(predicate.value)
            else:
                values[predicate.field] = predicate.value
        return cls(contains_character=tuple(contains), **values)

    def matches(self, record: StringRecord) -> bool:
        props = record.properties
        if self.is_palindrome is not None and props.is_palindrome != self.is_palindrome:
            return False
        if self.min_length is not None and props.length < self.min_length:
            return False
        if self.max_length is not None and props.length > self.max_length:
            return False
        if self.word_count is not None and props.word_count != self.word_count:
            return False
        if self.contains_character and not any(c in record.value for c in self.contains_character):
            return False
        return True

    def applied(self) -> Dict[str, Any]:
        """The filters that actually constrain the result, as reported to callers."""
        applied: Dict[str, Any] = {}
        for name in ("is_palindrome", "min_length", "max_length", "word_count"):
            value = getattr(self, name)
            if value is not None:
                applied[name] = value
        if len(self.contains_character) == 1:
            applied["contains_character"] = self.contains_character[0]
        elif self.contains_character:
            applied["contains_character"] = list(self.contains_character)
        return applied


@dataclass(frozen=True)
class FilterResult:
    data: Tuple[StringRecord, ...]
    filters_applied: Dict[str, Any] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.data)


def _parse_bool(raw: Any, name: str) -> Optional[bool]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.lower() in _BOOLEAN_TOKENS:
        return _BOOLEAN_TOKENS[raw.lower()]
    raise ValidationError(f"{name} must be 'true' or 'false'")


def _parse_number(raw: Any, name: str) -> Optional[Number]:
    if isinstance(raw, (list, tuple)):
        if not raw:
            return None
        # repeated keys: the first one wins
        raw = raw[0]
    if raw is None:
        return None

    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        number = raw
    else:
        text = str(raw).strip()
        if not _NUMBER_RE.fullmatch(text):
            raise ValidationError(f"{name} must be a valid number")
        try:
            number = int(text)
        except ValueError:
            number = float(text)

    if isinstance(number, float):
        if not math.isfinite(number):
            raise ValidationError(f"{name} must be a valid number")
        if number.is_integer():
            number = int(number)
    return number


def _parse_substrings(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return ()
    items = raw if isinstance(raw, (list, tuple)) else [raw]
    stripped = (str(item).strip() for item in items)
    return tuple(item for item in stripped if item)


def parse_filters(params: Mapping[str, Any]) -> StringFilters:
    """Normalize raw query parameters into typed filters.

    Unknown keys are ignored. Raises `ValidationError` for a malformed value
    or for `min_length` greater than `max_length`.
    """
    min_length = _parse_number(params.get("min_length"), "min_length")
    max_length = _parse_number(params.get("max_length"), "max_length")
    if min_length is not None and max_length is not None and min_length > max_length:
        raise ValidationError("min_length cannot be greater than max_length")

    return StringFilters(
        is_palindrome=_parse_bool(params.get("is_palindrome"), "is_palindrome"),
        min_length=min_length,
        max_length=max_length,
        word_count=_parse_number(params.get("word_count"), "word_count"),
        contains_character=_parse_substrings(params.get("contains_character")),
    )


def apply_filters(records: Iterable[StringRecord], filters: StringFilters) -> FilterResult:
    data = tuple(record for record in records if filters.matches(record))
    return FilterResult(data=data, filters_applied=filters.applied())
