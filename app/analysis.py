from collections import Counter
from datetime import datetime, timezone
from hashlib import sha256
from typing import Optional

from app.schemas import StringProperties, StringRecord


def normalize_value(value: str) -> str:
    """Case-fold a value into the form used for identity and storage."""
    return value.lower()


def compute_sha256(value: str) -> str:
    return sha256(value.encode("utf-8")).hexdigest()


def analyze_string(value: str) -> StringProperties:
    """Calculates all derived properties for an already normalized value.

    Total over every string: the empty string is a palindrome with no words
    and no characters.
    """
    return StringProperties(
        length=len(value),
        is_palindrome=value == value[::-1],
        unique_characters=len(set(value)),
        # str.split() trims and collapses whitespace runs
        word_count=len(value.split()),
        sha256_hash=compute_sha256(value),
        character_frequency_map=dict(Counter(value)),
    )


def build_record(value: str, created_at: Optional[datetime] = None) -> StringRecord:
    normalized = normalize_value(value)
    properties = analyze_string(normalized)
    return StringRecord(
        id=properties.sha256_hash,
        value=normalized,
        properties=properties,
        created_at=created_at or datetime.now(timezone.utc),
    )
