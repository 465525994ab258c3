"""Canned natural-language queries.

Only the exact phrases in `PHRASES` are understood. Matching is done after
trimming and lower-casing; anything else is reported back as uninterpreted
rather than guessed at.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from app.errors import ValidationError
from app.filters import FilterResult, Predicate, StringFilters, apply_filters
from app.store import RecordStore

UNPARSED_MESSAGE = "Could not parse natural language query"

# "first vowel" is always "a", not computed per string
FIRST_VOWEL = "a"

PHRASES: Dict[str, Tuple[Predicate, ...]] = {
    "all single word palindromic strings": (
        Predicate("is_palindrome", True),
        Predicate("word_count", 1),
    ),
    "strings longer than 10 characters": (
        Predicate("min_length", 11),
    ),
    "palindromic strings that contain the first vowel": (
        Predicate("is_palindrome", True),
        Predicate("contains_character", FIRST_VOWEL),
    ),
    "strings containing the letter z": (
        Predicate("contains_character", "z"),
    ),
}


@dataclass(frozen=True)
class Interpretation:
    original: str
    predicates: Tuple[Predicate, ...] = ()
    parsed: bool = True

    @property
    def parsed_filters(self) -> List[str]:
        return [predicate.describe() for predicate in self.predicates]


@dataclass(frozen=True)
class NaturalLanguageResult:
    interpretation: Interpretation
    result: FilterResult

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "data": list(self.result.data),
            "count": self.result.count,
            "interpreted_query": {
                "original": self.interpretation.original,
                "parsed_filters": self.interpretation.parsed_filters,
            },
        }
        if not self.interpretation.parsed:
            payload["message"] = UNPARSED_MESSAGE
        return payload


def normalize_query(query: str) -> str:
    return query.strip().lower()


def translate(query: Any) -> Interpretation:
    """Look a query up in the phrase table.

    A missing query is a `ValidationError`; an unknown one is not an error and
    comes back with `parsed=False`.
    """
    if query is None:
        raise ValidationError("Query is required.")
    if not isinstance(query, str):
        raise ValidationError("Query must be a string.")

    predicates = PHRASES.get(normalize_query(query))
    if predicates is None:
        return Interpretation(original=query, parsed=False)
    return Interpretation(original=query, predicates=predicates)


def filter_by_natural_language(store: RecordStore, query: Any) -> NaturalLanguageResult:
    interpretation = translate(query)
    if not interpretation.parsed:
        return NaturalLanguageResult(interpretation, FilterResult(data=()))

    filters = StringFilters.from_predicates(interpretation.predicates)
    return NaturalLanguageResult(interpretation, apply_filters(store.list(), filters))
