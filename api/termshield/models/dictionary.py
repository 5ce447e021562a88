"""Typed records crossing the dictionary store and matcher boundaries."""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class DictionaryScope:
    """Tenant scope a dictionary and its cached index are keyed by."""

    entity_id: str
    project_id: str

    @property
    def key(self) -> str:
        return f"{self.entity_id}:{self.project_id}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class DictionaryRow:
    """One translation of a dictionary group in one language.

    The store guarantees at most one row per (dictionary_id, language_code).
    """

    dictionary_id: str
    language_code: str
    text: str


@dataclass(frozen=True)
class TermMatch:
    """A dictionary term found in an input string.

    Attributes:
        term: Matched text exactly as it appears in the input (original case)
        start: Start character offset in the input string
        end: End character offset (exclusive)
        dictionary_id: Owning dictionary group
    """

    term: str
    start: int
    end: int
    dictionary_id: str

    def overlaps(self, start: int, end: int) -> bool:
        return start < self.end and end > self.start

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
