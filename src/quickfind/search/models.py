"""Search data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FileType(str, Enum):
    """Category assigned to an entry at index time."""

    APP = "app"
    DOCUMENT = "document"
    FOLDER = "folder"
    SHORTCUT = "shortcut"
    IMAGE = "image"
    CODE = "code"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> FileType:
        """Map a stored value to a member, falling back to OTHER for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class MatchType(str, Enum):
    """How a result matched the query."""

    EXACT = "exact"
    PREFIX = "prefix"
    SUBSTRING = "substring"
    FUZZY = "fuzzy"
    PATH = "path"
    NONE = "none"


@dataclass(slots=True)
class IndexedEntry:
    """A row of the ``files`` table.

    ``entry_id`` is ``None`` until the store assigns one. ``click_count`` and
    ``last_accessed`` are owned by the usage path and ignored by upserts.
    """

    filename: str
    filepath: str
    extension: str = ""
    file_size: int = 0
    modified_at: int = 0
    file_type: FileType = FileType.OTHER
    click_count: int = 0
    last_accessed: int = 0
    icon_path: str | None = None
    entry_id: int | None = None


@dataclass(frozen=True, slots=True)
class EntrySummary:
    """Searchable projection of a row used by the exhaustive fuzzy pass."""

    entry_id: int
    filename: str
    filepath: str
    file_type: FileType
    click_count: int
    last_accessed: int
    modified_at: int


class SearchResult(BaseModel):
    """Value object for a single scored search hit.

    Immutable so a returned result list cannot be changed by later
    click feedback.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    filename: str
    filepath: str
    extension: str = ""
    file_size: int = 0
    modified_at: int = 0
    file_type: FileType = FileType.OTHER
    click_count: int = 0
    last_accessed: int = 0
    score: float
    match_type: MatchType
    matched_indices: list[int] = Field(default_factory=list)
