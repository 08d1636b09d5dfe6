"""Core enums, constants, and type definitions for the book manager.

Enums:
    EventKind -- Filesystem change classification. Only create and rename
                 are acted upon; everything else is ignored by the dispatcher.

Models:
    BookMetadata -- Validated title/author/year produced by the extractor.
                    Strict: every field is a non-empty string, no extra keys.
    SearchQuery  -- Argument schema of the searchBook tool.
    SearchResult -- Canonical shape of one Open Library match.
    FsEvent      -- One filesystem event with the paths it touched.
    Owner        -- uid/gid pair applied to relocated files.
"""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator

FILENAME_TEMPLATE = "{title} - {author} ({year})"


class EventKind(StrEnum):
    CREATE = "create"
    RENAME = "rename"
    MODIFY = "modify"
    REMOVE = "remove"
    OTHER = "other"


ACTIONABLE_KINDS: frozenset[EventKind] = frozenset(
    {
        EventKind.CREATE,
        EventKind.RENAME,
    }
)


class BookMetadata(BaseModel):
    """Bibliographic metadata resolved for a single ebook file."""

    model_config = ConfigDict(strict=True, frozen=True, extra="forbid")

    title: str
    author: str
    year: str

    @field_validator("title", "author", "year")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class SearchQuery(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str


@dataclass(frozen=True)
class SearchResult:
    """Best Open Library match for a query."""

    title: str
    author: str
    year: int | None = None

    def to_tool_payload(self) -> dict:
        return {"title": self.title, "author": self.author, "year": self.year}


@dataclass(frozen=True)
class FsEvent:
    kind: EventKind
    paths: tuple[str, ...] = ()

    @property
    def is_actionable(self) -> bool:
        return self.kind in ACTIONABLE_KINDS


@dataclass(frozen=True)
class Owner:
    uid: int
    gid: int
