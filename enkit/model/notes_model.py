"""
Values exchanged with the note store. These mirror the parts of the Evernote data
model that the note operations use, independent of the SDK's Thrift types.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import Field
from pydantic.dataclasses import dataclass


class NoteSortOrder(Enum):
    """Sort orders supported for note searches."""

    created = "created"
    updated = "updated"

    def __str__(self):
        return self.value


@dataclass
class Tag:
    guid: str
    name: str


@dataclass
class Notebook:
    guid: str
    name: str


@dataclass
class Note:
    title: str
    content: str = ""
    guid: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    tag_guids: List[str] = Field(default_factory=list)
    notebook_guid: Optional[str] = None


@dataclass
class NoteFilter:
    """
    Search criteria. `words` uses the Evernote search grammar, so it can carry
    modifiers like `created:day-7`.
    """

    words: Optional[str] = None
    tag_guids: List[str] = Field(default_factory=list)
    order: NoteSortOrder = NoteSortOrder.updated
    ascending: bool = False


@dataclass
class NotesPage:
    """One page of note metadata results (notes have no content)."""

    total_notes: int
    notes: List[Note] = Field(default_factory=list)


@dataclass
class TagCount:
    name: str
    guid: str
    count: int = 0


def millis_to_datetime(millis: Optional[int]) -> Optional[datetime]:
    """
    Evernote timestamps are milliseconds since the epoch.
    """
    if millis is None:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def datetime_to_millis(dt: Optional[datetime]) -> Optional[int]:
    if dt is None:
        return None
    return round(dt.timestamp() * 1000)


## Tests


def test_timestamp_conversion():
    dt = millis_to_datetime(1_700_000_000_123)
    assert dt and dt.year == 2023
    assert datetime_to_millis(dt) == 1_700_000_000_123
    assert millis_to_datetime(None) is None


def test_note_defaults():
    note = Note(title="Quick")
    assert note.tag_guids == []
    assert note.content == ""
    assert NoteFilter().order == NoteSortOrder.updated
