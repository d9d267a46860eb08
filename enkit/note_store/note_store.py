"""
The note store interface. The store owns persistence: the core formatting and
section functions only produce document strings, which are saved here.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional

from enkit.model.notes_model import Note, NoteFilter, Notebook, NotesPage, Tag


class NoteStore(ABC):
    """
    Remote note storage. Implementations raise `NotFound`, `PermissionDenied`, or
    `AuthExpired` for lookup, permission, and authentication failures, and
    `ApiResultError` for anything else unexpected.
    """

    @abstractmethod
    def get_username(self) -> str:
        """Name of the authenticated user. Doubles as a token check."""

    @abstractmethod
    def get_note(self, guid: str) -> Note:
        """A note with its full ENML content."""

    @abstractmethod
    def create_note(self, note: Note) -> Note:
        """Create a note, returning it with its guid and timestamps set."""

    @abstractmethod
    def update_note(self, note: Note) -> Note:
        """Write back a modified note (title, content, tags)."""

    @abstractmethod
    def list_tags(self) -> List[Tag]:
        pass

    @abstractmethod
    def create_tag(self, name: str) -> Tag:
        pass

    @abstractmethod
    def list_notebooks(self) -> List[Notebook]:
        pass

    @abstractmethod
    def find_notes_metadata(self, note_filter: NoteFilter, offset: int, limit: int) -> NotesPage:
        """Notes matching a filter, without content."""

    @abstractmethod
    def count_notes_for_tag(self, tag_guid: str) -> int:
        pass


@dataclass
class TlStoreContext(threading.local):
    store: Optional[NoteStore] = None


_tl_store = TlStoreContext()
"""
Thread-local override of the note store used by commands.
"""


@contextmanager
def use_store(store: NoteStore) -> Generator[NoteStore, None, None]:
    """
    Context manager to temporarily use the given store for the current thread.
    """
    old_store = _tl_store.store
    _tl_store.store = store
    try:
        yield store
    finally:
        _tl_store.store = old_store


def current_store() -> NoteStore:
    """
    The note store for the current thread: an override set by `use_store()`, or
    an Evernote store authenticated with the configured token.
    """
    if _tl_store.store:
        return _tl_store.store

    from enkit.config.settings import global_settings
    from enkit.config.setup import get_token
    from enkit.note_store.evernote_store import EvernoteNoteStore

    store = EvernoteNoteStore(token=get_token(), sandbox=global_settings().sandbox)
    _tl_store.store = store
    return store
