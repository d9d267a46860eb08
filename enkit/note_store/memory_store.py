import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

from enkit.errors import NotFound
from enkit.model.notes_model import Note, NoteFilter, Notebook, NotesPage, NoteSortOrder, Tag
from enkit.note_store.note_store import NoteStore


class MemoryNoteStore(NoteStore):
    """
    A note store held in memory. Search supports plain words (all must appear in
    the title or content) and tag filters; search grammar modifiers such as
    `created:day-7` are ignored.
    """

    def __init__(
        self,
        username: str = "local",
        notebooks: Optional[List[str]] = None,
    ):
        self.username = username
        self.notes: Dict[str, Note] = {}
        self.tags: Dict[str, Tag] = {}
        self.notebooks: List[Notebook] = [
            Notebook(guid=str(uuid.uuid4()), name=name) for name in (notebooks or ["Default"])
        ]
        self.lock = threading.RLock()

    def get_username(self) -> str:
        return self.username

    def get_note(self, guid: str) -> Note:
        with self.lock:
            note = self.notes.get(guid)
            if not note:
                raise NotFound(f"Note not found: {guid}")
            return replace(note, tag_guids=list(note.tag_guids))

    def create_note(self, note: Note) -> Note:
        now = datetime.now(timezone.utc)
        with self.lock:
            for tag_guid in note.tag_guids:
                if tag_guid not in self.tags:
                    raise NotFound(f"Tag not found: {tag_guid}")
            created = replace(
                note,
                guid=str(uuid.uuid4()),
                created=now,
                updated=now,
                tag_guids=list(note.tag_guids),
                notebook_guid=note.notebook_guid or self.notebooks[0].guid,
            )
            self.notes[created.guid] = created  # type: ignore
            return replace(created)

    def update_note(self, note: Note) -> Note:
        with self.lock:
            if not note.guid or note.guid not in self.notes:
                raise NotFound(f"Note not found: {note.guid}")
            updated = replace(
                note,
                updated=datetime.now(timezone.utc),
                tag_guids=list(note.tag_guids),
            )
            self.notes[note.guid] = updated
            return replace(updated)

    def list_tags(self) -> List[Tag]:
        with self.lock:
            return list(self.tags.values())

    def create_tag(self, name: str) -> Tag:
        with self.lock:
            tag = Tag(guid=str(uuid.uuid4()), name=name)
            self.tags[tag.guid] = tag
            return tag

    def list_notebooks(self) -> List[Notebook]:
        return list(self.notebooks)

    def _matches(self, note: Note, note_filter: NoteFilter) -> bool:
        if any(guid not in note.tag_guids for guid in note_filter.tag_guids):
            return False
        words = [
            word.lower()
            for word in (note_filter.words or "").split()
            if ":" not in word
        ]
        haystack = f"{note.title} {note.content}".lower()
        return all(word in haystack for word in words)

    def find_notes_metadata(self, note_filter: NoteFilter, offset: int, limit: int) -> NotesPage:
        with self.lock:
            matches = [note for note in self.notes.values() if self._matches(note, note_filter)]

        def sort_key(note: Note):
            if note_filter.order == NoteSortOrder.created:
                return note.created
            return note.updated

        matches.sort(key=sort_key, reverse=not note_filter.ascending)
        page = [replace(note, content="") for note in matches[offset : offset + limit]]
        return NotesPage(total_notes=len(matches), notes=page)

    def count_notes_for_tag(self, tag_guid: str) -> int:
        with self.lock:
            return sum(1 for note in self.notes.values() if tag_guid in note.tag_guids)


## Tests


def test_memory_store_round_trip():
    store = MemoryNoteStore()
    tag = store.create_tag("ideas")
    created = store.create_note(Note(title="First", content="<en-note>hi</en-note>", tag_guids=[tag.guid]))
    assert created.guid
    assert created.notebook_guid == store.notebooks[0].guid

    fetched = store.get_note(created.guid)
    assert fetched.content == "<en-note>hi</en-note>"

    fetched.content = "<en-note>changed</en-note>"
    assert store.get_note(created.guid).content == "<en-note>hi</en-note>"

    store.update_note(fetched)
    assert store.get_note(created.guid).content == "<en-note>changed</en-note>"
    assert store.count_notes_for_tag(tag.guid) == 1

    page = store.find_notes_metadata(NoteFilter(words="changed created:day-7"), 0, 10)
    assert page.total_notes == 1
    assert page.notes[0].content == ""

    try:
        store.get_note("missing")
        assert False
    except NotFound:
        pass
