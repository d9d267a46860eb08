"""
Evernote store tests with fake Thrift clients. Requires the `evernote` extra.
"""

import pytest

Errors = pytest.importorskip("evernote.edam.error.ttypes")
Types = pytest.importorskip("evernote.edam.type.ttypes")

from enkit.errors import ApiResultError, AuthExpired, NotFound, PermissionDenied, SetupError
from enkit.model.notes_model import NoteFilter, NoteSortOrder
from enkit.note_store.evernote_store import EvernoteNoteStore, SANDBOX_HOST


class FakeNoteStoreClient:
    def __init__(self):
        self.updated = None

    def getNote(self, token, guid, with_content, *_flags):
        assert token == "tok"
        if guid == "missing":
            raise Errors.EDAMNotFoundException(identifier="Note.guid", key=guid)
        if guid == "expired":
            raise Errors.EDAMUserException(errorCode=Errors.EDAMErrorCode.AUTH_EXPIRED)
        if guid == "denied":
            raise Errors.EDAMUserException(
                errorCode=Errors.EDAMErrorCode.PERMISSION_DENIED, parameter="Note"
            )
        if guid == "broken":
            raise Errors.EDAMSystemException(errorCode=Errors.EDAMErrorCode.INTERNAL_ERROR)
        return Types.Note(
            guid=guid,
            title="Title",
            content="<en-note>hi</en-note>" if with_content else None,
            created=1_700_000_000_000,
            updated=1_700_000_000_000,
            tagGuids=["t1"],
        )

    def updateNote(self, token, note):
        self.updated = note
        return Types.Note(guid=note.guid, title=note.title, updated=1_700_000_001_000)

    def findNoteCounts(self, token, note_filter, with_trash):
        return type("Counts", (), {"tagCounts": {"t1": 4}})()


def fake_store() -> EvernoteNoteStore:
    store = EvernoteNoteStore(token="tok", sandbox=True, note_store_url="https://example/shard")
    store._note_store = FakeNoteStoreClient()
    return store


def test_token_and_host():
    assert fake_store().host == SANDBOX_HOST
    with pytest.raises(SetupError):
        EvernoteNoteStore(token="")


def test_get_and_update_note():
    store = fake_store()
    note = store.get_note("abc")
    assert note.content == "<en-note>hi</en-note>"
    assert note.created and note.created.year == 2023

    note.content = "<en-note>changed</en-note>"
    updated = store.update_note(note)
    assert updated.content == "<en-note>changed</en-note>"
    sent = store._note_store.updated  # type: ignore
    assert sent.updated is None
    assert sent.tagGuids == ["t1"]


def test_edam_errors_are_translated():
    store = fake_store()
    with pytest.raises(NotFound):
        store.get_note("missing")
    with pytest.raises(AuthExpired):
        store.get_note("expired")
    with pytest.raises(PermissionDenied, match="Note"):
        store.get_note("denied")
    with pytest.raises(ApiResultError):
        store.get_note("broken")


def test_filter_and_counts():
    store = fake_store()
    edam_filter = store._to_edam_filter(
        NoteFilter(words="jwt created:day-7", tag_guids=["t1"], order=NoteSortOrder.created)
    )
    assert edam_filter.order == Types.NoteSortOrder.CREATED
    assert edam_filter.ascending is False
    assert edam_filter.tagGuids == ["t1"]
    assert store.count_notes_for_tag("t1") == 4
    assert store.count_notes_for_tag("t2") == 0
