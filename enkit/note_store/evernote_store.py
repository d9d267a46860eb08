"""
Note store backed by the Evernote API.

Evernote speaks Apache Thrift (binary protocol over HTTP), not REST. The official
`evernote3` package supplies the generated Thrift clients and types; the access
token is passed as the first argument of every call.
"""

from functools import wraps
from typing import Any, Callable, List, Optional, TypeVar

from enkit.config.logger import get_logger
from enkit.errors import ApiResultError, AuthExpired, NotFound, PermissionDenied, SetupError
from enkit.model.notes_model import (
    datetime_to_millis,
    millis_to_datetime,
    Note,
    NoteFilter,
    Notebook,
    NotesPage,
    NoteSortOrder,
    Tag,
)
from enkit.note_store.note_store import NoteStore

log = get_logger(__name__)

PRODUCTION_HOST = "www.evernote.com"
SANDBOX_HOST = "sandbox.evernote.com"

INSTALL_HINT = "Evernote SDK not available. Install it with: pip install 'enkit[evernote]'"


T = TypeVar("T")


def _edam_errors():
    try:
        from evernote.edam.error import ttypes as Errors  # type: ignore
    except ImportError:
        raise SetupError(INSTALL_HINT)
    return Errors


def translate_edam_errors(func: Callable[..., T]) -> Callable[..., T]:
    """
    Map EDAM exceptions from the SDK to our error types.
    """

    @wraps(func)
    def wrapper(*args, **kwargs) -> T:
        Errors = _edam_errors()
        try:
            return func(*args, **kwargs)
        except Errors.EDAMNotFoundException as e:
            raise NotFound(f"Not found: {e.identifier} = {e.key}") from e
        except (Errors.EDAMUserException, Errors.EDAMSystemException) as e:
            code = Errors.EDAMErrorCode._VALUES_TO_NAMES.get(e.errorCode, str(e.errorCode))
            if e.errorCode in (Errors.EDAMErrorCode.AUTH_EXPIRED, Errors.EDAMErrorCode.INVALID_AUTH):
                raise AuthExpired(
                    f"Token is invalid or expired ({code}). Check EVERNOTE_TOKEN or re-authorize."
                ) from e
            if e.errorCode == Errors.EDAMErrorCode.PERMISSION_DENIED:
                parameter = getattr(e, "parameter", None)
                detail = f": {parameter}" if parameter else ""
                raise PermissionDenied(
                    f"You do not have permission for this operation ({code}){detail}"
                ) from e
            raise ApiResultError(f"Evernote API error {code}: {e}") from e

    return wrapper


def _to_note(en_note: Any) -> Note:
    return Note(
        guid=en_note.guid,
        title=en_note.title or "",
        content=en_note.content or "",
        created=millis_to_datetime(en_note.created),
        updated=millis_to_datetime(en_note.updated),
        tag_guids=list(en_note.tagGuids or []),
        notebook_guid=en_note.notebookGuid,
    )


class EvernoteNoteStore(NoteStore):
    """
    Note store that calls the Evernote NoteStore and UserStore services. Clients are
    created lazily on first use.
    """

    def __init__(self, token: str, sandbox: bool = False, note_store_url: Optional[str] = None):
        if not token:
            raise SetupError("Evernote token cannot be empty")
        self.token = token
        self.sandbox = sandbox
        self.host = SANDBOX_HOST if sandbox else PRODUCTION_HOST
        self.user_store_uri = f"https://{self.host}/edam/user"
        self.note_store_url = note_store_url
        self._user_store: Optional[Any] = None
        self._note_store: Optional[Any] = None

    def _thrift_client(self, url: str, client_cls: Any) -> Any:
        from thrift.protocol import TBinaryProtocol  # type: ignore
        from thrift.transport import THttpClient  # type: ignore

        transport = THttpClient.THttpClient(url)
        protocol = TBinaryProtocol.TBinaryProtocol(transport)
        return client_cls(protocol)

    def user_store(self) -> Any:
        if self._user_store is None:
            try:
                from evernote.edam.userstore import UserStore  # type: ignore
            except ImportError:
                raise SetupError(INSTALL_HINT)
            self._user_store = self._thrift_client(self.user_store_uri, UserStore.Client)
        return self._user_store

    @translate_edam_errors
    def note_store(self) -> Any:
        if self._note_store is None:
            try:
                from evernote.edam.notestore import NoteStore as EdamNoteStore  # type: ignore
            except ImportError:
                raise SetupError(INSTALL_HINT)
            if not self.note_store_url:
                self.note_store_url = self.user_store().getNoteStoreUrl(self.token)
                log.info("Using note store: %s", self.note_store_url)
            self._note_store = self._thrift_client(self.note_store_url, EdamNoteStore.Client)  # type: ignore
        return self._note_store

    @translate_edam_errors
    def get_username(self) -> str:
        user = self.user_store().getUser(self.token)
        return user.username or ""

    @translate_edam_errors
    def get_note(self, guid: str) -> Note:
        # withContent, withResourcesData, withResourcesRecognition, withResourcesAlternateData
        en_note = self.note_store().getNote(self.token, guid, True, False, False, False)
        return _to_note(en_note)

    def _to_en_note(self, note: Note) -> Any:
        from evernote.edam.type import ttypes as Types  # type: ignore

        en_note = Types.Note()
        en_note.guid = note.guid
        en_note.title = note.title
        en_note.content = note.content
        en_note.tagGuids = list(note.tag_guids)
        en_note.notebookGuid = note.notebook_guid
        en_note.created = datetime_to_millis(note.created)
        en_note.updated = datetime_to_millis(note.updated)
        return en_note

    @translate_edam_errors
    def create_note(self, note: Note) -> Note:
        created = self.note_store().createNote(self.token, self._to_en_note(note))
        log.info("Created note %s: %s", created.guid, created.title)
        return _to_note(created)

    @translate_edam_errors
    def update_note(self, note: Note) -> Note:
        en_note = self._to_en_note(note)
        # Let the service set the modification time.
        en_note.updated = None
        updated = self.note_store().updateNote(self.token, en_note)
        log.info("Updated note %s", updated.guid)
        # updateNote returns the note without content.
        result = _to_note(updated)
        result.content = note.content
        return result

    @translate_edam_errors
    def list_tags(self) -> List[Tag]:
        return [
            Tag(guid=tag.guid, name=tag.name)
            for tag in self.note_store().listTags(self.token)
            if tag.guid and tag.name
        ]

    @translate_edam_errors
    def create_tag(self, name: str) -> Tag:
        from evernote.edam.type import ttypes as Types  # type: ignore

        tag = self.note_store().createTag(self.token, Types.Tag(name=name))
        log.info("Created tag %s: %s", tag.guid, tag.name)
        return Tag(guid=tag.guid, name=tag.name)

    @translate_edam_errors
    def list_notebooks(self) -> List[Notebook]:
        return [
            Notebook(guid=nb.guid, name=nb.name)
            for nb in self.note_store().listNotebooks(self.token)
            if nb.guid and nb.name
        ]

    def _to_edam_filter(self, note_filter: NoteFilter) -> Any:
        from evernote.edam.notestore import ttypes as NoteStoreTypes  # type: ignore
        from evernote.edam.type import ttypes as Types  # type: ignore

        order = (
            Types.NoteSortOrder.CREATED
            if note_filter.order == NoteSortOrder.created
            else Types.NoteSortOrder.UPDATED
        )
        return NoteStoreTypes.NoteFilter(
            order=order,
            ascending=note_filter.ascending,
            words=note_filter.words,
            tagGuids=list(note_filter.tag_guids) or None,
        )

    @translate_edam_errors
    def find_notes_metadata(self, note_filter: NoteFilter, offset: int, limit: int) -> NotesPage:
        from evernote.edam.notestore import ttypes as NoteStoreTypes  # type: ignore

        spec = NoteStoreTypes.NotesMetadataResultSpec(
            includeTitle=True,
            includeCreated=True,
            includeUpdated=True,
            includeTagGuids=True,
            includeNotebookGuid=True,
        )
        result = self.note_store().findNotesMetadata(
            self.token, self._to_edam_filter(note_filter), offset, limit, spec
        )
        return NotesPage(
            total_notes=result.totalNotes or 0,
            notes=[
                Note(
                    guid=meta.guid,
                    title=meta.title or "",
                    created=millis_to_datetime(meta.created),
                    updated=millis_to_datetime(meta.updated),
                    tag_guids=list(meta.tagGuids or []),
                    notebook_guid=meta.notebookGuid,
                )
                for meta in (result.notes or [])
            ],
        )

    @translate_edam_errors
    def count_notes_for_tag(self, tag_guid: str) -> int:
        from evernote.edam.notestore import ttypes as NoteStoreTypes  # type: ignore

        counts = self.note_store().findNoteCounts(
            self.token, NoteStoreTypes.NoteFilter(tagGuids=[tag_guid]), False
        )
        return (counts.tagCounts or {}).get(tag_guid, 0)
