"""
Note operations: create, read, update, search, and tag listing, composed from the
ENML formatter, the section editor, and a note store.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from enkit.config.logger import get_logger
from enkit.config.settings import global_settings
from enkit.enml.enml_format import ContentFormat, to_document, to_fragment, wrap_enml
from enkit.enml.enml_sections import section_editor
from enkit.enml.enml_text import preview_text, strip_enml
from enkit.errors import InvalidInput, MissingInput, NotFound, SectionNotFound
from enkit.model.notes_model import Note, NoteFilter, Notebook, NoteSortOrder, Tag, TagCount
from enkit.note_store.note_store import NoteStore

log = get_logger(__name__)


SPRINT_SECTIONS = ["Tasks", "Links", "Notes"]


class NoteTemplate(Enum):
    """Starting content for new notes."""

    blank = "blank"
    sprint = "sprint"

    @classmethod
    def parse(cls, value: "str | NoteTemplate") -> "NoteTemplate":
        if isinstance(value, NoteTemplate):
            return value
        try:
            return cls[str(value).strip().lower()]
        except KeyError:
            raise InvalidInput(
                f"Unknown template: {repr(value)}. Valid templates are: {', '.join(t.value for t in cls)}"
            )


def sprint_template() -> str:
    """
    A complete ENML document with an empty section for each of Tasks, Links, and Notes.
    """
    body = "\n\n".join(f"<h1>{name}</h1>\n<div><br/></div>" for name in SPRINT_SECTIONS)
    return wrap_enml(body)


def parse_list(value: Optional[str | List[str]]) -> List[str]:
    """
    Parse a comma-separated list (as given on the command line).
    """
    if not value:
        return []
    if isinstance(value, list):
        return [v.strip() for v in value if v.strip()]
    return [v.strip() for v in value.split(",") if v.strip()]


## Tags


def find_tags_by_names(store: NoteStore, names: List[str]) -> List[Tag]:
    """
    Existing tags matching any of the names, case-insensitively.
    """
    wanted = {name.lower() for name in names}
    return [tag for tag in store.list_tags() if tag.name.lower() in wanted]


def resolve_tags(store: NoteStore, names: List[str], create_missing: bool = True) -> List[Tag]:
    """
    Look up tags by name (case-insensitively) in the order given, creating any
    that don't exist if `create_missing` is set.
    """
    existing = {tag.name.lower(): tag for tag in store.list_tags()}
    resolved: List[Tag] = []
    for name in names:
        tag = existing.get(name.lower())
        if not tag and create_missing:
            log.message("Creating new tag: %s", name)
            tag = store.create_tag(name)
            existing[name.lower()] = tag
        if tag and tag not in resolved:
            resolved.append(tag)
    return resolved


def find_notebook(store: NoteStore, name: str) -> Optional[Notebook]:
    for notebook in store.list_notebooks():
        if notebook.name.lower() == name.lower():
            return notebook
    return None


## Create


def create_note(
    store: NoteStore,
    title: str,
    content: Optional[str] = None,
    format: Optional[ContentFormat | str] = None,
    tags: Optional[List[str]] = None,
    notebook: Optional[str] = None,
    template: Optional[NoteTemplate | str] = None,
) -> Note:
    """
    Create a note from content in the given format, or from a template.
    """
    if not title.strip():
        raise MissingInput("A note title is required")

    content_format = ContentFormat.parse(format or global_settings().default_format)

    if template and NoteTemplate.parse(template) == NoteTemplate.sprint:
        enml = sprint_template()
        log.info("Using sprint template (%s sections)", "/".join(SPRINT_SECTIONS))
    elif content:
        enml = to_document(content, content_format)
    else:
        enml = to_document("", ContentFormat.plain)

    note = Note(title=title.strip(), content=enml)

    if tags:
        note.tag_guids = [tag.guid for tag in resolve_tags(store, tags)]

    if notebook:
        found = find_notebook(store, notebook)
        if found:
            note.notebook_guid = found.guid
        else:
            log.warning("Notebook %r not found, using default", notebook)

    return store.create_note(note)


## Read


@dataclass
class NoteView:
    """
    A note prepared for display: section texts when the note has sections, plain
    text otherwise.
    """

    note: Note
    sections: Dict[str, str] = field(default_factory=dict)
    text: str = ""


def read_note(store: NoteStore, guid: str, section: Optional[str] = None) -> NoteView:
    """
    Fetch a note and extract the text of one section or of all sections. Raises
    `SectionNotFound`, listing the available sections, if a requested section is
    missing.
    """
    note = store.get_note(guid)
    editor = section_editor()
    content = note.content

    if section:
        span = editor.find_section(content, section)
        if not span:
            raise SectionNotFound(section, editor.section_names(content))
        return NoteView(note=note, sections={span.name: strip_enml(span.content(content))})

    sections: Dict[str, str] = {}
    for span in editor.list_sections(content):
        # Duplicate headings resolve to the first section of that name.
        if span.name not in sections:
            sections[span.name] = strip_enml(span.content(content))

    return NoteView(note=note, sections=sections, text="" if sections else strip_enml(content))


## Update


@dataclass
class UpdateResult:
    note: Note
    changes: List[str] = field(default_factory=list)

    @property
    def modified(self) -> bool:
        return bool(self.changes)


def update_note(
    store: NoteStore,
    guid: str,
    prepend: Optional[str] = None,
    append: Optional[str] = None,
    section: Optional[str] = None,
    add_tags: Optional[List[str]] = None,
    remove_tags: Optional[List[str]] = None,
    format: Optional[ContentFormat | str] = None,
) -> UpdateResult:
    """
    Modify an existing note: prepend to the top of a section, append to a section
    or to the end of the note, and add or remove tags. New text is converted with
    the given format (plain text by default). The note is written back only if
    something changed.
    """
    if prepend and not section:
        raise MissingInput("Prepending requires a section to specify where to insert")

    content_format = ContentFormat.parse(format or global_settings().default_update_format)
    editor = section_editor()

    note = store.get_note(guid)
    result = UpdateResult(note=note)
    content = note.content

    if prepend:
        content = editor.prepend_to_section(content, section, to_fragment(prepend, content_format))  # type: ignore
        result.changes.append(f"Prepended to top of section: {section}")

    if append:
        if section:
            content = editor.append_to_section(content, section, to_fragment(append, content_format))
            result.changes.append(f"Appended to section: {section}")
        else:
            content = editor.append_to_end(content, to_fragment(append, content_format))
            result.changes.append("Appended to end of note")

    note.content = content

    if add_tags:
        tag_guids = list(note.tag_guids)
        for tag in resolve_tags(store, add_tags):
            if tag.guid not in tag_guids:
                tag_guids.append(tag.guid)
                result.changes.append(f"Added tag: {tag.name}")
        note.tag_guids = tag_guids

    if remove_tags:
        to_remove = find_tags_by_names(store, remove_tags)
        remove_guids = {tag.guid for tag in to_remove}
        for tag in to_remove:
            if tag.guid in note.tag_guids:
                result.changes.append(f"Removed tag: {tag.name}")
        note.tag_guids = [g for g in note.tag_guids if g not in remove_guids]

    if result.modified:
        result.note = store.update_note(note)
        log.info("Updated note %s: %s", guid, "; ".join(result.changes))
    else:
        log.info("No changes made to note %s", guid)

    return result


## Search


@dataclass
class SearchResult:
    total_notes: int
    notes: List[Note] = field(default_factory=list)
    previews: Dict[str, str] = field(default_factory=dict)


def build_search_filter(
    store: NoteStore,
    tag: Optional[str] = None,
    query: Optional[str] = None,
    days: Optional[int] = None,
    sort: NoteSortOrder = NoteSortOrder.updated,
) -> NoteFilter:
    """
    Build a filter for notes with a tag, matching query words, and created within
    the last `days` days, newest first.
    """
    note_filter = NoteFilter(order=sort, ascending=False)

    if tag:
        tags = find_tags_by_names(store, [tag])
        if not tags:
            raise NotFound(f"Tag not found: {repr(tag)}")
        note_filter.tag_guids = [tags[0].guid]

    words = query.strip() if query else ""
    if days:
        words = f"{words} created:day-{days}".strip()
    note_filter.words = words or None

    return note_filter


def search_notes(
    store: NoteStore,
    tag: Optional[str] = None,
    query: Optional[str] = None,
    title: Optional[str] = None,
    days: Optional[int] = None,
    limit: Optional[int] = None,
    sort: NoteSortOrder | str = NoteSortOrder.updated,
    content: bool = False,
) -> SearchResult:
    """
    Find notes by tag, content words, and age. Title filtering happens on the
    returned page. With `content`, each note also gets a plain-text preview.
    """
    settings = global_settings()
    if isinstance(sort, str):
        try:
            sort = NoteSortOrder(sort.strip().lower())
        except ValueError:
            raise InvalidInput(f"Invalid sort order: {repr(sort)}. Use `updated` or `created`")
    limit = limit or settings.default_search_limit
    if limit < 1:
        raise InvalidInput(f"Limit must be positive: {limit}")

    note_filter = build_search_filter(store, tag=tag, query=query, days=days, sort=sort)
    page = store.find_notes_metadata(note_filter, 0, limit)

    notes = page.notes
    if title:
        title_lower = title.lower()
        notes = [note for note in notes if title_lower in note.title.lower()]

    result = SearchResult(total_notes=page.total_notes, notes=notes)

    if content:
        for note in notes:
            full_note = store.get_note(note.guid)  # type: ignore
            result.previews[note.guid] = preview_text(full_note.content, settings.preview_length)  # type: ignore

    return result


## Tags listing


class TagSort(Enum):
    name = "name"
    count = "count"


def list_tags(
    store: NoteStore,
    sort: TagSort | str = TagSort.name,
    name_filter: Optional[str] = None,
    limit: Optional[int] = None,
    counts: bool = False,
) -> List[TagCount]:
    """
    All tags, optionally with note counts (one store call per tag), filtered by
    a name substring, sorted by name or by count (descending), and limited.
    """
    if isinstance(sort, str):
        try:
            sort = TagSort(sort.strip().lower())
        except ValueError:
            raise InvalidInput(f"Invalid sort: {repr(sort)}. Use `name` or `count`")

    with_counts = counts or sort == TagSort.count
    tags = store.list_tags()

    if name_filter:
        filter_lower = name_filter.lower()
        tags = [tag for tag in tags if filter_lower in tag.name.lower()]

    tag_counts = [
        TagCount(
            name=tag.name,
            guid=tag.guid,
            count=store.count_notes_for_tag(tag.guid) if with_counts else 0,
        )
        for tag in tags
    ]

    if sort == TagSort.count:
        tag_counts.sort(key=lambda t: (-t.count, t.name.lower()))
    else:
        tag_counts.sort(key=lambda t: t.name.lower())

    if limit:
        tag_counts = tag_counts[:limit]

    return tag_counts


def verify_auth(store: NoteStore) -> str:
    """
    Check the token by fetching the authenticated user's name.
    """
    return store.get_username()


## Tests


def test_sprint_note_round_trip():
    from enkit.note_store.memory_store import MemoryNoteStore

    store = MemoryNoteStore()
    note = create_note(store, "Sprint 2026-01-20", tags=["weekly", "Alpha"], template="sprint")
    assert note.content.count("<h1>") == 3
    assert len(note.tag_guids) == 2

    # Existing tags are reused case-insensitively.
    again = create_note(store, "Second", content="hi", tags=["WEEKLY"])
    assert again.tag_guids == note.tag_guids[:1]

    result = update_note(store, note.guid, prepend="[ ] New task", section="tasks")  # type: ignore
    assert result.modified
    assert result.changes == ["Prepended to top of section: tasks"]

    view = read_note(store, note.guid, section="Tasks")  # type: ignore
    assert view.sections == {"Tasks": "[ ] New task"}

    view = read_note(store, note.guid)  # type: ignore
    assert list(view.sections) == SPRINT_SECTIONS
    assert view.sections["Links"] == ""


def test_update_edge_cases():
    from enkit.note_store.memory_store import MemoryNoteStore

    store = MemoryNoteStore()
    note = create_note(store, "Plain", content="Just text", format="plain")
    guid: str = note.guid  # type: ignore

    try:
        update_note(store, guid, prepend="x")
        assert False
    except MissingInput:
        pass

    try:
        update_note(store, guid, append="x", section="Nope")
        assert False
    except SectionNotFound as e:
        assert e.available == []

    result = update_note(store, guid, append="Tail & more")
    assert store.get_note(guid).content.endswith("<div>Tail &amp; more</div></en-note>")
    assert result.changes == ["Appended to end of note"]

    assert not update_note(store, guid, remove_tags=["absent"]).modified

    result = update_note(store, guid, add_tags=["new"], remove_tags=["new"])
    assert result.changes == ["Added tag: new", "Removed tag: new"]
    assert store.get_note(guid).tag_guids == []


def test_search_and_list_tags():
    from enkit.note_store.memory_store import MemoryNoteStore

    store = MemoryNoteStore()
    create_note(store, "Auth design", content="Use **JWT** for auth", tags=["ai"])
    create_note(store, "Groceries", content="milk", tags=["home", "ai"])
    create_note(store, "Sprint", template="sprint", tags=["home"])

    result = search_notes(store, query="jwt", days=7)
    assert [n.title for n in result.notes] == ["Auth design"]

    result = search_notes(store, tag="AI", title="groc", content=True)
    assert result.total_notes == 2
    assert [n.title for n in result.notes] == ["Groceries"]
    assert result.previews[result.notes[0].guid] == "milk"  # type: ignore

    try:
        search_notes(store, tag="missing")
        assert False
    except NotFound:
        pass

    tags = list_tags(store, sort="count")
    assert [(t.name, t.count) for t in tags] == [("ai", 2), ("home", 2)]
    assert [t.name for t in list_tags(store, name_filter="HO")] == ["home"]
    assert [t.count for t in list_tags(store)] == [0, 0]
    assert len(list_tags(store, limit=1)) == 1

    assert verify_auth(store) == "local"
