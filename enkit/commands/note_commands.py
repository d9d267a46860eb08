"""
Commands for working with notes. Each command calls the note operations against
the current note store and prints results to the console.
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional

from enkit.commands.command_registry import enkit_command
from enkit.config.logger import get_logger
from enkit.config.text_styles import COLOR_HINT, HRULE_SHORT
from enkit.enml.enml_format import to_document, to_fragment
from enkit.errors import MissingInput
from enkit.model.notes_model import Note
from enkit.note_store.note_store import current_store, NoteStore
from enkit.notes import note_ops
from enkit.shell.shell_output import (
    cprint,
    print_heading,
    print_hint,
    print_hrule,
    print_key_value,
    print_raw,
    print_result,
    print_status,
    print_success_or_failure,
    Wrap,
)
from enkit.util.format_utils import fmt_count_items, fmt_lines, fmt_time

log = get_logger(__name__)


def _tag_names(store: NoteStore, tag_guids: List[str]) -> List[str]:
    if not tag_guids:
        return []
    names: Dict[str, str] = {tag.guid: tag.name for tag in store.list_tags()}
    return [names.get(guid, guid) for guid in tag_guids]


def _print_note_header(note: Note, tag_names: Optional[List[str]] = None):
    print_key_value("Title", note.title)
    print_key_value("GUID", note.guid)
    print_key_value("Created", fmt_time(note.created))
    print_key_value("Updated", fmt_time(note.updated))
    if tag_names:
        print_key_value("Tags", ", ".join(tag_names))


def _read_input(value: Optional[str], file: Optional[str]) -> Optional[str]:
    """
    Content from an option value, a file, or stdin (`-`).
    """
    if file:
        return sys.stdin.read() if file == "-" else Path(file).read_text(encoding="utf-8")
    if value == "-":
        return sys.stdin.read()
    return value


@enkit_command
def create_note(
    title: Optional[str] = None,
    content: Optional[str] = None,
    format: Optional[str] = None,
    tags: Optional[str] = None,
    notebook: Optional[str] = None,
    template: Optional[str] = None,
    file: Optional[str] = None,
) -> None:
    """
    Create a new note. Content is markdown by default (use `--format=plain` or
    `--format=enml` otherwise). Tags are comma-separated and created if they don't
    exist. `--template=sprint` starts the note with Tasks, Links, and Notes sections.
    Content can also be read from `--file` (or `-` for stdin).
    """
    if not title:
        raise MissingInput("A title is required (`--title`)")

    store = current_store()
    tag_list = note_ops.parse_list(tags)
    note = note_ops.create_note(
        store,
        title,
        content=_read_input(content, file),
        format=format,
        tags=tag_list,
        notebook=notebook,
        template=template,
    )

    print_success_or_failure(True, "Note created successfully")
    print_key_value("Title", note.title)
    print_key_value("GUID", note.guid)
    if tag_list:
        print_key_value("Tags", ", ".join(tag_list))


@enkit_command
def read_note(guid: Optional[str] = None, section: Optional[str] = None, raw: bool = False) -> None:
    """
    Show a note. Prints the text of each section (top-level headings divide a note
    into sections), or of one section with `--section`, or the raw ENML with `--raw`.
    """
    if not guid:
        raise MissingInput("A note GUID is required (`--guid`)")

    store = current_store()

    if raw:
        note = store.get_note(guid)
        _print_note_header(note)
        print_hrule()
        print_raw(note.content)
        return

    view = note_ops.read_note(store, guid, section=section)
    _print_note_header(view.note, _tag_names(store, view.note.tag_guids))
    print_hrule()

    if view.sections:
        for name, text in view.sections.items():
            print_heading(f"## {name}")
            cprint(text or "(empty)", text_wrap=Wrap.WRAP)
            if not section:
                cprint(HRULE_SHORT, text_wrap=Wrap.NONE, color=COLOR_HINT)
    else:
        print_heading("Content")
        cprint(view.text or "(empty)", text_wrap=Wrap.WRAP)


@enkit_command
def update_note(
    guid: Optional[str] = None,
    prepend: Optional[str] = None,
    append: Optional[str] = None,
    section: Optional[str] = None,
    add_tags: Optional[str] = None,
    remove_tags: Optional[str] = None,
    format: Optional[str] = None,
) -> None:
    """
    Update a note. `--prepend` adds text at the top of a `--section`; `--append`
    adds text at the bottom of a section, or at the end of the note if no section
    is given. `--add-tags` and `--remove-tags` take comma-separated names. New text
    is plain by default (use `--format=markdown` for formatted text).
    """
    if not guid:
        raise MissingInput("A note GUID is required (`--guid`)")

    result = note_ops.update_note(
        current_store(),
        guid,
        prepend=_read_input(prepend, None),
        append=_read_input(append, None),
        section=section,
        add_tags=note_ops.parse_list(add_tags),
        remove_tags=note_ops.parse_list(remove_tags),
        format=format,
    )

    for change in result.changes:
        print_success_or_failure(True, change)

    if result.modified:
        print_result(f"Note updated: {result.note.title}")
    else:
        print_status("No changes made")


@enkit_command
def search_notes(
    query: Optional[str] = None,
    tag: Optional[str] = None,
    title: Optional[str] = None,
    days: Optional[int] = None,
    limit: Optional[int] = None,
    sort: str = "updated",
    content: bool = False,
) -> None:
    """
    Search notes by content words (`--query`), tag, title substring, and age in
    days. Results are sorted by `updated` (default) or `created`, newest first.
    With `--content`, shows a plain-text preview of each note.
    """
    store = current_store()

    if tag:
        print_status(f"Searching notes with tag: {tag}")
    if query:
        print_status(f"Searching for: {query!r}")
    if days:
        print_status(f"Filtering to last {fmt_count_items(days, 'day')}")

    result = note_ops.search_notes(
        store,
        tag=tag,
        query=query,
        title=title,
        days=days,
        limit=limit,
        sort=sort,
        content=content,
    )

    print_result(
        f"Found {fmt_count_items(result.total_notes, 'note')} (showing {len(result.notes)})"
    )
    if title:
        print_status(f"Filtered to {len(result.notes)} matching title: {title!r}")
    print_hrule()

    for note in result.notes:
        cprint()
        _print_note_header(note)
        if note.guid in result.previews:
            print_key_value("Preview", result.previews[note.guid])
        cprint(HRULE_SHORT, text_wrap=Wrap.NONE, color=COLOR_HINT)

    if not result.notes:
        print_hint("No notes found matching your criteria.")


@enkit_command
def list_tags(
    filter: Optional[str] = None,
    sort: str = "name",
    limit: Optional[int] = None,
    counts: bool = False,
) -> None:
    """
    List tags, optionally with note counts (`--counts`, slower: one query per tag),
    filtered by a name substring (`--filter`), sorted by `name` or `count`, and
    limited.
    """
    tag_counts = note_ops.list_tags(
        current_store(), sort=sort, name_filter=filter, limit=limit, counts=counts
    )
    show_counts = counts or sort.strip().lower() == "count"

    print_result(f"Found {fmt_count_items(len(tag_counts), 'tag')}")
    cprint()
    if show_counts:
        cprint("Count | Tag Name", text_wrap=Wrap.NONE)
        print_hrule()
        for tag in tag_counts:
            cprint(f"{tag.count:5d} | {tag.name}", text_wrap=Wrap.NONE)
    else:
        cprint("Tag Name", text_wrap=Wrap.NONE)
        print_hrule()
        cprint(fmt_lines((tag.name for tag in tag_counts), prefix=""), text_wrap=Wrap.NONE)


@enkit_command
def auth_verify() -> None:
    """
    Check that the access token (EVERNOTE_TOKEN) is valid.
    """
    print_status("Verifying Evernote token...")
    username = note_ops.verify_auth(current_store())
    print_success_or_failure(True, "Token is valid")
    print_key_value("Authenticated as", username)


@enkit_command
def format_content(
    content: Optional[str] = None,
    format: str = "markdown",
    document: bool = False,
    file: Optional[str] = None,
) -> None:
    """
    Convert markdown or plain text to ENML locally and print it, without contacting
    the note store. With `--document`, prints a complete ENML document instead of a
    body fragment. Content can also be read from `--file` (or `-` for stdin).
    """
    text = _read_input(content, file)
    if text is None:
        raise MissingInput("Content is required (as an argument, `--file`, or `-` for stdin)")

    print_raw(to_document(text, format) if document else to_fragment(text, format))
