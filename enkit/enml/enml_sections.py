"""
Section editing inside ENML documents.

A section is the region after a heading (by default `<h1>`) whose text is the
section's name, up to the next heading of the same rank, the closing `</en-note>`,
or the end of the string. Sections are never stored: every operation rescans the
document, since any earlier offsets are invalidated by edits.

Documents are treated as flat strings and scanned with regular expressions. This
works because notes are shallow (one wrapper, a flat run of headings and blocks)
and keeps everything outside an insertion point byte-identical. The scanning is
kept behind the `SectionEditor` interface so a tree-based editor can replace it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import cache
from typing import List, Optional

import regex

from enkit.config.logger import get_logger
from enkit.config.settings import global_settings
from enkit.enml.enml_format import ENML_CLOSE
from enkit.enml.enml_text import strip_enml
from enkit.errors import MalformedDocument, SectionNotFound

log = get_logger(__name__)


BLOCK_TEMPLATE = "<div>{}</div>"
"""Container for each inserted fragment."""


@dataclass(frozen=True)
class SectionSpan:
    """
    Character offsets of a section in a document. `start` is just after the heading's
    closing tag and `end` is just before whatever ends the section.
    """

    name: str
    heading_start: int
    start: int
    end: int

    def content(self, doc: str) -> str:
        return doc[self.start : self.end]


def _canon_name(name: str) -> str:
    return name.strip().casefold()


def wrap_block(fragment: str) -> str:
    return BLOCK_TEMPLATE.format(fragment)


class SectionEditor(ABC):
    """
    Locates named sections in a document and inserts fragments at section
    boundaries. All operations are pure: they return a new string and raise
    without producing partial edits.
    """

    @abstractmethod
    def list_sections(self, doc: str) -> List[SectionSpan]:
        """All sections of the document, in document order."""

    @abstractmethod
    def end_of_body(self, doc: str) -> Optional[int]:
        """Offset just before the root wrapper's closing tag, if present."""

    def find_section(self, doc: str, name: str) -> Optional[SectionSpan]:
        """
        First section whose heading text equals `name`, ignoring case and surrounding
        whitespace. Returns None if there is no such section.
        """
        target = _canon_name(name)
        for span in self.list_sections(doc):
            if _canon_name(span.name) == target:
                return span
        return None

    def section_names(self, doc: str) -> List[str]:
        return [span.name for span in self.list_sections(doc)]

    def require_section(self, doc: str, name: str) -> SectionSpan:
        span = self.find_section(doc, name)
        if not span:
            raise SectionNotFound(name, self.section_names(doc))
        return span

    def insert_at(self, doc: str, offset: int, fragment: str) -> str:
        """
        Insert a fragment, wrapped in a block container, at a character offset.
        """
        if not 0 <= offset <= len(doc):
            raise ValueError(f"Insertion offset out of range: {offset} (length {len(doc)})")
        return doc[:offset] + wrap_block(fragment) + doc[offset:]

    def prepend_to_section(self, doc: str, name: str, fragment: str) -> str:
        """
        Insert a fragment at the top of a section, right after its heading.
        """
        span = self.require_section(doc, name)
        log.debug("Prepending to section %r at offset %s", span.name, span.start)
        return self.insert_at(doc, span.start, fragment)

    def append_to_section(self, doc: str, name: str, fragment: str) -> str:
        """
        Insert a fragment at the bottom of a section, after any existing content and
        before the next heading or the end of the note.
        """
        span = self.require_section(doc, name)
        log.debug("Appending to section %r at offset %s", span.name, span.end)
        return self.insert_at(doc, span.end, fragment)

    def append_to_end(self, doc: str, fragment: str) -> str:
        """
        Insert a fragment at the end of the note body, ignoring sections.
        """
        offset = self.end_of_body(doc)
        if offset is None:
            raise MalformedDocument(f"Invalid ENML: missing {ENML_CLOSE} tag")
        return self.insert_at(doc, offset, fragment)


class RegexSectionEditor(SectionEditor):
    """
    Section editor that scans the document string with regular expressions. Only
    headings of the given level divide sections, so lower-level headings inside a
    section are part of its content.
    """

    def __init__(self, level: int = 1):
        if not 1 <= level <= 6:
            raise ValueError(f"Heading level must be 1 to 6: {level}")
        self.level = level
        self.heading_re = regex.compile(
            rf"<h{level}\b[^>]*>(.*?)</h{level}\s*>", regex.IGNORECASE | regex.DOTALL
        )
        self.heading_open_re = regex.compile(rf"<h{level}\b[^>]*>", regex.IGNORECASE)
        self.close_re = regex.compile(regex.escape(ENML_CLOSE), regex.IGNORECASE)

    def _section_end(self, doc: str, start: int) -> int:
        next_heading = self.heading_open_re.search(doc, start)
        if next_heading:
            return next_heading.start()
        close = self.close_re.search(doc, start)
        if close:
            return close.start()
        return len(doc)

    def list_sections(self, doc: str) -> List[SectionSpan]:
        return [
            SectionSpan(
                name=strip_enml(match.group(1)),
                heading_start=match.start(),
                start=match.end(),
                end=self._section_end(doc, match.end()),
            )
            for match in self.heading_re.finditer(doc)
        ]

    def end_of_body(self, doc: str) -> Optional[int]:
        last = None
        for last in self.close_re.finditer(doc):
            pass
        return last.start() if last else None


@cache
def _editor_for_level(level: int) -> SectionEditor:
    return RegexSectionEditor(level)


def section_editor(level: Optional[int] = None) -> SectionEditor:
    """
    The shared section editor for a heading level (default from settings, read on
    each call).
    """
    return _editor_for_level(level or global_settings().section_heading_level)


def find_section(doc: str, name: str) -> Optional[SectionSpan]:
    return section_editor().find_section(doc, name)


def list_sections(doc: str) -> List[SectionSpan]:
    return section_editor().list_sections(doc)


def prepend_to_section(doc: str, name: str, fragment: str) -> str:
    return section_editor().prepend_to_section(doc, name, fragment)


def append_to_section(doc: str, name: str, fragment: str) -> str:
    return section_editor().append_to_section(doc, name, fragment)


def append_to_end(doc: str, fragment: str) -> str:
    return section_editor().append_to_end(doc, fragment)


def extract_section_text(doc: str, name: str) -> Optional[str]:
    """
    Plain text of a section, or None if the section isn't present.
    """
    span = find_section(doc, name)
    if not span:
        return None
    return strip_enml(span.content(doc))


## Tests

_sprint_doc = (
    "<en-note><h1>Tasks</h1><div><br/></div><h1>Notes</h1><div><br/></div></en-note>"
)


def test_append_to_section_scenario():
    result = append_to_section(_sprint_doc, "Tasks", "buy milk")
    assert result == (
        "<en-note><h1>Tasks</h1><div><br/></div><div>buy milk</div>"
        "<h1>Notes</h1><div><br/></div></en-note>"
    )


def test_find_section_spans():
    span = find_section(_sprint_doc, "  tasks ")
    assert span
    assert span.name == "Tasks"
    assert _sprint_doc[span.heading_start : span.start] == "<h1>Tasks</h1>"
    assert span.content(_sprint_doc) == "<div><br/></div>"

    last = find_section(_sprint_doc, "NOTES")
    assert last
    assert _sprint_doc[last.end :] == "</en-note>"

    assert find_section(_sprint_doc, "Links") is None


def test_section_end_without_wrapper():
    doc = "<h1>Only</h1><div>text</div>"
    span = find_section(doc, "only")
    assert span and span.end == len(doc)


def test_heading_with_attributes_and_markup():
    doc = '<en-note><h1 style="color: red;"><span>Links</span></h1><div>a</div></en-note>'
    span = find_section(doc, "links")
    assert span and span.content(doc) == "<div>a</div>"


def test_lower_headings_stay_in_section():
    doc = "<en-note><h1>Notes</h1><h2>Detail</h2><div>x</div><h1>End</h1></en-note>"
    span = find_section(doc, "Notes")
    assert span and span.content(doc) == "<h2>Detail</h2><div>x</div>"

    result = append_to_section(doc, "Notes", "y")
    assert "<div>x</div><div>y</div><h1>End</h1>" in result


def test_duplicate_names_resolve_to_first():
    doc = "<en-note><h1>Notes</h1><div>1</div><h1>notes</h1><div>2</div></en-note>"
    span = find_section(doc, "Notes")
    assert span and span.content(doc) == "<div>1</div>"
    assert span.end == doc.index("<h1>notes</h1>")


def test_prepend_then_append_on_empty_section():
    doc = "<en-note><h1>Tasks</h1><h1>Notes</h1></en-note>"
    doc = prepend_to_section(doc, "Tasks", "first")
    doc = append_to_section(doc, "Tasks", "last")
    assert doc == "<en-note><h1>Tasks</h1><div>first</div><div>last</div><h1>Notes</h1></en-note>"


def test_prepend_goes_before_existing_content():
    result = prepend_to_section(_sprint_doc, "Notes", "top")
    assert "<h1>Notes</h1><div>top</div><div><br/></div></en-note>" in result


def test_round_trip_append():
    result = append_to_section(_sprint_doc, "Notes", "a &amp; b")
    span = find_section(result, "Notes")
    assert span
    assert span.content(result).endswith("<div>a &amp; b</div>")


def test_untouched_regions_are_identical():
    doc = "<?xml version=\"1.0\"?>\n<en-note>\n<h1>A</h1>\n<p>one</p>\n<h1>B</h1>\n<p>two</p>\n</en-note>"
    result = append_to_section(doc, "A", "new")
    offset = find_section(doc, "A").end  # type: ignore
    assert result[:offset] == doc[:offset]
    assert result[offset + len("<div>new</div>") :] == doc[offset:]


def test_section_not_found():
    try:
        append_to_section(_sprint_doc, "Links", "x")
        assert False
    except SectionNotFound as e:
        assert e.available == ["Tasks", "Notes"]


def test_append_to_end():
    doc = "<en-note><div>a</div></en-note>"
    assert append_to_end(doc, "b") == "<en-note><div>a</div><div>b</div></en-note>"

    malformed = "<en-note><div>a</div>"
    try:
        append_to_end(malformed, "b")
        assert False
    except MalformedDocument:
        pass
    assert malformed == "<en-note><div>a</div>"


def test_extract_section_text():
    doc = "<en-note><h1>Tasks</h1><div>buy milk</div><div>call &amp; email</div><h1>Notes</h1></en-note>"
    assert extract_section_text(doc, "tasks") == "buy milk call & email"
    assert extract_section_text(doc, "Notes") == ""
    assert extract_section_text(doc, "Links") is None


def test_heading_level_setting_applies_after_first_use():
    from enkit.config.settings import update_global_settings

    doc = "<en-note><h2>Tasks</h2><div>a</div><h2>Notes</h2></en-note>"
    assert find_section(doc, "Tasks") is None

    with update_global_settings() as settings:
        original = settings.section_heading_level
        settings.section_heading_level = 2
    try:
        span = find_section(doc, "Tasks")
        assert span and span.content(doc) == "<div>a</div>"
        assert section_editor(1).find_section(doc, "Tasks") is None
    finally:
        with update_global_settings() as settings:
            settings.section_heading_level = original

    assert find_section(doc, "Tasks") is None
