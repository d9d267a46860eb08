"""
Conversion of markdown, plain text, or raw ENML into ENML.

ENML (Evernote Markup Language) is a strict subset of XHTML:
- All tags must be self-closing or balanced (`<br/>`, not `<br>`).
- Only inline styles are allowed (no `class` attributes, no `<style>` blocks).
- The root element is `<en-note>`, not `<html>`/`<body>`.
- Active elements (script, form, iframe, embed, object, ...) are forbidden.
"""

import threading
from enum import Enum
from typing import Any

import marko
from marko import block, inline
from marko.helpers import load_extension, MarkoExtension

from enkit.config.logger import get_logger
from enkit.enml.enml_escape import ENML_LINE_BREAK, escape_for_enml, escape_xml_text
from enkit.errors import InvalidFormat

log = get_logger(__name__)


class ContentFormat(Enum):
    """How to interpret an input content string."""

    markdown = "markdown"
    plain = "plain"
    enml = "enml"

    @classmethod
    def parse(cls, value: "str | ContentFormat") -> "ContentFormat":
        if isinstance(value, ContentFormat):
            return value
        try:
            return cls[str(value).strip().lower()]
        except KeyError:
            raise InvalidFormat(str(value), [f.value for f in cls])

    def __str__(self):
        return self.value


ENML_DOCTYPE = '<!DOCTYPE en-note SYSTEM "http://xml.evernote.com/pub/enml2.dtd">'

ENML_HEADER = f'<?xml version="1.0" encoding="UTF-8"?>\n{ENML_DOCTYPE}'

ENML_OPEN = "<en-note>"

ENML_CLOSE = "</en-note>"

TABLE_CELL_STYLE = "border: 1px solid #ccc; padding: 8px 12px;"

TABLE_HEADER_STYLE = " background-color: #f5f5f5; font-weight: bold;"


def wrap_enml(body: str) -> str:
    """
    Wrap body markup in a complete ENML document.
    """
    return f"{ENML_HEADER}\n{ENML_OPEN}\n{body}\n{ENML_CLOSE}"


def _plain_text(element: Any) -> str:
    if isinstance(element, str):
        return element
    children = getattr(element, "children", None)
    if isinstance(children, str):
        return children
    elif children:
        return "".join(_plain_text(child) for child in children)
    else:
        return ""


class EnmlRendererMixin:
    """
    Overrides on top of the GFM HTML renderer so output is valid ENML: void
    elements are self-closing, tables use inline styles, no `class` attributes,
    and raw HTML in the source is shown as text rather than passed through.
    """

    def render_line_break(self, element: inline.LineBreak) -> str:
        # Soft breaks become hard breaks too, so text keeps its line structure.
        return f"{ENML_LINE_BREAK}\n"

    def render_thematic_break(self, element: block.ThematicBreak) -> str:
        return "<hr/>\n"

    def render_image(self, element: inline.Image) -> str:
        title = f' title="{escape_xml_text(element.title)}"' if element.title else ""
        alt = escape_xml_text(_plain_text(element))
        url = self.escape_url(element.dest)  # type: ignore
        return f'<img src="{url}" alt="{alt}"{title}/>'

    def render_fenced_code(self, element: block.FencedCode) -> str:
        code = _plain_text(element.children[0])
        return f"<pre><code>{escape_xml_text(code)}</code></pre>\n"

    def render_code_block(self, element: block.CodeBlock) -> str:
        return self.render_fenced_code(element)

    def render_html_block(self, element: block.HTMLBlock) -> str:
        return f"<p>{escape_for_enml(element.body.strip())}</p>\n"

    def render_inline_html(self, element: inline.InlineHTML) -> str:
        return escape_xml_text(_plain_text(element))

    def render_paragraph(self, element: block.Paragraph) -> str:
        children = self.render_children(element)  # type: ignore
        # GFM task list items carry a `checked` flag.
        checked = getattr(element, "checked", None)
        if checked is not None:
            children = f'<en-todo checked="{str(bool(checked)).lower()}"/>{children.lstrip()}'
        if element._tight:  # type: ignore
            return children
        else:
            return f"<p>{children}</p>\n"

    def render_table_cell(self, element: Any) -> str:
        tag = "th" if element.header else "td"
        style = TABLE_CELL_STYLE
        if element.header:
            style += TABLE_HEADER_STYLE
        if element.align:
            style += f" text-align: {element.align};"
        elif element.header:
            style += " text-align: left;"
        children = self.render_children(element)  # type: ignore
        return f'<{tag} style="{style}">{children}</{tag}>\n'


def _enml_extension() -> MarkoExtension:
    gfm = load_extension("gfm")
    return MarkoExtension(
        parser_mixins=list(gfm.parser_mixins),
        renderer_mixins=[EnmlRendererMixin, *gfm.renderer_mixins],
        elements=list(gfm.elements),
    )


_tl_markdown = threading.local()


def _enml_markdown() -> marko.Markdown:
    """
    A configured markdown converter for the current thread.
    """
    converter = getattr(_tl_markdown, "converter", None)
    if converter is None:
        converter = marko.Markdown(extensions=[_enml_extension()])
        _tl_markdown.converter = converter
    return converter


def markdown_to_enml_body(markdown: str) -> str:
    """
    Convert markdown (GFM: tables, strikethrough, task lists, autolinks) to ENML
    body markup. Never raises on malformed markdown; raw HTML in the input is
    escaped and shown as text.
    """
    body = _enml_markdown().convert(markdown)
    log.debug("Converted %s chars of markdown to %s chars of ENML", len(markdown), len(body))
    return body


def to_fragment(content: str, format: ContentFormat | str = ContentFormat.markdown) -> str:
    """
    Convert content to an ENML body fragment (no envelope). This is the low-level
    conversion used both for new documents and for insertion into sections.

    With `enml` the content is passed through unchanged and the caller is
    responsible for its validity.
    """
    format = ContentFormat.parse(format)
    match format:
        case ContentFormat.markdown:
            return markdown_to_enml_body(content)
        case ContentFormat.plain:
            return escape_for_enml(content)
        case ContentFormat.enml:
            return content


def to_document(content: str, format: ContentFormat | str = ContentFormat.markdown) -> str:
    """
    Convert content to a complete ENML document with XML declaration, doctype, and
    `<en-note>` wrapper. With `enml` the content is assumed to already be a complete
    document and is returned unchanged.
    """
    format = ContentFormat.parse(format)
    if format == ContentFormat.enml:
        return content
    return wrap_enml(to_fragment(content, format))


## Tests

_DISALLOWED_TAGS = ["script", "style", "form", "iframe", "object", "embed", "applet", "input"]


def _assert_enml_safe(enml: str):
    lower = enml.lower()
    for tag in _DISALLOWED_TAGS:
        assert f"<{tag}" not in lower, f"found <{tag} in: {enml}"
    assert "<br>" not in lower and "<br />" not in lower
    assert "<hr>" not in lower and "<hr />" not in lower
    assert "class=" not in lower


def test_content_format_parse():
    assert ContentFormat.parse("Markdown") == ContentFormat.markdown
    assert ContentFormat.parse(ContentFormat.plain) == ContentFormat.plain
    try:
        ContentFormat.parse("html")
        assert False
    except InvalidFormat as e:
        assert "html" in str(e)


def test_plain_fragment():
    assert to_fragment("a & b\n<c>", "plain") == "a &amp; b<br/>&lt;c&gt;"


def test_enml_passthrough():
    raw = "<div>Not validated <b>at all</div>"
    assert to_fragment(raw, ContentFormat.enml) == raw
    assert to_document(raw, "enml") == raw


def test_markdown_basics():
    body = to_fragment("# Decisions\n\n- Use **JWT** for *auth*\n- ~~Sessions~~\n")
    assert "<h1>Decisions</h1>" in body
    assert "<strong>JWT</strong>" in body
    assert "<em>auth</em>" in body
    assert "<del>Sessions</del>" in body
    assert "<ul>" in body and "</ul>" in body
    _assert_enml_safe(body)


def test_markdown_self_closing():
    body = to_fragment("first line\nsecond line\n\n---\n\n![Logo](https://example.com/a.png \"The logo\")")
    assert "first line<br/>" in body
    assert "<hr/>" in body
    assert '<img src="https://example.com/a.png" alt="Logo" title="The logo"/>' in body
    _assert_enml_safe(body)

    body = to_fragment("![](https://example.com/b.png)")
    assert '<img src="https://example.com/b.png" alt=""/>' in body


def test_markdown_image_urls_are_sanitized():
    body = to_fragment("![x](javascript:alert(1))")
    assert "javascript:" not in body
    assert '<img src="#harmful-link" alt="x"/>' in body
    assert to_fragment("[y](javascript:alert(1))").count("#harmful-link") == 1

    body = to_fragment("![s](<a b.png>)")
    assert '<img src="a%20b.png" alt="s"/>' in body


def test_markdown_table_styles():
    md = "| Name | Qty |\n|:-----|----:|\n| Milk | 2 |\n"
    body = to_fragment(md)
    assert (
        '<th style="border: 1px solid #ccc; padding: 8px 12px; '
        'background-color: #f5f5f5; font-weight: bold; text-align: left;">Name</th>'
    ) in body
    assert (
        '<th style="border: 1px solid #ccc; padding: 8px 12px; '
        'background-color: #f5f5f5; font-weight: bold; text-align: right;">Qty</th>'
    ) in body
    assert '<td style="border: 1px solid #ccc; padding: 8px 12px; text-align: right;">2</td>' in body
    assert "align=" not in body
    _assert_enml_safe(body)


def test_markdown_unaligned_table():
    body = to_fragment("| A | B |\n|---|---|\n| 1 | 2 |\n")
    assert '<td style="border: 1px solid #ccc; padding: 8px 12px;">1</td>' in body
    assert "text-align: left;\">A</th>" in body


def test_markdown_code_has_no_class():
    body = to_fragment("```python\nif a < b:\n    pass\n```\n")
    assert "<pre><code>if a &lt; b:\n    pass\n</code></pre>" in body
    _assert_enml_safe(body)


def test_markdown_raw_html_is_escaped():
    md = (
        "<script>alert('x')</script>\n\n"
        "Text with <iframe src=\"https://evil.example\"></iframe> inline.\n\n"
        "<form action=\"/x\"><input type=\"text\"></form>\n\n"
        "<style>p { color: red }</style>\n"
    )
    body = to_fragment(md)
    _assert_enml_safe(body)
    assert "&lt;script&gt;" in body
    assert "&lt;iframe" in body


def test_markdown_task_list():
    body = to_fragment("- [ ] Open task\n- [x] Done task\n")
    assert '<en-todo checked="false"/>Open task' in body
    assert '<en-todo checked="true"/>Done task' in body
    _assert_enml_safe(body)


def test_markdown_malformed_does_not_raise():
    for md in ["**unclosed", "| a |\n|--", "[link](", "```\nno close", "", "<div"]:
        _assert_enml_safe(to_fragment(md))


def test_to_document():
    for fmt in [ContentFormat.markdown, ContentFormat.plain]:
        doc = to_document("Hello\n\nworld", fmt)
        assert doc.startswith(ENML_HEADER)
        assert doc.count(ENML_OPEN) == 1
        assert doc.count(ENML_CLOSE) == 1
        assert doc.endswith(ENML_CLOSE)

    assert to_document("", "plain") == f"{ENML_HEADER}\n<en-note>\n\n</en-note>"
