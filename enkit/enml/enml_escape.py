"""
Escaping of plain text for safe insertion into ENML.
"""

ENML_LINE_BREAK = "<br/>"

# Ampersand must come first so entities introduced below aren't re-escaped.
_ENML_ESCAPES = [
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
]


def escape_xml_text(text: str) -> str:
    """
    Escape the reserved XML characters in text. Newlines are left alone.
    """
    for char, entity in _ENML_ESCAPES:
        text = text.replace(char, entity)
    return text


def escape_for_enml(text: str) -> str:
    """
    Escape plain text for ENML: reserved characters become entities and every
    line break (`\n`, `\r\n`, or `\r`) becomes a `<br/>`.

    Escaping is not idempotent (an existing `&amp;` becomes `&amp;amp;`), so call
    this exactly once on each raw string.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return escape_xml_text(text).replace("\n", ENML_LINE_BREAK)


## Tests


def test_escape_for_enml():
    assert escape_for_enml('a < b & "c" > d') == "a &lt; b &amp; &quot;c&quot; &gt; d"
    assert escape_for_enml("line 1\nline 2\n") == "line 1<br/>line 2<br/>"
    assert escape_for_enml("it's") == "it's"
    assert escape_for_enml("") == ""

    # Not idempotent: callers must escape once.
    assert escape_for_enml("&amp;") == "&amp;amp;"


def test_escape_plain_properties():
    raw = 'if (a < b && c > "d") {\n  return;\n}\n<script>'
    escaped = escape_for_enml(raw)
    without_entities = (
        escaped.replace("&amp;", "")
        .replace("&lt;", "")
        .replace("&gt;", "")
        .replace("&quot;", "")
        .replace(ENML_LINE_BREAK, "")
    )
    for char in "&<>\"":
        assert char not in without_entities
    assert escaped.count(ENML_LINE_BREAK) == raw.count("\n")
    assert "\n" not in escaped


def test_escape_normalizes_line_endings():
    assert escape_for_enml("a\r\nb\rc\n") == "a<br/>b<br/>c<br/>"
    assert "\r" not in escape_for_enml("x\r\n\r\ny")
