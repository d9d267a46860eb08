import html

import regex

_tag_re = regex.compile(r"<[^>]*>")

_whitespace_re = regex.compile(r"\s+")


def strip_enml(content: str) -> str:
    """
    Convert ENML (or a fragment) to a single line of plain text: tags become
    spaces, entities are unescaped, and whitespace is collapsed.
    """
    text = _tag_re.sub(" ", content)
    text = html.unescape(text)
    return _whitespace_re.sub(" ", text).strip()


def preview_text(content: str, max_len: int) -> str:
    """
    Plain-text preview of ENML content, truncated to `max_len` characters.
    """
    text = strip_enml(content)
    if len(text) > max_len:
        return text[:max_len].rstrip() + "…"
    return text


## Tests


def test_strip_enml():
    enml = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<!DOCTYPE en-note SYSTEM "http://xml.evernote.com/pub/enml2.dtd">\n'
        "<en-note><h1>Tasks</h1><div>buy&nbsp;milk &amp; eggs</div><div><br/></div></en-note>"
    )
    assert strip_enml(enml) == "Tasks buy milk & eggs"
    assert strip_enml("") == ""


def test_preview_text():
    assert preview_text("<div>short</div>", 10) == "short"
    assert preview_text("<div>a longer line of text</div>", 8) == "a longer…"
