"""
End-to-end command tests against an in-memory note store.
"""

from typing import List

from enkit.config.logger import record_console
from enkit.enml.enml_format import ENML_HEADER
from enkit.main import main, run_command
from enkit.note_store.memory_store import MemoryNoteStore
from enkit.note_store.note_store import use_store


def run_recorded(args: List[str]) -> tuple[int, str]:
    with record_console() as console:
        code = run_command(args)
    return code, console.export_text()


def only_guid(store: MemoryNoteStore) -> str:
    assert len(store.notes) == 1
    return next(iter(store.notes))


def test_sprint_workflow():
    store = MemoryNoteStore()
    with use_store(store):
        code, output = run_recorded(
            ["create-note", "--title", "Sprint 1", "--template=sprint", "--tags", "weekly,alpha"]
        )
        assert code == 0
        assert "Note created successfully" in output
        assert "Tags: weekly, alpha" in output
        guid = only_guid(store)

        code, output = run_recorded(
            ["update-note", guid, "--section", "Tasks", "--prepend", "[ ] ship it"]
        )
        assert code == 0
        assert "Prepended to top of section: Tasks" in output

        code, output = run_recorded(
            ["update-note", "--guid", guid, "--section=notes", "--append=**bold** idea", "--format=markdown"]
        )
        assert code == 0
        assert "<strong>bold</strong>" in store.notes[guid].content

        code, output = run_recorded(["read-note", guid, "--section", "tasks"])
        assert code == 0
        assert "## Tasks" in output
        assert "[ ] ship it" in output
        assert "## Links" not in output

        code, output = run_recorded(["read-note", guid])
        assert code == 0
        assert "## Links" in output
        assert "(empty)" in output
        assert "bold idea" in output
        assert "Tags: weekly, alpha" in output

        code, output = run_recorded(["read-note", guid, "--raw"])
        assert code == 0
        assert "<h1>Tasks</h1><div>[ ] ship it</div>" in output


def test_update_errors_leave_note_unchanged():
    store = MemoryNoteStore()
    with use_store(store):
        assert run_recorded(["create-note", "Plain note", "--content=hello"])[0] == 0
        guid = only_guid(store)
        before = store.notes[guid].content

        assert run_recorded(["update-note", guid, "--prepend=x"])[0] == 1
        assert run_recorded(["update-note", guid, "--section=Tasks", "--append=x"])[0] == 1
        assert run_recorded(["update-note", "missing-guid", "--append=x"])[0] == 1
        assert run_recorded(["read-note", guid, "--section=Tasks"])[0] == 1
        assert store.notes[guid].content == before

        code, output = run_recorded(["update-note", guid])
        assert code == 0
        assert "No changes made" in output


def test_search_and_tags():
    store = MemoryNoteStore()
    with use_store(store):
        run_recorded(["create-note", "Auth design", "--content=Use JWT", "--tags=ai"])
        run_recorded(["create-note", "Groceries", "--content=milk", "--tags=ai,home"])

        code, output = run_recorded(["search-notes", "--tag=ai", "--content", "--limit", "5"])
        assert code == 0
        assert "Found 2 notes (showing 2)" in output
        assert "Preview: milk" in output

        code, output = run_recorded(["search-notes", "jwt"])
        assert code == 0
        assert "Auth design" in output
        assert "Groceries" not in output

        assert run_recorded(["search-notes", "--tag=nope"])[0] == 1
        assert run_recorded(["search-notes", "--limit=lots"])[0] == 1

        code, output = run_recorded(["list-tags", "--sort=count"])
        assert code == 0
        assert "    2 | ai" in output
        assert "    1 | home" in output
        assert output.index("| ai") < output.index("| home")

        code, output = run_recorded(["list-tags", "--filter", "HOM"])
        assert code == 0
        assert "Found 1 tag" in output


def test_format_content_needs_no_store():
    code, output = run_recorded(["format-content", "# Hi\n\nline one  \nline two"])
    assert code == 0
    assert "<h1>Hi</h1>" in output
    assert "<br/>" in output
    assert "<en-note>" not in output

    code, output = run_recorded(["format-content", "a < b", "--format=plain", "--document"])
    assert code == 0
    assert output.startswith(ENML_HEADER)
    assert "a &lt; b" in output

    assert run_recorded(["format-content", "x", "--format=html"])[0] == 1
    assert run_recorded(["format-content"])[0] == 1


def test_auth_help_and_unknown_commands():
    with use_store(MemoryNoteStore(username="ada")):
        code, output = run_recorded(["auth-verify"])
        assert code == 0
        assert "Authenticated as: ada" in output

    code, output = run_recorded(["help"])
    assert code == 0
    for name in ["create-note", "read-note", "update-note", "search-notes", "list-tags"]:
        assert name in output

    code, output = run_recorded(["update-note", "--help"])
    assert code == 0
    assert "--add-tags=<value>" in output

    assert run_recorded(["no-such-command"])[0] == 1
    assert run_recorded(["list-tags", "--bogus"])[0] == 1


def test_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.startswith("enkit ")
