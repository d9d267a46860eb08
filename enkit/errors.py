"""
Unified hierarchy of error types. These inherit from standard errors like
ValueError but are more fine-grained.
"""

from typing import List, Optional, Tuple, Type


class EnkitRuntimeError(ValueError):
    """Base class for enkit runtime errors."""

    pass


class UnexpectedError(EnkitRuntimeError):
    """For unexpected errors or runtime check failures."""

    pass


class ApiResultError(EnkitRuntimeError):
    """Raised when the note service doesn't behave as expected."""

    pass


class SelfExplanatoryError(EnkitRuntimeError):
    """Common errors that arise from 'normal' problems that are largely self-explanatory,
    i.e., no stack trace should be necessary when reporting to the user."""

    pass


class InvalidInput(SelfExplanatoryError):
    """Raised when the wrong kind of input is given to an operation or command."""

    pass


class MissingInput(InvalidInput):
    """Raised when an expected input is missing."""

    pass


class InvalidFormat(InvalidInput):
    """Raised when a content format tag is not recognized."""

    def __init__(self, format_name: str, valid: Optional[List[str]] = None):
        self.format_name = format_name
        valid_str = f" Valid formats are: {', '.join(valid)}" if valid else ""
        super().__init__(f"Invalid content format: {repr(format_name)}.{valid_str}")


class InvalidCommand(InvalidInput):
    """Raised when a command is not valid."""

    pass


class NoMatch(InvalidInput):
    """Raised when a match is not found to a search or lookup."""

    pass


class SectionNotFound(NoMatch):
    """Raised when a named section is not present in a note."""

    def __init__(self, section_name: str, available: Optional[List[str]] = None):
        self.section_name = section_name
        self.available = available or []
        msg = f"Section {repr(section_name)} not found in note"
        if self.available:
            msg += f" (available sections: {', '.join(self.available)})"
        super().__init__(msg)


class NotFound(NoMatch):
    """Raised when a note, tag, or notebook does not exist in the note store."""

    pass


class PermissionDenied(SelfExplanatoryError):
    """Raised when the note store refuses an operation."""

    pass


class AuthExpired(SelfExplanatoryError):
    """Raised when the access token is invalid, revoked, or expired."""

    pass


class SetupError(SelfExplanatoryError):
    """Raised when a package is not installed or something in the environment
    isn't set up right."""

    pass


class ContentError(SelfExplanatoryError):
    """Raised when content is not appropriate for an operation."""

    pass


class MalformedDocument(ContentError):
    """Raised when an ENML document lacks the structure needed for an edit."""

    pass


NONFATAL_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    SelfExplanatoryError,
    FileNotFoundError,
    IOError,
)
"""Exceptions that are not fatal and usually don't merit a full stack trace."""


def is_fatal(exception: Exception) -> bool:
    for e in NONFATAL_EXCEPTIONS:
        if isinstance(exception, e):
            return False
    return True


## Tests


def test_error_hierarchy():
    err = SectionNotFound("Notes", ["Tasks", "Links"])
    assert isinstance(err, NoMatch)
    assert isinstance(err, ValueError)
    assert err.available == ["Tasks", "Links"]
    assert "Tasks, Links" in str(err)
    assert not is_fatal(err)
    assert not is_fatal(MalformedDocument("missing </en-note>"))
    assert is_fatal(UnexpectedError("bad"))
    assert "markdown, plain" in str(InvalidFormat("html", ["markdown", "plain"]))
