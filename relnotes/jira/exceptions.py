"""
Errors raised while turning a Jira export into a release session.
"""


class ReleaseNotesError(Exception):
    """Base class for all relnotes errors."""


class ReadFailure(ReleaseNotesError):
    """The export file could not be read at all."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not read file '{path}': {reason}")


class MalformedInput(ReleaseNotesError):
    """The export was read but holds no usable issue table."""


class UnrecognizedDate(ReleaseNotesError, ValueError):
    """A date picked as a cutoff could not be parsed."""

    def __init__(self, text):
        self.text = text
        super().__init__(
            f"Date format not recognized: '{text}'. "
            "Make sure the file uses the standard Jira date format."
        )
