"""
Custom exceptions for ignore file editing.
"""


class GitIgnoreWriterError(Exception):
    """Base exception for editor errors that are not plain I/O failures."""

    pass


class OutputPathNotSetError(GitIgnoreWriterError, RuntimeError):
    """Raised when saving an editor that has no output path."""

    def __init__(self, message: str = "Output file path is not set"):
        super().__init__(message)
