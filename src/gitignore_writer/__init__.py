"""Cursor-based editing of .gitignore-style files."""

from .core import (
    GitIgnoreWriter,
    LineBufferEditor,
    SafeFileOperation,
    safe_edit_context,
)
from .exceptions import GitIgnoreWriterError, OutputPathNotSetError

__version__ = "0.1.0"

__all__ = [
    # Editor
    "LineBufferEditor",
    "GitIgnoreWriter",
    # Safety
    "SafeFileOperation",
    "safe_edit_context",
    # Errors
    "GitIgnoreWriterError",
    "OutputPathNotSetError",
]
