"""Core editing modules."""

from .buffer_editor import (
    GitIgnoreWriter,
    LineBufferEditor,
    flatten_lines,
    is_protected_line,
)
from .safety import (
    SafeFileOperation,
    ensure_writable,
    is_writable,
    safe_edit_context,
    write_text_safely,
)

__all__ = [
    # Buffer editing
    'LineBufferEditor',
    'GitIgnoreWriter',
    'flatten_lines',
    'is_protected_line',

    # Safety mechanisms
    'SafeFileOperation',
    'safe_edit_context',
    'write_text_safely',
    'is_writable',
    'ensure_writable',
]
