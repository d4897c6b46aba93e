"""In-memory, cursor-based editor for .gitignore-style files."""
import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional, Union

from ..exceptions import OutputPathNotSetError
from .safety import TEXT_ERRORS, ensure_writable, write_text_safely

logger = logging.getLogger(__name__)

LineInput = Union[str, Iterable["LineInput"]]

_LINE_BREAK = re.compile(r"\r\n|\r|\n")

COMMENT_PREFIX = "#"


def flatten_lines(lines: LineInput) -> Iterator[str]:
    """Expand a string or nested iterable of strings into stripped lines.

    Multi-line strings are split on any line terminator. Nested iterables are
    expanded depth-first, so the original relative order is kept.

    Args:
        lines: A string, or an iterable of strings and further iterables

    Yields:
        Individual lines with surrounding whitespace removed
    """
    if isinstance(lines, str):
        for line in _LINE_BREAK.split(lines):
            yield line.strip()
    else:
        for item in lines:
            yield from flatten_lines(item)


def is_protected_line(line: str) -> bool:
    """Blank and comment lines are always inserted, even when repeated."""
    return not line or line.startswith(COMMENT_PREFIX)


class LineBufferEditor:
    """Editable buffer of ignore-file lines with an insertion cursor.

    The buffer holds one entry per line without line terminators. New lines
    go in at the cursor (``pointer``), which advances past them, so repeated
    calls to :meth:`add` keep their order. Patterns already in the buffer are
    not inserted twice; blank lines and ``#`` comments always are.

    Every mutating method returns the editor, so calls can be chained::

        LineBufferEditor(".gitignore").after("vendor/", "node_modules/").save()
    """

    def __init__(
        self,
        file_path: Optional[Union[str, Path]] = None,
        *,
        encoding: str = "utf-8",
        lock_timeout: Optional[float] = None,
    ):
        """Initialize the editor.

        Args:
            file_path: File to edit. Loaded if it exists, and used as the
                output path either way. Must be writable or creatable.
            encoding: Encoding used for reading and writing
            lock_timeout: When set, saves hold a file lock for at most this
                many seconds and replace the file atomically

        Raises:
            PermissionError: If ``file_path`` cannot be written
        """
        self.encoding = encoding
        self.lock_timeout = lock_timeout
        self._lines: list[str] = []
        self._pointer = 0
        self._output_path: Optional[Path] = None

        if file_path is not None:
            if Path(file_path).is_file():
                self.load(file_path)
            self.set_output_path(file_path)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._lines))

    def __contains__(self, value: str) -> bool:
        return self.exists(value)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(lines={len(self._lines)}, "
            f"pointer={self._pointer}, output_path={self._output_path!r})"
        )

    @property
    def pointer(self) -> int:
        """Index at which the next added line is inserted."""
        return self._pointer

    @property
    def output_path(self) -> Optional[Path]:
        return self._output_path

    def load(self, file_path: Union[str, Path]) -> "LineBufferEditor":
        """Replace the buffer with the contents of a file.

        Trailing whitespace is stripped from each line; blank lines are kept.
        Bytes that do not decode are kept as-is and written back unchanged.
        The cursor is moved to the end of the buffer.

        Args:
            file_path: File to read

        Returns:
            The editor

        Raises:
            FileNotFoundError: If ``file_path`` is not an existing file
            OSError: If the file cannot be read
        """
        path = Path(file_path)
        if not path.is_file():
            logger.error(f"Unable to read file at {path}: not a file")
            raise FileNotFoundError(f"Unable to read file at {path}.")

        try:
            with open(path, encoding=self.encoding, errors=TEXT_ERRORS) as f:
                lines = [line.rstrip() for line in f]
        except OSError as e:
            logger.error(f"Unable to read file at {path}: {e}")
            raise

        self._lines = lines
        self._pointer = len(lines)
        logger.info(f"Loaded {len(lines)} lines from {path}")
        return self

    def set_output_path(self, file_path: Union[str, Path]) -> "LineBufferEditor":
        """Redirect where :meth:`save` writes.

        Raises:
            PermissionError: If the file, or the directory it would be
                created in, is not writable
            IsADirectoryError: If ``file_path`` is a directory
        """
        try:
            self._output_path = ensure_writable(file_path)
        except OSError as e:
            logger.error(f"Rejected output path {file_path}: {e}")
            raise

        logger.debug(f"Output path set to {self._output_path}")
        return self

    def to_list(self) -> list[str]:
        """Return a copy of the buffered lines."""
        return list(self._lines)

    def to_text(self) -> str:
        """Return the buffer as it will be written: newline-joined, newline-terminated.

        An empty buffer becomes a single newline, which loads back as one
        blank line.
        """
        return "\n".join(self._lines) + "\n"

    def save(self, file_path: Optional[Union[str, Path]] = None) -> "LineBufferEditor":
        """Write the buffer to the output path, overwriting the file.

        Args:
            file_path: If given, becomes the new output path first

        Returns:
            The editor

        Raises:
            OutputPathNotSetError: If no output path has been set
            PermissionError: If ``file_path`` is given and not writable
            OSError: If writing fails
        """
        if file_path is not None:
            self.set_output_path(file_path)

        if self._output_path is None:
            logger.error("Save requested but no output path is set")
            raise OutputPathNotSetError()

        content = self.to_text()

        try:
            if self.lock_timeout is None:
                with open(
                    self._output_path,
                    "w",
                    encoding=self.encoding,
                    errors=TEXT_ERRORS,
                    newline="",
                ) as f:
                    f.write(content)
            else:
                write_text_safely(
                    self._output_path, content, self.encoding, self.lock_timeout
                )
        except OSError as e:
            logger.error(f"Failed to write file at {self._output_path}: {e}")
            raise OSError(f"Failed to write file at {self._output_path}.") from e

        logger.info(f"Saved {len(self._lines)} lines to {self._output_path}")
        return self

    def find(self, value: str) -> Optional[int]:
        """Return the index of the first line equal to ``value``, ignoring surrounding whitespace."""
        value = value.strip()
        for index, line in enumerate(self._lines):
            if line.strip() == value:
                return index
        return None

    def exists(self, value: str) -> bool:
        """Check whether a line matches ``value`` exactly (no glob matching)."""
        return self.find(value) is not None

    def add(self, lines: LineInput) -> "LineBufferEditor":
        """Insert lines at the cursor and move the cursor past them.

        Patterns that already exist anywhere in the buffer are skipped.
        Blank lines and comments are always inserted.

        Args:
            lines: A line, a multi-line string, or a (nested) iterable of them

        Returns:
            The editor
        """
        inserted = [
            line
            for line in flatten_lines(lines)
            if is_protected_line(line) or not self.exists(line)
        ]

        # A cursor left past the end by a deletion appends
        pointer = min(self._pointer, len(self._lines))
        self._lines[pointer:pointer] = inserted
        self._pointer = pointer + len(inserted)

        logger.debug(f"Inserted {len(inserted)} lines at {pointer}")
        return self

    def before(self, find_value: str, lines: LineInput) -> "LineBufferEditor":
        """Add lines immediately before the first line equal to ``find_value``.

        When nothing matches, the lines are added at the current cursor.
        """
        index = self.find(find_value)
        if index is None:
            logger.warning(f"No line matches {find_value!r}; adding at {self._pointer}")
        else:
            self._pointer = index

        return self.add(lines)

    def after(self, find_value: str, lines: LineInput) -> "LineBufferEditor":
        """Add lines immediately after the first line equal to ``find_value``.

        When nothing matches, the lines are added at the current cursor.
        """
        index = self.find(find_value)
        if index is None:
            logger.warning(f"No line matches {find_value!r}; adding at {self._pointer}")
        else:
            self._pointer = index + 1

        return self.add(lines)

    def rewind(self) -> "LineBufferEditor":
        """Move the cursor to the start of the buffer."""
        self._pointer = 0
        return self

    def seek(self, line: int) -> "LineBufferEditor":
        """Move the cursor to ``line``, clamped to the buffer bounds."""
        self._pointer = max(0, min(len(self._lines), line))
        logger.debug(f"Cursor moved to {self._pointer}")
        return self

    def eof(self) -> "LineBufferEditor":
        """Move the cursor to the end of the buffer."""
        self._pointer = len(self._lines)
        return self

    def delete(self, value: str) -> "LineBufferEditor":
        """Remove the first line equal to ``value``. The cursor is not moved."""
        index = self.find(value)
        if index is not None:
            del self._lines[index]
            logger.debug(f"Deleted line {index}: {value.strip()!r}")
        return self

    def delete_offset(self, offset: int, count: int = 1) -> "LineBufferEditor":
        """Remove the lines at indices ``[offset, offset + count)``.

        Indices outside the buffer are ignored. The cursor is not moved.
        """
        end = offset + count
        before = len(self._lines)
        self._lines = [
            line
            for index, line in enumerate(self._lines)
            if not offset <= index < end
        ]
        logger.debug(f"Deleted {before - len(self._lines)} lines from offset {offset}")
        return self


GitIgnoreWriter = LineBufferEditor
