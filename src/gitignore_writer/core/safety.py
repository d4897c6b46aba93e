"""Writability checks and locked, atomic writes for ignore files."""
import hashlib
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

from filelock import FileLock

logger = logging.getLogger(__name__)

# Undecodable bytes map to lone surrogates and back, so files round-trip unchanged
TEXT_ERRORS = "surrogateescape"


def is_writable(file_path: Union[str, Path]) -> bool:
    """Check whether a file can be written or created.

    An existing file must itself be writable. A path that does not exist yet
    is writable when its parent directory is, so the file can be created.
    Directories are never writable targets.

    Args:
        file_path: Path to probe

    Returns:
        True if a save to this path is expected to succeed
    """
    path = Path(file_path)

    if path.is_dir():
        return False
    if path.exists():
        return os.access(path, os.W_OK)
    return os.access(path.parent, os.W_OK)


def ensure_writable(file_path: Union[str, Path]) -> Path:
    """Return ``file_path`` as a Path, or raise if it cannot be written.

    Raises:
        IsADirectoryError: If the path is an existing directory
        PermissionError: If the file (or its parent directory) is not writable
    """
    path = Path(file_path)

    if path.is_dir():
        raise IsADirectoryError(f"Unwritable file at {path}: is a directory.")
    if not is_writable(path):
        raise PermissionError(f"Unwritable file at {path}.")

    return path


def lock_path_for(file_path: Union[str, Path]) -> Path:
    """Return the lock file guarding ``file_path``.

    Locks live in the system temp directory, keyed by the resolved target
    path, so no lock file is left next to the edited file.
    """
    digest = hashlib.sha1(str(Path(file_path).resolve()).encode()).hexdigest()
    return Path(tempfile.gettempdir()) / f"gitignore-writer-{digest}.lock"


class SafeFileOperation:
    """Context manager holding a file lock while a replacement is prepared."""

    def __init__(self, file_path: Union[str, Path], timeout: float = 30):
        """Initialize safe file operation.

        Args:
            file_path: Path to the file to operate on
            timeout: Lock timeout in seconds
        """
        self.file_path = Path(file_path)
        self.timeout = timeout
        self.lock_path = lock_path_for(self.file_path)
        self.temp_path: Optional[Path] = None
        self.lock: Optional[FileLock] = None

    def __enter__(self):
        self.lock = FileLock(self.lock_path, timeout=self.timeout)

        try:
            self.lock.acquire()
            logger.debug(f"Acquired lock for {self.file_path}")
        except Exception as e:
            logger.error(f"Failed to acquire lock for {self.file_path}: {e}")
            raise

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None:
                logger.error(f"Write to {self.file_path} failed: {exc_val}")
        finally:
            # Left behind only when the replace never happened
            if self.temp_path and self.temp_path.exists():
                os.remove(self.temp_path)

            if self.lock:
                self.lock.release()
                logger.debug(f"Released lock for {self.file_path}")

    def get_temp_file(self) -> Path:
        """Get a temporary file in the same directory as the target."""
        if self.temp_path is None:
            with tempfile.NamedTemporaryFile(
                dir=self.file_path.parent,
                prefix=f".{self.file_path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                self.temp_path = Path(tmp.name)

        return self.temp_path

    def atomic_replace(self, source: Union[str, Path]):
        """Atomically replace the target file with source."""
        source = Path(source)
        if not source.exists():
            raise FileNotFoundError(f"Source file not found: {source}")

        if self.file_path.exists():
            shutil.copymode(self.file_path, source)

        os.replace(source, self.file_path)
        logger.debug(f"Atomically replaced {self.file_path} with {source}")


@contextmanager
def safe_edit_context(file_path: Union[str, Path], timeout: float = 30):
    """Context manager for locked file replacement.

    Args:
        file_path: Path to file to replace
        timeout: Lock timeout in seconds

    Yields:
        SafeFileOperation instance
    """
    with SafeFileOperation(file_path, timeout) as safe_op:
        yield safe_op


def write_text_safely(
    file_path: Union[str, Path],
    content: str,
    encoding: str = "utf-8",
    timeout: float = 30,
) -> Path:
    """Write ``content`` to ``file_path`` under a lock via temp file and rename.

    Raises:
        filelock.Timeout: If the lock is not acquired within ``timeout``
        OSError: If the temp file cannot be written or moved into place
    """
    file_path = Path(file_path)

    with safe_edit_context(file_path, timeout) as safe_op:
        temp_file = safe_op.get_temp_file()
        with open(
            temp_file, "w", encoding=encoding, errors=TEXT_ERRORS, newline=""
        ) as f:
            f.write(content)
        safe_op.atomic_replace(temp_file)

    return file_path
