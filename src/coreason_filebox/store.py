# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

import mimetypes
import os
import stat
import tempfile
from pathlib import Path
from typing import BinaryIO

from loguru import logger

from coreason_filebox.exceptions import EntryNotFoundError, InvalidInputError, StorageError, WrongKindError
from coreason_filebox.models import EntryInfo, EntryKind, FileDownload

DEFAULT_MEDIA_TYPE = "application/octet-stream"

# Raised by stat() when the entry or one of its parents is missing.
_MISSING_ERRORS = (FileNotFoundError, NotADirectoryError)


def guess_media_type(filename: str) -> str:
    """Best-effort MIME type from the file name, falling back to a generic binary type."""
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or DEFAULT_MEDIA_TYPE


def describe(path: Path, st: os.stat_result) -> EntryInfo:
    """Build an ``EntryInfo`` from an already-taken stat result."""
    is_dir = stat.S_ISDIR(st.st_mode)
    return EntryInfo(
        name=path.name,
        type=EntryKind.DIRECTORY if is_dir else EntryKind.FILE,
        size=0 if is_dir else st.st_size,
        last_modified=st.st_mtime_ns // 1_000_000,
    )


class FileStore:
    """Single-file operations against already-resolved sandbox paths."""

    def __init__(self, chunk_size: int = 64 * 1024):
        """Initializes the FileStore.

        Args:
            chunk_size: Buffer size used when copying streamed upload content.
        """
        self.chunk_size = chunk_size

    def write(self, path: Path, content: bytes | BinaryIO) -> int:
        """Create or replace a file atomically.

        Content is written to a hidden temporary file next to the target and then
        renamed over it, so readers see either the previous or the new complete file.

        Args:
            path: The resolved destination.
            content: Raw bytes or a binary file object to copy from.

        Returns:
            int: The number of bytes written.

        Raises:
            InvalidInputError: If the content is empty. Nothing is left on disk.
            WrongKindError: If the destination is an existing directory.
            StorageError: On any underlying I/O error.
        """
        try:
            is_dir = path.is_dir()
        except OSError as e:
            logger.exception(f"Failed to inspect {path}")
            raise StorageError("Failed to upload file") from e
        if is_dir:
            raise WrongKindError("Cannot overwrite a directory")

        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=path.parent)
        except OSError as e:
            logger.exception(f"Failed to create temporary file for {path}")
            raise StorageError("Failed to upload file") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                written = self._copy(content, handle)
                handle.flush()
                os.fsync(handle.fileno())
            if written:
                os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            logger.exception(f"Failed to write {path}")
            raise StorageError("Failed to upload file") from e

        if not written:
            tmp_path.unlink(missing_ok=True)
            raise InvalidInputError("File is empty")
        return written

    def _copy(self, content: bytes | BinaryIO, handle: BinaryIO) -> int:
        if isinstance(content, (bytes, bytearray, memoryview)):
            return handle.write(content)

        written = 0
        while chunk := content.read(self.chunk_size):
            written += handle.write(chunk)
        return written

    def read(self, path: Path) -> FileDownload:
        """Open a file for streaming.

        Raises:
            EntryNotFoundError: If the file is absent or unreadable.
            WrongKindError: If the path is a directory.
        """
        try:
            st = path.stat()
        except OSError as e:
            raise EntryNotFoundError("File not found") from e

        if stat.S_ISDIR(st.st_mode):
            raise WrongKindError("Cannot download a directory")

        try:
            stream = path.open("rb")
        except IsADirectoryError as e:
            raise WrongKindError("Cannot download a directory") from e
        except OSError as e:
            raise EntryNotFoundError("File not found") from e

        size = os.fstat(stream.fileno()).st_size
        return FileDownload(
            filename=path.name,
            size=size,
            media_type=guess_media_type(path.name),
            stream=stream,
        )

    def delete(self, path: Path) -> int:
        """Delete a single non-directory entry. A symbolic link is removed, not its target.

        Returns:
            int: The size the file occupied, read before it was unlinked.

        Raises:
            EntryNotFoundError: If the file is absent.
            WrongKindError: If the path is a directory.
            StorageError: If the unlink fails for any other reason.
        """
        info = self.stat(path)
        if info.is_directory:
            raise WrongKindError("Path is a directory")

        try:
            path.unlink()
        except _MISSING_ERRORS as e:
            raise EntryNotFoundError("File not found") from e
        except OSError as e:
            logger.exception(f"Failed to delete {path}")
            raise StorageError("Failed to delete file") from e

        return info.size

    def stat(self, path: Path) -> EntryInfo:
        """Snapshot metadata for one entry without following a trailing symlink.

        A symbolic link is reported as a file, so deleting it removes the link only.

        Raises:
            EntryNotFoundError: If the entry is absent.
            StorageError: If the entry cannot be inspected.
        """
        try:
            st = path.lstat()
        except _MISSING_ERRORS as e:
            raise EntryNotFoundError("File not found") from e
        except OSError as e:
            logger.exception(f"Failed to stat {path}")
            raise StorageError("Failed to read file metadata") from e
        return describe(path, st)
