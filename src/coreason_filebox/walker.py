# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

import os
import stat
from collections.abc import Iterator
from pathlib import Path

from loguru import logger

from coreason_filebox.exceptions import EntryNotFoundError, StorageError, WrongKindError
from coreason_filebox.models import DeletionStats, EntryInfo
from coreason_filebox.store import describe


class TreeWalker:
    """Multi-entry operations: directory listings and recursive deletes."""

    def _scandir(self, directory: Path) -> Iterator[os.DirEntry[str]]:
        try:
            with os.scandir(directory) as entries:
                yield from entries
        except FileNotFoundError as e:
            raise EntryNotFoundError("Path does not exist") from e
        except NotADirectoryError as e:
            raise WrongKindError("Path is not a directory") from e
        except OSError as e:
            logger.exception(f"Failed to list {directory}")
            raise StorageError("Failed to list files") from e

    def list_names(self, directory: Path) -> list[str]:
        """Names of the immediate children of ``directory``, in enumeration order."""
        return [entry.name for entry in self._scandir(directory)]

    def list_children(self, directory: Path) -> list[EntryInfo]:
        """Metadata for each immediate child of ``directory``, in enumeration order.

        A child whose target cannot be followed (dangling or looping symlink) is
        described as the link itself. Children that disappear between enumeration
        and stat, or cannot be inspected at all, are left out.

        Raises:
            EntryNotFoundError: If the directory does not exist.
            WrongKindError: If the path is not a directory.
            StorageError: If the directory cannot be read.
        """
        children: list[EntryInfo] = []
        for entry in self._scandir(directory):
            try:
                st = entry.stat()
            except OSError:
                try:
                    st = entry.stat(follow_symlinks=False)
                except FileNotFoundError:
                    continue
                except OSError as e:
                    logger.warning(f"Skipping unreadable entry {entry.path}: {e}")
                    continue
            children.append(describe(Path(entry.path), st))
        return children

    def _enumerate(self, top: Path) -> list[Path]:
        def on_error(error: OSError) -> None:
            logger.warning(f"Failed to enumerate {error.filename}: {error}")

        paths: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(top, onerror=on_error):
            base = Path(dirpath)
            paths.extend(base / name for name in dirnames)
            paths.extend(base / name for name in filenames)
        return paths

    def _delete_deepest_first(self, paths: list[Path]) -> DeletionStats:
        stats = DeletionStats()
        # Reverse order on path components puts every descendant before its ancestors.
        for path in sorted(paths, key=lambda p: p.parts, reverse=True):
            try:
                st = path.lstat()
                if stat.S_ISDIR(st.st_mode):
                    path.rmdir()
                    stats.deleted_directories += 1
                else:
                    path.unlink()
                    stats.deleted_files += 1
                    stats.freed_space += st.st_size
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Failed to delete: {path}: {e}")
        return stats

    def delete_subtree(self, directory: Path) -> DeletionStats:
        """Recursively delete ``directory`` and everything under it.

        Individual failures are logged and skipped; the returned counts cover only
        the entries that were actually removed.
        """
        stats = self._delete_deepest_first([directory, *self._enumerate(directory)])
        logger.info(
            f"Deleted subtree {directory}: {stats.deleted_files} files, "
            f"{stats.deleted_directories} directories, {stats.freed_space} bytes freed"
        )
        return stats

    def clean_all(self, root: Path) -> DeletionStats:
        """Delete everything under ``root`` while keeping ``root`` itself.

        Raises:
            StorageError: If ``root`` itself cannot be read.
        """
        try:
            os.listdir(root)
        except OSError as e:
            logger.exception(f"Failed to read sandbox root {root}")
            raise StorageError("Failed to clean upload directory") from e

        return self._delete_deepest_first(self._enumerate(root))
