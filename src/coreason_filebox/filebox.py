# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

from collections.abc import Callable
from pathlib import Path
from typing import Any, BinaryIO, TypeVar

import anyio
from loguru import logger

from coreason_filebox.config import FileBoxConfig
from coreason_filebox.exceptions import EntryNotFoundError, FileBoxError, InvalidInputError
from coreason_filebox.models import (
    DeletionStats,
    FileDeletePayload,
    FileDownload,
    OperationResult,
    PathDeletePayload,
    PathListing,
    RootListing,
    UploadPayload,
)
from coreason_filebox.resolver import PathResolver
from coreason_filebox.store import FileStore
from coreason_filebox.walker import TreeWalker

PayloadT = TypeVar("PayloadT")


class FileBoxAsync:
    """Async-native file-management engine (The Core).

    Composes the resolver, store and walker into the operations exposed to
    clients. Every operation is an independent transaction against the sandbox
    directory; nothing is cached between calls. Blocking filesystem work runs in
    a worker thread so concurrent requests do not stall the event loop.
    """

    def __init__(self, config: FileBoxConfig | None = None):
        """Initializes the engine and creates the sandbox root if it is missing.

        Args:
            config: Configuration for the service.
        """
        self.config = config or FileBoxConfig()
        self.config.sandbox_root.mkdir(parents=True, exist_ok=True)
        self.resolver = PathResolver(self.config.sandbox_root)
        self.store = FileStore(chunk_size=self.config.chunk_size)
        self.walker = TreeWalker()

    @property
    def root(self) -> Path:
        """The canonical sandbox root."""
        return self.resolver.root

    async def _execute(
        self,
        result_type: type[OperationResult[PayloadT]],
        message: str,
        func: Callable[..., PayloadT],
        *args: Any,
    ) -> OperationResult[PayloadT]:
        try:
            payload = await anyio.to_thread.run_sync(func, *args)
        except FileBoxError as e:
            return result_type.fail(e)
        return result_type.ok(message, payload)

    async def upload(
        self, filename: str, content: bytes | BinaryIO, category: str | None = None
    ) -> OperationResult[UploadPayload]:
        """Stores new content under ``filename`` directly in the sandbox root.

        Args:
            filename: A bare file name without separators or ``..``.
            content: The raw bytes, or a binary file object to stream from.
            category: Optional client-supplied label echoed back in the result.

        Returns:
            OperationResult[UploadPayload]: filename, size, category and relative path.
        """
        return await self._execute(
            OperationResult[UploadPayload], "File uploaded successfully", self._upload, filename, content, category
        )

    def _upload(self, filename: str, content: bytes | BinaryIO, category: str | None) -> UploadPayload:
        if isinstance(content, (bytes, bytearray)) and not content:
            raise InvalidInputError("File is empty")

        target = self.resolver.resolve_name(filename)
        size = self.store.write(target, content)
        logger.info(f"File uploaded: {filename}, size: {size}")
        return UploadPayload(filename=filename, size=size, category=category, path=self.resolver.relative(target))

    async def delete_by_name(self, filename: str) -> OperationResult[FileDeletePayload]:
        """Deletes a single file directly under the sandbox root.

        Args:
            filename: A bare file name without separators or ``..``.

        Returns:
            OperationResult[FileDeletePayload]: The file name and the bytes it occupied.
        """
        return await self._execute(
            OperationResult[FileDeletePayload], "File deleted successfully", self._delete_by_name, filename
        )

    def _delete_by_name(self, filename: str) -> FileDeletePayload:
        target = self.resolver.resolve_name(filename)
        size = self.store.delete(target)
        logger.info(f"File deleted: {filename}")
        return FileDeletePayload(filename=filename, size=size)

    async def delete_by_path(self, path: str | None) -> OperationResult[PathDeletePayload]:
        """Deletes a file, or a directory together with its whole subtree.

        The sandbox root itself can never be targeted. For directories ``size`` is
        the pre-delete size of the top entry, while the deletion counts describe
        what the recursive walk actually removed.

        Args:
            path: A path relative to the sandbox root, or an absolute path inside it.

        Returns:
            OperationResult[PathDeletePayload]: name, relative path, type, size and counts.
        """
        return await self._execute(
            OperationResult[PathDeletePayload], "Deleted successfully", self._delete_by_path, path
        )

    def _delete_by_path(self, path: str | None) -> PathDeletePayload:
        target = self.resolver.resolve_path(path, allow_root=False)
        try:
            info = self.store.stat(target)
        except EntryNotFoundError as e:
            raise EntryNotFoundError("File or directory not found") from e

        if info.is_directory:
            stats = self.walker.delete_subtree(target)
        else:
            freed = self.store.delete(target)
            stats = DeletionStats(deleted_files=1, freed_space=freed)

        logger.info(f"Deleted: {target} ({info.size} bytes)")
        return PathDeletePayload(
            name=info.name,
            path=self.resolver.relative(target),
            type=info.type,
            size=info.size,
            deleted_files=stats.deleted_files,
            deleted_directories=stats.deleted_directories,
            freed_space=stats.freed_space,
        )

    async def clean(self) -> OperationResult[DeletionStats]:
        """Removes every entry under the sandbox root, keeping the root itself.

        Returns:
            OperationResult[DeletionStats]: Files and directories removed and bytes freed.
        """
        return await self._execute(
            OperationResult[DeletionStats], "Upload directory cleaned successfully", self._clean
        )

    def _clean(self) -> DeletionStats:
        stats = self.walker.clean_all(self.root)
        logger.info(
            f"Cleaned uploads: {stats.deleted_files} files, "
            f"{stats.deleted_directories} directories, {stats.freed_space} bytes freed"
        )
        return stats

    async def download_by_name(self, filename: str) -> OperationResult[FileDownload]:
        """Opens a file directly under the sandbox root for streaming.

        The caller owns the returned stream and must exhaust or close it.
        """
        return await self._execute(
            OperationResult[FileDownload], "File ready for download", self._download_by_name, filename
        )

    def _download_by_name(self, filename: str) -> FileDownload:
        return self._open(self.resolver.resolve_name(filename))

    async def download_by_path(self, path: str | None) -> OperationResult[FileDownload]:
        """Opens a file anywhere inside the sandbox for streaming.

        The caller owns the returned stream and must exhaust or close it.
        """
        return await self._execute(
            OperationResult[FileDownload], "File ready for download", self._download_by_path, path
        )

    def _download_by_path(self, path: str | None) -> FileDownload:
        return self._open(self.resolver.resolve_path(path))

    def _open(self, target: Path) -> FileDownload:
        download = self.store.read(target)
        logger.info(f"File downloaded: {target}")
        return download

    async def list_root(self) -> OperationResult[RootListing]:
        """Lists the names of the immediate children of the sandbox root."""
        return await self._execute(OperationResult[RootListing], "Files listed successfully", self._list_root)

    def _list_root(self) -> RootListing:
        names = self.walker.list_names(self.root)
        return RootListing(files=names, count=len(names))

    async def list_by_path(self, path: str | None) -> OperationResult[PathListing]:
        """Lists the immediate children of a directory inside the sandbox.

        The sandbox root itself is a valid target.

        Args:
            path: A path relative to the sandbox root, or an absolute path inside it.

        Returns:
            OperationResult[PathListing]: The relative path, child metadata and count.
        """
        return await self._execute(
            OperationResult[PathListing], "Files listed successfully", self._list_by_path, path
        )

    def _list_by_path(self, path: str | None) -> PathListing:
        target = self.resolver.resolve_path(path)
        children = self.walker.list_children(target)
        return PathListing(path=self.resolver.relative(target), files=children, count=len(children))


class FileBox:
    """Sync Facade for FileBoxAsync (The Facade).

    Wraps FileBoxAsync and executes methods via anyio.run.
    """

    def __init__(self, config: FileBoxConfig | None = None):
        """Initializes the FileBox facade.

        Args:
            config: Configuration for the service.
        """
        self._async = FileBoxAsync(config)

    @property
    def root(self) -> Path:
        return self._async.root

    def upload(
        self, filename: str, content: bytes | BinaryIO, category: str | None = None
    ) -> OperationResult[UploadPayload]:
        return anyio.run(self._async.upload, filename, content, category)

    def delete_by_name(self, filename: str) -> OperationResult[FileDeletePayload]:
        return anyio.run(self._async.delete_by_name, filename)

    def delete_by_path(self, path: str | None) -> OperationResult[PathDeletePayload]:
        return anyio.run(self._async.delete_by_path, path)

    def clean(self) -> OperationResult[DeletionStats]:
        return anyio.run(self._async.clean)

    def download_by_name(self, filename: str) -> OperationResult[FileDownload]:
        return anyio.run(self._async.download_by_name, filename)

    def download_by_path(self, path: str | None) -> OperationResult[FileDownload]:
        return anyio.run(self._async.download_by_path, path)

    def list_root(self) -> OperationResult[RootListing]:
        return anyio.run(self._async.list_root)

    def list_by_path(self, path: str | None) -> OperationResult[PathListing]:
        return anyio.run(self._async.list_by_path, path)
