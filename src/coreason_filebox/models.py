# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

from collections.abc import Iterator
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from coreason_filebox.exceptions import ErrorKind, FileBoxError


class _CamelModel(BaseModel):
    """Models serialized to clients with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class EntryInfo(_CamelModel):
    """Snapshot of a single filesystem entry at read time.

    Attributes:
        name: The last path component.
        type: Whether the entry is a file or a directory.
        size: Size in bytes (0 for directories).
        last_modified: Modification time in epoch milliseconds.
    """

    name: str
    type: EntryKind
    size: int
    last_modified: int

    @computed_field(alias="isDirectory")  # type: ignore[prop-decorator]
    @property
    def is_directory(self) -> bool:
        return self.type is EntryKind.DIRECTORY

    @computed_field(alias="isFile")  # type: ignore[prop-decorator]
    @property
    def is_file(self) -> bool:
        return self.type is EntryKind.FILE


class DeletionStats(_CamelModel):
    """Counts accumulated by a recursive delete. Only removed entries are counted."""

    deleted_files: int = 0
    deleted_directories: int = 0
    freed_space: int = 0


class UploadPayload(_CamelModel):
    filename: str
    size: int
    category: str | None = None
    path: str


class FileDeletePayload(_CamelModel):
    filename: str
    size: int


class PathDeletePayload(DeletionStats):
    name: str
    path: str
    type: EntryKind
    size: int


class RootListing(_CamelModel):
    files: list[str]
    count: int


class PathListing(_CamelModel):
    path: str
    files: list[EntryInfo]
    count: int


class FileDownload(BaseModel):
    """An opened file ready to be streamed to a client.

    The handle is opened at read time, so the content survives a concurrent
    delete of the name on POSIX systems. ``iter_chunks`` closes it when exhausted.
    """

    filename: str
    size: int
    media_type: str
    stream: Any = Field(exclude=True, repr=False)

    def iter_chunks(self, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        try:
            while chunk := self.stream.read(chunk_size):
                yield chunk
        finally:
            self.close()

    def read_all(self) -> bytes:
        return b"".join(self.iter_chunks())

    def close(self) -> None:
        self.stream.close()


PayloadT = TypeVar("PayloadT")


class OperationResult(BaseModel, Generic[PayloadT]):
    """Outcome of one file-management operation.

    Attributes:
        success: Whether the operation completed.
        message: Human-readable summary for the caller.
        error: The failure classification, ``None`` on success.
        payload: Operation-specific data, present only on success.
    """

    success: bool
    message: str
    error: ErrorKind | None = None
    payload: PayloadT | None = None

    @classmethod
    def ok(cls, message: str, payload: PayloadT) -> "OperationResult[PayloadT]":
        return cls(success=True, message=message, payload=payload)

    @classmethod
    def fail(cls, exc: FileBoxError) -> "OperationResult[PayloadT]":
        return cls(success=False, message=exc.message, error=exc.kind)

    def to_response(self) -> dict[str, Any]:
        """Flatten into the JSON body sent to clients."""
        body: dict[str, Any] = {"success": self.success, "message": self.message}
        if isinstance(self.payload, _CamelModel):
            body.update(self.payload.model_dump(mode="json", by_alias=True))
        return body
