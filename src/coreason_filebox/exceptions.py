# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

from enum import Enum
from typing import ClassVar


class ErrorKind(str, Enum):
    """Failure taxonomy shared by every file-management operation."""

    INVALID_INPUT = "invalid_input"
    PATH_TRAVERSAL = "path_traversal"
    NOT_FOUND = "not_found"
    WRONG_KIND = "wrong_kind"
    IO_FAILURE = "io_failure"


class FileBoxError(Exception):
    """Base class for failures raised by the resolver, store and walker.

    Each subclass carries its ``ErrorKind`` so the engine can translate it into a
    failed ``OperationResult`` without inspecting the message.
    """

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(FileBoxError):
    kind = ErrorKind.INVALID_INPUT


class PathTraversalError(FileBoxError):
    kind = ErrorKind.PATH_TRAVERSAL


class EntryNotFoundError(FileBoxError):
    kind = ErrorKind.NOT_FOUND


class WrongKindError(FileBoxError):
    kind = ErrorKind.WRONG_KIND


class StorageError(FileBoxError):
    kind = ErrorKind.IO_FAILURE
