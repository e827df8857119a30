# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

"""
coreason-filebox
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import FileBoxConfig
from .exceptions import ErrorKind, FileBoxError
from .filebox import FileBox, FileBoxAsync
from .models import DeletionStats, EntryInfo, EntryKind, FileDownload, OperationResult
from .resolver import PathResolver
from .store import FileStore
from .walker import TreeWalker

__all__ = [
    "FileBox",
    "FileBoxAsync",
    "FileBoxConfig",
    "ErrorKind",
    "FileBoxError",
    "OperationResult",
    "EntryInfo",
    "EntryKind",
    "DeletionStats",
    "FileDownload",
    "PathResolver",
    "FileStore",
    "TreeWalker",
]
