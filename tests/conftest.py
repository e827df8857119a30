from pathlib import Path
from typing import Any, Generator

import pytest
from loguru import logger

from coreason_filebox.config import FileBoxConfig
from coreason_filebox.filebox import FileBox, FileBoxAsync


@pytest.fixture
def config(tmp_path: Path) -> FileBoxConfig:
    return FileBoxConfig(sandbox_root=tmp_path / "uploads", log_dir=tmp_path / "logs")


@pytest.fixture
def filebox_async(config: FileBoxConfig) -> FileBoxAsync:
    return FileBoxAsync(config)


@pytest.fixture
def filebox(config: FileBoxConfig) -> FileBox:
    return FileBox(config)


@pytest.fixture
def root(filebox_async: FileBoxAsync) -> Path:
    return filebox_async.root


@pytest.fixture
def log_records() -> Generator[list[dict[str, Any]], None, None]:
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
