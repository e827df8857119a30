# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FileBoxConfig(BaseSettings):
    """
    Configuration for the file-management service.
    """

    sandbox_root: Path = Path("uploads")
    max_upload_size: int = Field(default=2 * 1024**3, gt=0)  # 2 GiB
    chunk_size: int = Field(default=64 * 1024, gt=0)

    cors_allow_origins: list[str] = ["*"]

    log_level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_dir: Path = Path("logs")

    host: str = "0.0.0.0"
    port: int = 8080

    model_config = SettingsConfigDict(
        env_prefix="COREASON_FILEBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
