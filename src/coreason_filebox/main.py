# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

import uvicorn
from loguru import logger

from coreason_filebox.api import create_app
from coreason_filebox.config import FileBoxConfig
from coreason_filebox.utils.logger import configure_logging


def main() -> None:
    """Entry point for the HTTP server."""
    config = FileBoxConfig()
    configure_logging(config.log_dir, config.log_level)

    app = create_app(config)
    logger.info(f"Serving sandbox {app.state.filebox.root} on {config.host}:{config.port}")
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":  # pragma: no cover
    main()
