from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI

from coreason_filebox.main import main


def test_main_serves_configured_app(tmp_path: Path) -> None:
    env = {
        "COREASON_FILEBOX_SANDBOX_ROOT": str(tmp_path / "uploads"),
        "COREASON_FILEBOX_LOG_DIR": str(tmp_path / "logs"),
        "COREASON_FILEBOX_LOG_LEVEL": "DEBUG",
        "COREASON_FILEBOX_HOST": "127.0.0.1",
        "COREASON_FILEBOX_PORT": "9123",
    }
    with (
        patch.dict("os.environ", env),
        patch("coreason_filebox.main.configure_logging") as mock_logging,
        patch("coreason_filebox.main.uvicorn.run") as mock_run,
    ):
        main()

    mock_logging.assert_called_once_with(tmp_path / "logs", "DEBUG")
    mock_run.assert_called_once()
    app = mock_run.call_args.args[0]
    assert isinstance(app, FastAPI)
    assert mock_run.call_args.kwargs == {"host": "127.0.0.1", "port": 9123}
    assert app.state.filebox.root == (tmp_path / "uploads").resolve()
    assert (tmp_path / "uploads").is_dir()


def test_main_propagates_server_failure(tmp_path: Path) -> None:
    env = {"COREASON_FILEBOX_SANDBOX_ROOT": str(tmp_path / "uploads")}
    failing_run = MagicMock(side_effect=OSError("address already in use"))

    with (
        patch.dict("os.environ", env),
        patch("coreason_filebox.main.configure_logging"),
        patch("coreason_filebox.main.uvicorn.run", failing_run),
        pytest.raises(OSError, match="address already in use"),
    ):
        main()
