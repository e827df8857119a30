# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

import time
import urllib.parse
from http import HTTPStatus
from typing import Any

from fastapi import APIRouter, Body, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from loguru import logger
from pydantic import BaseModel
from starlette.background import BackgroundTask
from starlette.exceptions import HTTPException as StarletteHTTPException

from coreason_filebox.config import FileBoxConfig
from coreason_filebox.exceptions import ErrorKind
from coreason_filebox.filebox import FileBoxAsync
from coreason_filebox.models import FileDownload, OperationResult

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: HTTPStatus.BAD_REQUEST,
    ErrorKind.PATH_TRAVERSAL: HTTPStatus.FORBIDDEN,
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.WRONG_KIND: HTTPStatus.BAD_REQUEST,
    ErrorKind.IO_FAILURE: HTTPStatus.INTERNAL_SERVER_ERROR,
}

router = APIRouter(prefix="/api/file", tags=["files"])


class PathBody(BaseModel):
    path: str | None = None


def get_filebox(request: Request) -> FileBoxAsync:
    filebox: FileBoxAsync = request.app.state.filebox
    return filebox


def get_config(request: Request) -> FileBoxConfig:
    config: FileBoxConfig = request.app.state.config
    return config


def to_json_response(result: OperationResult[Any]) -> JSONResponse:
    """Serialize an engine result, mapping failure kinds onto HTTP status codes."""
    status_code = HTTPStatus.OK if result.success else STATUS_BY_KIND[result.error or ErrorKind.IO_FAILURE]
    return JSONResponse(result.to_response(), status_code=status_code)


def content_disposition(filename: str) -> str:
    quoted = urllib.parse.quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


def to_download_response(result: OperationResult[FileDownload], chunk_size: int) -> Response:
    if not result.success or result.payload is None:
        return to_json_response(result)

    download = result.payload
    return StreamingResponse(
        download.iter_chunks(chunk_size),
        media_type=download.media_type,
        headers={
            "Content-Disposition": content_disposition(download.filename),
            "Content-Length": str(download.size),
        },
        background=BackgroundTask(download.close),
    )


# ==================== POST: mutations ====================


@router.post("/upload")
async def upload_file(
    file: UploadFile = File(...),
    category: str | None = Form(None),
    filebox: FileBoxAsync = Depends(get_filebox),
    config: FileBoxConfig = Depends(get_config),
) -> JSONResponse:
    if file.size is not None and file.size > config.max_upload_size:
        raise StarletteHTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"Upload exceeds the maximum allowed size of {config.max_upload_size} bytes",
        )
    try:
        result = await filebox.upload(file.filename or "", file.file, category)
    finally:
        await file.close()
    return to_json_response(result)


@router.post("/delete/path")
async def delete_by_path(
    path: str | None = None,
    body: PathBody | None = Body(None),
    filebox: FileBoxAsync = Depends(get_filebox),
) -> JSONResponse:
    target = path if path is not None else (body.path if body else None)
    return to_json_response(await filebox.delete_by_path(target))


@router.post("/delete/{filename}")
async def delete_file(filename: str, filebox: FileBoxAsync = Depends(get_filebox)) -> JSONResponse:
    return to_json_response(await filebox.delete_by_name(filename))


@router.post("/clean")
async def clean_uploads(filebox: FileBoxAsync = Depends(get_filebox)) -> JSONResponse:
    return to_json_response(await filebox.clean())


# ==================== GET: queries ====================


@router.get("/download/path")
async def download_by_path(
    path: str | None = None,
    filebox: FileBoxAsync = Depends(get_filebox),
    config: FileBoxConfig = Depends(get_config),
) -> Response:
    return to_download_response(await filebox.download_by_path(path), config.chunk_size)


@router.get("/download/{filename}")
async def download_file(
    filename: str,
    filebox: FileBoxAsync = Depends(get_filebox),
    config: FileBoxConfig = Depends(get_config),
) -> Response:
    return to_download_response(await filebox.download_by_name(filename), config.chunk_size)


@router.get("/list")
async def list_files(filebox: FileBoxAsync = Depends(get_filebox)) -> JSONResponse:
    return to_json_response(await filebox.list_root())


@router.get("/list/path")
async def list_files_by_path(path: str | None = None, filebox: FileBoxAsync = Depends(get_filebox)) -> JSONResponse:
    return to_json_response(await filebox.list_by_path(path))


# ==================== Error translation ====================


def error_body(status_code: int, message: str, request: Request) -> dict[str, Any]:
    """Uniform body for errors raised outside the engine."""
    return {
        "success": False,
        "status": int(status_code),
        "error": HTTPStatus(status_code).phrase,
        "message": message,
        "path": request.url.path,
        "timestamp": int(time.time() * 1000),
    }


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning(f"{HTTPStatus(exc.status_code).phrase}: {request.url.path} - {exc.detail}")
    return JSONResponse(
        error_body(exc.status_code, str(exc.detail), request),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}" for error in exc.errors()
    )
    message = f"Invalid request parameters: {details}"
    logger.warning(f"Bad Request: {request.url.path} - {message}")
    return JSONResponse(error_body(HTTPStatus.BAD_REQUEST, message, request), status_code=HTTPStatus.BAD_REQUEST)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Internal Server Error: {request.url.path} - {exc}")
    return JSONResponse(
        error_body(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal server error", request),
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
    )


def create_app(config: FileBoxConfig | None = None) -> FastAPI:
    """Build the FastAPI application serving the file-management endpoints.

    Args:
        config: Configuration for the service. Defaults are read from the environment.

    Returns:
        FastAPI: The configured application.
    """
    config = config or FileBoxConfig()

    app = FastAPI(title="coreason-filebox")
    app.state.config = config
    app.state.filebox = FileBoxAsync(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/health")
    def health_check() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(router)
    return app
