"""
HTTP routes for the login log and file storage API.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import PlainTextResponse, StreamingResponse

from tactoe_api.dependencies import get_file_library, get_login_log
from tactoe_api.errors import MissingPayload
from tactoe_api.schemas import (
    ErrorResponse,
    LoginRecordResponse,
    LogLoginRequest,
    StatusResponse,
    StoredFileResponse,
    UploadResponse,
)
from tactoe_api.services import FileLibrary, LoginLog

logger = logging.getLogger(__name__)

router = APIRouter()

_DB_ERRORS = {500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}


def _content_disposition(filename: str) -> str:
    """
    Attachment header with a plain ASCII ``filename`` for every client and an
    RFC 5987 ``filename*`` when the name needs percent-encoding.
    """
    fallback = (
        filename.encode("ascii", "replace")
        .decode("ascii")
        .replace("\\", "\\\\")
        .replace('"', '\\"')
    )
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename=\"{fallback}\"; filename*=utf-8''{quoted}"
    return f'attachment; filename="{fallback}"'


def _load_favorite_places() -> list:
    source = resources.files("tactoe_api").joinpath("data/favorite_places.json")
    return json.loads(source.read_text(encoding="utf-8"))


@router.post("/log-login", response_model=StatusResponse, responses=_DB_ERRORS)
def log_login(payload: LogLoginRequest, logins: LoginLog = Depends(get_login_log)):
    logins.record(payload.email, payload.name, payload.timestamp)
    return StatusResponse(status="ok")


@router.get(
    "/logins", response_model=list[LoginRecordResponse], responses=_DB_ERRORS
)
def list_logins(logins: LoginLog = Depends(get_login_log)):
    return [
        LoginRecordResponse(
            id=record.id,
            email=record.email,
            name=record.name,
            timestamp=record.timestamp,
        )
        for record in logins.list()
    ]


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, **_DB_ERRORS},
)
def upload_file(
    file: UploadFile | None = File(None),
    email: str | None = Form(None),
    files: FileLibrary = Depends(get_file_library),
):
    """
    Store a multipart ``file`` part in GridFS, tagged with the uploader's
    email (or "anonymous").
    """
    if file is None:
        raise MissingPayload()
    file_id = files.upload(file.filename, file.file, uploader=email)
    return UploadResponse(message="File uploaded successfully", fileId=file_id)


@router.get(
    "/files/{filename}",
    response_class=StreamingResponse,
    responses={404: {"model": ErrorResponse}, **_DB_ERRORS},
)
def download_file(filename: str, files: FileLibrary = Depends(get_file_library)):
    download = files.download(filename)
    headers = {
        "Content-Disposition": _content_disposition(download.file.filename),
        "Content-Length": str(download.file.length),
    }
    return StreamingResponse(
        download.chunks, media_type="application/octet-stream", headers=headers
    )


@router.get(
    "/files", response_model=list[StoredFileResponse], responses=_DB_ERRORS
)
def list_files(files: FileLibrary = Depends(get_file_library)):
    return [
        StoredFileResponse.model_validate(stored.as_dict()) for stored in files.list()
    ]


@router.get("/ping", response_class=PlainTextResponse)
def ping():
    logger.info('Calling "/api/ping"')
    return "ping response"


@router.get("/favorite-places")
def favorite_places():
    return _load_favorite_places()
