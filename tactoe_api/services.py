"""
Service objects built once at startup and handed to the routes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Optional

from tactoe_api.config import Settings
from tactoe_api.db import DbClient, InMemoryDbClient, LoginRecord, MongoDbClient
from tactoe_api.errors import FileNotFound, MissingPayload
from tactoe_api.storage import (
    FileStorageClient,
    GridFsStorageClient,
    InMemoryStorageClient,
    StoredFile,
)

logger = logging.getLogger(__name__)

ANONYMOUS_UPLOADER = "anonymous"


class LoginLog:
    """Append-only log of login events."""

    def __init__(self, db: DbClient):
        self.db = db

    def record(
        self, email: str | None, name: str | None, timestamp: str | None
    ) -> LoginRecord:
        record = LoginRecord(email=email, name=name, timestamp=timestamp)
        self.db.insert_login(record)
        return record

    def list(self) -> list[LoginRecord]:
        """Return every login, newest timestamp first."""
        return self.db.list_logins()


@dataclass
class Download:
    file: StoredFile
    chunks: Iterator[bytes]


class FileLibrary:
    def __init__(self, storage: FileStorageClient):
        self.storage = storage

    def upload(
        self,
        filename: str | None,
        source: Optional[BinaryIO],
        uploader: str | None = None,
    ) -> str:
        """
        Copy ``source`` into chunked storage and return the new file id.
        The stream is consumed one chunk at a time.
        """
        if source is None or not filename:
            raise MissingPayload()
        metadata = {"uploadedBy": uploader or ANONYMOUS_UPLOADER}
        file_id = self.storage.upload_from_stream(filename, source, metadata)
        logger.info(
            "Uploaded %s as %s (by %s)", filename, file_id, metadata["uploadedBy"]
        )
        return file_id

    def download(self, filename: str) -> Download:
        stored = self.storage.find_latest(filename)
        if stored is None:
            raise FileNotFound()
        return Download(file=stored, chunks=self.storage.open_download_stream(filename))

    def list(self) -> list[StoredFile]:
        return self.storage.list_files()


class Services:
    """
    Owns the database and storage clients. Construct at startup, ``connect``
    before serving, ``close`` on shutdown.
    """

    def __init__(self, db: DbClient, storage: FileStorageClient):
        self.db = db
        self.storage = storage
        self.logins = LoginLog(db)
        self.files = FileLibrary(storage)

    @classmethod
    def in_memory(cls, chunk_size: int | None = None) -> "Services":
        storage = (
            InMemoryStorageClient(chunk_size)
            if chunk_size
            else InMemoryStorageClient()
        )
        return cls(InMemoryDbClient(), storage)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Services":
        if settings.use_in_memory_backends or not settings.mongo_uri:
            if not settings.use_in_memory_backends:
                logger.warning("MONGO_URI is not set; using in-memory backends")
            return cls.in_memory(settings.chunk_size_bytes)

        db = MongoDbClient(
            settings.mongo_uri,
            settings.mongo_db,
            timeout_ms=settings.mongo_timeout_ms,
        )
        storage = GridFsStorageClient(
            db.database,
            bucket_name=settings.gridfs_bucket,
            chunk_size=settings.chunk_size_bytes,
        )
        return cls(db, storage)

    def connect(self) -> None:
        self.db.connect()

    def close(self) -> None:
        self.db.close()
