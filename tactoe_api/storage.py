"""
Chunked file storage on GridFS and an in-memory equivalent for testing.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import BinaryIO, Iterator, Optional, Protocol

from gridfs import GridFSBucket, GridOut
from gridfs.errors import NoFile
from pymongo.database import Database

from tactoe_api.db import translate_mongo_errors
from tactoe_api.errors import FileNotFound

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 255 * 1024


class FileStorageClient(Protocol):
    """Defines the operations the API needs from chunked file storage."""

    def upload_from_stream(
        self, filename: str, source: BinaryIO, metadata: dict
    ) -> str:
        ...

    def find_latest(self, filename: str) -> Optional["StoredFile"]:
        ...

    def open_download_stream(self, filename: str) -> Iterator[bytes]:
        ...

    def list_files(self) -> list["StoredFile"]:
        ...


@dataclass
class StoredFile:
    id: str
    filename: str
    length: int
    chunk_size: int
    upload_date: datetime
    metadata: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "_id": self.id,
            "filename": self.filename,
            "length": self.length,
            "chunkSize": self.chunk_size,
            "uploadDate": self.upload_date,
            "metadata": self.metadata,
        }


def _to_stored_file(grid_out: GridOut) -> StoredFile:
    return StoredFile(
        id=str(grid_out._id),
        filename=grid_out.filename,
        length=grid_out.length,
        chunk_size=grid_out.chunk_size,
        upload_date=grid_out.upload_date,
        metadata=dict(grid_out.metadata or {}),
    )


def _iter_chunks(grid_out: GridOut) -> Iterator[bytes]:
    try:
        while True:
            chunk = grid_out.readchunk()
            if not chunk:
                break
            yield chunk
    finally:
        grid_out.close()


class InMemoryStorageClient:
    """Test double that keeps files as lists of fixed-size chunks."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = chunk_size
        self.files: list[StoredFile] = []
        self.chunks: dict[str, list[bytes]] = {}

    def upload_from_stream(
        self, filename: str, source: BinaryIO, metadata: dict
    ) -> str:
        file_id = uuid.uuid4().hex
        chunks: list[bytes] = []
        length = 0
        while True:
            data = source.read(self.chunk_size)
            if not data:
                break
            chunks.append(data)
            length += len(data)
        self.chunks[file_id] = chunks
        self.files.append(
            StoredFile(
                id=file_id,
                filename=filename,
                length=length,
                chunk_size=self.chunk_size,
                upload_date=datetime.now(timezone.utc),
                metadata=dict(metadata),
            )
        )
        return file_id

    def find_latest(self, filename: str) -> Optional[StoredFile]:
        for stored in reversed(self.files):
            if stored.filename == filename:
                return stored
        return None

    def open_download_stream(self, filename: str) -> Iterator[bytes]:
        stored = self.find_latest(filename)
        if stored is None:
            raise FileNotFound()
        return iter(list(self.chunks[stored.id]))

    def list_files(self) -> list[StoredFile]:
        return list(self.files)

    def reset(self) -> None:
        """Clear all stored files (useful in tests)."""
        self.files.clear()
        self.chunks.clear()


class GridFsStorageClient:
    """
    GridFS bucket on the shared database. Reads and writes go through the
    bucket one chunk at a time.
    """

    def __init__(
        self,
        database: Database,
        bucket_name: str = "fs",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.bucket_name = bucket_name
        self._bucket = GridFSBucket(
            database, bucket_name=bucket_name, chunk_size_bytes=chunk_size
        )

    def upload_from_stream(
        self, filename: str, source: BinaryIO, metadata: dict
    ) -> str:
        with translate_mongo_errors("File upload failed"):
            file_id = self._bucket.upload_from_stream(
                filename, source, metadata=metadata
            )
        logger.info("Stored %s in GridFS bucket %s", filename, self.bucket_name)
        return str(file_id)

    def find_latest(self, filename: str) -> Optional[StoredFile]:
        with translate_mongo_errors("Could not load file metadata"):
            cursor = (
                self._bucket.find({"filename": filename})
                .sort("uploadDate", -1)
                .limit(1)
            )
            for grid_out in cursor:
                return _to_stored_file(grid_out)
        return None

    def open_download_stream(self, filename: str) -> Iterator[bytes]:
        # Open eagerly so lookup errors surface before the response starts.
        with translate_mongo_errors("Could not read file"):
            try:
                grid_out = self._bucket.open_download_stream_by_name(filename)
            except NoFile as exc:
                raise FileNotFound() from exc
        return _iter_chunks(grid_out)

    def list_files(self) -> list[StoredFile]:
        with translate_mongo_errors("Could not load file list"):
            return [_to_stored_file(grid_out) for grid_out in self._bucket.find()]
