"""
Database abstraction for MongoDB and an in-memory test implementation.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol

from pymongo import DESCENDING, MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError

from tactoe_api.errors import DatabaseOperationFailed, DatabaseUnavailable

logger = logging.getLogger(__name__)

LOGINS_COLLECTION = "logins"


class DbClient(Protocol):
    """Interface for the login log collection."""

    def connect(self) -> None:
        ...

    def insert_login(self, record: "LoginRecord") -> None:
        ...

    def list_logins(self) -> list["LoginRecord"]:
        ...

    def close(self) -> None:
        ...


@dataclass
class LoginRecord:
    email: Optional[str]
    name: Optional[str]
    timestamp: Optional[str]
    id: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "email": self.email,
            "name": self.name,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "LoginRecord":
        doc_id = doc.get("_id")
        return cls(
            email=doc.get("email"),
            name=doc.get("name"),
            timestamp=doc.get("timestamp"),
            id=str(doc_id) if doc_id is not None else None,
        )


@contextmanager
def translate_mongo_errors(message: str) -> Iterator[None]:
    """
    Re-raise driver errors as API errors. Lost connections map to
    DatabaseUnavailable, anything else to DatabaseOperationFailed(message).
    """
    try:
        yield
    except ConnectionFailure as exc:
        logger.exception("MongoDB connection error")
        raise DatabaseUnavailable() from exc
    except PyMongoError as exc:
        logger.exception("MongoDB operation failed: %s", message)
        raise DatabaseOperationFailed(message) from exc


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.logins: list[LoginRecord] = []

    def connect(self) -> None:
        return None

    def insert_login(self, record: LoginRecord) -> None:
        self.logins.append(
            LoginRecord(
                email=record.email,
                name=record.name,
                timestamp=record.timestamp,
                id=uuid.uuid4().hex,
            )
        )

    def list_logins(self) -> list[LoginRecord]:
        # Missing timestamps sort last, as they would in a descending Mongo sort.
        return sorted(
            self.logins,
            key=lambda r: (r.timestamp is not None, r.timestamp or ""),
            reverse=True,
        )

    def close(self) -> None:
        return None


class MongoDbClient:
    """
    pymongo-backed implementation. Owns the single MongoClient shared by the
    login log and the GridFS bucket.
    """

    def __init__(
        self,
        uri: str | None,
        db_name: str,
        *,
        timeout_ms: int = 5000,
        client: MongoClient | None = None,
    ):
        if client is None:
            if not uri:
                raise ValueError("MONGO_URI is required for MongoDbClient")
            client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
        self.client = client
        self.database = self.client[db_name]
        self.logins = self.database[LOGINS_COLLECTION]

    def connect(self) -> None:
        """Block until the server answers a ping."""
        try:
            self.client.admin.command("ping")
        except PyMongoError as exc:
            logger.error("MongoDB connection error: %s", exc)
            raise DatabaseUnavailable() from exc
        logger.info("Connected to MongoDB database %s", self.database.name)

    def insert_login(self, record: LoginRecord) -> None:
        with translate_mongo_errors("Database insert failed"):
            self.logins.insert_one(record.as_dict())

    def list_logins(self) -> list[LoginRecord]:
        with translate_mongo_errors("Could not load login history"):
            cursor = self.logins.find().sort("timestamp", DESCENDING)
            return [LoginRecord.from_document(doc) for doc in cursor]

    def close(self) -> None:
        self.client.close()
