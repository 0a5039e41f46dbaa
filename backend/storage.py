# storage.py
from __future__ import annotations
import json, logging, sqlite3, threading, uuid
from abc import ABC, abstractmethod
from typing import Any, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from errors import NotFoundError, StorageError
from helpers import _now

LOG = logging.getLogger("cv_store")


def new_id() -> str:
    return str(uuid.uuid4())


def _dumps(identifier: str, payload: Any) -> str:
    try:
        text = json.dumps(payload, ensure_ascii=False, allow_nan=False)
        # lone surrogates pass json.dumps but no medium can store them
        text.encode("utf-8")
        return text
    except (TypeError, ValueError) as e:  # UnicodeEncodeError is a ValueError
        raise StorageError("payload is not JSON-serializable", details={"id": identifier, "cause": str(e)}) from e


def _loads(identifier: str, text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise StorageError("stored CV is corrupted", details={"id": identifier, "cause": str(e)}) from e


def _check_identifier(identifier: str) -> None:
    if not isinstance(identifier, str) or not identifier:
        raise ValueError("identifier must be a non-empty string")


class RecordStore(ABC):
    """One JSON document per identifier, last write wins.

    Payloads are kept as their JSON text, so whatever `put` accepted comes
    back from `get` unchanged.
    """

    @abstractmethod
    def put(self, identifier: str, payload: Any) -> bool:
        """Insert or fully replace the document stored under `identifier`."""

    @abstractmethod
    def get(self, identifier: str) -> Any:
        """Return the stored document; raise NotFoundError when absent."""

    def close(self) -> None:
        pass


# ------------------------------
# SQLite
# ------------------------------
class SQLiteRecordStore(RecordStore):
    SCHEMA = """
        CREATE TABLE IF NOT EXISTS cvs (
            id TEXT PRIMARY KEY,
            data TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """
    UPSERT = """
        INSERT INTO cvs (id, data, updated_at) VALUES (?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            data = excluded.data,
            updated_at = MAX(cvs.updated_at, excluded.updated_at)
    """

    def __init__(self, path: str = "cv_builder.db", timeout: float = 10.0):
        self.path = path
        self.timeout = timeout
        # one connection for the store's lifetime, every statement under _lock
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        with self._lock:
            self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        try:
            conn = sqlite3.connect(self.path, timeout=self.timeout, check_same_thread=False)
            if self.path != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.Error as e:
            raise StorageError("database unavailable", details={"path": self.path, "cause": str(e)}) from e
        self._conn = conn
        return conn

    def _init_schema(self) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(self.SCHEMA)
        except sqlite3.Error as e:
            raise StorageError("could not initialize cvs table", details={"path": self.path, "cause": str(e)}) from e

    def put(self, identifier: str, payload: Any) -> bool:
        _check_identifier(identifier)
        text = _dumps(identifier, payload)
        with self._lock:
            conn = self._connect()
            try:
                with conn:
                    conn.execute(self.UPSERT, (identifier, text, _now()))
            except sqlite3.Error as e:
                raise StorageError("write failed", details={"id": identifier, "cause": str(e)}) from e
        return True

    def get(self, identifier: str) -> Any:
        with self._lock:
            conn = self._connect()
            try:
                row = conn.execute("SELECT data FROM cvs WHERE id = ?", (identifier,)).fetchone()
            except sqlite3.Error as e:
                raise StorageError("read failed", details={"id": identifier, "cause": str(e)}) from e
        if row is None:
            raise NotFoundError(identifier)
        return _loads(identifier, row[0])

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
            self._conn = None


# ------------------------------
# MongoDB
# ------------------------------
class MongoRecordStore(RecordStore):
    """Documents live in one collection with `_id` = identifier.

    `data` holds the JSON text; `updated_at` only moves forward (`$max`).
    """

    def __init__(self, uri: str = "mongodb://localhost:27017", db_name: str = "cv_builder",
                 collection: str = "cvs", client: Optional[MongoClient] = None):
        self.uri = uri
        self.db_name = db_name
        self.collection_name = collection
        self._client = client
        self._owns_client = client is None
        self._coll = None

    def _get_collection(self):
        if self._coll is not None:
            return self._coll
        if self._client is None:
            self._client = MongoClient(self.uri, serverSelectionTimeoutMS=5000)
        self._coll = self._client[self.db_name][self.collection_name]
        return self._coll

    def put(self, identifier: str, payload: Any) -> bool:
        _check_identifier(identifier)
        text = _dumps(identifier, payload)
        try:
            self._get_collection().update_one(
                {"_id": identifier},
                {"$set": {"data": text}, "$max": {"updated_at": _now()}},
                upsert=True,
            )
        except PyMongoError as e:
            raise StorageError("write failed", details={"id": identifier, "cause": str(e)}) from e
        return True

    def get(self, identifier: str) -> Any:
        try:
            doc = self._get_collection().find_one({"_id": identifier}, {"data": 1})
        except PyMongoError as e:
            raise StorageError("read failed", details={"id": identifier, "cause": str(e)}) from e
        if not doc:
            raise NotFoundError(identifier)
        return _loads(identifier, doc.get("data"))

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
        self._client = None
        self._coll = None


def build_store(config) -> RecordStore:
    """Pick a backend from a Flask config mapping (STORE_BACKEND)."""
    backend = (config.get("STORE_BACKEND") or "sqlite").lower()
    if backend == "sqlite":
        path = config.get("SQLITE_PATH") or "cv_builder.db"
        LOG.info("using sqlite record store at %s", path)
        return SQLiteRecordStore(path)
    if backend == "mongo":
        LOG.info("using mongo record store %s/%s", config.get("MONGO_DB"), config.get("MONGO_COLLECTION"))
        return MongoRecordStore(
            uri=config.get("MONGO_URI") or "mongodb://localhost:27017",
            db_name=config.get("MONGO_DB") or "cv_builder",
            collection=config.get("MONGO_COLLECTION") or "cvs",
        )
    raise ValueError(f"unknown STORE_BACKEND: {backend}")
