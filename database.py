"""
Database layer for the Portfolio CMS.

Each content table is one MongoDB collection. On top of the two plain helpers
(`create_document`, `get_documents`) sits a small table client:

    store.table("projects").select("*").order("sort_order").execute()

`execute()` never raises; it returns a StoreResult whose `error` must be
checked before `data` is trusted.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import DATABASE_NAME, DATABASE_URL
from errors import StoreError

logger = logging.getLogger(__name__)

TABLES = (
    "profiles",
    "projects",
    "experiences",
    "educations",
    "skills",
    "services",
    "stats",
    "contact_info",
    "footer_info",
    "contact_submissions",
)

# never written by an update
_IMMUTABLE = ("id", "_id", "created_at")


def _connect() -> Optional[Database]:
    if not DATABASE_URL:
        return None
    client = MongoClient(DATABASE_URL, serverSelectionTimeoutMS=5000)
    return client[DATABASE_NAME]


db = _connect()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_row(doc: Dict[str, Any]) -> Dict[str, Any]:
    row = dict(doc)
    row["id"] = str(row.pop("_id"))
    return row


def create_document(collection_name: str, data: Union[BaseModel, dict], database: Optional[Database] = None) -> str:
    """Insert one document with fresh id and timestamps, return its id."""
    database = db if database is None else database
    if database is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME.")

    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    doc.pop("id", None)
    doc["_id"] = str(uuid.uuid4())
    now = _now()
    doc["created_at"] = now
    doc["updated_at"] = now
    database[collection_name].insert_one(doc)
    return doc["_id"]


def get_documents(
    collection_name: str,
    filter_dict: Optional[dict] = None,
    limit: Optional[int] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
    database: Optional[Database] = None,
) -> List[Dict[str, Any]]:
    database = db if database is None else database
    if database is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME.")

    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return [_to_row(doc) for doc in cursor]


@dataclass
class StoreResult:
    data: Any = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Query:
    """One pending table call. Build it with eq/order/single, then execute()."""

    def __init__(self, store: "Store", table: str, action: str, payload: Any = None, columns: str = "*"):
        self._store = store
        self._table = table
        self._action = action
        self._payload = payload
        self._columns = columns
        self._filters: Dict[str, Any] = {}
        self._order: List[Tuple[str, int]] = []
        self._single = False

    @property
    def action(self) -> str:
        return self._action

    @property
    def table(self) -> str:
        return self._table

    def eq(self, column: str, value: Any) -> "Query":
        self._filters["_id" if column == "id" else column] = value
        return self

    def order(self, column: str, desc: bool = False) -> "Query":
        self._order.append((column, DESCENDING if desc else ASCENDING))
        return self

    def single(self) -> "Query":
        self._single = True
        return self

    def execute(self) -> StoreResult:
        database = self._store.db
        if database is None:
            return self._fail(StoreError("Database not available"))
        if self._table not in TABLES:
            return self._fail(StoreError(f'relation "{self._table}" does not exist', code="unknown_table"))

        try:
            rows = getattr(self, f"_run_{self._action}")(database)
        except PyMongoError as exc:
            return self._fail(StoreError(str(exc) or type(exc).__name__, code=type(exc).__name__))
        except ValueError as exc:
            return self._fail(StoreError(str(exc), code="bad_request"))

        if self._single:
            if len(rows) != 1:
                return self._fail(StoreError(f"Expected a single row, found {len(rows)}", code="not_single"))
            return StoreResult(data=rows[0])
        return StoreResult(data=rows)

    def _fail(self, error: StoreError) -> StoreResult:
        logger.warning("Store %s on %s failed: %s", self._action, self._table, error.message)
        return StoreResult(error=error)

    def _fetch(self, database: Database, filters: dict) -> List[Dict[str, Any]]:
        return get_documents(self._table, filters, sort=self._order or None, database=database)

    def _matched_ids(self, database: Database) -> List[str]:
        if not self._filters:
            raise ValueError(f"{self._action.upper()} requires a filter")
        return [doc["_id"] for doc in database[self._table].find(self._filters, {"_id": 1})]

    def _run_select(self, database: Database) -> List[Dict[str, Any]]:
        rows = self._fetch(database, self._filters)
        if self._columns.strip() == "*":
            return rows
        wanted = {c.strip() for c in self._columns.split(",")} | {"id"}
        return [{k: v for k, v in row.items() if k in wanted} for row in rows]

    def _run_insert(self, database: Database) -> List[Dict[str, Any]]:
        payload = self._payload if isinstance(self._payload, list) else [self._payload]
        ids = [create_document(self._table, row, database) for row in payload]
        rows = self._fetch(database, {"_id": {"$in": ids}})
        rows.sort(key=lambda r: ids.index(r["id"]))
        return rows

    def _run_update(self, database: Database) -> List[Dict[str, Any]]:
        values = {k: v for k, v in dict(self._payload).items() if k not in _IMMUTABLE}
        values["updated_at"] = _now()
        ids = self._matched_ids(database)
        if ids:
            database[self._table].update_many({"_id": {"$in": ids}}, {"$set": values})
        return self._fetch(database, {"_id": {"$in": ids}})

    def _run_delete(self, database: Database) -> List[Dict[str, Any]]:
        ids = self._matched_ids(database)
        rows = self._fetch(database, {"_id": {"$in": ids}})
        if ids:
            database[self._table].delete_many({"_id": {"$in": ids}})
        return rows


class Table:
    def __init__(self, store: "Store", name: str):
        self._store = store
        self.name = name

    def select(self, columns: str = "*") -> Query:
        return Query(self._store, self.name, "select", columns=columns)

    def insert(self, rows: Union[dict, List[dict]]) -> Query:
        return Query(self._store, self.name, "insert", payload=rows)

    def update(self, values: dict) -> Query:
        return Query(self._store, self.name, "update", payload=values)

    def delete(self) -> Query:
        return Query(self._store, self.name, "delete")


class Store:
    """Table client over one MongoDB database (None when unconfigured)."""

    def __init__(self, database: Optional[Database] = None):
        self.db = database

    def table(self, name: str) -> Table:
        return Table(self, name)

    def collections(self) -> List[str]:
        if self.db is None:
            return []
        return self.db.list_collection_names()


store = Store(db)
