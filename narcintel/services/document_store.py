"""
Document store used by the persistence actions.

Collections of JSON documents addressed by (collection, doc_id), with
Firestore-like operations: add with an auto id, set with optional merge,
get, ordered listing and batched writes. Values equal to SERVER_TIMESTAMP are
replaced by the store's clock at write time.
"""

import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, ContextManager, Dict, Iterator, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from narcintel.config import Settings
from narcintel.database import Base, build_engine, build_session_factory
from narcintel.models.document import Document
from narcintel.utils.logging_config import StructuredLogger

logger = StructuredLogger(__name__)

FLAGGED_POSTS = "flagged_posts"
SUSPECTED_USERS = "suspected_users"


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def _now() -> str:
    # Fixed-width ISO string so lexical order matches time order
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _resolve_timestamps(data: Dict[str, Any]) -> Dict[str, Any]:
    now = _now()
    return {key: (now if value is SERVER_TIMESTAMP else value) for key, value in data.items()}


def _to_dict(doc: Document) -> Dict[str, Any]:
    return {"id": doc.doc_id, **doc.data}


class DocumentStore(ABC):
    """
    Capability interface for the persistence actions.

    `add`, `set`, `list` and `batch` back the actions; `get` and `count`
    read single documents and collection sizes, for callers inspecting
    what was written.
    """

    @abstractmethod
    def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Insert a document under a generated id and return the id."""

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        """Create or replace a document; with merge, update only the given top-level fields."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """The document with its id under "id", or None."""

    @abstractmethod
    def list(
        self,
        collection: str,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Documents of a collection, newest first by `order_by` when given."""

    @abstractmethod
    def count(self, collection: str) -> int:
        """Number of documents in a collection."""

    @abstractmethod
    def batch(self) -> ContextManager["WriteBatch"]:
        """Context manager whose writes commit together or not at all."""


class WriteBatch:
    """Writes queued on one session and committed together."""

    def __init__(self, session: Session):
        self._session = session

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._session.add(Document(collection=collection, doc_id=doc_id, data=_resolve_timestamps(data)))
        return doc_id

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        data = _resolve_timestamps(data)
        doc = (
            self._session.query(Document)
            .filter(Document.collection == collection, Document.doc_id == doc_id)
            .one_or_none()
        )
        if doc is None:
            self._session.add(Document(collection=collection, doc_id=doc_id, data=data))
            # Later sets in the same batch must find this row
            self._session.flush()
        elif merge:
            # Reassign so SQLAlchemy notices the JSON change
            doc.data = {**doc.data, **data}
        else:
            doc.data = data


class SQLDocumentStore(DocumentStore):
    """DocumentStore backed by a single SQLAlchemy table of JSON documents."""

    def __init__(self, engine: Engine):
        self.engine = engine
        Base.metadata.create_all(bind=engine)
        self._session_factory = build_session_factory(engine)

    @contextmanager
    def batch(self) -> Iterator[WriteBatch]:
        session = self._session_factory()
        try:
            yield WriteBatch(session)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        with self.batch() as batch:
            return batch.add(collection, data)

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        with self.batch() as batch:
            batch.set(collection, doc_id, data, merge=merge)

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._session_factory() as session:
            doc = (
                session.query(Document)
                .filter(Document.collection == collection, Document.doc_id == doc_id)
                .one_or_none()
            )
            return _to_dict(doc) if doc is not None else None

    def list(
        self,
        collection: str,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Documents of a collection, newest first when order_by names a timestamp field."""
        with self._session_factory() as session:
            query = session.query(Document).filter(Document.collection == collection)
            if order_by:
                query = query.order_by(Document.data[order_by].as_string().desc(), Document.id.desc())
            else:
                query = query.order_by(Document.id)
            if limit is not None:
                query = query.limit(limit)
            return [_to_dict(doc) for doc in query.all()]

    def count(self, collection: str) -> int:
        with self._session_factory() as session:
            return session.query(Document).filter(Document.collection == collection).count()


def build_document_store(config: Settings) -> Optional[DocumentStore]:
    """
    Construct the process-wide store, or None when persistence is disabled.

    A missing database URL or a failing connection disables persistence for
    the lifetime of the process; analyses still run.
    """
    if not config.persistence_configured:
        logger.warning("DATABASE_URL not set. Persistence features will be disabled.")
        return None

    try:
        store = SQLDocumentStore(build_engine(config.database_url))
    except (SQLAlchemyError, ImportError) as e:
        logger.error("Failed to initialize document store", error=str(e))
        return None

    logger.info("Document store initialized", dialect=store.engine.dialect.name)
    return store
