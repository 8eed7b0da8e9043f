from sqlalchemy import Column, DateTime, Integer, JSON, String, UniqueConstraint, func
from narcintel.database import Base


class Document(Base):
    """One JSON document in a named collection (flagged_posts, suspected_users)."""
    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("collection", "doc_id", name="uq_collection_doc_id"),)

    id = Column(Integer, primary_key=True, index=True)
    collection = Column(String(64), nullable=False, index=True)
    doc_id = Column(String(128), nullable=False)  # auto hex id or natural key (username)

    data = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
