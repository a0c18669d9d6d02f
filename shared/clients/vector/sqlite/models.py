"""SQLAlchemy ORM tables of the SQLite vector store.

documents 1 ── n chunks, with ON DELETE CASCADE from documents to chunks.
Embeddings are little-endian float32 blobs.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, JSON, LargeBinary, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class DocumentRecord(Base):
    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    chunks: Mapped[list["ChunkRecord"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ChunkRecord(Base):
    __tablename__ = "chunks"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    document_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    chunk_metadata: Mapped[dict] = mapped_column("metadata", JSON, nullable=False)
    embedding: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    document: Mapped[DocumentRecord] = relationship(back_populates="chunks")
