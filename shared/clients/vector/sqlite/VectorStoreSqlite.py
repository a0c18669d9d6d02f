import asyncio
from contextlib import asynccontextmanager, nullcontext
from typing import AsyncIterator

from sqlalchemy import delete, event, func, literal_column, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shared.clients.vector.VectorStoreInterface import VectorStoreInterface
from shared.clients.vector.sqlite.models import Base, ChunkRecord, DocumentRecord
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import PersistenceError
from shared.helper.vector_math import pack_float32, rank_by_similarity, unpack_float32
from shared.models.config import EnvConfig
from shared.models.document import ChunkMetadata, CommitResult, Document, DocumentChunk, SearchHit


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class VectorStoreSqlite(VectorStoreInterface):
    """Vector store on SQLite (SQLAlchemy async + aiosqlite) with a brute-force scan."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._database_url = self.get_config_val("DATABASE_URL", default="sqlite+aiosqlite:///rag_store.db", val_type="string")
        self._echo_sql = self.get_config_val("ECHO_SQL", default=False, val_type="bool")

        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._boot_lock = asyncio.Lock()
        # one writer at a time; searches only take this lock on a shared connection
        self._write_lock = asyncio.Lock()
        self._shared_connection = ":memory:" in self._database_url

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Sqlite"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="DATABASE_URL", val_type="string", default="sqlite+aiosqlite:///rag_store.db"),
            EnvConfig(env_key="ECHO_SQL", val_type="bool", default=False),
        ]

    def _get_session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise PersistenceError("Vector store not initialised. Call boot() before using it.")
        return self._session_factory

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self) -> None:
        """Create the engine and the tables, once."""
        async with self._boot_lock:
            if self._engine is not None:
                return

            engine_kwargs: dict = {"echo": self._echo_sql}
            if self._shared_connection:
                # every session must see the same in-memory database
                engine_kwargs["poolclass"] = StaticPool
                engine_kwargs["connect_args"] = {"check_same_thread": False}

            engine = create_async_engine(self._database_url, **engine_kwargs)
            event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
            try:
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except SQLAlchemyError as exc:
                await engine.dispose()
                raise PersistenceError(f"Could not initialise vector store at {self._database_url}: {exc}") from exc

            self._engine = engine
            self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
            self.logging.info("Vector store ready at %s", self._database_url)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def do_healthcheck(self) -> None:
        async with self._read_session("Vector store healthcheck") as session:
            await session.execute(text("SELECT 1"))

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_list_documents(self) -> list[Document]:
        stmt = select(DocumentRecord).order_by(
            DocumentRecord.created_at.desc(),
            literal_column("documents.rowid").desc(),
        )
        async with self._read_session("Listing documents") as session:
            result = await session.execute(stmt)
            records = result.scalars().all()
        return [
            Document(id=record.id, name=record.name, type=record.type, created_at=record.created_at)
            for record in records
        ]

    async def do_commit(
        self,
        document_id: str,
        name: str,
        type: str,
        chunks: list[DocumentChunk],
    ) -> CommitResult:
        self._validate_commit_request(document_id, name, chunks)
        session_factory = self._get_session_factory()

        async with self._write_lock:
            try:
                async with session_factory() as session:
                    async with session.begin():
                        expected_dimension = self._configured_dimension or await self._fetch_dimension(session)
                        valid_chunks, dropped = self._partition_chunks(chunks, expected_dimension)
                        session.add(DocumentRecord(id=document_id, name=name, type=type or ""))
                        await session.flush()
                        session.add_all([
                            ChunkRecord(
                                id=chunk.id,
                                document_id=document_id,
                                text=chunk.text,
                                chunk_metadata=chunk.metadata.model_dump(by_alias=True, exclude_none=True),
                                embedding=pack_float32(chunk.embedding),
                            )
                            for chunk in valid_chunks
                        ])
            except SQLAlchemyError as exc:
                self.logging.error("Ingestion transaction for document %s rolled back: %s", document_id, exc)
                raise PersistenceError(f"Failed to ingest document '{name}': {exc}") from exc

        self.logging.info(
            "Committed document %s ('%s'): %d chunks stored, %d dropped.",
            document_id, name, len(valid_chunks), len(dropped),
        )
        return CommitResult(document_id=document_id, stored_chunks=len(valid_chunks), dropped_chunks=dropped)

    async def do_delete_document(self, document_id: str) -> bool:
        session_factory = self._get_session_factory()
        async with self._write_lock:
            try:
                async with session_factory() as session:
                    async with session.begin():
                        result = await session.execute(
                            delete(DocumentRecord).where(DocumentRecord.id == document_id)
                        )
            except SQLAlchemyError as exc:
                self.logging.error("Deleting document %s failed: %s", document_id, exc)
                raise PersistenceError(f"Failed to delete document '{document_id}': {exc}") from exc

        deleted = result.rowcount > 0
        self.logging.info("Delete document %s: %s", document_id, "removed" if deleted else "not found")
        return deleted

    async def do_search(self, query_vector: list[float], top_k: int) -> list[SearchHit]:
        self._validate_query(query_vector, top_k)
        records = await self._scan_chunks()
        ranked = rank_by_similarity(
            query_vector,
            ((record, unpack_float32(record.embedding)) for record in records),
            top_k,
        )
        self.logging.debug("Scanned %d chunks, returning %d hits.", len(records), len(ranked))
        return [
            SearchHit(chunk=self._to_chunk(record, with_embedding=False), score=score)
            for record, score in ranked
        ]

    async def do_fetch_chunks(self, document_id: str | None = None) -> list[DocumentChunk]:
        records = await self._scan_chunks(document_id)
        return [self._to_chunk(record, with_embedding=True) for record in records]

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _scan_chunks(self, document_id: str | None = None) -> list[ChunkRecord]:
        """Load chunks in insertion order, which is also the search tie-break order."""
        stmt = select(ChunkRecord).order_by(literal_column("chunks.rowid"))
        if document_id is not None:
            stmt = stmt.where(ChunkRecord.document_id == document_id)
        async with self._read_session("Reading chunks") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @asynccontextmanager
    async def _read_session(self, action: str) -> AsyncIterator[AsyncSession]:
        """Session for one read; storage errors surface as PersistenceError."""
        session_factory = self._get_session_factory()
        # on a shared connection a reader would join, and on return roll back, the open write transaction
        guard = self._write_lock if self._shared_connection else nullcontext()
        async with guard:
            try:
                async with session_factory() as session:
                    yield session
            except SQLAlchemyError as exc:
                self.logging.error("%s failed: %s", action, exc)
                raise PersistenceError(f"{action} failed: {exc}") from exc

    @staticmethod
    async def _fetch_dimension(session: AsyncSession) -> int | None:
        result = await session.execute(select(func.length(ChunkRecord.embedding)).limit(1))
        byte_length = result.scalar_one_or_none()
        return byte_length // 4 if byte_length else None

    @staticmethod
    def _to_chunk(record: ChunkRecord, with_embedding: bool) -> DocumentChunk:
        return DocumentChunk(
            id=record.id,
            document_id=record.document_id,
            text=record.text,
            metadata=ChunkMetadata.model_validate(record.chunk_metadata),
            embedding=unpack_float32(record.embedding) if with_embedding else None,
        )
