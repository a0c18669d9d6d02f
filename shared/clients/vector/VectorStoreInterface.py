from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import ValidationError
from shared.helper.vector_math import is_valid_embedding
from shared.models.document import CommitResult, Document, DocumentChunk, SearchHit


class VectorStoreInterface(ClientInterface):
    """Durable collection of documents, chunks and their embeddings.

    Engines must guarantee that:
    - a commit is all-or-nothing (apart from chunks dropped for a bad embedding),
    - deleting a document removes all of its chunks,
    - writers are serialised while readers never wait on them,
    - every stored embedding has the same dimension.

    The default engine scans every chunk on search; an approximate index can be
    plugged in as another engine without changing callers.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        # fixed dimension from config, otherwise learnt from the first stored vector
        dimension = helper_config.get_optional_number_val("EMBED_DIMENSION")
        self._configured_dimension: int | None = int(dimension) if dimension is not None else None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "vector"

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def _validate_commit_request(self, document_id: str, name: str, chunks: list[DocumentChunk] | None) -> None:
        """Reject malformed ingestion requests before anything is written.

        Raises:
            ValidationError: If the document id, name or chunk list is missing,
                or a chunk id is missing or repeated.
        """
        if not document_id or not isinstance(document_id, str):
            raise ValidationError("Missing required field: id")
        if not name or not isinstance(name, str):
            raise ValidationError("Missing required field: name")
        if chunks is None:
            raise ValidationError("Missing required field: chunks")

        seen: set[str] = set()
        for chunk in chunks:
            if not chunk.id:
                raise ValidationError("Every chunk needs an id.")
            if chunk.id in seen:
                raise ValidationError(f"Duplicate chunk id '{chunk.id}'.")
            seen.add(chunk.id)

    def _partition_chunks(
        self,
        chunks: list[DocumentChunk],
        expected_dimension: int | None,
    ) -> tuple[list[DocumentChunk], list[str]]:
        """Split chunks into storable ones and ones without a usable embedding.

        Chunks whose embedding is missing or not a numeric vector are dropped and
        logged. A numeric vector of the wrong dimension is a caller error and
        fails the whole commit.

        Args:
            chunks (list[DocumentChunk]): The chunks of one document, in order.
            expected_dimension (int | None): Dimension already fixed for the store.

        Returns:
            tuple[list[DocumentChunk], list[str]]: The valid chunks in input order
                and the IDs of the dropped ones.

        Raises:
            ValidationError: If a vector does not match the store dimension.
        """
        valid: list[DocumentChunk] = []
        dropped: list[str] = []
        for chunk in chunks:
            if not is_valid_embedding(chunk.embedding):
                self.logging.error("Missing or invalid embedding for chunk %s; skipping it.", chunk.id)
                dropped.append(chunk.id)
                continue
            if expected_dimension is None:
                expected_dimension = len(chunk.embedding)
            elif len(chunk.embedding) != expected_dimension:
                raise ValidationError(
                    f"Chunk '{chunk.id}' has an embedding of dimension {len(chunk.embedding)}, "
                    f"the store expects {expected_dimension}."
                )
            valid.append(chunk)
        return valid, dropped

    @staticmethod
    def _validate_query(query_vector: list[float], top_k: int) -> None:
        if not is_valid_embedding(query_vector):
            raise ValidationError("queryEmbedding must be a non-empty list of numbers.")
        if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 0:
            raise ValidationError("topK must be a non-negative integer.")

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_list_documents(self) -> list[Document]:
        """Return every document, newest first."""
        pass

    @abstractmethod
    async def do_commit(
        self,
        document_id: str,
        name: str,
        type: str,
        chunks: list[DocumentChunk],
    ) -> CommitResult:
        """Atomically create a document and its chunks.

        Chunks without a valid embedding are skipped (and reported in the
        result); the document is created regardless.

        Args:
            document_id (str): Caller-assigned document ID, never reused.
            name (str): Display name, usually the file name.
            type (str): MIME type or extension.
            chunks (list[DocumentChunk]): Chunks in document order.

        Returns:
            CommitResult: Stored and dropped chunk counts.

        Raises:
            ValidationError: If the request is malformed or a vector has the wrong dimension.
            PersistenceError: If the transaction fails; nothing is written.
        """
        pass

    @abstractmethod
    async def do_delete_document(self, document_id: str) -> bool:
        """Delete a document and all of its chunks.

        Returns:
            bool: True if the document existed.

        Raises:
            PersistenceError: If the transaction fails.
        """
        pass

    @abstractmethod
    async def do_search(self, query_vector: list[float], top_k: int) -> list[SearchHit]:
        """Rank stored chunks by cosine similarity to query_vector.

        Returns:
            list[SearchHit]: At most top_k hits by descending score; ties keep storage order.

        Raises:
            ValidationError: If the query vector or top_k is malformed.
        """
        pass

    @abstractmethod
    async def do_fetch_chunks(self, document_id: str | None = None) -> list[DocumentChunk]:
        """Return stored chunks (with embeddings) in storage order, optionally for one document."""
        pass
