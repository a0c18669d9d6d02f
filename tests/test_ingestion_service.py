import logging
from unittest.mock import AsyncMock

import pytest

from services.ingestion.IngestionService import IngestionJob, IngestionService, IngestionState
from services.ingestion.TextChunker import chunk_text
from shared.helper.errors import PersistenceError, ProviderError, ValidationError

HANDBOOK = (
    "Annual leave. Every employee is entitled to twenty days of paid leave per year.\n"
    "Remote work. Employees may work remotely up to three days a week with approval.\n"
    "Expenses. Travel expenses are reimbursed within thirty days of submission.\n"
) * 12


@pytest.fixture
def ingestion_service(env, helper_config, embed_client, vector_store):
    env.setenv("INGEST_CHUNK_SIZE", "300")
    env.setenv("INGEST_CHUNK_OVERLAP", "50")
    return IngestionService(helper_config=helper_config, embed_client=embed_client, vector_store=vector_store)


async def test_ingest_text_stores_every_chunk(ingestion_service, vector_store):
    expected = chunk_text(HANDBOOK, chunk_size=300, overlap=50)

    result = await ingestion_service.do_ingest_text(HANDBOOK, name="handbook.txt", type="text/plain")

    assert result.stored_chunks == len(expected)
    assert result.dropped_chunks == []
    documents = await vector_store.do_list_documents()
    assert [(doc.id, doc.name, doc.type) for doc in documents] == [(result.document_id, "handbook.txt", "text/plain")]
    stored = await vector_store.do_fetch_chunks(result.document_id)
    assert [chunk.text for chunk in stored] == expected
    assert {chunk.metadata.source for chunk in stored} == {"handbook.txt"}
    assert len({chunk.id for chunk in stored}) == len(stored)


async def test_progress_is_reported_after_each_window(ingestion_service):
    chunk_count = len(chunk_text(HANDBOOK, chunk_size=300, overlap=50))
    progress = []

    await ingestion_service.do_ingest_text(HANDBOOK, name="handbook.txt", type="text/plain", on_progress=progress.append)

    expected = [min(done, chunk_count) / chunk_count for done in range(5, chunk_count + 5, 5)]
    assert progress == pytest.approx(expected)
    assert progress[-1] == pytest.approx(1.0)


async def test_document_id_can_be_preassigned(ingestion_service):
    result = await ingestion_service.do_ingest_text("Short policy.", name="short.txt", type="text/plain", document_id="doc-1")

    assert result.document_id == "doc-1"
    assert result.stored_chunks == 1


async def test_blank_text_creates_an_empty_document(ingestion_service, vector_store, provider_stub):
    result = await ingestion_service.do_ingest_text("   \n", name="blank.txt", type="text/plain")

    assert result.stored_chunks == 0
    assert provider_stub.embed_inputs == []
    assert len(await vector_store.do_list_documents()) == 1


async def test_embedding_failure_persists_nothing(ingestion_service, vector_store, provider_stub):
    provider_stub.fail_on = "Expenses"

    with pytest.raises(ProviderError):
        await ingestion_service.do_ingest_text(HANDBOOK, name="handbook.txt", type="text/plain")

    assert await vector_store.do_list_documents() == []
    assert await vector_store.do_fetch_chunks() == []


async def test_persistence_failure_is_raised(helper_config, embed_client):
    store = AsyncMock()
    store.do_commit.side_effect = PersistenceError("disk full")
    service = IngestionService(helper_config=helper_config, embed_client=embed_client, vector_store=store)

    with pytest.raises(PersistenceError):
        await service.do_ingest_text("Short policy.", name="short.txt", type="text/plain")

    store.do_commit.assert_awaited_once()


@pytest.mark.parametrize("text, name", [(None, "a.txt"), (b"bytes", "a.txt"), ("text", ""), ("text", None)])
async def test_invalid_input_is_rejected_before_any_work(ingestion_service, provider_stub, text, name):
    with pytest.raises(ValidationError):
        await ingestion_service.do_ingest_text(text, name=name, type="text/plain")

    assert provider_stub.embed_inputs == []


def test_job_follows_the_ingestion_lifecycle():
    job = IngestionJob(document_id="doc", name="doc.txt", logger=logging.getLogger("test"))

    for state in (IngestionState.CHUNKING, IngestionState.EMBEDDING, IngestionState.PERSISTING, IngestionState.DONE):
        job.transition(state)

    assert job.state is IngestionState.DONE


@pytest.mark.parametrize(
    "path, illegal",
    [
        ([], IngestionState.EMBEDDING),
        ([], IngestionState.FAILED),
        ([IngestionState.CHUNKING], IngestionState.FAILED),
        ([IngestionState.CHUNKING, IngestionState.EMBEDDING, IngestionState.FAILED], IngestionState.PERSISTING),
        ([IngestionState.CHUNKING, IngestionState.EMBEDDING, IngestionState.PERSISTING, IngestionState.DONE], IngestionState.CHUNKING),
    ],
)
def test_job_rejects_illegal_transitions(path, illegal):
    job = IngestionJob(document_id="doc", name="doc.txt", logger=logging.getLogger("test"))
    for state in path:
        job.transition(state)

    with pytest.raises(RuntimeError):
        job.transition(illegal)
