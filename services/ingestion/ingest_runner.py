"""Ingestion runner entry point.

Extracts, chunks, embeds and stores one or more local files without going
through the HTTP API.

Usage:
    python -m services.ingestion.ingest_runner handbook.pdf leave-policy.docx
"""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from dotenv import load_dotenv

from services.ingestion.IngestionService import IngestionService
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.vector.VectorStoreManager import VectorStoreManager
from shared.extraction.TextExtractor import extract_text
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import RAGError
from shared.logging.logging_setup import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest PDF, DOCX or TXT files into the vector store.")
    parser.add_argument("files", nargs="+", type=Path, help="Files to ingest.")
    return parser.parse_args(argv)


async def ingest_files(service: IngestionService, files: list[Path], logger) -> int:
    """Ingest every file; a failing file is logged and skipped.

    Returns:
        int: Number of files that failed.
    """
    failures = 0
    for path in files:
        try:
            data = path.read_bytes()
            content_type, _ = mimetypes.guess_type(path.name)
            text, mime_type = extract_text(data, path.name, content_type)
            result = await service.do_ingest_text(
                text=text,
                name=path.name,
                type=mime_type,
                on_progress=lambda fraction, name=path.name: logger.info(
                    "Embedding '%s': %.0f%%", name, fraction * 100
                ),
            )
            logger.info(
                "Ingested '%s' as %s (%d chunks stored, %d dropped).",
                path.name, result.document_id, result.stored_chunks, len(result.dropped_chunks),
                color="green",
            )
        except (OSError, RAGError) as exc:
            failures += 1
            logger.error("Failed to ingest '%s': %s", path, exc)
    return failures


async def main(argv: list[str] | None = None) -> int:
    """Boot the clients, ingest the given files and close the clients again."""
    args = parse_args(argv)
    load_dotenv()
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    embed_client = EmbedClientManager(helper_config=config).get_client()
    vector_store = VectorStoreManager(helper_config=config).get_client()
    try:
        # the embedding provider is required, without it there is nothing to ingest
        try:
            await embed_client.boot()
            await embed_client.do_healthcheck()
        except RAGError as e:
            logger.error("Error booting Embed client %s: %s. Aborting.", embed_client.get_engine_name(), e)
            return 1
        await vector_store.boot()

        service = IngestionService(helper_config=config, embed_client=embed_client, vector_store=vector_store)
        failures = await ingest_files(service, args.files, logger)
    finally:
        await embed_client.close()
        await vector_store.close()

    logger.info("Ingestion finished: %d of %d files failed.", failures, len(args.files))
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
