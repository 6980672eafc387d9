"""End-to-end ingest pipeline: parse -> clean -> chunk -> embed -> insert."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from edu_assist.errors import EduAssistError
from edu_assist.gateways.embedding import Embedder
from edu_assist.ingest.chunker import WordWindowChunker, clean_text
from edu_assist.ingest.parser import ParserRegistry
from edu_assist.storage.base import DocumentStore
from edu_assist.types import Passage, SourceDocument

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestResult:
    success: bool
    source_file: str
    message: str = ""
    chunks_created: int = 0
    document_ids: list[str] = field(default_factory=list)
    error: str | None = None

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "source_file": self.source_file}
        if self.message:
            payload["message"] = self.message
        if self.success:
            payload["chunks_created"] = self.chunks_created
            payload["document_ids"] = self.document_ids
        if self.error is not None:
            payload["error"] = self.error
        return payload


ProgressCallback = Callable[[int, int, Path, IngestResult], None]


class IngestPipeline:
    """Coordinates parser/chunker/embedder/store stages.

    Ingestion is batch and non-interactive. A document already present in the
    store is refused; the existence check runs immediately before the insert
    and is not locked, so two concurrent ingests of one file can both pass it.
    """

    def __init__(
        self,
        parser_registry: ParserRegistry,
        chunker: WordWindowChunker,
        embedder: Embedder,
        store: DocumentStore,
    ) -> None:
        self._parser_registry = parser_registry
        self._chunker = chunker
        self._embedder = embedder
        self._store = store

    async def ingest_document(self, document: SourceDocument) -> IngestResult:
        """Ingest one document; failures are reported, not raised."""

        try:
            return await self._ingest(document)
        except EduAssistError as exc:
            logger.error("ingest of %s failed: %s", document.source_file, exc.message)
            return IngestResult(success=False, source_file=document.source_file, error=exc.message)

    async def ingest_path(
        self, path: str | Path, *, extra_metadata: dict[str, Any] | None = None
    ) -> IngestResult:
        document = self._parser_registry.parse_path(path)
        if extra_metadata:
            document.metadata.update(extra_metadata)
        return await self.ingest_document(document)

    async def ingest_many(self, documents: list[SourceDocument]) -> list[IngestResult]:
        return [await self.ingest_document(document) for document in documents]

    def list_directory(self, directory: str | Path) -> list[Path]:
        """Supported files directly inside `directory`, sorted by name."""

        root = Path(directory)
        if not root.is_dir():
            raise ValueError(f"Directory not found: {root}")
        return sorted(
            path for path in root.iterdir() if path.is_file() and self._parser_registry.supports(path)
        )

    async def ingest_directory(
        self,
        directory: str | Path,
        *,
        on_result: ProgressCallback | None = None,
    ) -> list[IngestResult]:
        """Ingest every supported file in `directory`, one at a time.

        A file that cannot be read is reported as a failed result and the
        walk continues. `on_result(index, total, path, result)` is called
        after each file.
        """

        files = self.list_directory(directory)
        results: list[IngestResult] = []
        for index, path in enumerate(files, start=1):
            try:
                result = await self.ingest_path(path)
            except (OSError, ValueError) as exc:
                logger.error("could not read %s: %s", path, exc)
                result = IngestResult(success=False, source_file=path.name, error=str(exc))
            results.append(result)
            if on_result is not None:
                on_result(index, len(files), path, result)
        return results

    async def _ingest(self, document: SourceDocument) -> IngestResult:
        if await self._store.source_exists(document.source_file):
            return _already_exists(document)

        chunks = self._chunker.chunk(clean_text(document.content))
        if not chunks:
            return IngestResult(
                success=False,
                source_file=document.source_file,
                message=f"Document {document.source_file} has no content to ingest.",
            )

        embeddings = []
        for index, chunk in enumerate(chunks, start=1):
            embeddings.append(await self._embedder.embed(chunk))
            if index % 10 == 0:
                logger.info("embedded %d/%d chunks of %s", index, len(chunks), document.source_file)

        # Re-check right before the insert; embedding can take a while.
        if await self._store.source_exists(document.source_file):
            return _already_exists(document)

        passages = [
            Passage(
                title=document.title,
                content=chunk,
                source_file=document.source_file,
                chunk_index=index,
                total_chunks=len(chunks),
                embedding=embedding,
                metadata={
                    **document.metadata,
                    "word_count": len(chunk.split()),
                    "char_count": len(chunk),
                },
            )
            for index, (chunk, embedding) in enumerate(zip(chunks, embeddings, strict=True))
        ]
        ids = await self._store.insert_passages(passages)
        logger.info("ingested %s as %d chunks", document.source_file, len(ids))
        return IngestResult(
            success=True,
            source_file=document.source_file,
            message=f"Successfully ingested document: {document.title}",
            chunks_created=len(chunks),
            document_ids=ids,
        )


def _already_exists(document: SourceDocument) -> IngestResult:
    return IngestResult(
        success=False,
        source_file=document.source_file,
        message=(
            f"Document {document.source_file} already exists. "
            "Delete it first if you want to re-ingest."
        ),
    )
