import asyncio
from pathlib import Path

import pytest
from pypdf import PdfWriter

from edu_assist.config import ChunkingConfig
from edu_assist.errors import UpstreamError
from edu_assist.gateways.embedding import Embedder
from edu_assist.ingest.chunker import WordWindowChunker
from edu_assist.ingest.parser import ParserRegistry
from edu_assist.ingest.pipeline import IngestPipeline
from edu_assist.ingest.parser import title_from_filename
from edu_assist.types import SourceDocument


def _pipeline(store, embedder, chunk_words: int = 20, overlap_words: int = 5) -> IngestPipeline:
    return IngestPipeline(
        ParserRegistry(),
        WordWindowChunker(ChunkingConfig(chunk_words=chunk_words, overlap_words=overlap_words)),
        embedder,
        store,
    )


def test_ingest_markdown_file_then_search_finds_it(tmp_path, store, embedder, search_service) -> None:
    body = " ".join(f"photosynthesis step {i} converts light into sugar" for i in range(10))
    path = tmp_path / "plant_cell-biology.md"
    path.write_text(body, encoding="utf-8")
    pipeline = _pipeline(store, embedder)

    result = asyncio.run(pipeline.ingest_path(path, extra_metadata={"subject": "biology"}))

    assert result.success is True
    assert result.message == "Successfully ingested document: Plant Cell Biology"
    assert result.chunks_created == len(result.document_ids) == 5

    passages = sorted(store._passages, key=lambda passage: passage.chunk_index)
    assert [passage.chunk_index for passage in passages] == [0, 1, 2, 3, 4]
    assert {passage.total_chunks for passage in passages} == {5}
    first = passages[0]
    assert first.metadata["subject"] == "biology"
    assert first.metadata["format"] == "markdown"
    assert first.metadata["word_count"] == 20
    assert first.metadata["char_count"] == len(first.content)
    assert first.metadata["file_path"] == str(path)

    hits = asyncio.run(search_service.search(passages[2].content))
    assert hits[0].source_file == "plant_cell-biology.md"
    assert hits[0].chunk_index == 2


def test_existing_document_is_refused(store, embedder) -> None:
    pipeline = _pipeline(store, embedder)
    document = SourceDocument(title="Fractions", content="halves and quarters", source_file="fractions.txt")

    first = asyncio.run(pipeline.ingest_document(document))
    second = asyncio.run(pipeline.ingest_document(document))

    assert first.success is True
    assert second.success is False
    assert second.message == (
        "Document fractions.txt already exists. Delete it first if you want to re-ingest."
    )
    assert len(store._passages) == 1


def test_empty_document_is_refused(store, embedder) -> None:
    result = asyncio.run(
        _pipeline(store, embedder).ingest_document(
            SourceDocument(title="Blank", content=" \n\t ", source_file="blank.txt")
        )
    )

    assert result.success is False
    assert result.as_payload()["message"] == "Document blank.txt has no content to ingest."
    assert store._passages == []


def test_batch_continues_after_a_failure(store) -> None:
    class FlakyEmbedder(Embedder):
        dimension = 4

        async def embed(self, text: str) -> list[float]:
            if "broken" in text:
                raise UpstreamError("Embedding API error (500)", status=500)
            return [1.0, 0.0, 0.0, 0.0]

    pipeline = _pipeline(store, FlakyEmbedder())
    documents = [
        SourceDocument(title="Broken", content="a broken document", source_file="broken.txt"),
        SourceDocument(title="Good", content="a good document", source_file="good.txt"),
    ]

    results = asyncio.run(pipeline.ingest_many(documents))

    assert [result.success for result in results] == [False, True]
    assert results[0].as_payload() == {
        "success": False,
        "source_file": "broken.txt",
        "error": "Embedding API error (500)",
    }
    assert asyncio.run(store.source_exists("good.txt")) is True


def test_unsupported_extension_is_rejected(tmp_path, store, embedder) -> None:
    path = tmp_path / "slides.pptx"
    path.write_bytes(b"binary")

    with pytest.raises(ValueError, match="No parser registered"):
        asyncio.run(_pipeline(store, embedder).ingest_path(path))


def test_title_from_filename() -> None:
    assert title_from_filename(Path("intro_to-ethics.md")) == "Intro To Ethics"
    assert ParserRegistry().supports("notes.TXT") is True


def _write_blank_pdf(path: Path) -> None:
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    writer.write(path)


def test_ingest_directory_walks_supported_files_in_order(tmp_path, store, embedder) -> None:
    (tmp_path / "b_fractions.md").write_text("fractions compare parts of a whole " * 6, encoding="utf-8")
    (tmp_path / "a_decimals.txt").write_text("decimals use place value " * 6, encoding="utf-8")
    (tmp_path / "c_broken.txt").write_bytes(b"\xff\xfe not utf-8 \xff")
    _write_blank_pdf(tmp_path / "d_scan.pdf")
    (tmp_path / "slides.pptx").write_bytes(b"ignored")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "deeper.md").write_text("not walked", encoding="utf-8")
    pipeline = _pipeline(store, embedder)
    progress: list[tuple[int, int, str, bool]] = []

    results = asyncio.run(
        pipeline.ingest_directory(
            tmp_path,
            on_result=lambda index, total, path, result: progress.append(
                (index, total, path.name, result.success)
            ),
        )
    )

    assert progress == [
        (1, 4, "a_decimals.txt", True),
        (2, 4, "b_fractions.md", True),
        (3, 4, "c_broken.txt", False),
        (4, 4, "d_scan.pdf", False),
    ]
    assert [result.source_file for result in results] == [name for _, _, name, _ in progress]
    assert "utf-8" in results[2].error
    assert results[3].message == "Document d_scan.pdf has no content to ingest."
    assert {passage.source_file for passage in store._passages} == {"a_decimals.txt", "b_fractions.md"}


def test_ingest_directory_missing_folder_raises(tmp_path, store, embedder) -> None:
    with pytest.raises(ValueError, match="Directory not found"):
        asyncio.run(_pipeline(store, embedder).ingest_directory(tmp_path / "absent"))


def test_parser_registry_reads_pdf_files(tmp_path) -> None:
    path = tmp_path / "worked_examples.pdf"
    _write_blank_pdf(path)

    document = ParserRegistry().parse_path(path)

    assert document.title == "Worked Examples"
    assert document.content == ""
    assert document.metadata["format"] == "pdf"


def test_pdf_parser_wraps_unreadable_files(tmp_path) -> None:
    path = tmp_path / "corrupt.pdf"
    path.write_bytes(b"not a pdf at all")

    with pytest.raises(ValueError, match="Could not read PDF corrupt.pdf"):
        ParserRegistry().parse_path(path)
