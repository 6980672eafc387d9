"""Parsing interfaces and concrete parsers for source files."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from edu_assist.types import SourceDocument


def title_from_filename(path: Path) -> str:
    """`intro_to-ethics.md` -> `Intro To Ethics`."""
    stem = re.sub(r"[-_]", " ", path.stem)
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), stem)


class Parser(ABC):
    """Base parser interface used by the ingest pipeline."""

    extensions: tuple[str, ...] = ()
    format_name: str = "text"

    @abstractmethod
    def read(self, path: Path) -> str:
        """Return the raw text of a file."""

    def parse(self, path: Path) -> SourceDocument:
        content = self.read(path)
        return SourceDocument(
            title=title_from_filename(path),
            content=content,
            source_file=path.name,
            metadata={
                "file_path": str(path),
                "file_size": len(content),
                "format": self.format_name,
                "ingested_at": datetime.now(timezone.utc).isoformat(),
            },
        )


class TextParser(Parser):
    """Parser for plain text documents."""

    extensions = (".txt",)

    def read(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")


class MarkdownParser(Parser):
    """Parser for markdown documents; markup is kept as-is."""

    extensions = (".md", ".markdown")
    format_name = "markdown"

    def read(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")


class PdfParser(Parser):
    """Parser for PDF documents; text is extracted page by page."""

    extensions = (".pdf",)
    format_name = "pdf"

    def read(self, path: Path) -> str:
        try:
            reader = PdfReader(path)
            pages = [page.extract_text() or "" for page in reader.pages]
        except PyPdfError as exc:
            raise ValueError(f"Could not read PDF {path.name}: {exc}") from exc
        return "\n".join(pages)


class ParserRegistry:
    """Maps file extension to parser implementation."""

    def __init__(self, parsers: list[Parser] | None = None) -> None:
        self._parsers: dict[str, Parser] = {}
        for parser in parsers or [TextParser(), MarkdownParser(), PdfParser()]:
            self.register(parser)

    def register(self, parser: Parser) -> None:
        for extension in parser.extensions:
            self._parsers[extension.lower()] = parser

    def supports(self, path: str | Path) -> bool:
        return Path(path).suffix.lower() in self._parsers

    def parse_path(self, path: str | Path) -> SourceDocument:
        file_path = Path(path)
        parser = self._parsers.get(file_path.suffix.lower())
        if parser is None:
            raise ValueError(f"No parser registered for extension: {file_path.suffix}")
        return parser.parse(file_path)
