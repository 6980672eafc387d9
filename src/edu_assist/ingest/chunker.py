"""Word-window chunking with overlap."""

from __future__ import annotations

import re

from edu_assist.config import ChunkingConfig

_WHITESPACE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse every whitespace run to one space and trim."""
    return _WHITESPACE.sub(" ", text).strip()


class WordWindowChunker:
    """Splits text into fixed-size word windows.

    Windows hold `chunk_words` words and start every
    `chunk_words - overlap_words` words, so consecutive chunks share
    `overlap_words` words. The last window may be shorter.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()

    @property
    def stride(self) -> int:
        return self.config.chunk_words - self.config.overlap_words

    def chunk(self, text: str) -> list[str]:
        words = text.split()
        chunks: list[str] = []
        i = 0
        while i < len(words):
            chunks.append(" ".join(words[i : i + self.config.chunk_words]))
            i += self.stride
        return chunks
