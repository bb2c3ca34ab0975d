"""Sentence-preserving text chunking with word-level overlap.

Splits cleaned document text into :class:`~src.models.rag.ChunkDraft`
objects of at most ``chunk_size`` characters (default 1000) that overlap by
roughly ``chunk_overlap`` characters (default 200).

The chunking strategy has two goals:

1. **Sentence-preserving** -- Chunk boundaries fall between sentences
   (end punctuation followed by whitespace).  A single sentence longer than
   ``chunk_size`` is emitted as its own oversized chunk rather than cut in
   the middle.

2. **Overlapping windows** -- Each new chunk starts with the tail words of
   the previous one, ``floor(chunk_overlap / chunk_size * words)`` of them,
   so a passage that straddles a boundary stays retrievable.

Page numbers are not tracked: sentences are re-joined across page breaks,
so every draft has an unknown page.
"""

from __future__ import annotations

import re

import structlog

from src.models.rag import ChunkDraft
from src.utils.errors import ValidationError
from src.utils.text_normalizer import count_words

logger = structlog.get_logger(logger_name=__name__)

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


class TextChunker:
    """Splits text into overlapping chunks on sentence boundaries.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk, except for a single oversized sentence.
    chunk_overlap:
        Approximate characters carried over from the previous chunk.  Must
        be smaller than *chunk_size*.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200) -> None:
        if chunk_size <= 0:
            raise ValidationError(message=f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValidationError(
                message=(
                    f"chunk_overlap must be in [0, chunk_size), got {chunk_overlap} "
                    f"for chunk_size {chunk_size}"
                )
            )
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    def chunk(self, text: str) -> list[ChunkDraft]:
        """Split *text* into ordered chunk drafts.

        Parameters
        ----------
        text:
            Cleaned document text.

        Returns
        -------
        list[ChunkDraft]
            Drafts with contiguous 0-based ``chunk_index`` values.  Empty
            for empty or whitespace-only input.
        """
        sentences = self._split_sentences(text)
        if not sentences:
            return []

        drafts: list[ChunkDraft] = []
        # The buffer always ends with at least one not-yet-emitted sentence;
        # its first ``overlap_words`` words are the seed from the previous chunk.
        buffer = ""
        overlap_words = 0

        for sentence in sentences:
            candidate = f"{buffer} {sentence}" if buffer else sentence

            if len(candidate) > self._chunk_size and buffer:
                drafts.append(self._make_draft(buffer, len(drafts), overlap_words))
                buffer, overlap_words = self._build_overlap(buffer)
                candidate = f"{buffer} {sentence}" if buffer else sentence

                # The seed alone must not push a sentence past the limit.
                if len(candidate) > self._chunk_size:
                    overlap_words = 0
                    candidate = sentence

            buffer = candidate

        if buffer:
            drafts.append(self._make_draft(buffer, len(drafts), overlap_words))

        logger.debug(
            "text_chunked",
            sentences=len(sentences),
            chunks=len(drafts),
            chunk_size=self._chunk_size,
            chunk_overlap=self._chunk_overlap,
        )
        return drafts

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _split_sentences(text: str) -> list[str]:
        if not text or not text.strip():
            return []
        return [part.strip() for part in _SENTENCE_BOUNDARY.split(text.strip()) if part.strip()]

    def _build_overlap(self, emitted: str) -> tuple[str, int]:
        """Return the tail-word seed for the next chunk and its word count."""
        words = emitted.split()
        seed_count = (self._chunk_overlap * len(words)) // self._chunk_size
        if seed_count <= 0:
            return "", 0
        return " ".join(words[-seed_count:]), seed_count

    @staticmethod
    def _make_draft(buffer: str, index: int, overlap_words: int) -> ChunkDraft:
        text = buffer.strip()
        return ChunkDraft(
            text=text,
            chunk_index=index,
            word_count=count_words(text),
            overlap_word_count=overlap_words,
        )
