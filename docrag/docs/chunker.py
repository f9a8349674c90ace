"""Document chunker - sentence-preserving text splitting."""

import re

# A maximal run of non-terminal characters followed by one or more terminals.
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+")


def split_sentences(text: str) -> list[str]:
    """Split text into sentence-like units, keeping surrounding whitespace.

    Text after the last terminal punctuation mark is not a sentence and is
    dropped; text with no terminal punctuation yields no units at all.
    """
    return SENTENCE_PATTERN.findall(text)


def chunk_text(text: str, max_length: int = 500) -> list[str]:
    """Chunk document text into ordered, bounded-length segments.

    Pure function with no I/O or randomness. Sentences are packed greedily:
    the next sentence joins the running chunk while the combined length stays
    within ``max_length``; otherwise the running chunk is flushed and a new one
    starts with that sentence.

    Args:
        text: Raw document text to chunk
        max_length: Maximum characters per chunk

    Returns:
        Ordered list of stripped, non-empty chunks. The list index is the
        chunk ordinal. A single sentence longer than ``max_length`` is never
        split and becomes its own oversized chunk.

    Raises:
        ValueError: If max_length is not positive
    """
    if max_length <= 0:
        raise ValueError(f"max_length must be positive, got {max_length}")

    chunks: list[str] = []
    current = ""

    for sentence in split_sentences(text):
        if len(current) + len(sentence) <= max_length:
            current += sentence
        else:
            if current:
                chunks.append(current.strip())
            current = sentence

    if current:
        chunks.append(current.strip())

    return chunks
