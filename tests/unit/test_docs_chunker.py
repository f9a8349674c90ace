"""Unit tests for the sentence-preserving chunker."""

import pytest

from docrag.docs.chunker import chunk_text, split_sentences


def test_short_text_returns_one_chunk() -> None:
    """Test that text shorter than the limit stays in a single chunk."""
    chunks = chunk_text("Hello world. How are you? I am fine!", 500)

    assert chunks == ["Hello world. How are you? I am fine!"]


def test_sentences_flush_when_limit_exceeded() -> None:
    """Test that each sentence starts a new chunk once the limit would be crossed."""
    chunks = chunk_text("Hello world. How are you? I am fine!", 20)

    assert chunks == ["Hello world.", "How are you?", "I am fine!"]


def test_sentence_filling_limit_exactly_is_kept() -> None:
    """Test that a combined length equal to the limit does not flush."""
    chunks = chunk_text("abcd.efgh.", 10)

    assert chunks == ["abcd.efgh."]


def test_text_without_terminal_punctuation_yields_nothing() -> None:
    """Test that unpunctuated text produces no chunks."""
    assert chunk_text("no punctuation here") == []
    assert chunk_text("") == []
    assert chunk_text("   \n\t ") == []


def test_trailing_fragment_is_dropped() -> None:
    """Test that text after the last terminal mark is not kept."""
    chunks = chunk_text("One. Two. trailing words")

    assert chunks == ["One. Two."]


def test_repeated_terminals_stay_with_their_sentence() -> None:
    """Test that runs like '...' and '?!' close a single sentence."""
    assert split_sentences("Wait... what?!") == ["Wait...", " what?!"]
    assert chunk_text("Wait... what?!") == ["Wait... what?!"]


def test_oversized_sentence_becomes_its_own_chunk() -> None:
    """Test that a sentence longer than the limit is emitted whole, never split."""
    long_sentence = "A" * 30 + "."

    chunks = chunk_text(f"Hi. {long_sentence} Bye.", 10)

    assert chunks == ["Hi.", long_sentence, "Bye."]
    assert len(chunks[1]) > 10


def test_chunks_are_stripped_and_non_empty() -> None:
    """Test that no chunk carries leading or trailing whitespace."""
    text = "  First sentence here.   Second one follows!  \n\n Third?  "

    chunks = chunk_text(text, 25)

    assert chunks
    for chunk in chunks:
        assert chunk
        assert chunk == chunk.strip()


def test_chunks_respect_limit_and_preserve_order() -> None:
    """Test bounded length, document order and whole sentences over a longer text."""
    sentences = [f"Sentence number {i} talks about topic {i * 7}." for i in range(40)]
    text = " ".join(sentences)

    chunks = chunk_text(text, 120)

    assert len(chunks) > 1
    for chunk in chunks:
        assert len(chunk) <= 120

    # Every sentence lands whole in exactly one chunk, in order
    joined = " ".join(chunks)
    assert joined == text
    positions = [joined.index(sentence) for sentence in sentences]
    assert positions == sorted(positions)


def test_chunking_is_deterministic() -> None:
    text = "Alpha. Beta! Gamma? Delta. " * 20

    assert chunk_text(text, 50) == chunk_text(text, 50)


@pytest.mark.parametrize("max_length", [0, -1])
def test_non_positive_limit_rejected(max_length: int) -> None:
    with pytest.raises(ValueError, match="max_length"):
        chunk_text("Hello.", max_length)
