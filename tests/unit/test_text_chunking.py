"""Unit tests for sentence-bounded text chunking."""

from __future__ import annotations

import pytest

from podcastify.text.chunking import TextChunker


def _sentence(index: int, length: int = 80) -> str:
    """Build one sentence of exactly `length` characters ending with a period."""

    head = f"Sentence {index:03d} "
    return head + "x" * (length - len(head) - 1) + "."


def test_twelve_thousand_characters_split_into_three_chunks() -> None:
    """148 eighty-char sentences (~12,000 chars) should pack into three chunks."""

    text = " ".join(_sentence(index) for index in range(148))
    assert 11_900 <= len(text) <= 12_100

    chunks = TextChunker().to_chunks(text, 5000)

    assert len(chunks) == 3
    assert all(len(chunk) <= 5000 for chunk in chunks)


def test_joined_chunks_reproduce_normalized_text() -> None:
    """Chunks joined with single spaces should equal the whitespace-normalized text."""

    text = "First one.   Second one!\n\nThird one?\tFourth one. Fifth."
    chunker = TextChunker()

    chunks = chunker.to_chunks(text, 25)

    assert " ".join(chunks) == chunker.normalize(text)
    assert chunker.normalize(text) == "First one. Second one! Third one? Fourth one. Fifth."
    assert all(len(chunk) <= 25 for chunk in chunks)


def test_whitespace_inside_sentences_is_collapsed() -> None:
    """Newlines and space runs within a sentence reach the provider as single spaces."""

    text = "Line one\nstill line   one.\n\nSecond\t\tsentence  here!"
    chunker = TextChunker()

    assert chunker.split_sentences(text) == ["Line one still line one.", "Second sentence here!"]
    assert chunker.to_chunks(text, 5000) == ["Line one still line one. Second sentence here!"]
    assert " ".join(chunker.to_chunks(text, 30)) == chunker.normalize(text)


def test_oversized_sentence_becomes_its_own_chunk() -> None:
    """A sentence longer than the limit is kept whole, not truncated."""

    long_sentence = "A" * 60 + "."
    text = f"Short one. {long_sentence} Tail."

    chunks = TextChunker().to_chunks(text, 20)

    assert chunks == ["Short one.", long_sentence, "Tail."]


def test_boundaries_only_after_terminal_punctuation() -> None:
    """Commas, semicolons, and punctuation without trailing whitespace never split."""

    text = "Version 1.5 is out, finally; yes. Next sentence."

    sentences = TextChunker().split_sentences(text)

    assert sentences == ["Version 1.5 is out, finally; yes.", "Next sentence."]


@pytest.mark.parametrize("text", ["", "   ", "\n\t "])
def test_empty_or_blank_text_yields_no_chunks(text: str) -> None:
    """Degenerate input should produce an empty sequence."""

    assert TextChunker().to_chunks(text, 100) == []


def test_single_short_text_is_one_chunk() -> None:
    """Text under the limit should come back unchanged as one chunk."""

    assert TextChunker().to_chunks("Hello world.", 5000) == ["Hello world."]


def test_non_positive_limit_is_rejected() -> None:
    """A zero limit is a programming error."""

    with pytest.raises(ValueError, match="max_length"):
        TextChunker().to_chunks("Hello.", 0)
