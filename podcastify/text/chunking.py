"""Sentence-bounded text chunking for synthesis requests.

Responsibilities:
- Split arbitrarily long text into chunks that fit a provider size limit.
- Cut only at sentence-terminal punctuation followed by whitespace.
- Keep oversized single sentences whole instead of truncating them.
"""

from __future__ import annotations

import re


class TextChunker:
    """Greedy sentence packer producing ordered chunks under a character limit."""

    _SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")

    def split_sentences(self, text: str) -> list[str]:
        """Return non-empty sentences split at `.`, `!`, `?` followed by whitespace.

        Whitespace runs inside each sentence collapse to single spaces.
        """

        stripped = text.strip()
        if not stripped:
            return []
        sentences = (" ".join(part.split()) for part in self._SENTENCE_BOUNDARY.split(stripped))
        return [sentence for sentence in sentences if sentence]

    def normalize(self, text: str) -> str:
        """Return the text with every whitespace run collapsed to a single space."""

        return " ".join(self.split_sentences(text))

    def to_chunks(self, text: str, max_length: int) -> list[str]:
        """Split text into greedy sentence-packed chunks.

        Args:
            text: Source text of arbitrary length.
            max_length: Maximum chunk length in characters.

        Returns:
            Ordered chunks; joining them with single spaces reproduces
            `normalize(text)`. Empty input yields an empty list.
        """

        if max_length <= 0:
            raise ValueError("`max_length` must be a positive integer.")

        chunks: list[str] = []
        current = ""
        for sentence in self.split_sentences(text):
            if not current:
                current = sentence
                continue
            if len(current) + 1 + len(sentence) > max_length:
                chunks.append(current)
                current = sentence
            else:
                current = f"{current} {sentence}"

        if current:
            chunks.append(current)
        return chunks
