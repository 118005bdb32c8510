"""Tests for TextChunker."""

import pytest

from utils.text_chunker import TextChunker


def reassemble(chunks, overlap):
    return chunks[0] + "".join(c[overlap:] for c in chunks[1:])


class TestChunk:
    def test_round_trip_restores_text(self):
        text = "".join(chr(ord("a") + i % 26) for i in range(1234))
        chunker = TextChunker(chunk_size=100, overlap=20)
        chunks = chunker.chunk(text)
        assert reassemble(chunks, 20) == text

    def test_round_trip_with_whitespace_at_borders(self):
        text = "word " * 97 + "\n\n  tail  "
        chunker = TextChunker(chunk_size=40, overlap=7)
        assert reassemble(chunker.chunk(text), 7) == text

    def test_window_sizes(self):
        chunks = TextChunker(chunk_size=10, overlap=3).chunk("x" * 25)
        assert [len(c) for c in chunks] == [10, 10, 10, 4]

    def test_short_text_is_single_chunk(self):
        assert TextChunker(chunk_size=10, overlap=2).chunk("short") == ["short"]

    def test_empty_text(self):
        assert TextChunker().chunk("") == []

    def test_overlap_must_be_smaller_than_chunk_size(self):
        with pytest.raises(ValueError):
            TextChunker(chunk_size=10, overlap=10)


class TestChunkWithMetadata:
    def test_line_ranges_cover_document(self):
        lines = [f"line number {i:02d} with some text" for i in range(1, 31)]
        chunks = TextChunker(chunk_size=120, overlap=0).chunk_with_metadata("\n".join(lines))

        assert chunks[0].start_line == 1
        assert chunks[-1].end_line == 30
        for prev, cur in zip(chunks, chunks[1:]):
            assert cur.start_line == prev.end_line + 1
        for chunk in chunks:
            assert len(chunk.text) <= 120
            assert chunk.text.split("\n")[0] == lines[chunk.start_line - 1]

    def test_next_chunk_starts_with_overlap_tail(self):
        lines = [f"{i:03d}" + "x" * 26 for i in range(10)]
        chunker = TextChunker(chunk_size=100, overlap=20)
        chunks = chunker.chunk_with_metadata("\n".join(lines))

        assert len(chunks) > 1
        for prev, cur in zip(chunks, chunks[1:]):
            assert cur.text.startswith(prev.text[-20:])
            assert cur.start_line <= prev.end_line

    def test_long_line_is_split(self):
        text = "short\n" + "y" * 250 + "\nend"
        chunks = TextChunker(chunk_size=100, overlap=10).chunk_with_metadata(text)

        long_parts = [c for c in chunks if c.start_line == 2 and c.end_line == 2]
        assert len(long_parts) == 3
        assert chunks[0].text == "short"
        assert chunks[-1].text == "end"
        assert chunks[-1].start_line == 3
