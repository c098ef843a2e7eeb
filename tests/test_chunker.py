# tests/test_chunker.py
import re

import pytest

from generation.chunker import chunk_text, count_chunks


def _sentences(total_chars):
    """Prose of '... sentence N.' pieces, trimmed to exactly total_chars."""
    parts = []
    i = 0
    while sum(len(p) for p in parts) < total_chars:
        parts.append(f"The provincial assembly passed resolution number {i} in session. ")
        i += 1
    return "".join(parts)[:total_chars]


def _squash(s):
    return re.sub(r"\s+", "", s)


class TestChunkText:
    def test_nine_thousand_chars_give_three_chunks(self):
        """9000 chars at size 4000 → 3 non-empty chunks within the size bound."""
        text = _sentences(9000)
        chunks = list(chunk_text(text, 4000))

        assert len(chunks) == 3
        for c in chunks:
            assert c.text
            assert len(c.text) <= 4000
        # the first two windows are pulled back to a sentence end, not far below the limit
        assert all(len(c.text) >= 3000 for c in chunks[:2])
        assert [c.index for c in chunks] == [0, 1, 2]

    def test_cuts_after_sentence_terminator(self):
        text = _sentences(9000)
        chunks = list(chunk_text(text, 4000))
        assert chunks[0].text.endswith(".")
        assert chunks[1].text.endswith(".")

    def test_chunks_cover_source_in_order(self):
        text = _sentences(12345)
        chunks = list(chunk_text(text, 1000, min_chunk_chars=0))
        assert _squash("".join(c.text for c in chunks)) == _squash(text)
        starts = [c.start for c in chunks]
        assert starts == sorted(starts)

    def test_short_input_is_single_chunk(self):
        text = "  Short text about the Lahore Resolution.  "
        chunks = list(chunk_text(text, 4000))
        assert len(chunks) == 1
        assert chunks[0].text == "Short text about the Lahore Resolution."

    def test_short_input_kept_even_below_minimum(self):
        chunks = list(chunk_text("Tiny.", 4000))
        assert [c.text for c in chunks] == ["Tiny."]

    def test_empty_and_whitespace_give_nothing(self):
        assert list(chunk_text("", 4000)) == []
        assert list(chunk_text("   \n\t ", 4000)) == []

    def test_hard_cut_without_break_chars(self):
        text = "x" * 2500
        chunks = list(chunk_text(text, 1000))
        assert [len(c.text) for c in chunks] == [1000, 1000, 500]

    def test_tiny_tail_is_dropped(self):
        text = "a" * 1000 + "b" * 20
        chunks = list(chunk_text(text, 1000))
        assert len(chunks) == 1
        assert chunks[0].text == "a" * 1000

    def test_newline_counts_as_break(self):
        text = "y" * 700 + "\n" + "z" * 600
        chunks = list(chunk_text(text, 1000))
        assert chunks[0].text == "y" * 700
        assert chunks[1].text == "z" * 600

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            list(chunk_text("anything", 0))


class TestCountChunks:
    def test_matches_chunk_text(self):
        text = _sentences(9000)
        assert count_chunks(text, 4000) == len(list(chunk_text(text, 4000)))

    def test_zero_for_blank(self):
        assert count_chunks("   ", 4000) == 0
