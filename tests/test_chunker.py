import pytest

from policy_analyzer.chunker import chunk_text


def _assert_covers(text, chunks):
    assert chunks[0].start == 0
    assert chunks[-1].end == len(text)
    for prev, nxt in zip(chunks, chunks[1:]):
        assert nxt.start <= prev.end, "gap between windows"
        assert nxt.start > prev.start
    for chunk in chunks:
        assert chunk.text == text[chunk.start:chunk.end]


def test_short_text_is_single_chunk():
    chunks = chunk_text("abc", chunk_size=10, overlap=2, max_chunks=4)
    assert len(chunks) == 1
    assert chunks[0].text == "abc"


def test_text_of_exactly_chunk_size_is_single_chunk():
    text = "x" * 100
    assert len(chunk_text(text, chunk_size=100, overlap=10, max_chunks=4)) == 1


def test_windows_overlap_and_cover_text():
    text = "".join(chr(ord("a") + i % 26) for i in range(250))
    chunks = chunk_text(text, chunk_size=100, overlap=20, max_chunks=10)

    assert len(chunks) == 3
    _assert_covers(text, chunks)
    for prev, nxt in zip(chunks, chunks[1:]):
        assert prev.end - nxt.start == 20
    assert [c.index for c in chunks] == [0, 1, 2]


def test_count_capped_by_max_chunks_windows_grow():
    text = "y" * 10_000
    chunks = chunk_text(text, chunk_size=1000, overlap=100, max_chunks=4)

    assert len(chunks) == 4
    _assert_covers(text, chunks)
    assert all(len(c.text) > 1000 for c in chunks)


@pytest.mark.parametrize("length", [101, 999, 1000, 1001, 4567, 12_345])
@pytest.mark.parametrize("max_chunks", [1, 2, 3, 7])
def test_coverage_and_bound_for_many_lengths(length, max_chunks):
    text = "z" * length
    chunks = chunk_text(text, chunk_size=100, overlap=30, max_chunks=max_chunks)
    assert 1 <= len(chunks) <= max_chunks
    _assert_covers(text, chunks)


@pytest.mark.parametrize(
    "chunk_size, overlap, max_chunks",
    [(0, 0, 1), (100, 100, 2), (100, -1, 2), (100, 10, 0)],
)
def test_invalid_parameters(chunk_size, overlap, max_chunks):
    with pytest.raises(ValueError):
        chunk_text("text", chunk_size=chunk_size, overlap=overlap, max_chunks=max_chunks)
