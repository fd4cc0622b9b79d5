"""
Split long policy documents into overlapping character windows.

Windows always cover the whole text. If the configured chunk size would need
more than max_chunks windows, the windows grow instead of the count.
"""

import math
from typing import NamedTuple


class Chunk(NamedTuple):
    index: int
    start: int
    end: int
    text: str


def chunk_text(text: str, chunk_size: int, overlap: int, max_chunks: int) -> list[Chunk]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError("overlap must be non-negative and smaller than chunk_size")
    if max_chunks < 1:
        raise ValueError("max_chunks must be at least 1")

    length = len(text)
    if length <= chunk_size:
        return [Chunk(0, 0, length, text)]

    size = chunk_size
    count = math.ceil((length - overlap) / (size - overlap))
    if count > max_chunks:
        count = max_chunks
        size = math.ceil((length + (count - 1) * overlap) / count)
    step = size - overlap

    chunks = []
    for index in range(count):
        start = index * step
        # last window is pinned to the end so rounding never drops a tail
        end = length if index == count - 1 else min(start + size, length)
        chunks.append(Chunk(index, start, end, text[start:end]))
    return chunks
