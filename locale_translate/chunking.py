"""Split a flat key space into size-bounded chunks."""

from __future__ import annotations

from typing import Dict, Iterator, List, Mapping

# Letters (UTF-8 bytes) of key+value per request.
DEFAULT_CHUNK_SIZE = 500


def pair_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


def yield_chunks(flat: Mapping[str, str], byte_budget: int) -> Iterator[Dict[str, str]]:
    """Group pairs so each chunk stays within ``byte_budget``.

    A single pair larger than the budget still gets a chunk of its own.
    The final chunk is always yielded, so empty input gives one empty chunk.
    """
    if byte_budget < 1:
        raise ValueError(f"Chunk byte budget must be at least 1, got {byte_budget}")

    chunk: Dict[str, str] = {}
    current_len = 0
    for key, value in flat.items():
        size = pair_size(key, value)
        if chunk and current_len + size > byte_budget:
            yield chunk
            chunk = {}
            current_len = 0
        chunk[key] = value
        current_len += size
    yield chunk


def partition(flat: Mapping[str, str], byte_budget: int = DEFAULT_CHUNK_SIZE) -> List[Dict[str, str]]:
    return list(yield_chunks(flat, byte_budget))
