"""Concurrent chunk translation and result merging."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Set

from tqdm import tqdm

from .translator import Translator

# Concurrent requests. Kept small so free-tier quotas are not exhausted.
DEFAULT_MAX_WORKERS = 3


@dataclass
class AnomalyLog:
    duplicates: Set[str] = field(default_factory=set)
    missing: Set[str] = field(default_factory=set)
    unexpected: Set[str] = field(default_factory=set)
    failed_chunks: List[int] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.duplicates or self.missing or self.unexpected or self.failed_chunks)


@dataclass
class DispatchResult:
    translated: Dict[str, str]
    anomalies: AnomalyLog
    total_chunks: int
    completed_chunks: int

    @property
    def complete(self) -> bool:
        return not self.anomalies.failed_chunks and not self.anomalies.missing


class TranslationAggregator:
    """Owns the merged translations, anomalies and progress counter.

    Every mutation happens inside one lock acquisition per chunk.
    """

    def __init__(self, seed: Optional[Mapping[str, str]] = None) -> None:
        self._lock = threading.Lock()
        self._translated: Dict[str, str] = dict(seed or {})
        self._anomalies = AnomalyLog()
        self._completed = 0

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    def merge(self, chunk_idx: int, chunk: Mapping[str, str], fragments: Sequence[Mapping[str, str]]) -> None:
        with self._lock:
            seen: Set[str] = set()
            for fragment in fragments:
                for key, value in fragment.items():
                    if key not in chunk:
                        logging.warning("Chunk %s: unplanned key '%s' in response; dropped.", chunk_idx, key)
                        self._anomalies.unexpected.add(key)
                        continue
                    seen.add(key)
                    if key in self._translated:
                        logging.warning("Chunk %s: duplicate key '%s'; keeping the first value.", chunk_idx, key)
                        self._anomalies.duplicates.add(key)
                        continue
                    self._translated[key] = value

            for key in chunk:
                if key not in seen:
                    logging.warning(
                        "Chunk %s: missing value for key '%s'. Consider a smaller --chunk-size and re-run.",
                        chunk_idx,
                        key,
                    )
                    self._anomalies.missing.add(key)
            self._completed += 1

    def record_failure(self, chunk_idx: int, chunk: Mapping[str, str], exc: BaseException) -> None:
        with self._lock:
            logging.error("Chunk %s (%s keys) failed: %s", chunk_idx, len(chunk), exc)
            self._anomalies.failed_chunks.append(chunk_idx)
            self._completed += 1

    def result(self, total_chunks: int) -> DispatchResult:
        with self._lock:
            return DispatchResult(
                translated=dict(self._translated),
                anomalies=self._anomalies,
                total_chunks=total_chunks,
                completed_chunks=self._completed,
            )


def dispatch(
    chunks: Sequence[Mapping[str, str]],
    translator: Translator,
    target_lang: str,
    model: str,
    max_workers: int = DEFAULT_MAX_WORKERS,
    seed: Optional[Mapping[str, str]] = None,
    show_progress: bool = True,
) -> DispatchResult:
    """Translate every chunk with at most ``max_workers`` calls in flight.

    Returns once each chunk has either merged or failed. Failed chunks are
    logged and skipped; there is no automatic retry.
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")

    aggregator = TranslationAggregator(seed)
    total_chunks = len(chunks)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_chunk_idx = {
            executor.submit(translator, chunk, target_lang, model): idx
            for idx, chunk in enumerate(chunks)
        }

        for future in tqdm(
            as_completed(future_to_chunk_idx),
            total=total_chunks,
            desc=f"Translating to {target_lang}",
            unit="chunk",
            disable=not show_progress,
        ):
            chunk_idx = future_to_chunk_idx[future]
            chunk = chunks[chunk_idx]
            try:
                fragments = future.result()
            except Exception as exc:
                aggregator.record_failure(chunk_idx, chunk, exc)
                continue
            aggregator.merge(chunk_idx, chunk, fragments)

    return aggregator.result(total_chunks)
