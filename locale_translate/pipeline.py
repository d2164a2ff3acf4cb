"""Read, translate and write one localization file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

from .chunking import DEFAULT_CHUNK_SIZE, partition
from .dispatcher import DEFAULT_MAX_WORKERS, DispatchResult, dispatch
from .formats import read_tree, resolve_format, write_translations
from .resume import load_existing_output, resume
from .translator import DEFAULT_MODEL, Translator
from .tree import flatten


def translate_file(
    input_path: Path,
    output_path: Path,
    target_lang: str,
    translator: Translator,
    model: str = DEFAULT_MODEL,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_workers: int = DEFAULT_MAX_WORKERS,
    force: bool = False,
    show_progress: bool = True,
) -> DispatchResult:
    """Translate ``input_path`` into ``output_path``.

    Unreadable input raises ``LocalizationFileError`` before any request is
    made and nothing is written. Chunk failures only make the result
    incomplete; the partial output is still written so a later run can
    resume from it.
    """
    resolve_format(output_path)
    source = flatten(read_tree(input_path))

    existing = None if force else load_existing_output(output_path)
    pending, seed = resume(source, existing)
    if seed:
        print(f"↩️  Resuming from {output_path}: {len(seed)} key(s) already translated, {len(pending)} to go.")

    chunks = partition(pending, chunk_size)
    logging.info("%s key(s) split into %s chunk(s) of <= %s bytes.", len(pending), len(chunks), chunk_size)
    result = dispatch(
        chunks,
        translator,
        target_lang,
        model,
        max_workers=max_workers,
        seed=seed,
        show_progress=show_progress,
    )

    write_translations(result.translated, output_path)
    report(result, source)
    return result


def report(result: DispatchResult, source: Mapping[str, str]) -> None:
    anomalies = result.anomalies
    if anomalies.duplicates:
        logging.warning("%s duplicate key(s) in responses; first value kept.", len(anomalies.duplicates))
    if anomalies.unexpected:
        logging.warning("%s unplanned key(s) in responses were dropped.", len(anomalies.unexpected))
    if anomalies.failed_chunks:
        logging.error(
            "Translation error in %s of %s chunk(s). The output is incomplete; "
            "run the same command again to translate the remaining keys.",
            len(anomalies.failed_chunks),
            result.total_chunks,
        )

    untranslated = sorted(key for key in source if key not in result.translated)
    if untranslated:
        shown = ", ".join(untranslated[:20])
        more = f" (+{len(untranslated) - 20} more)" if len(untranslated) > 20 else ""
        logging.warning("%s key(s) have no translation yet: %s%s", len(untranslated), shown, more)
