"""Command line entry point."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .chunking import DEFAULT_CHUNK_SIZE
from .dispatcher import DEFAULT_MAX_WORKERS
from .formats import LocalizationFileError
from .pipeline import translate_file
from .translator import DEFAULT_MODEL, GeminiTranslator, setup_gemini

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")

EXIT_OK = 0
EXIT_INCOMPLETE = 1
EXIT_FATAL = 2


@dataclass(frozen=True)
class RunConfig:
    input: Path
    output: Path
    target_lang: str
    model: str
    chunk_size: int
    max_workers: int
    force: bool
    api_key: Optional[str]


def api_key_from_env() -> Optional[str]:
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="locale-translate",
        description="Translate a JSON, YAML or .strings localization file with Gemini.",
    )
    parser.add_argument("input", type=Path, help="Path to the *.json, *.yaml/*.yml or *.strings file.")
    parser.add_argument("--lang", required=True, help="Target language, e.g. 'German' or 'pt-BR'.")
    parser.add_argument("--output", type=Path, help="Output path (default: output-<lang><input extension>).")
    parser.add_argument("--model", default=DEFAULT_MODEL)
    parser.add_argument(
        "--chunk-size",
        type=positive_int,
        default=DEFAULT_CHUNK_SIZE,
        help="Bytes of key+value text sent per request.",
    )
    parser.add_argument("--max-workers", type=positive_int, default=DEFAULT_MAX_WORKERS)
    parser.add_argument(
        "--force",
        action="store_true",
        help="Retranslate every key instead of resuming from an existing output file.",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help=f"Gemini API key (default: ${API_KEY_ENV_VARS[0]} or ${API_KEY_ENV_VARS[1]}).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress details.")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> RunConfig:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    output = args.output or Path(f"output-{args.lang}{args.input.suffix}")
    return RunConfig(
        input=args.input,
        output=output,
        target_lang=args.lang,
        model=args.model,
        chunk_size=args.chunk_size,
        max_workers=args.max_workers,
        force=args.force,
        api_key=args.api_key or api_key_from_env(),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = parse_args(argv)

    if not config.input.exists():
        logging.error("File does not exist: %s", config.input)
        return EXIT_FATAL
    if not config.api_key:
        logging.error("No API key: pass --api-key or set %s.", " / ".join(API_KEY_ENV_VARS))
        return EXIT_FATAL

    print(f"File path: {config.input}")
    print(f"Language:  {config.target_lang}")
    print(f"🔥 {config.model} + {config.max_workers} worker(s), chunks of {config.chunk_size} bytes.")

    translator = GeminiTranslator(setup_gemini(config.api_key))
    try:
        result = translate_file(
            config.input,
            config.output,
            config.target_lang,
            translator,
            model=config.model,
            chunk_size=config.chunk_size,
            max_workers=config.max_workers,
            force=config.force,
        )
    except LocalizationFileError as exc:
        logging.error("%s", exc)
        return EXIT_FATAL

    print(f"\n✅ Saved result in: {config.output}")
    if not result.complete:
        return EXIT_INCOMPLETE
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
