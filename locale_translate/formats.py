"""Readers and writers for JSON, YAML and Apple ``.strings`` files."""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import yaml

from .tree import Branch, flatten, to_plain, tree_from_mapping, unflatten

JSON_SUFFIXES = (".json",)
YAML_SUFFIXES = (".yaml", ".yml")
STRINGS_SUFFIXES = (".strings",)

STRINGS_ENTRY_RE = re.compile(r'^\s*"([^"\\]*(?:\\.[^"\\]*)*)"\s*=\s*"([^"\\]*(?:\\.[^"\\]*)*)"\s*;')
STRINGS_COMMENT_RE = re.compile(r"^\s*(//|/\*|\*|--)")
# An already escaped pair, or a single character that needs escaping.
STRINGS_ESCAPE_RE = re.compile(r'\\[\\"nrtU0]|[\\"\n\r]')
STRINGS_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r"}


class LocalizationFileError(ValueError):
    """The file cannot be read or written as a localization tree."""


def decode_auto(raw: bytes) -> Tuple[str, Optional[bytes]]:
    if raw.startswith(b"\xff\xfe"):
        return raw[2:].decode("utf-16-le"), b"\xff\xfe"
    if raw.startswith(b"\xfe\xff"):
        return raw[2:].decode("utf-16-be"), b"\xfe\xff"
    if raw.startswith(b"\xef\xbb\xbf"):
        return raw[3:].decode("utf-8"), b"\xef\xbb\xbf"
    return raw.decode("utf-8"), None


def read_text(path: Path) -> str:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise LocalizationFileError(f"{path}: cannot read file ({exc.strerror or exc})") from exc
    try:
        content, _ = decode_auto(raw)
    except UnicodeDecodeError as exc:
        raise LocalizationFileError(f"{path}: cannot decode file ({exc})") from exc
    return content


def parse_json(content: str, path: Path) -> Branch:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise LocalizationFileError(f"{path}: invalid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise LocalizationFileError(f"{path}: top-level JSON value must be an object")
    return tree_from_mapping(data)


def parse_yaml(content: str, path: Path) -> Branch:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise LocalizationFileError(f"{path}: invalid YAML ({exc})") from exc
    if data is None:
        return Branch()
    if not isinstance(data, dict):
        raise LocalizationFileError(f"{path}: top-level YAML value must be a mapping")
    return tree_from_mapping(data)


def parse_strings(content: str, path: Path) -> Branch:
    """Parse ``"key" = "value";`` lines; comment lines are skipped.

    Keys are kept verbatim, so a dotted key stays a single flat entry.
    """
    data: Dict[str, Any] = {}
    for line in content.splitlines():
        if STRINGS_COMMENT_RE.match(line):
            continue
        match = STRINGS_ENTRY_RE.match(line)
        if match:
            data[match.group(1)] = match.group(2)
    return tree_from_mapping(data)


def dump_json(tree: Branch) -> str:
    return json.dumps(to_plain(tree), ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def dump_yaml(tree: Branch) -> str:
    return yaml.safe_dump(to_plain(tree), allow_unicode=True, default_flow_style=False, sort_keys=True)


def escape_strings_literal(text: str) -> str:
    """Escape quotes, backslashes and line breaks; existing escapes are kept."""

    def repl(match: re.Match[str]) -> str:
        token = match.group(0)
        if len(token) == 2:
            return token
        return STRINGS_ESCAPES[token]

    return STRINGS_ESCAPE_RE.sub(repl, text)


def dump_strings(tree: Branch) -> str:
    flat = flatten(tree)
    return "".join(
        f'"{escape_strings_literal(key)}" = "{escape_strings_literal(flat[key])}";\n' for key in sorted(flat)
    )


FORMATS: Dict[Tuple[str, ...], Tuple[Callable[[str, Path], Branch], Callable[[Branch], str]]] = {
    JSON_SUFFIXES: (parse_json, dump_json),
    YAML_SUFFIXES: (parse_yaml, dump_yaml),
    STRINGS_SUFFIXES: (parse_strings, dump_strings),
}


def resolve_format(path: Path) -> Tuple[Callable[[str, Path], Branch], Callable[[Branch], str]]:
    suffix = path.suffix.lower()
    for suffixes, handlers in FORMATS.items():
        if suffix in suffixes:
            return handlers
    raise LocalizationFileError(f"Unsupported file extension: {path.suffix or '(none)'}")


def read_tree(path: Path) -> Branch:
    parse, _ = resolve_format(path)
    return parse(read_text(path), path)


def atomic_write(data: bytes, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    temp_path = output.with_name(output.name + ".tmp")
    with temp_path.open("wb") as fp:
        fp.write(data)
        fp.flush()
        os.fsync(fp.fileno())
    os.replace(temp_path, output)


def write_tree(tree: Branch, path: Path) -> None:
    _, dump = resolve_format(path)
    atomic_write(dump(tree).encode("utf-8"), path)


def write_translations(flat: Mapping[str, str], path: Path) -> None:
    """Write a flat translation map in the format implied by ``path``.

    ``.strings`` keys are flat by nature, so they are not split on dots.
    """
    if path.suffix.lower() in STRINGS_SUFFIXES:
        tree = tree_from_mapping(flat)
    else:
        tree = unflatten(flat)
    write_tree(tree, path)
