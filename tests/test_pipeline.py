from __future__ import annotations

import json
import logging

import pytest

from locale_translate.formats import LocalizationFileError
from locale_translate.pipeline import translate_file
from locale_translate.translator import TranslationError


class RecordingTranslator:
    def __init__(self, fail_keys=()) -> None:
        self.sent: list[str] = []
        self.fail_keys = set(fail_keys)

    def __call__(self, chunk, target_lang, model):
        self.sent.extend(chunk)
        if self.fail_keys & set(chunk):
            raise TranslationError("service unavailable")
        return [{key: value.upper() for key, value in chunk.items()}] if chunk else []


def _write_json(path, data) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


def test_end_to_end_json(tmp_path) -> None:
    source = tmp_path / "en.json"
    output = tmp_path / "out" / "de.json"
    _write_json(source, {"a": {"b": "Hello"}, "c": "World"})
    translator = RecordingTranslator()

    result = translate_file(source, output, "German", translator, chunk_size=1000, show_progress=False)

    assert result.total_chunks == 1
    assert result.translated == {"a.b": "HELLO", "c": "WORLD"}
    assert json.loads(output.read_text(encoding="utf-8")) == {"a": {"b": "HELLO"}, "c": "WORLD"}


def test_resume_skips_existing_keys(tmp_path) -> None:
    source = tmp_path / "en.json"
    output = tmp_path / "de.json"
    _write_json(source, {"a": {"b": "Hello"}, "c": "World"})
    _write_json(output, {"a": {"b": "Hallo"}})
    translator = RecordingTranslator()

    translate_file(source, output, "German", translator, show_progress=False)

    assert translator.sent == ["c"]
    assert json.loads(output.read_text(encoding="utf-8")) == {"a": {"b": "Hallo"}, "c": "WORLD"}


def test_force_retranslates_everything(tmp_path) -> None:
    source = tmp_path / "en.json"
    output = tmp_path / "de.json"
    _write_json(source, {"a": {"b": "Hello"}, "c": "World"})
    _write_json(output, {"a": {"b": "Hallo"}})
    translator = RecordingTranslator()

    translate_file(source, output, "German", translator, force=True, show_progress=False)

    assert sorted(translator.sent) == ["a.b", "c"]
    assert json.loads(output.read_text(encoding="utf-8")) == {"a": {"b": "HELLO"}, "c": "WORLD"}


def test_fully_translated_output_sends_nothing(tmp_path) -> None:
    source = tmp_path / "en.json"
    output = tmp_path / "de.json"
    _write_json(source, {"a": "Hello"})
    _write_json(output, {"a": "Hallo"})
    translator = RecordingTranslator()

    result = translate_file(source, output, "German", translator, show_progress=False)

    assert translator.sent == []
    assert result.complete
    assert json.loads(output.read_text(encoding="utf-8")) == {"a": "Hallo"}


def test_failed_chunk_leaves_partial_output(tmp_path, caplog) -> None:
    source = tmp_path / "en.json"
    output = tmp_path / "de.json"
    _write_json(source, {"first": "aaaa", "second": "bbbb"})
    translator = RecordingTranslator(fail_keys={"first"})

    with caplog.at_level(logging.WARNING):
        result = translate_file(source, output, "German", translator, chunk_size=10, show_progress=False)

    assert result.total_chunks == 2
    assert result.completed_chunks == 2
    assert result.anomalies.failed_chunks == [0]
    assert json.loads(output.read_text(encoding="utf-8")) == {"second": "BBBB"}
    assert "run the same command again" in caplog.text
    assert "first" in caplog.text

    retry = RecordingTranslator()
    translate_file(source, output, "German", retry, chunk_size=10, show_progress=False)

    assert retry.sent == ["first"]
    assert json.loads(output.read_text(encoding="utf-8")) == {"first": "AAAA", "second": "BBBB"}


def test_strings_file_keeps_dotted_keys(tmp_path) -> None:
    source = tmp_path / "en.strings"
    output = tmp_path / "de.strings"
    source.write_text('"menu.open" = "Open";\n"title" = "App";\n', encoding="utf-8")

    translate_file(source, output, "German", RecordingTranslator(), show_progress=False)

    assert output.read_text(encoding="utf-8") == '"menu.open" = "OPEN";\n"title" = "APP";\n'


def test_yaml_round_trip(tmp_path) -> None:
    source = tmp_path / "en.yml"
    output = tmp_path / "de.yml"
    source.write_text("menu:\n  open: Open\n", encoding="utf-8")

    translate_file(source, output, "German", RecordingTranslator(), show_progress=False)

    assert output.read_text(encoding="utf-8") == "menu:\n  open: OPEN\n"


def test_malformed_input_writes_nothing(tmp_path) -> None:
    source = tmp_path / "en.json"
    output = tmp_path / "de.json"
    source.write_text("{broken", encoding="utf-8")
    translator = RecordingTranslator()

    with pytest.raises(LocalizationFileError):
        translate_file(source, output, "German", translator, show_progress=False)

    assert translator.sent == []
    assert not output.exists()


def test_unsupported_output_extension_fails_early(tmp_path) -> None:
    source = tmp_path / "en.json"
    _write_json(source, {"a": "b"})
    translator = RecordingTranslator()

    with pytest.raises(LocalizationFileError):
        translate_file(source, tmp_path / "de.txt", "German", translator, show_progress=False)

    assert translator.sent == []


def test_strings_quotes_survive_resume(tmp_path) -> None:
    source = tmp_path / "en.strings"
    output = tmp_path / "de.strings"
    source.write_text('"ok" = "Press \\"OK\\"";\n', encoding="utf-8")

    def quoting(chunk, target_lang, model):
        return [{key: 'Drücke "OK"' for key in chunk}] if chunk else []

    translate_file(source, output, "German", quoting, show_progress=False)
    assert output.read_text(encoding="utf-8") == '"ok" = "Drücke \\"OK\\"";\n'

    again = RecordingTranslator()
    result = translate_file(source, output, "German", again, show_progress=False)

    assert again.sent == []
    assert result.translated == {"ok": 'Drücke \\"OK\\"'}
