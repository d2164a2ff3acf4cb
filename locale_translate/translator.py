"""Gemini-backed translation of key/value chunks via function calling."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

DEFAULT_MODEL = "gemini-2.5-flash"
UPLOAD_FUNCTION = "upload"

SYSTEM_TEMPLATE = (
    "You will be provided key value pair English phrases, and your task is to "
    "translate the English values into concise {target_lang} and upload them. "
    "The messages are for a localization of a mobile application. "
    "Keep the keys unchanged and call the {function} function exactly once "
    "with every key."
)

# (chunk, target_language, model) -> one dict per function call in the response.
Translator = Callable[[Mapping[str, str], str, str], List[Dict[str, str]]]


class TranslationError(RuntimeError):
    """A chunk could not be translated; nothing from it may be merged."""


def setup_gemini(api_key: str) -> genai.Client:
    """Create a Google GenAI client (google-genai SDK)."""
    return genai.Client(api_key=api_key)


def chunk_to_prompt(chunk: Mapping[str, str]) -> str:
    return "".join(f"{key}:{value}\n" for key, value in chunk.items())


def build_upload_tool(chunk: Mapping[str, str], target_lang: str) -> types.Tool:
    """Declare ``upload`` with one required string parameter per key."""
    parameters = types.Schema(
        type=types.Type.OBJECT,
        properties={
            key: types.Schema(type=types.Type.STRING, description=value)
            for key, value in chunk.items()
        },
        required=list(chunk),
    )
    return types.Tool(
        function_declarations=[
            types.FunctionDeclaration(
                name=UPLOAD_FUNCTION,
                description=f"uploads the {target_lang} phrases",
                parameters=parameters,
            )
        ]
    )


def _normalized_finish_reason(value: object) -> str:
    if value is None:
        return ""
    name = getattr(value, "name", None)
    if isinstance(name, str):
        return name.lower()
    return str(value).lower()


def extract_fragments(response: object) -> List[Dict[str, str]]:
    """Pull the arguments of every ``upload`` call out of a response."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        raise TranslationError("Response without candidates.")
    if len(candidates) != 1:
        raise TranslationError(f"Expected exactly one candidate, received {len(candidates)}.")

    candidate = candidates[0]
    finish_reason = _normalized_finish_reason(getattr(candidate, "finish_reason", None))
    if finish_reason and not ("stop" in finish_reason or "unspecified" in finish_reason):
        logging.warning("Unexpected finish_reason (%s); reading function calls anyway.", finish_reason)

    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) or []
    fragments: List[Dict[str, str]] = []
    for part in parts:
        call = getattr(part, "function_call", None)
        if call is None:
            continue
        if call.name != UPLOAD_FUNCTION:
            logging.warning("Ignoring call to unknown function '%s'.", call.name)
            continue
        fragment: Dict[str, str] = {}
        for key, value in (call.args or {}).items():
            if not isinstance(value, str):
                # Left out so the merge records the key as missing.
                logging.warning("Non-string value for key '%s' (%r); ignored.", key, value)
                continue
            fragment[str(key)] = value
        fragments.append(fragment)

    if not fragments:
        raise TranslationError(f"Model did not call '{UPLOAD_FUNCTION}' (finish_reason={finish_reason or 'n/a'}).")
    return fragments


class GeminiTranslator:
    """Translator port backed by ``client.models.generate_content``.

    A single client is shared by all worker threads. No retries here: a
    failed chunk surfaces as ``TranslationError``.
    """

    def __init__(self, client: genai.Client) -> None:
        self.client = client

    def __call__(self, chunk: Mapping[str, str], target_lang: str, model: str = DEFAULT_MODEL) -> List[Dict[str, str]]:
        if not chunk:
            return []

        config = types.GenerateContentConfig(
            system_instruction=SYSTEM_TEMPLATE.format(target_lang=target_lang, function=UPLOAD_FUNCTION),
            tools=[build_upload_tool(chunk, target_lang)],
            tool_config=types.ToolConfig(
                function_calling_config=types.FunctionCallingConfig(
                    mode=types.FunctionCallingConfigMode.ANY,
                    allowed_function_names=[UPLOAD_FUNCTION],
                )
            ),
        )
        try:
            response = self.client.models.generate_content(
                model=model,
                contents=chunk_to_prompt(chunk),
                config=config,
            )
        except genai_errors.APIError as exc:
            raise TranslationError(f"Gemini API error ({exc.code}): {exc.message}") from exc

        return extract_fragments(response)
