"""
Gemini text-generation client used by ingredient scaling.

One system prompt per model instance, JSON output requested from the API and
parsed here. Fenced answers (```json ... ```) are tolerated.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import google.generativeai as genai

from recipeshare.services.errors import MalformedModelResponseError, ServiceError

logger = logging.getLogger(__name__)

JSON_MIME_TYPE = "application/json"


class GeminiConfigurationError(ServiceError):
    pass


class GeminiPromptError(ServiceError):
    pass


def strip_code_fence(text: str) -> str:
    body = text.strip()
    if not body.startswith("```"):
        return body
    body = body[3:]
    if body.lower().startswith("json"):
        body = body[4:]
    if body.endswith("```"):
        body = body[:-3]
    return body.strip()


class GeminiClient:
    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash") -> None:
        if not api_key:
            raise GeminiConfigurationError("Missing Gemini API key.")
        self.model_name = model_name
        self._models: dict[tuple[Path, str | None], genai.GenerativeModel] = {}
        genai.configure(api_key=api_key)

    def _system_prompt(self, file_path: Path) -> str:
        try:
            return file_path.read_text(encoding="utf-8")
        except OSError as io_error:
            raise GeminiPromptError(f"Unable to read prompt file {file_path}: {io_error}") from io_error

    def _model(self, system_prompt_path: Path, response_mime_type: str | None) -> genai.GenerativeModel:
        key = (system_prompt_path, response_mime_type)
        if key not in self._models:
            config = genai.GenerationConfig(response_mime_type=response_mime_type) if response_mime_type else None
            self._models[key] = genai.GenerativeModel(
                model_name=self.model_name,
                system_instruction=self._system_prompt(system_prompt_path),
                generation_config=config,
            )
        return self._models[key]

    def generate_content(
        self,
        user_prompt: str,
        system_prompt_path: Path,
        response_mime_type: str | None = None,
    ) -> str:
        response = self._model(system_prompt_path, response_mime_type).generate_content(user_prompt)
        try:
            return response.text
        except ValueError as error:
            # Raised by the SDK when the candidate was blocked or is empty
            raise MalformedModelResponseError("model returned no text") from error

    def generate_json(self, user_prompt: str, system_prompt_path: Path) -> Any:
        text = self.generate_content(user_prompt, system_prompt_path, JSON_MIME_TYPE)
        try:
            return json.loads(strip_code_fence(text))
        except json.JSONDecodeError as error:
            logger.warning("Gemini returned non-JSON output (%d chars)", len(text))
            raise MalformedModelResponseError("response is not valid JSON", raw_text=text) from error
