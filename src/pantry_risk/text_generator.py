"""Text generation backends for explanations and insights.

Callers depend on the TextGenerator protocol only. GeminiTextGenerator talks to
Google's hosted models; OfflineTextGenerator always fails so that every caller
takes its rule-based path.
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import google.generativeai as genai

from .exceptions import TextGenerationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-flash"

_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


class TextGenerator(Protocol):
    """Anything that turns a prompt into a completion.

    Callers treat any exception from `complete` as a failed completion and
    fall back to rule-based text.
    """

    def complete(self, prompt: str) -> str: ...


class GeminiTextGenerator:
    """Gemini-backed text generator.

    Uses environment variables when args are omitted:
    - GEMINI_API_KEY
    - GEMINI_MODEL (default: gemini-1.5-flash)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        request_timeout: int = 45,
        generation_config: dict[str, Any] | None = None,
    ):
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")
        if not self.api_key:
            raise TextGenerationError("GEMINI_API_KEY is not configured.")

        self.model_name = model_name or os.environ.get("GEMINI_MODEL", DEFAULT_MODEL)
        self.request_timeout = request_timeout
        self.generation_config = generation_config or {"temperature": 0.4}
        self._model = None

    def _get_model(self) -> "genai.GenerativeModel":
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    def complete(self, prompt: str) -> str:
        """Generate text for a prompt.

        Raises:
            TextGenerationError: If the request fails or returns no text
        """
        try:
            response = self._get_model().generate_content(
                prompt,
                generation_config=self.generation_config,
                request_options={"timeout": self.request_timeout},
            )
            text = getattr(response, "text", "") or ""
        except Exception as exc:
            raise TextGenerationError(f"Gemini request failed: {exc}") from exc

        if not text.strip():
            raise TextGenerationError("Gemini returned an empty response")
        return text.strip()


class OfflineTextGenerator:
    """Generator used when no model is available."""

    def complete(self, prompt: str) -> str:
        raise TextGenerationError("Text generation is disabled")


def create_text_generator(
    enabled: bool = True,
    api_key: str | None = None,
    model_name: str | None = None,
    request_timeout: int = 45,
) -> TextGenerator:
    """Build the configured generator, falling back to offline mode."""
    if not enabled:
        return OfflineTextGenerator()
    try:
        return GeminiTextGenerator(
            api_key=api_key, model_name=model_name, request_timeout=request_timeout
        )
    except TextGenerationError as exc:
        logger.info("Using offline text generation: %s", exc)
        return OfflineTextGenerator()


class ParseErrorKind(str, Enum):
    """Why a model response could not be read as a JSON array."""

    EMPTY = "empty"
    INVALID_JSON = "invalid_json"
    NOT_AN_ARRAY = "not_an_array"
    BAD_SHAPE = "bad_shape"


@dataclass(slots=True)
class JSONArrayResult:
    """Outcome of parsing a model response as a JSON array of objects."""

    value: list[dict[str, Any]] | None = None
    error_kind: ParseErrorKind | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error_kind is None


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    match = _FENCE.match(text)
    return match.group(1).strip() if match else text.strip()


def parse_json_array(text: str, required_keys: tuple[str, ...] = ()) -> JSONArrayResult:
    """Parse a model response as a JSON array of objects with required keys."""
    cleaned = strip_code_fences(text or "")
    if not cleaned:
        return JSONArrayResult(error_kind=ParseErrorKind.EMPTY, detail="empty response")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        return JSONArrayResult(error_kind=ParseErrorKind.INVALID_JSON, detail=str(exc))

    if not isinstance(data, list):
        return JSONArrayResult(
            error_kind=ParseErrorKind.NOT_AN_ARRAY,
            detail=f"expected a JSON array, got {type(data).__name__}",
        )

    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            return JSONArrayResult(
                error_kind=ParseErrorKind.BAD_SHAPE, detail=f"entry {index} is not an object"
            )
        missing = [key for key in required_keys if key not in entry]
        if missing:
            return JSONArrayResult(
                error_kind=ParseErrorKind.BAD_SHAPE,
                detail=f"entry {index} is missing {', '.join(missing)}",
            )

    return JSONArrayResult(value=data)
