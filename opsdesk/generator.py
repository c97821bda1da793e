"""
Text-generation capability.

TextGenerator is the one operation the desk needs: given a prompt and
options, return generated text. GeminiGenerator implements it over the
Gemini REST API with requests.
"""
import logging
import os
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Raised when the text-generation call fails or returns no text."""
    pass


class TextGenerator:
    """Interface: generate(prompt, **options) -> text."""

    def generate(self, prompt: str, **options) -> str:
        raise NotImplementedError


# Option names accepted by generate() -> generationConfig keys
_OPTION_KEYS = {
    "temperature": "temperature",
    "top_p": "topP",
    "response_mime_type": "responseMimeType",
    "response_schema": "responseSchema",
    "max_output_tokens": "maxOutputTokens",
}


class GeminiGenerator(TextGenerator):
    """HTTP client for the Gemini generateContent endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com",
        timeout: float = 60,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "GeminiGenerator":
        gen = settings.generator
        return cls(
            api_key=os.environ.get(gen.api_key_env),
            model=gen.model,
            base_url=gen.base_url,
            timeout=gen.timeout,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    def build_payload(self, prompt: str, **options) -> Dict[str, Any]:
        config = {
            _OPTION_KEYS[k]: v for k, v in options.items()
            if k in _OPTION_KEYS and v is not None
        }
        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if config:
            payload["generationConfig"] = config
        return payload

    def generate(self, prompt: str, **options) -> str:
        if not self.api_key:
            raise GenerationError("No API key configured for text generation")
        try:
            r = requests.post(
                self.endpoint,
                json=self.build_payload(prompt, **options),
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GenerationError(f"Generation request failed: {e}") from e

        if not r.ok:
            raise GenerationError(f"Generation request returned HTTP {r.status_code}: {r.text[:200]}")

        try:
            data = r.json()
        except ValueError as e:
            raise GenerationError("Generation response was not JSON") from e
        return self.extract_text(data)

    @staticmethod
    def extract_text(data: Dict[str, Any]) -> str:
        """Concatenate the text parts of the first candidate."""
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError("Generation response had no candidates") from e
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        logger.debug(f"Generated {len(text)} chars")
        return text
