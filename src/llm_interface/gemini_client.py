import json
import logging
from typing import Any, Dict, Optional

import httpx

from llm_interface.contract import AdvisoryClientError, BaseAdvisoryClient
from llm_interface.llm_config import LLMConfig

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient(BaseAdvisoryClient):
    """
    Advisory client for the Gemini ``generateContent`` REST API.

    Uses httpx for asynchronous requests. When a ``response_schema`` is given the
    request asks for JSON output constrained by that schema
    (``responseMimeType=application/json`` + ``responseSchema``).

    A missing API key is not fatal at construction time: every call then raises
    :class:`AdvisoryClientError` with status 401 without touching the network,
    which callers treat like any other non-retryable client error.
    """

    def __init__(self, config: LLMConfig, http_client: Optional[httpx.AsyncClient] = None):
        api_key = config.resolve_api_key()
        super().__init__(config.model, api_key, config.base_url or DEFAULT_GEMINI_BASE_URL)
        self.config = config
        self.base_url = self.base_url.rstrip("/")
        self.http_client = http_client or httpx.AsyncClient(timeout=config.timeout)

        if not api_key:
            logger.warning(
                "Environment variable '%s' is not set; advisory calls will fail and the "
                "simulation will use fallback agents and reports.",
                config.api_key_env,
            )

    async def aclose(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    def _build_payload(self, prompt: str, response_schema: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {"temperature": self.config.temperature}
        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = response_schema
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

    @staticmethod
    def _extract_text(response_data: Any) -> str:
        if not isinstance(response_data, dict):
            raise AdvisoryClientError(f"Gemini response is not a JSON object: {str(response_data)[:200]}")
        candidates = response_data.get("candidates")
        if not candidates or not isinstance(candidates, list):
            feedback = response_data.get("promptFeedback")
            raise AdvisoryClientError(f"Gemini response has no candidates (feedback={feedback})")
        candidate = candidates[0]
        content = candidate.get("content") if isinstance(candidate, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise AdvisoryClientError("Gemini response candidate has no content parts")
        text = "".join(
            part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
        if not text.strip():
            raise AdvisoryClientError("Gemini response candidate has no text content")
        return text

    async def generate(self, prompt: str, response_schema: Optional[Dict[str, Any]] = None) -> str:
        if not self.api_key:
            raise AdvisoryClientError(
                f"Advisory API key missing (set {self.config.api_key_env})", status_code=401
            )

        url = f"{self.base_url}/models/{self.model_name}:generateContent"
        payload = self._build_payload(prompt, response_schema)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Calling Gemini model %s with payload: %s", self.model_name, json.dumps(payload)[:2000])

        try:
            response = await self.http_client.post(
                url,
                headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                json=payload,
            )
            response.raise_for_status()
            response_data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "HTTP error from Gemini API: %s - %s", e.response.status_code, e.response.text[:500]
            )
            raise AdvisoryClientError(
                f"Gemini API returned an HTTP error: {e.response.status_code}",
                status_code=e.response.status_code,
                original_exception=e,
            ) from e
        except httpx.RequestError as e:
            logger.warning("Network error connecting to Gemini API: %s", e)
            raise AdvisoryClientError(
                f"Network error connecting to Gemini API: {e}", original_exception=e
            ) from e
        except ValueError as e:
            raise AdvisoryClientError(
                f"Gemini returned a non-JSON response: {e}", original_exception=e
            ) from e

        return self._extract_text(response_data)
