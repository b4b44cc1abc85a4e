import logging
import os
from typing import Any, Dict, Optional

import httpx

from llm_interface.contract import AdvisoryClientError, BaseAdvisoryClient
from llm_interface.llm_config import LLMConfig

logger = logging.getLogger(__name__)

DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterClient(BaseAdvisoryClient):
    """
    Advisory client for the OpenRouter (OpenAI-compatible) chat completions API.

    When a response schema is requested the call asks for a JSON object
    (``response_format={"type": "json_object"}``); the schema itself is spelled
    out in the prompt and the gateway validates the output.
    """

    def __init__(self, config: LLMConfig, http_client: Optional[httpx.AsyncClient] = None):
        api_key = config.resolve_api_key()
        super().__init__(config.model, api_key, config.base_url or DEFAULT_OPENROUTER_BASE_URL)
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
        await self.http_client.aclose()

    async def generate(self, prompt: str, response_schema: Optional[Dict[str, Any]] = None) -> str:
        if not self.api_key:
            raise AdvisoryClientError(
                f"Advisory API key missing (set {self.config.api_key_env})", status_code=401
            )

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": os.getenv("OPENROUTER_REFERER", "http://localhost:3000"),
            "X-Title": os.getenv("OPENROUTER_TITLE", "Echelon"),
            "Content-Type": "application/json",
        }
        payload: Dict[str, Any] = {
            "model": self.model_name,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.config.temperature,
        }
        if response_schema is not None:
            payload["response_format"] = {"type": "json_object"}

        try:
            response = await self.http_client.post(
                f"{self.base_url}/chat/completions", headers=headers, json=payload
            )
            response.raise_for_status()
            response_data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "HTTP error from OpenRouter API: %s - %s", e.response.status_code, e.response.text[:500]
            )
            raise AdvisoryClientError(
                f"OpenRouter API returned an HTTP error: {e.response.status_code}",
                status_code=e.response.status_code,
                original_exception=e,
            ) from e
        except httpx.RequestError as e:
            logger.warning("Network error connecting to OpenRouter API: %s", e)
            raise AdvisoryClientError(
                f"Network error connecting to OpenRouter API: {e}", original_exception=e
            ) from e
        except ValueError as e:
            raise AdvisoryClientError(
                f"OpenRouter returned a non-JSON response: {e}", original_exception=e
            ) from e

        choices = response_data.get("choices") if isinstance(response_data, dict) else None
        if not choices or not isinstance(choices, list) or not isinstance(choices[0], dict):
            raise AdvisoryClientError(f"Response missing 'choices' list: {str(response_data)[:500]}")
        message = choices[0].get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not content:
            content = choices[0].get("text")
        if not isinstance(content, str) or not content:
            raise AdvisoryClientError("Response missing content (message or text)")
        return content
