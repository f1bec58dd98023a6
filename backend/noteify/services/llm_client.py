"""Client for the hosted generative-text API (OpenAI-compatible chat completions)."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from fastapi import status
from pydantic import BaseModel, ValidationError

from .config import AppConfig, get_config

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Some models wrap JSON answers in a markdown code fence
_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


class AIFlowError(Exception):
    """Raised when an AI flow cannot produce a valid result."""

    def __init__(
        self,
        message: str,
        *,
        error: str = "ai_error",
        status_code: int = status.HTTP_502_BAD_GATEWAY,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code
        self.details = details or {}


def extract_json(text: str) -> Any:
    """Parse a JSON document out of a model reply."""
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1)
    return json.loads(text)


class LLMClient:
    """Send one prompt, get back one schema-validated object."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or get_config()
        self.transport = transport

    async def complete_json(self, prompt: str, output_model: Type[ModelT]) -> ModelT:
        if not self.config.llm_api_key:
            raise AIFlowError(
                "AI features are not configured. Set LLM_API_KEY.",
                error="ai_not_configured",
                status_code=status.HTTP_501_NOT_IMPLEMENTED,
            )

        try:
            async with httpx.AsyncClient(
                timeout=self.config.llm_timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(
                    f"{self.config.llm_base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.config.llm_api_key}",
                        "HTTP-Referer": self.config.public_base_url,
                        "X-Title": "Noteify",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.config.llm_model,
                        "messages": [{"role": "user", "content": prompt}],
                        "response_format": {"type": "json_object"},
                    },
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"LLM API error: {e.response.status_code} - {e.response.text}")
            raise AIFlowError(
                f"AI service error: {e.response.status_code}",
                details={"status": e.response.status_code},
            ) from e
        except httpx.TimeoutException as e:
            logger.error("LLM API timeout")
            raise AIFlowError(
                "AI request timed out - please try again",
                error="ai_timeout",
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"LLM API unreachable: {e}")
            raise AIFlowError("AI service is unreachable - please try again") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("LLM response missing content", extra={"response": data})
            raise AIFlowError("AI service returned no output") from e

        try:
            parsed = extract_json(content or "")
            return output_model.model_validate(parsed)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(
                "LLM output failed validation",
                extra={"model": output_model.__name__, "error": str(e)},
            )
            raise AIFlowError(
                "AI service returned an invalid response",
                error="ai_invalid_output",
                details={"schema": output_model.__name__},
            ) from e


__all__ = ["LLMClient", "AIFlowError", "extract_json"]
