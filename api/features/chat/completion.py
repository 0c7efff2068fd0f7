"""Client for the local completion service (Ollama ``/api/generate``).

Calls run under a hard deadline; transport failures and unusable answers are
turned into the completion errors of ``api.features.chat.exceptions``.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional, Sequence

import httpx
import structlog

from api.features.chat.exceptions import (
    CompletionTimeoutError,
    GenerationError,
    ServiceUnavailableError,
)
from api.features.chat.prompts import build_support_prompt
from api.features.conversation.models import MessageModel

logger = structlog.get_logger(__name__)

GENERATE_PATH = "/api/generate"
TAGS_PATH = "/api/tags"


class CompletionClient:
    """Non-streaming text completion against an Ollama-compatible server."""

    def __init__(
        self,
        base_url: str,
        model: str,
        *,
        timeout_seconds: float = 600.0,
        temperature: float = 0.7,
        health_timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.health_timeout_seconds = health_timeout_seconds
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=self._transport
        )

    def build_prompt(self, history: Sequence[MessageModel], user_message: str) -> str:
        return build_support_prompt(history=history, user_message=user_message)

    async def generate_reply(
        self, history: Sequence[MessageModel], user_message: str
    ) -> str:
        """Generate the assistant reply for ``user_message`` given ``history``.

        Raises:
            CompletionTimeoutError: no answer within ``timeout_seconds``.
            ServiceUnavailableError: the service could not be reached.
            GenerationError: the service answered without usable text.
        """
        payload = {
            "model": self.model,
            "prompt": self.build_prompt(history, user_message),
            "stream": False,
            "temperature": self.temperature,
        }
        started = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._post_generate(payload), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.error(
                "Completion deadline exceeded",
                model=self.model,
                timeout_seconds=self.timeout_seconds,
            )
            raise CompletionTimeoutError(self.timeout_seconds) from e
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.error("Completion service unreachable", base_url=self.base_url, error=str(e))
            raise ServiceUnavailableError(self.base_url, str(e)) from e
        except httpx.TimeoutException as e:
            logger.error("Completion request timed out", model=self.model, error=str(e))
            raise CompletionTimeoutError(self.timeout_seconds) from e
        except httpx.TransportError as e:
            logger.error("Completion transport failure", base_url=self.base_url, error=str(e))
            raise ServiceUnavailableError(self.base_url, str(e)) from e
        except httpx.HTTPError as e:
            logger.error("Completion response could not be read", model=self.model, error=str(e))
            raise GenerationError(f"Unreadable completion response: {e}") from e

        duration_ms = round((time.monotonic() - started) * 1000, 1)
        if not response.is_success:
            logger.error(
                "Completion service returned an error",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            raise GenerationError(
                f"Ollama API error: {response.status_code} {response.reason_phrase}",
                {"status_code": response.status_code},
            )

        reply = self._extract_reply(response)
        logger.info(
            "Completion generated",
            model=self.model,
            duration_ms=duration_ms,
            reply_chars=len(reply),
        )
        return reply

    async def _post_generate(self, payload: Dict[str, Any]) -> httpx.Response:
        async with self._client(self.timeout_seconds) as client:
            return await client.post(GENERATE_PATH, json=payload)

    @staticmethod
    def _extract_reply(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError("Completion response is not valid JSON") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("No response generated from LLM")
        return text.strip()

    async def check_health(self) -> bool:
        """Best-effort liveness probe; never raises."""
        try:
            async with self._client(self.health_timeout_seconds) as client:
                response = await client.get(TAGS_PATH)
            return response.is_success
        except Exception as e:
            logger.warning("LLM health check failed", base_url=self.base_url, error=str(e))
            return False
