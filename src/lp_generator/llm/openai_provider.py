"""OpenAI-compatible chat completions transport."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from lp_generator.config import AiSettings
from lp_generator.errors import TransportError
from lp_generator.llm.base import ChatTransport
from lp_generator.models import ChatMessage
from lp_generator.redact import preview_text, trim_long

logger = logging.getLogger("lp_generator.llm")


class OpenAIChatTransport(ChatTransport):
    """Transport backed by the OpenAI chat completions API.

    The SDK's own retries are disabled; the orchestrator owns the retry loop.
    """

    def __init__(self, settings: AiSettings, client: Optional[OpenAI] = None) -> None:
        if client is None:
            if not settings.has_api_key:
                raise EnvironmentError(
                    "No API key configured. Export it before running generation:\n"
                    "  export LP_AI_API_KEY='sk-...'"
                )
            client = OpenAI(
                api_key=settings.api_key,
                base_url=settings.base_url or None,
                timeout=float(settings.timeout_seconds),
                max_retries=0,
            )
        self._client = client
        self.temperature = settings.temperature

    def send(
        self,
        model: str,
        messages: List[ChatMessage],
        json_mode: bool,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        self.raise_if_cancelled(cancel)

        kwargs: Dict[str, Any] = {
            "model": model,
            "temperature": self.temperature,
            "messages": [m.model_dump() for m in messages],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.info("chat request: model=%s json_mode=%s messages=%d", model, json_mode, len(messages))
        try:
            response = self._client.chat.completions.create(**kwargs)
        except openai.APIStatusError as exc:
            reason = exc.response.reason_phrase if exc.response is not None else ""
            body = exc.response.text if exc.response is not None else str(exc)
            raise TransportError(
                f"AI API request failed: {exc.status_code} {reason} {trim_long(body)}".rstrip(),
                status_code=exc.status_code,
                reason=reason,
            ) from exc
        except openai.APITimeoutError as exc:
            raise TransportError(f"AI API request timed out: {exc}") from exc
        except openai.APIError as exc:
            raise TransportError(f"AI API request failed: {exc}") from exc

        self.raise_if_cancelled(cancel)

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise TransportError("AI response is empty.")

        logger.debug("chat response: model=%s preview=%s", model, preview_text(content))
        return content
