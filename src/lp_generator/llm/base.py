"""Base chat transport interface."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import List, Optional

from lp_generator.errors import GenerationCancelled
from lp_generator.models import ChatMessage


class ChatTransport(ABC):
    """Sends one chat completion request and returns the assistant text.

    Implementations raise ``TransportError`` for HTTP failures, timeouts and
    empty content, and ``GenerationCancelled`` when ``cancel`` is set.
    """

    @abstractmethod
    def send(
        self,
        model: str,
        messages: List[ChatMessage],
        json_mode: bool,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        ...

    @staticmethod
    def raise_if_cancelled(cancel: Optional[threading.Event]) -> None:
        if cancel is not None and cancel.is_set():
            raise GenerationCancelled("generation cancelled")
