"""Chat transport abstraction."""

from lp_generator.llm.base import ChatTransport
from lp_generator.llm.openai_provider import OpenAIChatTransport

__all__ = ["ChatTransport", "OpenAIChatTransport"]
