"""Model provider access through the OpenAI Chat Completions API."""

import logging
from typing import Dict, List, Optional, Sequence

import openai
from openai import OpenAI

from realtime_chat.conversation import Turn, to_provider_messages
from realtime_chat.retry import (
    ErrorKind,
    NonTransientProviderError,
    TransientProviderError,
    classify_error,
)

SYSTEM_INSTRUCTION = (
    "You are a helpful assistant. Some earlier assistant messages were produced "
    "locally from live data commands (weather, news, stock quotes, exchange rates); "
    "treat them as accurate, current information when answering follow-up questions. "
    "Keep responses concise but informative."
)

DEFAULT_MODEL = "gpt-4o"
TEMPERATURE = 0.7
MAX_TOKENS = 1000

logger = logging.getLogger(__name__)


class ModelClient:
    """Sends a conversation plus one new user message and returns the reply text."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        system_instruction: str = SYSTEM_INSTRUCTION,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.system_instruction = system_instruction
        self.client = client or OpenAI(api_key=api_key, base_url=base_url)

    def build_messages(self, history: Sequence[Turn], message: str) -> List[Dict[str, str]]:
        """Build the request messages: system instruction, history, new user turn."""
        return to_provider_messages([*history, Turn.user(message)], self.system_instruction)

    def send(self, history: Sequence[Turn], message: str) -> str:
        """Call the model once.

        Raises:
            TransientProviderError: the provider reported a quota or rate limit
            NonTransientProviderError: any other provider failure
        """
        messages = self.build_messages(history, message)
        logger.debug(f"Calling {self.model} with {len(messages)} messages")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
            )
        except openai.APIError as e:
            status_code = getattr(e, "status_code", None)
            if classify_error(e) == ErrorKind.TRANSIENT:
                raise TransientProviderError(str(e), status_code) from e
            raise NonTransientProviderError(str(e), status_code) from e

        if not response.choices:
            raise NonTransientProviderError("Provider returned no choices")

        content = response.choices[0].message.content or ""
        return content
