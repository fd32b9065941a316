"""AI completion boundary.

Single outbound request to the Groq chat API. Never raises to the caller:
- no API key configured -> deterministic mock reply
- provider error        -> fixed error string
"""

import logging
from typing import Any, Optional

import groq

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful, concise assistant for AI Pro Platform subscribers."
ERROR_REPLY = "Error generating content. Please try again."
EMPTY_REPLY = "No response generated."


def mock_reply(prompt: str) -> str:
    return (
        f'[MOCK AI RESPONSE] You said: "{prompt}".\n\n'
        "(To get real responses, please provide a valid GROQ_API_KEY)"
    )


class AIClient:
    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = "llama-3.1-8b-instant",
        max_tokens: int = 1024,
        temperature: float = 0.7,
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    @property
    def mocked(self) -> bool:
        return not self.api_key and self._client is None

    def _get_client(self):
        if self._client is None:
            self._client = groq.Groq(api_key=self.api_key)
        return self._client

    def complete(self, prompt: str) -> str:
        if self.mocked:
            return mock_reply(prompt)

        try:
            response = self._get_client().chat.completions.create(
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            text = response.choices[0].message.content if response.choices else None
        except Exception:
            # SDK errors, transport failures and unexpected response shapes alike
            logger.error("[ai] provider error", exc_info=True, extra={"model": self.model})
            return ERROR_REPLY

        return text or EMPTY_REPLY
