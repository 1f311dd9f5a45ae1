"""
Gemini client shared by the AI services.

``GenerativeAIClient`` wraps a pydantic-ai ``Agent`` running on
``GoogleModel``. The agent is created on first use so that the API can start
(and the non-AI endpoints keep working) without a ``GOOGLE_AI_API_KEY``.
"""

import time
from datetime import datetime
from typing import Any, Optional

from pydantic_ai import Agent, ModelSettings
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider

from careerpath.core.logging_config import get_logger
from careerpath.core.monitoring import log_llm_call
from careerpath.server.core.config import settings

logger = get_logger(__name__)

CONNECTION_TEST_PROMPT = "Hello! Please respond with 'API connection successful' to confirm the connection."


class AIServiceError(Exception):
    """Raised when Gemini is not configured or a generation call fails."""


class GenerativeAIClient:
    """Thin async wrapper around a text-only Gemini agent."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> None:
        google_config = settings.google
        self.api_key = api_key if api_key is not None else google_config.api_key
        self.model_name = model_name or google_config.model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._agent: Optional[Agent] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_agent(self) -> Agent:
        if self._agent is None:
            if not self.is_configured:
                raise AIServiceError("GOOGLE_AI_API_KEY environment variable is not set")

            model_settings = ModelSettings(temperature=self.temperature, max_tokens=self.max_tokens)
            model = GoogleModel(
                self.model_name,
                provider=GoogleProvider(api_key=self.api_key),
                settings=model_settings,
            )
            logger.debug(f"Creating Gemini agent for model {self.model_name}")
            self._agent = Agent(model, output_type=str)
        return self._agent

    async def generate(self, prompt: str, purpose: str = "general") -> str:
        """
        Send ``prompt`` to Gemini and return the text answer.

        Args:
            prompt: Full prompt text.
            purpose: Label used for monitoring (counseling, roadmap, ...).

        Raises:
            AIServiceError: The client is not configured, the call failed or
                the model answered with empty text.
        """
        agent = self._get_agent()
        start_time = time.perf_counter()
        try:
            result = await agent.run(prompt)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            log_llm_call(self.model_name, purpose, duration_ms, success=False)
            logger.error(f"Gemini call for {purpose} failed after {duration_ms:.0f}ms: {e}")
            raise AIServiceError(str(e)) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_llm_call(self.model_name, purpose, duration_ms, success=True)

        text = (result.output or "").strip()
        if not text:
            raise AIServiceError("Empty response from AI model")
        logger.debug(f"Gemini answered {purpose} prompt with {len(text)} chars in {duration_ms:.0f}ms")
        return text

    async def test_connection(self) -> dict[str, Any]:
        """Round-trip a fixed prompt and report whether Gemini answered."""
        timestamp = datetime.utcnow().isoformat()
        try:
            response = await self.generate(CONNECTION_TEST_PROMPT, purpose="connection_test")
        except AIServiceError as e:
            logger.warning(f"AI connection test failed: {e}")
            return {"success": False, "error": str(e), "timestamp": timestamp}
        return {"success": True, "response": response, "timestamp": timestamp}


_ai_client: Optional[GenerativeAIClient] = None


def get_ai_client() -> GenerativeAIClient:
    """FastAPI dependency returning the process-wide Gemini client."""
    global _ai_client

    if _ai_client is None:
        _ai_client = GenerativeAIClient()
    return _ai_client
