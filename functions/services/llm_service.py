"""LLM service for ValueQuote.

Thin LangChain/OpenAI wrapper used to write personalised tier copy.
Every failure surfaces as a QuoteEngineError carrying an LLM error code,
so callers can fall back to static copy with a single except clause.
"""

import json
from typing import Any, Dict, List, Optional

import structlog
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from config.errors import ErrorCode, QuoteEngineError
from config.settings import settings

logger = structlog.get_logger(__name__)

JSON_ONLY_INSTRUCTION = (
    "IMPORTANT: You MUST respond with valid JSON only. "
    "No markdown, no explanation, just JSON."
)


def _map_llm_error(error: Exception) -> QuoteEngineError:
    """Translate a provider exception into a QuoteEngineError."""
    error_msg = str(error)
    lowered = error_msg.lower()

    if "rate_limit" in lowered:
        return QuoteEngineError(
            code=ErrorCode.LLM_RATE_LIMIT,
            message="OpenAI rate limit exceeded",
            details={"original_error": error_msg}
        )
    if "context_length" in lowered or "maximum context" in lowered:
        return QuoteEngineError(
            code=ErrorCode.LLM_CONTEXT_TOO_LONG,
            message="Input too long for model context",
            details={"original_error": error_msg}
        )
    return QuoteEngineError(
        code=ErrorCode.LLM_ERROR,
        message=f"LLM generation failed: {error_msg}",
        details={"original_error": error_msg}
    )


def _strip_code_fence(content: str) -> str:
    """Remove a surrounding ```json ... ``` block, if present."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


class LLMService:
    """Wrapper around ChatOpenAI with token tracking and error mapping."""

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None
    ):
        """Initialize LLMService.

        Args:
            model: Model name (default from settings).
            temperature: Temperature (default from settings).
            api_key: OpenAI API key (default from settings).
        """
        self.model = model or settings.llm_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.api_key = api_key or settings.openai_api_key

        self._client: Optional[ChatOpenAI] = None
        self._total_tokens_used = 0

    @property
    def client(self) -> ChatOpenAI:
        """LangChain ChatOpenAI client, created on first use."""
        if self._client is None:
            self._client = ChatOpenAI(
                model=self.model,
                temperature=self.temperature,
                api_key=self.api_key
            )
        return self._client

    @property
    def total_tokens_used(self) -> int:
        return self._total_tokens_used

    async def generate(
        self,
        messages: List[BaseMessage],
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a response from the LLM.

        Args:
            messages: List of LangChain messages.
            max_tokens: Optional max tokens for response.

        Returns:
            Dict with content and tokens_used.

        Raises:
            QuoteEngineError: If the LLM call fails.
        """
        kwargs: Dict[str, Any] = {}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        try:
            response = await self.client.ainvoke(messages, **kwargs)
        except Exception as e:
            error = _map_llm_error(e)
            logger.warning("llm_generation_failed", model=self.model, code=error.code)
            raise error from e

        metadata = getattr(response, "response_metadata", None) or {}
        usage = metadata.get("token_usage", {})
        tokens_used = usage.get("total_tokens", 0)
        self._total_tokens_used += tokens_used

        logger.info(
            "llm_generated",
            model=self.model,
            tokens_used=tokens_used,
            content_length=len(response.content)
        )

        return {
            "content": response.content,
            "tokens_used": tokens_used
        }

    async def generate_with_system_prompt(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a response to a system prompt plus one user message."""
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_message)
        ]
        return await self.generate(messages, max_tokens)

    async def generate_json(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate and parse a JSON response.

        Returns:
            Dict with the parsed JSON as content, and tokens_used.

        Raises:
            QuoteEngineError: If the call fails or the reply is not valid JSON.
        """
        result = await self.generate_with_system_prompt(
            f"{system_prompt}\n\n{JSON_ONLY_INSTRUCTION}",
            user_message,
            max_tokens
        )

        try:
            parsed = json.loads(_strip_code_fence(result["content"]))
        except json.JSONDecodeError as e:
            raise QuoteEngineError(
                code=ErrorCode.LLM_ERROR,
                message="LLM did not return valid JSON",
                details={
                    "parse_error": str(e),
                    "raw_content": result["content"][:500]
                }
            ) from e

        return {
            "content": parsed,
            "tokens_used": result["tokens_used"]
        }
