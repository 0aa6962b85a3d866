"""LLM service for SparkQuote.

Provides the LangChain/OpenAI transport used by both protocol stages.
The service returns raw text; schema validation lives in validators/.
"""

from typing import Optional
import structlog
from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage

from config.settings import settings
from config.errors import ErrorCode, UpstreamTransportError

logger = structlog.get_logger()


class LLMService:
    """Service for LLM operations using LangChain.

    Provides a wrapper around ChatOpenAI with token tracking
    and transport error mapping.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None
    ):
        """Initialize LLMService.

        Args:
            model: Model name (default from settings).
            temperature: Temperature (default from settings).
            api_key: OpenAI API key (default from settings).
            timeout: Per-request deadline in seconds (default from settings).
            max_retries: Transport-level retries (default from settings).
        """
        self.model = model or settings.llm_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.api_key = api_key or settings.openai_api_key
        self.timeout = timeout or settings.llm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.llm_max_retries

        self._client: Optional[ChatOpenAI] = None
        self._total_tokens_used = 0

    @property
    def client(self) -> ChatOpenAI:
        """Get LangChain ChatOpenAI client (lazy initialization)."""
        if self._client is None:
            self._client = ChatOpenAI(
                model=self.model,
                temperature=self.temperature,
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=self.max_retries
            )
        return self._client

    @property
    def total_tokens_used(self) -> int:
        """Get total tokens used across all calls."""
        return self._total_tokens_used

    async def generate(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        """Send a single prompt and return the raw reply text.

        Args:
            prompt: Full prompt sent as one user message.
            max_tokens: Optional output-length budget.

        Returns:
            The reply content, untrusted and unparsed.

        Raises:
            UpstreamTransportError: If the call itself fails.
        """
        kwargs = {}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        try:
            response = await self.client.ainvoke([HumanMessage(content=prompt)], **kwargs)
        except Exception as e:
            raise self._map_error(e) from e

        metadata = getattr(response, "response_metadata", None) or {}
        usage = metadata.get("token_usage") or {}
        tokens_used = usage.get("total_tokens", 0) or 0
        self._total_tokens_used += tokens_used

        content = response.content if isinstance(response.content, str) else str(response.content)

        logger.info(
            "llm_generated",
            model=self.model,
            tokens_used=tokens_used,
            max_tokens=max_tokens,
            content_length=len(content)
        )

        return content

    def _map_error(self, error: Exception) -> UpstreamTransportError:
        """Translate a client exception into an UpstreamTransportError."""
        error_msg = str(error)
        lowered = error_msg.lower()

        logger.error(
            "llm_transport_failed",
            model=self.model,
            error_type=type(error).__name__,
            error=error_msg[:500]
        )

        if "rate_limit" in lowered or "rate limit" in lowered:
            return UpstreamTransportError(
                reason="OpenAI rate limit exceeded",
                code=ErrorCode.LLM_RATE_LIMIT,
                details={"original_error": error_msg}
            )
        if "context_length" in lowered or "maximum context" in lowered:
            return UpstreamTransportError(
                reason="Input too long for model context",
                code=ErrorCode.LLM_CONTEXT_TOO_LONG,
                details={"original_error": error_msg}
            )
        return UpstreamTransportError(
            reason=f"LLM generation failed: {type(error).__name__}",
            details={"original_error": error_msg}
        )
