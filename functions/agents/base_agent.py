"""Base Agent for SparkQuote.

Abstract base class for the protocol stages. Each stage builds one
prompt, dispatches exactly one request to the LLM service and validates
the reply at the schema boundary.
"""

from abc import ABC
from typing import Optional, TypeVar
import time
import structlog

from services.llm_service import LLMService
from validators.response_validator import ParseResult
from config.errors import UpstreamFormatError
from utils.agent_logger import log_agent_error, log_agent_start

logger = structlog.get_logger()

T = TypeVar("T")


class BaseAgent(ABC):
    """Abstract base class for protocol stage agents.

    Provides:
    - LLM service integration
    - Token and duration tracking
    - Single-dispatch helper with structured logging
    - Conversion of schema failures to UpstreamFormatError
    """

    def __init__(self, name: str, llm_service: Optional[LLMService] = None):
        """Initialize BaseAgent.

        Args:
            name: Agent name (e.g., "clarification", "estimation").
            llm_service: Optional LLM service instance.
        """
        self.name = name
        self.llm = llm_service or LLMService()

        # Tracking
        self._tokens_used = 0
        self._start_time: Optional[float] = None

    @property
    def tokens_used(self) -> int:
        """Get tokens used in current run."""
        return self._tokens_used

    @property
    def duration_ms(self) -> int:
        """Get duration of current run in milliseconds."""
        if self._start_time is None:
            return 0
        return int((time.time() - self._start_time) * 1000)

    async def _dispatch(self, prompt: str, max_tokens: int) -> str:
        """Send one prompt to the LLM service and return the raw reply.

        Raises:
            UpstreamTransportError: If the call fails.
        """
        self._start_time = time.time()
        tokens_before = self.llm.total_tokens_used
        log_agent_start(self.name, prompt_chars=len(prompt), max_tokens=max_tokens)

        try:
            reply = await self.llm.generate(prompt, max_tokens=max_tokens)
        except Exception as e:
            log_agent_error(self.name, e)
            raise

        self._tokens_used = self.llm.total_tokens_used - tokens_before
        logger.info(
            "agent_reply_received",
            agent=self.name,
            duration_ms=self.duration_ms,
            tokens_used=self._tokens_used,
            reply_length=len(reply)
        )
        return reply

    def _require(self, result: ParseResult[T], raw_reply: str) -> T:
        """Unwrap a ParseResult or raise UpstreamFormatError."""
        if result.ok:
            return result.value

        error = UpstreamFormatError(reason=result.reason, raw_content=raw_reply)
        log_agent_error(self.name, error)
        raise error
