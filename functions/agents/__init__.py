"""SparkQuote agents.

This package contains the protocol stages:
- Base class for single-dispatch LLM agents
- Quote session state machine (AWAITING_ANSWERS -> ESTIMATED)
- Primary agents (Clarification, Estimation, Time Estimate)
"""

from agents.base_agent import BaseAgent
from agents.session import QuoteSession, SessionState

__all__ = ["BaseAgent", "QuoteSession", "SessionState"]
