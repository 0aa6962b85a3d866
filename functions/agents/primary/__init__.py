"""Protocol stage agents for SparkQuote."""

from agents.primary.clarification_agent import ClarificationAgent
from agents.primary.estimation_agent import EstimationAgent
from agents.primary.time_estimate_agent import TimeEstimateAgent

__all__ = [
    "ClarificationAgent",
    "EstimationAgent",
    "TimeEstimateAgent",
]
