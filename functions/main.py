"""Cloud Function entry points for SparkQuote.

Provides HTTP endpoints for:
- Asking clarifying questions about a job description
- Estimating a clarified job
- Quick time estimates for a single job type
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import structlog
from firebase_functions import https_fn, options
from pydantic import ValidationError as PydanticValidationError

from config.errors import (
    ErrorCode,
    SessionStateError,
    SparkQuoteError,
    UpstreamError,
    ValidationError,
)
from agents.primary.clarification_agent import ClarificationAgent
from agents.primary.estimation_agent import EstimationAgent
from agents.primary.time_estimate_agent import TimeEstimateAgent
from agents.session import QuoteSession, require_description
from config.logging_config import configure_logging
from config.settings import settings
from models.quote import Answer
from services.llm_service import LLMService

configure_logging(settings.log_level, json_output=not settings.use_firebase_emulators)
logger = structlog.get_logger()

Handler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]

INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again later."

# ============================================================================
# Helper Functions
# ============================================================================


def error_response(error: SparkQuoteError) -> Tuple[Dict[str, Any], int]:
    """Build the public error payload and HTTP status for an error."""
    if isinstance(error, (ValidationError, SessionStateError)):
        return error.to_response(), 400
    if isinstance(error, UpstreamError):
        return error.to_response(), 500
    return {"error": INTERNAL_ERROR_MESSAGE, "code": ErrorCode.INTERNAL_ERROR}, 500


def get_request_json(req: https_fn.Request) -> Dict[str, Any]:
    """Extract a JSON object from the request body.

    Raises:
        ValidationError: If the body is not a JSON object.
    """
    try:
        data = req.get_json(force=True, silent=False)
    except Exception as e:
        raise ValidationError(
            message="Request body must be valid JSON",
            details={"parse_error": str(e)}
        )
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(message="Request body must be a JSON object")
    return data


def parse_answers(raw_answers: Any) -> List[Answer]:
    """Read previousAnswers into Answer models.

    Raises:
        ValidationError: If the list or any item is malformed.
    """
    if raw_answers is None:
        raise ValidationError(
            message="Answers to the clarifying questions are required",
            field="previousAnswers",
            code=ErrorCode.MISSING_FIELD
        )
    if not isinstance(raw_answers, list):
        raise ValidationError(
            message="previousAnswers must be a list",
            field="previousAnswers",
            code=ErrorCode.INVALID_FIELD
        )

    answers = []
    for index, item in enumerate(raw_answers):
        try:
            answers.append(Answer.model_validate(item))
        except PydanticValidationError:
            raise ValidationError(
                message=f"previousAnswers[{index}] must have a question and an answer",
                field="previousAnswers",
                code=ErrorCode.INVALID_FIELD
            )
    return answers


def dispatch(req: https_fn.Request, handler: Handler) -> https_fn.Response:
    """Run an async handler for a request and map errors to responses."""
    if req.method == "OPTIONS":
        return _cors_response()

    try:
        data = get_request_json(req)
        return _json_response(asyncio.run(handler(data)))

    except (ValidationError, SessionStateError) as e:
        logger.info("request_rejected", code=e.code, message=e.message)
        payload, status = error_response(e)
        return _json_response(payload, status=status)
    except UpstreamError as e:
        logger.error("upstream_failed", code=e.code, reason=e.reason)
        payload, status = error_response(e)
        return _json_response(payload, status=status)
    except Exception as e:
        logger.exception("request_failed", error=str(e))
        payload, status = error_response(SparkQuoteError(ErrorCode.INTERNAL_ERROR, str(e)))
        return _json_response(payload, status=status)


# ============================================================================
# Request Handlers
# ============================================================================


async def handle_clarify_request(
    data: Dict[str, Any],
    llm_service: Optional[LLMService] = None
) -> Dict[str, Any]:
    """Handle {jobDescription} -> {questions}."""
    agent = ClarificationAgent(llm_service=llm_service)
    questions = await agent.request_clarifying_questions(data.get("jobDescription"))
    return {"questions": [q.to_dict() for q in questions]}


async def handle_estimate_request(
    data: Dict[str, Any],
    llm_service: Optional[LLMService] = None
) -> Dict[str, Any]:
    """Handle {jobDescription, previousAnswers, hourlyRate?} -> quote."""
    description = require_description(data.get("jobDescription"))
    answers = parse_answers(data.get("previousAnswers"))
    session = QuoteSession.from_transcript(description, answers)

    agent = EstimationAgent(llm_service=llm_service)
    quote = await agent.request_estimate(session, data.get("hourlyRate"))
    return quote.to_dict()


async def handle_time_estimate_request(
    data: Dict[str, Any],
    llm_service: Optional[LLMService] = None
) -> Dict[str, Any]:
    """Handle {jobType} -> {estimatedTime}."""
    agent = TimeEstimateAgent(llm_service=llm_service)
    hours = await agent.estimate_time(data.get("jobType"))
    return {"estimatedTime": hours}


# ============================================================================
# Entry Points
# ============================================================================

ENDPOINT_CONFIG = {
    "timeout_sec": 120,
    "memory": options.MemoryOption.MB_256,
    "region": "europe-west2"
}


@https_fn.on_request(**ENDPOINT_CONFIG)
def clarify_job(req: https_fn.Request) -> https_fn.Response:
    """Ask clarifying questions about a job description.

    Request body:
    {
        "jobDescription": "Install two double sockets in a kitchen"
    }

    Response:
    {
        "questions": [{"question": "...", "options": ["...", "Other"]}]
    }
    """
    return dispatch(req, handle_clarify_request)


@https_fn.on_request(**ENDPOINT_CONFIG)
def estimate_job(req: https_fn.Request) -> https_fn.Response:
    """Estimate a clarified job.

    Request body:
    {
        "jobDescription": "Install two double sockets in a kitchen",
        "previousAnswers": [
            {"question": "Installation method?", "answer": "Surface trunking"},
            {"question": "Property type?", "answer": "Other", "customAnswer": "Houseboat"}
        ],
        "hourlyRate": 45  // Optional
    }

    Response:
    {
        "jobs": [{"job": "...", "confidence": "Medium", "timeRange": {...},
                  "materials": [...], "costRange": {...}}],
        "totals": {"timeRange": {...}, "labour": {...}, "materials": {...}, "total": {...}},
        "hourlyRate": 45
    }
    """
    return dispatch(req, handle_estimate_request)


@https_fn.on_request(**ENDPOINT_CONFIG)
def estimate_time(req: https_fn.Request) -> https_fn.Response:
    """Estimate hours for a single job type.

    Request body: {"jobType": "double socket"}
    Response: {"estimatedTime": 1.5}
    """
    return dispatch(req, handle_time_estimate_request)


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "3600"
}


def _cors_response() -> https_fn.Response:
    """Return CORS preflight response."""
    return https_fn.Response(
        "",
        status=204,
        headers=CORS_HEADERS
    )


def _json_response(data: dict, status: int = 200) -> https_fn.Response:
    """Return JSON response with CORS headers."""
    return https_fn.Response(
        json.dumps(data, default=str, allow_nan=False),
        status=status,
        mimetype="application/json",
        headers=CORS_HEADERS
    )
