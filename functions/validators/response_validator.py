"""Schema validation boundary for text-generation replies.

Model output is treated as an untrusted string. Each parser returns a
tagged ParseResult: either ok with a typed value, or not ok with a
reason. Nothing past this module reaches into raw model dictionaries.

Envelope problems (not JSON, wrong top-level shape, missing or empty
item list) fail the whole reply. Single malformed fields inside a valid
envelope are defaulted and logged.
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

import structlog

from models.quote import (
    OTHER_OPTION,
    ClarifyingQuestion,
    Confidence,
    Material,
    Range,
    RawTask,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

TASK_LIST_KEYS = ("jobs", "tasks")
TIME_RANGE_KEYS = ("timeRange", "time")
TASK_NAME_KEYS = ("job", "task", "name")
UNNAMED_TASK = "Unnamed task"

# Largest hours or price a single bound may carry; anything above is unusable
MAX_RANGE_VALUE = 1_000_000.0


@dataclass
class ParseResult(Generic[T]):
    """Result of validating one model reply."""
    ok: bool
    value: Optional[T] = None
    reason: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def success(cls, value: T, warnings: Optional[List[str]] = None) -> "ParseResult[T]":
        return cls(ok=True, value=value, warnings=warnings or [])

    @classmethod
    def failure(cls, reason: str) -> "ParseResult[T]":
        return cls(ok=False, reason=reason)


# =============================================================================
# FIELD COERCION
# =============================================================================


def _to_number(value: Any) -> Optional[float]:
    """Read a finite number from a JSON value, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip().lstrip("£$").replace(",", ""))
        except (ValueError, OverflowError):
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _to_bound(value: Any) -> Optional[float]:
    number = _to_number(value)
    if number is None or number > MAX_RANGE_VALUE:
        return None
    return number


def _to_range(value: Any, non_negative: bool = True) -> Optional[Range]:
    """Read a {min, max} object or a bare number as a Range.

    Inverted bounds are sorted. A single missing bound mirrors the other.
    Bounds above MAX_RANGE_VALUE count as missing.
    """
    if isinstance(value, dict):
        low = _to_bound(value.get("min"))
        high = _to_bound(value.get("max"))
        if low is None and high is None:
            return None
        low = high if low is None else low
        high = low if high is None else high
    else:
        low = high = _to_bound(value)
        if low is None:
            return None

    if non_negative:
        low, high = max(low, 0.0), max(high, 0.0)
    return Range.ordered(low, high)


# =============================================================================
# CLARIFYING QUESTIONS
# =============================================================================


def normalize_options(options: Any) -> List[str]:
    """Return unique, non-empty option strings ending with exactly one 'Other'.

    Idempotent: normalizing an already normalized list returns it unchanged.
    """
    if not isinstance(options, list):
        options = []

    normalized: List[str] = []
    for option in options:
        if isinstance(option, (str, int, float)) and not isinstance(option, bool):
            text = str(option).strip()
        else:
            continue
        if not text or text.lower() == OTHER_OPTION.lower() or text in normalized:
            continue
        normalized.append(text)

    normalized.append(OTHER_OPTION)
    return normalized


def parse_questions_response(text: str) -> ParseResult[List[ClarifyingQuestion]]:
    """Validate a clarification reply of the form {"questions": [...]}."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        return ParseResult.failure(f"reply is not valid JSON: {e}")

    if not isinstance(data, dict):
        return ParseResult.failure("reply is not a JSON object")
    if "questions" not in data:
        return ParseResult.failure("reply has no 'questions' field")

    items = data["questions"]
    if not isinstance(items, list):
        return ParseResult.failure("'questions' is not a list")
    if not items:
        return ParseResult.failure("'questions' is empty")

    questions: List[ClarifyingQuestion] = []
    seen = set()
    warnings: List[str] = []

    for index, item in enumerate(items):
        if not isinstance(item, dict):
            warnings.append(f"questions[{index}] is not an object")
            continue

        question_text = item.get("question")
        if not isinstance(question_text, str) or not question_text.strip():
            warnings.append(f"questions[{index}] has no question text")
            continue
        question_text = question_text.strip()

        if question_text in seen:
            warnings.append(f"questions[{index}] duplicates an earlier question")
            continue

        options = normalize_options(item.get("options"))
        if len(options) < 2:
            warnings.append(f"questions[{index}] has no real options")
            continue

        seen.add(question_text)
        questions.append(ClarifyingQuestion(question=question_text, options=options))

    if not questions:
        return ParseResult.failure("no usable questions in reply")

    if warnings:
        logger.warning("questions_reply_defaulted", warnings=warnings)

    return ParseResult.success(questions, warnings)


# =============================================================================
# ESTIMATE TASKS
# =============================================================================


def _parse_material(item: Any) -> Optional[Material]:
    """Read one material; bare strings become unpriced materials."""
    if isinstance(item, str):
        return Material(name=item.strip()) if item.strip() else None
    if not isinstance(item, dict):
        return None

    name = item.get("name")
    name = name.strip() if isinstance(name, str) and name.strip() else "Unnamed material"

    price_range = _to_range(item.get("priceRange"))
    if price_range is None and "price" in item:
        price_range = _to_range(item.get("price"))

    return Material(name=name, priceRange=price_range)


def _parse_task(item: Dict[str, Any], index: int, warnings: List[str]) -> RawTask:
    """Read one task, defaulting any malformed field."""
    name = next(
        (item[k].strip() for k in TASK_NAME_KEYS
         if isinstance(item.get(k), str) and item[k].strip()),
        None
    )
    if name is None:
        warnings.append(f"tasks[{index}] has no name")
        name = UNNAMED_TASK

    raw_confidence = item.get("confidence")
    confidence = Confidence.parse(raw_confidence)
    if confidence == Confidence.MEDIUM and not (
        isinstance(raw_confidence, str) and raw_confidence.strip().lower() == "medium"
    ):
        warnings.append(f"tasks[{index}] confidence {raw_confidence!r} read as Medium")

    time_range = None
    for key in TIME_RANGE_KEYS:
        if key in item:
            time_range = _to_range(item[key])
            if time_range is not None:
                break
    if time_range is None:
        warnings.append(f"tasks[{index}] has no usable time; using zero")
        time_range = Range.zero()

    raw_materials = item.get("materials")
    materials: List[Material] = []
    if isinstance(raw_materials, list):
        for material_item in raw_materials:
            material = _parse_material(material_item)
            if material is not None:
                materials.append(material)
    elif raw_materials is not None:
        warnings.append(f"tasks[{index}] materials is not a list")

    return RawTask(
        job=name,
        confidence=confidence,
        timeRange=time_range,
        materials=materials
    )


def parse_estimate_response(text: str) -> ParseResult[List[RawTask]]:
    """Validate an estimation reply.

    Accepts {"jobs": [...]}, {"tasks": [...]} or a bare top-level list.
    Leading prose is rejected, never extracted.
    """
    if not isinstance(text, str):
        return ParseResult.failure("reply is not text")

    stripped = text.strip()
    if not stripped or stripped[0] not in "{[":
        return ParseResult.failure("reply does not start with a JSON object or array")

    try:
        data = json.loads(stripped)
    except ValueError as e:
        return ParseResult.failure(f"reply is not valid JSON: {e}")

    if isinstance(data, list):
        items = data
    else:
        key = next((k for k in TASK_LIST_KEYS if k in data), None)
        if key is None:
            return ParseResult.failure("reply has no 'jobs' or 'tasks' field")
        items = data[key]
        if not isinstance(items, list):
            return ParseResult.failure(f"'{key}' is not a list")

    if not items:
        return ParseResult.failure("task list is empty")

    warnings: List[str] = []
    tasks: List[RawTask] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            warnings.append(f"tasks[{index}] is not an object")
            continue
        tasks.append(_parse_task(item, index, warnings))

    if not tasks:
        return ParseResult.failure("no usable tasks in reply")

    if warnings:
        logger.warning("estimate_reply_defaulted", warnings=warnings)

    return ParseResult.success(tasks, warnings)


def parse_hours_response(text: str) -> ParseResult[float]:
    """Validate a quick time estimate reply: a bare non-negative number."""
    if not isinstance(text, str):
        return ParseResult.failure("reply is not text")

    stripped = text.strip()
    try:
        hours = float(stripped)
    except (ValueError, OverflowError):
        return ParseResult.failure("reply is not a number")

    if not math.isfinite(hours) or hours < 0:
        return ParseResult.failure("reply is not a non-negative number")
    if hours > MAX_RANGE_VALUE:
        return ParseResult.failure("reply is implausibly large")

    return ParseResult.success(round(hours, 2))
