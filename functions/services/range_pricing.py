"""Confidence-adjusted range pricing for SparkQuote.

Pure, deterministic functions that turn the model's raw hour estimates
into confidence-adjusted ranges and roll up labour, materials and total
costs per task and across a quote. No I/O happens here.

Widening policy:
- High:   band narrows to [mid, mid * 1.1] where mid = (min + max) / 2
- Medium: upper bound widened by 25%
- Low:    upper bound doubled
"""

from typing import Iterable, List

from models.quote import (
    Confidence,
    CostBreakdown,
    Material,
    QuoteTotals,
    Range,
    RawTask,
    Task,
)


HIGH_CONFIDENCE_SPREAD = 1.1
MEDIUM_CONFIDENCE_MULTIPLIER = 1.25
LOW_CONFIDENCE_MULTIPLIER = 2.0


def adjust_time_range(raw: Range, confidence: Confidence) -> Range:
    """Apply the confidence widening transform to a raw hour range.

    Args:
        raw: Raw {min, max} hours as estimated by the model.
        confidence: Task confidence. Anything not High or Low is Medium.

    Returns:
        Adjusted range rounded to 2 decimals with min <= max.
    """
    if confidence == Confidence.HIGH:
        mid = (raw.min + raw.max) / 2
        adjusted_min = max(mid, 0)
        adjusted_max = mid * HIGH_CONFIDENCE_SPREAD
    elif confidence == Confidence.LOW:
        adjusted_min = raw.min
        adjusted_max = raw.max * LOW_CONFIDENCE_MULTIPLIER
    else:
        adjusted_min = raw.min
        adjusted_max = raw.max * MEDIUM_CONFIDENCE_MULTIPLIER

    adjusted_min = round(adjusted_min, 2)
    adjusted_max = round(max(adjusted_max, adjusted_min), 2)
    return Range(min=adjusted_min, max=adjusted_max)


def labour_cost(time_range: Range, hourly_rate: float) -> Range:
    """Labour cost = hours * rate, elementwise."""
    return time_range * hourly_rate


def materials_cost(materials: Iterable[Material]) -> Range:
    """Sum material price ranges; unpriced materials contribute zero."""
    total = Range.zero()
    for material in materials:
        if material.priceRange is not None:
            total = total + material.priceRange
    return total


def price_task(raw_task: RawTask, hourly_rate: float) -> Task:
    """Adjust a raw task's time range and derive its cost breakdown."""
    time_range = adjust_time_range(raw_task.timeRange, raw_task.confidence)
    labour = labour_cost(time_range, hourly_rate)
    materials = materials_cost(raw_task.materials)

    return Task(
        job=raw_task.job,
        confidence=raw_task.confidence,
        timeRange=time_range,
        materials=list(raw_task.materials),
        costRange=CostBreakdown(
            labour=labour,
            materials=materials,
            total=labour + materials
        )
    )


def price_tasks(raw_tasks: Iterable[RawTask], hourly_rate: float) -> List[Task]:
    """Price every raw task with the same hourly rate."""
    return [price_task(raw_task, hourly_rate) for raw_task in raw_tasks]


def aggregate_totals(tasks: Iterable[Task]) -> QuoteTotals:
    """Sum time, labour, materials and total ranges across tasks.

    Each of the eight bounds is summed independently; min is never
    combined with max.
    """
    totals = QuoteTotals()
    for task in tasks:
        totals = QuoteTotals(
            timeRange=totals.timeRange + task.timeRange,
            labour=totals.labour + task.costRange.labour,
            materials=totals.materials + task.costRange.materials,
            total=totals.total + task.costRange.total
        )
    return totals
