"""Quote Pydantic models for SparkQuote.

This module defines the data exchanged by the two-phase protocol:
clarifying questions and answers on the way in, priced tasks with
confidence-adjusted ranges on the way out.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


OTHER_OPTION = "Other"


# =============================================================================
# ENUMS
# =============================================================================


class Confidence(str, Enum):
    """Model-reported confidence in a task's time estimate."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, value: Any) -> "Confidence":
        """Read a confidence label, defaulting to MEDIUM for anything unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return cls.MEDIUM


# =============================================================================
# RANGE MODEL
# =============================================================================


class Range(BaseModel):
    """Closed numeric range with min <= max."""

    model_config = ConfigDict(frozen=True)

    min: float = Field(default=0.0, description="Lower bound")
    max: float = Field(default=0.0, description="Upper bound")

    @model_validator(mode="after")
    def validate_order(self) -> "Range":
        """Ensure min <= max."""
        if self.min > self.max:
            raise ValueError(
                f"Range must be min <= max, got: min={self.min}, max={self.max}"
            )
        return self

    @classmethod
    def ordered(cls, a: float, b: float) -> "Range":
        """Create a range from two bounds in either order."""
        return cls(min=min(a, b), max=max(a, b))

    @classmethod
    def exact(cls, value: float) -> "Range":
        """Create a zero-width range."""
        return cls(min=value, max=value)

    @classmethod
    def zero(cls) -> "Range":
        """Create a zero range."""
        return cls(min=0.0, max=0.0)

    def __add__(self, other: "Range") -> "Range":
        """Add two ranges elementwise."""
        return Range(
            min=round(self.min + other.min, 2),
            max=round(self.max + other.max, 2)
        )

    def __mul__(self, factor: float) -> "Range":
        """Scale a range by a non-negative factor."""
        return Range(
            min=round(self.min * factor, 2),
            max=round(self.max * factor, 2)
        )

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary for JSON serialization."""
        return {"min": self.min, "max": self.max}


# =============================================================================
# CLARIFICATION MODELS
# =============================================================================


class ClarifyingQuestion(BaseModel):
    """A multiple-choice question asked before estimating."""

    model_config = ConfigDict(frozen=True)

    question: str = Field(..., min_length=1, description="Question text, also the answer key")
    options: List[str] = Field(..., description="Choices, always ending with 'Other'")

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: List[str]) -> List[str]:
        """Require at least one real choice plus the Other sentinel."""
        if OTHER_OPTION not in v:
            raise ValueError("options must include 'Other'")
        if len(v) < 2:
            raise ValueError("options must include at least one real choice")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return {"question": self.question, "options": list(self.options)}


class Answer(BaseModel):
    """The user's answer to one clarifying question."""

    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(..., description="Exact text of the question answered")
    answer: str = Field(default="", description="Selected option or free text")
    custom_answer: Optional[str] = Field(
        default=None,
        alias="customAnswer",
        description="Free-text override used when answer is 'Other'"
    )

    @property
    def is_other(self) -> bool:
        return self.answer.strip() == OTHER_OPTION

    def resolved(self) -> Optional[str]:
        """Return the effective answer text, or None if unresolved."""
        text = self.custom_answer if self.is_other else self.answer
        text = (text or "").strip()
        return text or None


# =============================================================================
# ESTIMATION MODELS
# =============================================================================


class Material(BaseModel):
    """A material line on a task."""

    name: str = Field(..., description="Free-text material description")
    priceRange: Optional[Range] = Field(
        default=None, description="Price range; None contributes zero"
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "priceRange": self.priceRange.to_dict() if self.priceRange else None
        }


class RawTask(BaseModel):
    """A task as read from the model, before any transform."""

    job: str
    confidence: Confidence = Confidence.MEDIUM
    timeRange: Range = Field(default_factory=Range.zero)
    materials: List[Material] = Field(default_factory=list)


class CostBreakdown(BaseModel):
    """Derived labour, materials and total cost ranges for one task."""

    labour: Range
    materials: Range
    total: Range

    def to_dict(self) -> Dict[str, Any]:
        return {
            "labour": self.labour.to_dict(),
            "materials": self.materials.to_dict(),
            "total": self.total.to_dict()
        }


class Task(BaseModel):
    """A priced task with its confidence-adjusted time range."""

    job: str
    confidence: Confidence
    timeRange: Range = Field(..., description="Adjusted hours")
    materials: List[Material] = Field(default_factory=list)
    costRange: CostBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job,
            "confidence": self.confidence.value,
            "timeRange": self.timeRange.to_dict(),
            "materials": [m.to_dict() for m in self.materials],
            "costRange": self.costRange.to_dict()
        }


class QuoteTotals(BaseModel):
    """Elementwise sums across every task in a quote."""

    timeRange: Range = Field(default_factory=Range.zero)
    labour: Range = Field(default_factory=Range.zero)
    materials: Range = Field(default_factory=Range.zero)
    total: Range = Field(default_factory=Range.zero)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeRange": self.timeRange.to_dict(),
            "labour": self.labour.to_dict(),
            "materials": self.materials.to_dict(),
            "total": self.total.to_dict()
        }


class Quote(BaseModel):
    """Result of the estimation stage."""

    jobs: List[Task]
    totals: QuoteTotals
    hourlyRate: float = Field(..., gt=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobs": [t.to_dict() for t in self.jobs],
            "totals": self.totals.to_dict(),
            "hourlyRate": self.hourlyRate
        }
