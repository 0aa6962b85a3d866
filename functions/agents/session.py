"""Quote session state machine.

A session moves AWAITING_ANSWERS -> ESTIMATED exactly once. It can only
be built from a validated question list, so estimating before clarifying
cannot be expressed.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional

import structlog

from config.errors import ErrorCode, SessionStateError, ValidationError
from models.quote import Answer, ClarifyingQuestion, Quote
from validators.response_validator import normalize_options

logger = structlog.get_logger()

UNANSWERED_OPTION = "(no answer)"


class SessionState(str, Enum):
    """Protocol state of a quote session."""

    AWAITING_ANSWERS = "awaiting_answers"
    ESTIMATED = "estimated"


def require_description(description: Optional[str]) -> str:
    """Return the trimmed job description or raise ValidationError."""
    if not isinstance(description, str) or not description.strip():
        raise ValidationError(
            message="Job description is required",
            field="jobDescription",
            code=ErrorCode.MISSING_FIELD
        )
    return description.strip()


class QuoteSession:
    """One user's clarification/estimation exchange.

    Attributes:
        description: The trimmed job description.
        questions: Clarifying questions in the order they were asked.
        state: Current SessionState.
        quote: The estimate, once the session is ESTIMATED.
    """

    def __init__(self, description: str, questions: Iterable[ClarifyingQuestion]):
        self.description = require_description(description)
        self.questions: List[ClarifyingQuestion] = list(questions)
        if not self.questions:
            raise ValidationError(
                message="A session needs at least one clarifying question",
                field="questions"
            )

        self.state = SessionState.AWAITING_ANSWERS
        self.quote: Optional[Quote] = None
        self._answers: Dict[str, Answer] = {}

    @classmethod
    def from_transcript(cls, description: str, answers: Iterable[Answer]) -> "QuoteSession":
        """Rebuild a session from a transcript retained by the caller.

        Used by the stateless HTTP flow, where the caller resubmits the
        description with every answer it collected.
        """
        answers = list(answers)
        if not answers:
            raise ValidationError(
                message="Answers to the clarifying questions are required",
                field="previousAnswers",
                code=ErrorCode.MISSING_FIELD
            )

        questions = []
        seen = set()
        for answer in answers:
            if not answer.question.strip():
                raise ValidationError(
                    message="Every answer must name the question it answers",
                    field="previousAnswers"
                )
            if answer.question in seen:
                raise ValidationError(
                    message=f"Question answered more than once: {answer.question}",
                    field="previousAnswers"
                )
            seen.add(answer.question)

            # Original options are not resubmitted; keep the chosen one
            options = normalize_options([answer.resolved()])
            if len(options) < 2:
                options = normalize_options([UNANSWERED_OPTION])
            questions.append(ClarifyingQuestion(question=answer.question, options=options))

        session = cls(description, questions)
        for answer in answers:
            session._answers[answer.question] = answer
        return session

    @property
    def answers(self) -> List[Answer]:
        """Answers recorded so far, in question order."""
        return [self._answers[q.question] for q in self.questions if q.question in self._answers]

    def _require_state(self, expected: SessionState, action: str) -> None:
        if self.state != expected:
            raise SessionStateError(
                message=f"Cannot {action} a session in state '{self.state.value}'",
                state=self.state.value
            )

    def record_answer(
        self,
        question: str,
        answer: str,
        custom_answer: Optional[str] = None
    ) -> Answer:
        """Record (or replace) the answer to one of this session's questions."""
        self._require_state(SessionState.AWAITING_ANSWERS, "answer")

        if question not in {q.question for q in self.questions}:
            raise ValidationError(
                message=f"Unknown question: {question}",
                field="question"
            )

        recorded = Answer(question=question, answer=answer or "", custom_answer=custom_answer)
        self._answers[question] = recorded
        return recorded

    def resolved_answers(self) -> List[Answer]:
        """Return one resolved answer per question, Other overrides substituted.

        Raises:
            ValidationError: Naming the first unanswered question.
        """
        resolved = []
        for question in self.questions:
            answer = self._answers.get(question.question)
            text = answer.resolved() if answer else None
            if text is None:
                raise ValidationError(
                    message=f"Please provide an answer for: {question.question}",
                    field=question.question,
                    code=ErrorCode.UNANSWERED_QUESTION
                )
            resolved.append(Answer(question=question.question, answer=text))
        return resolved

    def complete(self, quote: Quote) -> None:
        """Move the session to ESTIMATED with its quote."""
        self._require_state(SessionState.AWAITING_ANSWERS, "estimate")
        self.quote = quote
        self.state = SessionState.ESTIMATED
        logger.info(
            "session_estimated",
            question_count=len(self.questions),
            job_count=len(quote.jobs)
        )
