"""Unit tests for the Estimation Agent."""

import pytest

from agents.primary.clarification_agent import ClarificationAgent
from agents.primary.estimation_agent import EstimationAgent, format_transcript
from agents.session import QuoteSession, SessionState
from config.errors import (
    ErrorCode,
    SessionStateError,
    UpstreamFormatError,
    UpstreamTransportError,
    ValidationError,
)
from models.quote import Answer, Range
from tests.fixtures.mock_llm_replies import (
    ESTIMATE_REPLY_WITH_PROSE,
    KITCHEN_ESTIMATE_REPLY,
    MULTI_TASK_ESTIMATE_REPLY,
    QUESTIONS_REPLY,
)


@pytest.fixture
def answered_session(kitchen_description):
    """Kitchen session with its single question answered."""
    return QuoteSession.from_transcript(
        kitchen_description,
        [Answer(question="Installation method?", answer="Surface trunking")]
    )


class TestEstimationAgent:
    """Tests for EstimationAgent."""

    @pytest.mark.asyncio
    async def test_kitchen_sockets_end_to_end(self, fake_llm, answered_session):
        """Medium 1h socket job at 45/h."""
        fake_llm.generate.return_value = KITCHEN_ESTIMATE_REPLY
        agent = EstimationAgent(llm_service=fake_llm)

        quote = await agent.request_estimate(answered_session, hourly_rate=45)

        task = quote.jobs[0]
        assert task.timeRange == Range(min=1, max=1.25)
        assert task.costRange.labour == Range(min=45, max=56.25)
        assert task.costRange.materials == Range(min=10, max=10)
        assert task.costRange.total == Range(min=55, max=66.25)
        assert quote.totals.total == Range(min=55, max=66.25)
        assert quote.hourlyRate == 45

    @pytest.mark.asyncio
    async def test_completes_session(self, fake_llm, answered_session):
        fake_llm.generate.return_value = KITCHEN_ESTIMATE_REPLY
        agent = EstimationAgent(llm_service=fake_llm)

        quote = await agent.request_estimate(answered_session, hourly_rate=45)

        assert answered_session.state == SessionState.ESTIMATED
        assert answered_session.quote is quote

    @pytest.mark.asyncio
    async def test_second_estimate_rejected(self, fake_llm, answered_session):
        fake_llm.generate.return_value = KITCHEN_ESTIMATE_REPLY
        agent = EstimationAgent(llm_service=fake_llm)
        await agent.request_estimate(answered_session, hourly_rate=45)

        with pytest.raises(SessionStateError):
            await agent.request_estimate(answered_session, hourly_rate=45)

        fake_llm.generate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_prompt_embeds_transcript_not_rate(self, fake_llm, answered_session, kitchen_description):
        fake_llm.generate.return_value = KITCHEN_ESTIMATE_REPLY
        agent = EstimationAgent(llm_service=fake_llm)

        await agent.request_estimate(answered_session, hourly_rate=73.5)

        prompt = fake_llm.generate.await_args.args[0]
        assert kitchen_description in prompt
        assert "- Installation method?: Surface trunking" in prompt
        assert "73.5" not in prompt
        assert "tools" in prompt
        assert "minor fixings" in prompt
        assert fake_llm.generate.await_args.kwargs["max_tokens"] == 1200

    @pytest.mark.asyncio
    async def test_unresolved_other_never_dispatched(self, fake_llm, kitchen_description):
        session = QuoteSession.from_transcript(
            kitchen_description,
            [
                Answer(question="Installation method?", answer="Surface trunking"),
                Answer(question="Property type?", answer="Other", customAnswer=""),
            ]
        )
        agent = EstimationAgent(llm_service=fake_llm)

        with pytest.raises(ValidationError) as exc_info:
            await agent.request_estimate(session, hourly_rate=45)

        assert exc_info.value.code == ErrorCode.UNANSWERED_QUESTION
        assert exc_info.value.field == "Property type?"
        fake_llm.generate.assert_not_awaited()
        assert session.state == SessionState.AWAITING_ANSWERS

    @pytest.mark.asyncio
    async def test_unanswered_question_never_dispatched(self, fake_llm, kitchen_session):
        kitchen_session.record_answer("Installation method?", "Surface trunking")
        agent = EstimationAgent(llm_service=fake_llm)

        with pytest.raises(ValidationError):
            await agent.request_estimate(kitchen_session, hourly_rate=45)

        fake_llm.generate.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rate", [0, -10, "fast", float("nan"), True, 1e308, 10_001])
    async def test_invalid_rate_never_dispatched(self, fake_llm, answered_session, rate):
        agent = EstimationAgent(llm_service=fake_llm)

        with pytest.raises(ValidationError) as exc_info:
            await agent.request_estimate(answered_session, hourly_rate=rate)

        assert exc_info.value.field == "hourlyRate"
        fake_llm.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_default_rate_from_settings(self, fake_llm, answered_session):
        fake_llm.generate.return_value = KITCHEN_ESTIMATE_REPLY
        agent = EstimationAgent(llm_service=fake_llm)

        quote = await agent.request_estimate(answered_session)

        assert quote.hourlyRate == 50
        assert quote.jobs[0].costRange.labour == Range(min=50, max=62.5)

    @pytest.mark.asyncio
    async def test_leading_prose_is_format_error(self, fake_llm, answered_session):
        fake_llm.generate.return_value = ESTIMATE_REPLY_WITH_PROSE
        agent = EstimationAgent(llm_service=fake_llm)

        with pytest.raises(UpstreamFormatError):
            await agent.request_estimate(answered_session, hourly_rate=45)

        assert answered_session.state == SessionState.AWAITING_ANSWERS

    @pytest.mark.asyncio
    async def test_transport_error_leaves_session_open(self, fake_llm, answered_session):
        fake_llm.generate.side_effect = UpstreamTransportError(reason="timeout")
        agent = EstimationAgent(llm_service=fake_llm)

        with pytest.raises(UpstreamTransportError):
            await agent.request_estimate(answered_session, hourly_rate=45)

        assert answered_session.state == SessionState.AWAITING_ANSWERS

    @pytest.mark.asyncio
    async def test_multi_task_totals(self, fake_llm, answered_session):
        fake_llm.generate.return_value = MULTI_TASK_ESTIMATE_REPLY
        agent = EstimationAgent(llm_service=fake_llm)

        quote = await agent.request_estimate(answered_session, hourly_rate=40)

        trunking, sockets, testing = quote.jobs
        # High [2, 4] -> [3, 3.3]
        assert trunking.timeRange == Range(min=3, max=3.3)
        assert trunking.costRange.labour == Range(min=120, max=132)
        assert trunking.costRange.materials == Range(min=6, max=9)
        # Low [1, 1.5] -> [1, 3]
        assert sockets.timeRange == Range(min=1, max=3)
        assert sockets.costRange.total == Range(min=48, max=132)
        # Missing time prices at zero
        assert testing.costRange.total == Range.zero()

        assert quote.totals.timeRange == Range(min=4, max=6.3)
        assert quote.totals.labour == Range(min=160, max=252)
        assert quote.totals.materials == Range(min=14, max=21)
        assert quote.totals.total == Range(min=174, max=273)


class TestFullProtocol:
    """Clarify, answer, then estimate through one session."""

    @pytest.mark.asyncio
    async def test_clarify_answer_estimate(self, fake_llm, kitchen_description):
        fake_llm.generate.return_value = QUESTIONS_REPLY
        session = await ClarificationAgent(llm_service=fake_llm).start_session(kitchen_description)

        session.record_answer("Installation method?", "Surface trunking")
        session.record_answer("Property type?", "Other", custom_answer="Bungalow")

        fake_llm.generate.return_value = KITCHEN_ESTIMATE_REPLY
        quote = await EstimationAgent(llm_service=fake_llm).request_estimate(session, hourly_rate=45)

        assert fake_llm.generate.await_count == 2
        assert "- Property type?: Bungalow" in fake_llm.generate.await_args.args[0]
        assert quote.totals.total == Range(min=55, max=66.25)


def test_format_transcript():
    answers = [
        Answer(question="Installation method?", answer="Surface trunking"),
        Answer(question="Property type?", answer="Flat"),
    ]

    assert format_transcript(answers) == (
        "- Installation method?: Surface trunking\n"
        "- Property type?: Flat"
    )
