"""Unit tests for the HTTP entry points."""

import json
from functools import partial
from unittest.mock import MagicMock

import pytest

import main
from config.errors import ErrorCode, UpstreamTransportError
from tests.fixtures.mock_llm_replies import (
    ESTIMATE_REPLY_WITH_PROSE,
    KITCHEN_ESTIMATE_REPLY,
    QUESTIONS_REPLY,
)


def make_request(data=None, method="POST", error=None):
    """Build a stand-in for https_fn.Request."""
    req = MagicMock()
    req.method = method
    if error is not None:
        req.get_json.side_effect = error
    else:
        req.get_json.return_value = data
    return req


def body(response):
    return json.loads(response.get_data(as_text=True))


class TestClarifyEndpoint:
    """Tests for the clarification request handler."""

    def test_success(self, fake_llm):
        fake_llm.generate.return_value = QUESTIONS_REPLY
        handler = partial(main.handle_clarify_request, llm_service=fake_llm)

        response = main.dispatch(make_request({"jobDescription": "Install two double sockets"}), handler)

        assert response.status_code == 200
        questions = body(response)["questions"]
        assert questions[0] == {
            "question": "Installation method?",
            "options": ["Surface trunking", "Chased into wall", "Other"]
        }

    def test_missing_description_is_400(self, fake_llm):
        handler = partial(main.handle_clarify_request, llm_service=fake_llm)

        response = main.dispatch(make_request({}), handler)

        assert response.status_code == 400
        assert body(response) == {
            "error": "Job description is required",
            "code": ErrorCode.MISSING_FIELD,
            "field": "jobDescription"
        }
        fake_llm.generate.assert_not_awaited()

    def test_format_error_is_500(self, fake_llm):
        fake_llm.generate.return_value = "I would ask about sockets."
        handler = partial(main.handle_clarify_request, llm_service=fake_llm)

        response = main.dispatch(make_request({"jobDescription": "Install sockets"}), handler)

        assert response.status_code == 500
        payload = body(response)
        assert payload["code"] == ErrorCode.UPSTREAM_FORMAT_ERROR
        assert "questions" not in payload

    def test_transport_error_hides_cause(self, fake_llm):
        fake_llm.generate.side_effect = UpstreamTransportError(
            reason="LLM generation failed: APIConnectionError",
            details={"original_error": "secret host 10.0.0.1 unreachable"}
        )
        handler = partial(main.handle_clarify_request, llm_service=fake_llm)

        response = main.dispatch(make_request({"jobDescription": "Install sockets"}), handler)

        assert response.status_code == 500
        assert body(response) == {
            "error": "AI estimation failed. Please try again later.",
            "code": ErrorCode.LLM_ERROR
        }


class TestEstimateEndpoint:
    """Tests for the estimation request handler."""

    def test_success(self, fake_llm):
        fake_llm.generate.return_value = KITCHEN_ESTIMATE_REPLY
        handler = partial(main.handle_estimate_request, llm_service=fake_llm)
        data = {
            "jobDescription": "Install two double sockets in a kitchen",
            "previousAnswers": [{"question": "Installation method?", "answer": "Surface trunking"}],
            "hourlyRate": 45
        }

        response = main.dispatch(make_request(data), handler)

        assert response.status_code == 200
        payload = body(response)
        assert payload["hourlyRate"] == 45
        assert payload["jobs"][0] == {
            "job": "Install sockets",
            "confidence": "Medium",
            "timeRange": {"min": 1, "max": 1.25},
            "materials": [{"name": "Socket", "priceRange": {"min": 10, "max": 10}}],
            "costRange": {
                "labour": {"min": 45, "max": 56.25},
                "materials": {"min": 10, "max": 10},
                "total": {"min": 55, "max": 66.25}
            }
        }
        assert payload["totals"]["total"] == {"min": 55, "max": 66.25}

    def test_other_with_custom_answer(self, fake_llm):
        fake_llm.generate.return_value = KITCHEN_ESTIMATE_REPLY
        handler = partial(main.handle_estimate_request, llm_service=fake_llm)
        data = {
            "jobDescription": "Install two double sockets in a kitchen",
            "previousAnswers": [
                {"question": "Property type?", "answer": "Other", "customAnswer": "Narrowboat"}
            ]
        }

        response = main.dispatch(make_request(data), handler)

        assert response.status_code == 200
        assert "- Property type?: Narrowboat" in fake_llm.generate.await_args.args[0]
        assert body(response)["hourlyRate"] == 50

    @pytest.mark.parametrize("data,field", [
        ({"previousAnswers": [{"question": "Q?", "answer": "A"}]}, "jobDescription"),
        ({"jobDescription": "Sockets"}, "previousAnswers"),
        ({"jobDescription": "Sockets", "previousAnswers": "Surface"}, "previousAnswers"),
        ({"jobDescription": "Sockets", "previousAnswers": [{"answer": "A"}]}, "previousAnswers"),
        ({"jobDescription": "Sockets", "previousAnswers": [{"question": "Q?", "answer": "Other"}]}, "Q?"),
        ({"jobDescription": "Sockets", "previousAnswers": [{"question": "Q?", "answer": ""}]}, "Q?"),
        ({"jobDescription": "Sockets", "previousAnswers": [{"question": "Q?", "answer": "A"}],
          "hourlyRate": -5}, "hourlyRate"),
    ])
    def test_invalid_input_is_400_without_dispatch(self, fake_llm, data, field):
        handler = partial(main.handle_estimate_request, llm_service=fake_llm)

        response = main.dispatch(make_request(data), handler)

        assert response.status_code == 400
        assert body(response)["field"] == field
        fake_llm.generate.assert_not_awaited()

    def test_huge_model_numbers_still_produce_valid_json(self, fake_llm):
        fake_llm.generate.return_value = json.dumps({"jobs": [
            {"job": "Install sockets", "confidence": "Low",
             "timeRange": {"min": 1, "max": 1e308},
             "materials": [{"name": "Socket", "price": 10**400}]}
        ]})
        handler = partial(main.handle_estimate_request, llm_service=fake_llm)
        data = {
            "jobDescription": "Sockets",
            "previousAnswers": [{"question": "Q?", "answer": "A"}],
            "hourlyRate": 45
        }

        response = main.dispatch(make_request(data), handler)

        assert response.status_code == 200
        payload = json.loads(response.get_data(as_text=True), parse_constant=pytest.fail)
        assert payload["jobs"][0]["timeRange"] == {"min": 1, "max": 2}
        assert payload["totals"]["total"] == {"min": 45, "max": 90}

    def test_oversized_rate_is_400(self, fake_llm):
        handler = partial(main.handle_estimate_request, llm_service=fake_llm)
        data = {
            "jobDescription": "Sockets",
            "previousAnswers": [{"question": "Q?", "answer": "A"}],
            "hourlyRate": 1e308
        }

        response = main.dispatch(make_request(data), handler)

        assert response.status_code == 400
        assert body(response)["field"] == "hourlyRate"
        fake_llm.generate.assert_not_awaited()

    def test_leading_prose_is_500(self, fake_llm):
        fake_llm.generate.return_value = ESTIMATE_REPLY_WITH_PROSE
        handler = partial(main.handle_estimate_request, llm_service=fake_llm)
        data = {
            "jobDescription": "Sockets",
            "previousAnswers": [{"question": "Q?", "answer": "A"}]
        }

        response = main.dispatch(make_request(data), handler)

        assert response.status_code == 500
        assert "jobs" not in body(response)


class TestTimeEstimateEndpoint:
    """Tests for the quick time estimate handler."""

    def test_success(self, fake_llm):
        fake_llm.generate.return_value = "2"
        handler = partial(main.handle_time_estimate_request, llm_service=fake_llm)

        response = main.dispatch(make_request({"jobType": "fused spur"}), handler)

        assert response.status_code == 200
        assert body(response) == {"estimatedTime": 2.0}

    def test_missing_job_type_is_400(self, fake_llm):
        handler = partial(main.handle_time_estimate_request, llm_service=fake_llm)

        response = main.dispatch(make_request({}), handler)

        assert response.status_code == 400


class TestDispatch:
    """Tests for request plumbing shared by every endpoint."""

    def test_options_preflight(self, fake_llm):
        handler = partial(main.handle_clarify_request, llm_service=fake_llm)

        response = main.dispatch(make_request(method="OPTIONS"), handler)

        assert response.status_code == 204
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_invalid_json_is_400(self, fake_llm):
        handler = partial(main.handle_clarify_request, llm_service=fake_llm)

        response = main.dispatch(make_request(error=ValueError("bad json")), handler)

        assert response.status_code == 400
        assert body(response)["code"] == ErrorCode.VALIDATION_ERROR

    def test_non_object_body_is_400(self, fake_llm):
        handler = partial(main.handle_clarify_request, llm_service=fake_llm)

        response = main.dispatch(make_request(["Install sockets"]), handler)

        assert response.status_code == 400

    def test_non_finite_payload_is_generic_500(self):
        async def infinite_handler(data):
            return {"estimatedTime": float("inf")}

        response = main.dispatch(make_request({"jobType": "x"}), infinite_handler)

        assert response.status_code == 500
        assert body(response)["code"] == ErrorCode.INTERNAL_ERROR
        assert "Infinity" not in response.get_data(as_text=True)

    def test_unexpected_error_is_generic_500(self):
        async def broken_handler(data):
            raise RuntimeError("database password is hunter2")

        response = main.dispatch(make_request({"jobDescription": "x"}), broken_handler)

        assert response.status_code == 500
        assert body(response) == {
            "error": main.INTERNAL_ERROR_MESSAGE,
            "code": ErrorCode.INTERNAL_ERROR
        }
