"""Tests for the writing assistant client, with the HTTP layer faked out."""

import json

import pytest
import requests

from saidistat import completion
from saidistat.completion import (
    CompletionRequest,
    StudyContext,
    extract_json_payload,
    parse_completion_body,
    request_completion,
)
from saidistat.config import Settings
from saidistat.errors import CompletionError, ConfigurationError, QuotaExceededError, RateLimitedError

SETTINGS = Settings(completion_url="https://assistant.test/complete", completion_api_key="key-123")


class FakeResponse:

    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


class FakeSession:

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def test_payload_uses_service_field_names():
    request = CompletionRequest(
        action="generate_section",
        topic="Malaria in children",
        study_type="cross-sectional",
        section="context",
        context=StudyContext(domain="medical", population="", variables=["age"]),
    )
    assert request.to_payload() == {
        "action": "generate_section",
        "topic": "Malaria in children",
        "studyType": "cross-sectional",
        "section": "context",
        "context": {"domain": "medical", "variables": ["age"]},
    }


def test_successful_request_with_citations():
    session = FakeSession(FakeResponse(body={
        "content": "Malaria remains endemic.",
        "references": [{"citation": "(WHO, 2023)", "fullReference": "World Health Organization. Report."}],
    }))
    result = request_completion(CompletionRequest(action="generate_references", topic="Malaria"), SETTINGS, session)
    assert result.content == "Malaria remains endemic."
    assert result.citations[0].citation == "(WHO, 2023)"
    assert result.citations[0].full_reference == "World Health Organization. Report."

    url, kwargs = session.calls[0]
    assert url == SETTINGS.completion_url
    assert kwargs["json"] == {"action": "generate_references", "topic": "Malaria"}
    assert kwargs["headers"]["Authorization"] == "Bearer key-123"
    assert kwargs["timeout"] == SETTINGS.completion_timeout


def test_study_identification_answer():
    result = parse_completion_body({"studyType": "Cohort", "justification": "Subjects are followed up."})
    assert result.content == "Cohort: Subjects are followed up."


def test_choices_envelope_with_fenced_json():
    text = 'Here you go:\n```json\n{"content": "Objectives...", "references": ["(Doe, 2020)"]}\n```'
    result = parse_completion_body({"choices": [{"message": {"content": text}}]})
    assert result.content == "Objectives..."
    assert [c.citation for c in result.citations] == ["(Doe, 2020)"]


def test_error_body_raises():
    with pytest.raises(CompletionError, match="boom"):
        parse_completion_body({"error": "boom"})


@pytest.mark.parametrize("status, error", [(429, RateLimitedError), (402, QuotaExceededError)])
def test_rate_limit_and_quota(status, error):
    session = FakeSession(FakeResponse(status_code=status, body={"error": "x"}))
    with pytest.raises(error) as excinfo:
        request_completion(CompletionRequest(action="identify_study", topic="t"), SETTINGS, session)
    assert excinfo.value.status_code == status


def test_server_error():
    session = FakeSession(FakeResponse(status_code=500, text="internal"))
    with pytest.raises(CompletionError) as excinfo:
        request_completion(CompletionRequest(action="identify_study", topic="t"), SETTINGS, session)
    assert excinfo.value.status_code == 500


def test_invalid_json_response():
    session = FakeSession(FakeResponse(status_code=200, text="<html>"))
    with pytest.raises(CompletionError, match="invalid JSON"):
        request_completion(CompletionRequest(action="identify_study", topic="t"), SETTINGS, session)


def test_network_failure():
    session = FakeSession(error=requests.exceptions.ConnectionError("refused"))
    with pytest.raises(CompletionError, match="unreachable"):
        request_completion(CompletionRequest(action="identify_study", topic="t"), SETTINGS, session)


def test_uses_requests_by_default(monkeypatch):
    session = FakeSession(FakeResponse(body={"content": "ok"}))
    monkeypatch.setattr(completion.requests, "post", session.post)
    result = request_completion(CompletionRequest(action="identify_study", topic="t"), SETTINGS)
    assert result.content == "ok"
    assert len(session.calls) == 1


def test_missing_url_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        request_completion(CompletionRequest(action="identify_study"), Settings())


def test_unknown_action():
    with pytest.raises(CompletionError):
        request_completion(CompletionRequest(action="summarize"), SETTINGS, FakeSession())


def test_extract_json_payload():
    assert extract_json_payload('prefix {"a": 1} suffix') == {"a": 1}
    assert extract_json_payload("plain prose") == {"content": "plain prose"}
    assert extract_json_payload("{not json}") == {"content": "{not json}"}
