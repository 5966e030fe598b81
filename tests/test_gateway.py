import pytest
import requests

from contextqa.errors import GatewayError
from contextqa.llm.gateway import AnswerGateway

from conftest import FakeResponse, FakeSession


def test_ask_sends_expected_request_and_returns_body_verbatim():
    body = [{"answer": "Paris", "score": 0.98, "start": 0, "end": 5}]
    session = FakeSession(FakeResponse(200, body))
    gw = AnswerGateway("https://qa.example/models/x", "Bearer abc", timeout=5, session=session)

    out = gw.ask("Paris is the capital of France.", "What is the capital of France?")

    assert out == body
    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["url"] == "https://qa.example/models/x"
    assert call["json"] == {
        "inputs": {
            "question": "What is the capital of France?",
            "context": "Paris is the capital of France.",
        }
    }
    assert call["headers"] == {
        "Accept": "application/json",
        "Authorization": "Bearer abc",
        "Content-Type": "application/json",
    }
    assert call["timeout"] == 5.0


def test_empty_api_key_omits_authorization_header():
    session = FakeSession(FakeResponse(200, {"ok": True}))
    AnswerGateway("https://qa.example", "", session=session).ask("c", "q")
    assert "Authorization" not in session.calls[0]["headers"]


def test_network_error_is_wrapped():
    session = FakeSession(error=requests.ConnectionError("connection refused"))
    gw = AnswerGateway("https://qa.example", "k", session=session)
    with pytest.raises(GatewayError) as exc:
        gw.ask("c", "q")
    assert isinstance(exc.value.__cause__, requests.ConnectionError)


def test_non_2xx_is_wrapped():
    session = FakeSession(FakeResponse(503, {"error": "loading"}))
    gw = AnswerGateway("https://qa.example", "k", session=session)
    with pytest.raises(GatewayError):
        gw.ask("c", "q")
    assert len(session.calls) == 1  # no retry


def test_non_json_body_is_wrapped():
    session = FakeSession(FakeResponse(200, None, text="<html>"))
    with pytest.raises(GatewayError):
        AnswerGateway("https://qa.example", "k", session=session).ask("c", "q")


def test_missing_url_fails_without_calling_out():
    session = FakeSession(FakeResponse(200, {}))
    with pytest.raises(GatewayError):
        AnswerGateway("", "k", session=session).ask("c", "q")
    assert session.calls == []


def test_without_session_each_call_uses_requests_post(monkeypatch):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append(url)
        return FakeResponse(200, {"answer": "ok"})

    monkeypatch.setattr(requests, "post", fake_post)
    gw = AnswerGateway("https://qa.example", "k")
    assert gw.ask("c", "q") == {"answer": "ok"}
    assert gw.ask("c", "q2") == {"answer": "ok"}
    assert calls == ["https://qa.example", "https://qa.example"]
