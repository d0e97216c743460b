import requests

from kennedy.assistant import service
from kennedy.assistant.service import NO_ANSWER_FALLBACK, generate_reply


class _FakeResponse:
    def __init__(self, payload, status_code=200, text=""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        return self._payload


def _capture_post(monkeypatch, response):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(service.requests, "post", fake_post)
    return calls


def test_generate_reply_sends_prompt_as_single_user_message(monkeypatch):
    monkeypatch.setenv("KENNEDY_OPENROUTER_API_KEY", "sk-test")
    monkeypatch.setenv("KENNEDY_OPENROUTER_MODEL", "test/model")
    monkeypatch.delenv("KENNEDY_ASSISTANT_TEMPERATURE", raising=False)
    calls = _capture_post(
        monkeypatch,
        _FakeResponse({"choices": [{"message": {"content": "Respuesta"}}], "usage": {"total_tokens": 7}}),
    )

    reply = generate_reply(prompt="¿Qué falta?")

    assert reply.ok
    assert reply.content == "Respuesta"
    assert reply.model == "test/model"
    assert reply.meta["usage"] == {"total_tokens": 7}
    assert len(calls) == 1
    assert calls[0]["json"] == {
        "model": "test/model",
        "messages": [{"role": "user", "content": "¿Qué falta?"}],
    }
    assert calls[0]["headers"]["Authorization"] == "Bearer sk-test"
    assert "X-Title" in calls[0]["headers"]


def test_messages_take_precedence_over_prompt(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-fallback")
    monkeypatch.delenv("KENNEDY_OPENROUTER_API_KEY", raising=False)
    monkeypatch.setenv("KENNEDY_ASSISTANT_TEMPERATURE", "5")
    calls = _capture_post(monkeypatch, _FakeResponse({"choices": [{"text": "ok"}]}))
    messages = [{"role": "system", "content": "s"}, {"role": "user", "content": "u"}]

    reply = generate_reply(prompt="ignored", messages=messages)

    assert reply.content == "ok"
    assert calls[0]["json"]["messages"] == messages
    assert calls[0]["json"]["temperature"] == 2.0
    assert calls[0]["headers"]["Authorization"] == "Bearer sk-fallback"


def test_empty_choices_yield_fallback(monkeypatch):
    monkeypatch.setenv("KENNEDY_OPENROUTER_API_KEY", "sk-test")
    _capture_post(monkeypatch, _FakeResponse({"choices": []}))

    reply = generate_reply(prompt="hola")

    assert reply.ok
    assert reply.content == NO_ANSWER_FALLBACK
    assert reply.meta["empty"] is True


def test_missing_key_fails_without_network(monkeypatch):
    monkeypatch.delenv("KENNEDY_OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    calls = _capture_post(monkeypatch, _FakeResponse({}))

    reply = generate_reply(prompt="hola")

    assert not reply.ok
    assert "API key" in reply.error
    assert calls == []


def test_http_error_is_reported(monkeypatch):
    monkeypatch.setenv("KENNEDY_OPENROUTER_API_KEY", "sk-test")
    calls = _capture_post(monkeypatch, _FakeResponse({}, status_code=429, text="rate limited"))

    reply = generate_reply(prompt="hola")

    assert not reply.ok
    assert reply.error == "OpenRouter Error 429: rate limited"
    assert reply.meta["status_code"] == 429
    assert len(calls) == 1


def test_transport_error_is_reported_once(monkeypatch):
    monkeypatch.setenv("KENNEDY_OPENROUTER_API_KEY", "sk-test")
    calls = _capture_post(monkeypatch, requests.exceptions.ConnectionError("boom"))

    reply = generate_reply(prompt="hola")

    assert not reply.ok
    assert reply.error.startswith("ConnectionError")
    assert len(calls) == 1
