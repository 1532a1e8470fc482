from __future__ import annotations


import pytest

from cyber_quiz.core.ai import load_client


def test_load_client_requires_api_key(openai_factory) -> None:
    with pytest.raises(RuntimeError) as exc:
        load_client()
    assert "OPENAI_API_KEY" in str(exc.value)
    assert openai_factory.last is None


def test_load_client_returns_stub_with_key(
    monkeypatch: pytest.MonkeyPatch, openai_factory
) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    client = load_client()
    assert client is openai_factory.last
    assert openai_factory.last.init_kwargs == {"api_key": "test-key"}


def test_load_client_passes_base_url_and_timeout(
    monkeypatch: pytest.MonkeyPatch, openai_factory
) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    load_client(api_base="http://localhost:9999/v1", timeout=12)
    kwargs = openai_factory.last.init_kwargs
    assert kwargs["base_url"] == "http://localhost:9999/v1"
    assert kwargs["timeout"] == 12
