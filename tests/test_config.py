"""Tests for settings and store selection."""

import pytest

from hanibot_chat.api.app import build_store
from hanibot_chat.config import Settings
from hanibot_chat.repositories import InMemoryMessageStore, JsonFileMessageStore


def test_defaults(monkeypatch):
    for name in ["PORT", "MAX_MESSAGE_LENGTH", "ALLOWED_ORIGINS", "GEMINI_API_KEY", "BOT_NAME"]:
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.port == 3000
    assert settings.max_message_length == 500
    assert settings.max_sender_length == 80
    assert settings.gemini_api_key is None
    assert settings.allows_any_origin
    assert settings.reserved_bot_names == {"hanibot", "chatbot"}


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("MAX_MESSAGE_LENGTH", "120")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.example, http://b.example/ ,")
    monkeypatch.setenv("GEMINI_API_KEY", "nøgle")
    monkeypatch.setenv("GEMINI_TEMPERATURE", "0.9")
    settings = Settings.from_env()
    assert settings.port == 8080
    assert settings.max_message_length == 120
    assert settings.allowed_origins == ["http://a.example", "http://b.example/"]
    assert settings.gemini_api_key == "nøgle"
    assert settings.gemini_temperature == 0.9


def test_malformed_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("PORT", "høj")
    monkeypatch.setenv("GEMINI_TIMEOUT", "snart")
    settings = Settings.from_env()
    assert settings.port == 3000
    assert settings.gemini_timeout == 10.0


@pytest.mark.parametrize(
    "length, timeout",
    [("0", "0"), ("-5", "-1"), ("0", "nan"), ("-1", "-0.5")],
)
def test_out_of_range_numbers_fall_back_to_defaults(monkeypatch, length, timeout):
    monkeypatch.setenv("MAX_MESSAGE_LENGTH", length)
    monkeypatch.setenv("GEMINI_TIMEOUT", timeout)
    monkeypatch.setenv("GEMINI_MAX_TOKENS", "0")
    settings = Settings.from_env()
    assert settings.max_message_length == 500
    assert settings.gemini_timeout == 10.0
    assert settings.gemini_max_tokens == 200


@pytest.mark.parametrize(
    "origin, allowed",
    [
        (None, True),
        ("http://a.example", True),
        ("http://b.example", True),
        ("http://c.example", False),
    ],
)
def test_origin_allowed(origin, allowed):
    settings = Settings(allowed_origins=["http://a.example", "http://b.example/"])
    assert settings.origin_allowed(origin) is allowed


def test_wildcard_origin_allows_everything():
    assert Settings(allowed_origins=["*"]).origin_allowed("http://any.example")


def test_build_store(tmp_path):
    assert isinstance(build_store(Settings(data_file=":memory:")), InMemoryMessageStore)
    store = build_store(Settings(data_file=str(tmp_path / "m.json")))
    assert isinstance(store, JsonFileMessageStore)
