"""Tests for structlog configuration.

``structlog.configure`` and ``logging.basicConfig`` are replaced with recorders
so the global logging setup of the test session is left alone.
"""

from __future__ import annotations

import logging

import pytest
import structlog

from telops.core import logging as telops_logging


@pytest.fixture
def recorded(monkeypatch):
    calls: dict = {}
    monkeypatch.setattr(structlog, "configure", lambda **kwargs: calls.update(structlog=kwargs))
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(stdlib=kwargs))
    return calls


def _renderer(calls):
    return calls["structlog"]["processors"][-1]


def test_json_format_uses_json_renderer(recorded):
    telops_logging.configure_logging("debug", "json")

    assert isinstance(_renderer(recorded), structlog.processors.JSONRenderer)
    assert recorded["stdlib"]["level"] == "DEBUG"


def test_text_format_uses_console_renderer(recorded):
    telops_logging.configure_logging("INFO", "text")

    assert isinstance(_renderer(recorded), structlog.dev.ConsoleRenderer)


def test_format_falls_back_to_json_logs_env(recorded, monkeypatch):
    monkeypatch.setenv("JSON_LOGS", "true")

    telops_logging.configure_logging()

    assert isinstance(_renderer(recorded), structlog.processors.JSONRenderer)
