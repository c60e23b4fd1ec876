# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger


def _capture(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)
    return captured


def test_log_event_emits_valid_jsonl(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload is serialized as-is
    - output sink is patchable
    """
    captured = _capture(monkeypatch)

    payload: dict[str, Any] = {
        "ts_ms": 1,
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    assert len(captured) == 1
    assert json.loads(captured[0]) == payload


def test_log_event_stamps_missing_ts_ms(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)

    logger.log_event({"event_type": "TEST"})

    decoded = json.loads(captured[0])
    assert isinstance(decoded["ts_ms"], int)
    assert decoded["event_type"] == "TEST"


def test_log_event_falls_back_on_unserializable(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)

    logger.log_event({"event_type": "TEST", "obj": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"


def test_log_event_never_raises_on_broken_sink(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(_: str) -> None:
        raise OSError("stdout closed")

    monkeypatch.setattr(logger, "_print", broken)

    logger.log_event({"event_type": "TEST"})
