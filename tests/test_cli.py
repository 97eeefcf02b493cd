"""Tests for the ``tokbox`` command line entry point."""

from __future__ import annotations

import aiohttp
import pytest  # type: ignore

from tests.helpers.fake_http import FakeClientSession, FakeResponse
from tests.helpers.token_fixtures import API_KEY, API_SECRET, SESSION_ID
from tokbox import cli
from tokbox.tokens import parse_token


@pytest.fixture(autouse=True)
def env(monkeypatch):
    monkeypatch.setenv("TOKBOX_API_KEY", API_KEY)
    monkeypatch.setenv("TOKBOX_API_SECRET", API_SECRET)
    monkeypatch.delenv("TOKBOX_API_KEY_FILE", raising=False)
    monkeypatch.delenv("TOKBOX_API_SECRET_FILE", raising=False)
    monkeypatch.setattr(aiohttp, "ClientSession", FakeClientSession)


def test_token_command(capsys) -> None:
    assert cli.main(["token", SESSION_ID, "--role", "subscriber", "--count", "3", "--expire", "60"]) == 0
    lines = capsys.readouterr().out.split()
    assert len(lines) == 3
    for line in lines:
        fields = parse_token(line).fields
        assert fields["session_id"] == SESSION_ID
        assert fields["role"] == "subscriber"
        assert "expire_time" in fields


def test_session_command(capsys) -> None:
    FakeClientSession.reset(FakeResponse(200, [{"session_id": SESSION_ID}]))
    assert cli.main(["session", "--media-mode", "relayed", "--archive-mode", "manual"]) == 0
    assert capsys.readouterr().out.strip() == SESSION_ID
    assert FakeClientSession.requests[0]["data"]["p2p.preference"] == "enabled"


def test_archive_command() -> None:
    FakeClientSession.reset(FakeResponse(200, {}))
    assert cli.main(["archive", SESSION_ID, "--name", "lecture", "--layout", "custom", "--stylesheet", "stream {}"]) == 0
    body = FakeClientSession.requests[0]["json"]
    assert body["layout"] == {"type": "custom", "stylesheet": "stream {}"}
    assert body["name"] == "lecture"


def test_remote_error_exits_non_zero() -> None:
    FakeClientSession.reset(FakeResponse(500, "internal error"))
    assert cli.main(["session"]) == 1


def test_invalid_layout_exits_non_zero() -> None:
    FakeClientSession.reset()
    assert cli.main(["archive", SESSION_ID, "--layout", "pip", "--stylesheet", "stream {}"]) == 1
    assert FakeClientSession.requests == []


def test_missing_credentials_exit_non_zero(monkeypatch) -> None:
    monkeypatch.delenv("TOKBOX_API_SECRET")
    assert cli.main(["token", SESSION_ID]) == 1
