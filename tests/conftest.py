"""Pytest configuration and shared fixtures.

The package lives under ``tokbox/src``.  When the project is not installed
(``pip install -e .``), this file puts that directory on ``sys.path`` along
with the repository root so that ``tests.helpers`` can be imported.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]

for path in (ROOT, ROOT / "tokbox" / "src"):
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from tests.helpers.token_fixtures import API_KEY, API_SECRET, FIXED_NOW, SESSION_ID  # noqa: E402
from tokbox.models import Credentials, Session  # noqa: E402


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(key=API_KEY, secret=API_SECRET)


@pytest.fixture
def session() -> Session:
    return Session(
        session_id=SESSION_ID,
        project_id=API_KEY,
        partner_id=API_KEY,
        create_dt="Tue Nov 14 22:13:20 PST 2023",
        session_status="",
        media_server_url="",
    )


@pytest.fixture
def fixed_clock():
    return lambda: float(FIXED_NOW)
