"""Test setup for branchdocs."""

from __future__ import annotations

import json
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

_PATH = re.compile(r"^(?:/api)?/branches([1-5])(?:/(\d+))?$")


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for pytest.

    This allows running integration tests selectively:
        pytest -m integration       # run only integration tests
        pytest -m "not integration" # skip integration tests
    """
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (need a live backend)",
    )


def make_record(record_id: int, branch_id: int | None = None, title: str | None = None, **extra: Any) -> dict:
    """A backend-shaped branch record."""
    stamp = "2024-01-01T00:00:00+00:00"
    return {
        "id": record_id,
        "branch_id": branch_id,
        "title": title or f"Branch {record_id}",
        "content": f"<p>{title or record_id}</p>",
        "created_at": stamp,
        "updated_at": stamp,
        **extra,
    }


class FakeBackend:
    """In-memory stand-in for the branch data service, usable as an httpx handler.

    Serves ``/branchesN`` and ``/branchesN/{id}`` (with or without an ``/api``
    prefix) plus ``/health``. Every request is recorded in ``requests``.
    """

    def __init__(self) -> None:
        self.tables: dict[int, dict[int, dict]] = {level: {} for level in range(1, 6)}
        self.requests: list[httpx.Request] = []
        self._next_id = 1

    def seed(self, level: int, *records: dict) -> None:
        for record in records:
            self.tables[level][record["id"]] = dict(record)
            self._next_id = max(self._next_id, record["id"] + 1)

    def calls(self, method: str | None = None) -> list[httpx.Request]:
        return [req for req in self.requests if method is None or req.method == method]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in ("/health", "/api/health"):
            return httpx.Response(200, json={"status": "OK", "database": "connected", "version": "2.0.0"})

        match = _PATH.match(path)
        if match is None:
            return httpx.Response(404, json={"error": "NOT_FOUND", "message": f"No route {path}"})
        table = self.tables[int(match.group(1))]
        record_id = int(match.group(2)) if match.group(2) else None

        if record_id is None and request.method == "GET":
            return httpx.Response(200, json=list(table.values()))
        if record_id is None and request.method == "POST":
            body = json.loads(request.content)
            now = datetime.now(timezone.utc).isoformat()
            record = {"id": self._next_id, "branch_id": body.get("branch_id"), "title": body["title"],
                      "content": body["content"], "created_at": now, "updated_at": now}
            self._next_id += 1
            table[record["id"]] = record
            return httpx.Response(201, json=record)
        if record_id not in table:
            return httpx.Response(404, json={"message": "Branch not found"})
        if request.method == "GET":
            return httpx.Response(200, json=table[record_id])
        if request.method == "PATCH":
            body = json.loads(request.content)
            table[record_id].update({k: v for k, v in body.items() if k in ("branch_id", "title", "content")})
            table[record_id]["updated_at"] = datetime.now(timezone.utc).isoformat()
            return httpx.Response(200, json=table[record_id])
        if request.method == "DELETE":
            del table[record_id]
            return httpx.Response(204)
        return httpx.Response(405, text="Method Not Allowed")


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Empty in-memory backend."""
    return FakeBackend()


@pytest.fixture
def backend_client(fake_backend: FakeBackend) -> httpx.AsyncClient:
    """httpx client wired to ``fake_backend``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_backend), base_url="http://backend")
