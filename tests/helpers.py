"""Test doubles shared across the suite."""

from pathlib import Path
from typing import Any, List

import httpx

from donq.connectors.extralife.client import ExtraLifeClient
from donq.display.base_hook import DisplayHook

TEAM_ID = "67141"


class FakeExtraLife:
    """Scripted stand-in for the team donations endpoint."""

    def __init__(self):
        self.donations: List[dict] = []
        self.status_code = 200
        self.body: Any = None
        self.raise_exc: Exception | None = None
        self.calls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.raise_exc is not None:
            raise self.raise_exc
        assert request.url.path.endswith(f"/teams/{TEAM_ID}/donations")
        if self.body is not None:
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json=self.donations)

    def client(self) -> ExtraLifeClient:
        return ExtraLifeClient(
            base_url="https://extralife.test/api",
            timeout=1.0,
            transport=httpx.MockTransport(self.handler),
        )


class RecordingDisplayHook(DisplayHook):
    def __init__(self, fail: bool = False):
        self.shown = []
        self.fail = fail

    async def show(self, record) -> None:
        if self.fail:
            raise RuntimeError("titler offline")
        self.shown.append(record.id)


class FakeSocket:
    """Enough of a WebSocket for LiveUpdateChannel."""

    def __init__(self, fail: bool = False):
        self.accepted = False
        self.messages = []
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("connection reset")
        self.messages.append(message)


def donation(donation_id: str, name: str = "Alice", amount: float = 10.0, **extra):
    item = {"donationID": donation_id, "displayName": name, "amount": amount}
    item.update(extra)
    return item


def csv_lines(path: Path) -> List[str]:
    if not path.exists():
        return []
    return [line for line in path.read_text(encoding="utf-8").splitlines() if line]
