import asyncio
import os
import random
from pathlib import Path

import pytest

# roundtable.app builds a default app at import time; keep it out of ./data.
os.environ.setdefault("DATA_DIR", str(Path(__file__).parent / "data-tests"))

from roundtable.config import Settings  # noqa: E402
from roundtable.models import Discussion, ModelBinding, Participant  # noqa: E402
from roundtable.storage import Storage  # noqa: E402


class StubChat:
    """Chat model double: canned replies, recorded calls, optional gate.

    Replies are consumed in order; the last one repeats. An Exception
    instance in the list is raised instead of returned. With a gate, every
    call waits on the event before answering.
    """

    def __init__(self, replies=None, gate: asyncio.Event | None = None):
        self.replies = list(replies or ["ok"])
        self.gate = gate
        self.calls: list[tuple] = []

    async def __call__(self, binding, transcript):
        self.calls.append((binding, transcript))
        if self.gate is not None:
            await self.gate.wait()
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


def scripted(pid: str, name: str | None = None, phrases=None) -> Participant:
    return Participant(
        id=pid, name=name or pid.upper(), kind="scripted",
        phrases=phrases if phrases is not None else [f"{pid} on {{topic}}"],
    )


def generative(pid: str, name: str | None = None, **binding) -> Participant:
    return Participant(
        id=pid, name=name or pid.upper(), kind="generative",
        binding=ModelBinding(**{"provider": "ollama", "model": "llama3", **binding}),
    )


def make_discussion(roster, type="debate", topic="X", did="d1") -> Discussion:
    return Discussion(id=did, name="Test", topic=topic, type=type, roster=roster)


# FAST runs the real timer loop without waiting; PARKED keeps timers from
# firing so a test can drive tick() by hand after send()/reset()/load().
FAST = Settings(settle_delay=0, turn_delay=0, user_settle_delay=0)
PARKED = Settings(settle_delay=3600, turn_delay=3600, user_settle_delay=3600)


@pytest.fixture
def store(tmp_path) -> Storage:
    return Storage(tmp_path)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
