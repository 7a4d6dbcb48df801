"""
Shared fixtures: a recording connection, a hand-driven clock and a fresh
engine per test.
"""

import pytest

from connection import Connection
from engine import ChatEngine, EngineConfig
from errors import StaleConnectionSend


class FakeConnection(Connection):
    def __init__(self, id, closed=False):
        self.id = id
        self.closed = closed
        self.sent = []
        self.groups = []

    async def send(self, event, payload):
        if self.closed:
            raise StaleConnectionSend(self.id)
        self.sent.append((event, payload))

    def join_group(self, room_id):
        self.groups.append(room_id)

    def leave_group(self, room_id):
        if room_id in self.groups:
            self.groups.remove(room_id)

    def events(self):
        return [event for event, _ in self.sent]

    def payloads(self, event):
        return [payload for name, payload in self.sent if name == event]


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def engine(clock):
    return ChatEngine(EngineConfig("strict"), clock=clock)


@pytest.fixture
def connect():
    def factory(id, closed=False):
        return FakeConnection(id, closed=closed)
    return factory


@pytest.fixture
def find():
    async def find_partner(engine, conn, identity, gender=None, wants=None, show=False, name=""):
        return await engine.dispatch("find_partner", conn, {
            "identity": identity,
            "preferences": {
                "gender": gender,
                "partnerGender": wants,
                "showGender": show,
                "displayName": name,
            },
        })
    return find_partner
