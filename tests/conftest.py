import os
import sys
import pytest

# Ensure dialogue_runtime can be imported from a source checkout
sys.path.append(os.getcwd())

from dialogue_runtime.core.events import DialogueEvent, EventBus
from dialogue_runtime.core.scheduler import Scheduler
from dialogue_runtime.dialogue.conditions import DictVariableStore
from dialogue_runtime.dialogue.manager import DialogueManager
from dialogue_runtime.dialogue.repository import DialogueRepository, MemoryStore


GREETING = {
    "formatVersion": "1.0",
    "name": "greeting",
    "startNodeId": "n1",
    "nodes": [
        {"id": "n1", "text": "Hi", "options": [{"text": "Bye", "targetNodeId": ""}]},
    ],
}

LINEAR = {
    "startNodeId": "a",
    "nodes": [
        {"id": "a", "text": "First", "nextNodeId": "b"},
        {"id": "b", "text": "Second", "nextNodeId": "-1"},
    ],
}

BRANCHING = {
    "formatVersion": "1.0",
    "name": "branching",
    "startNodeId": "gate",
    "nodes": [
        {
            "id": "gate",
            "speaker": "Mayor",
            "text": "Pick one.",
            "portraitRef": "mayor_happy",
            "onEnterCommand": "SetFlag:met",
            "onExitCommand": "Log:left_gate",
            "options": [
                {"text": "Secret", "targetNodeId": "secret", "hidden": True},
                {"text": "One", "targetNodeId": "one", "condition": "$x==1",
                 "onSelectCommand": "GiveGold:50"},
                {"text": "Two", "targetNodeId": "two", "condition": "$x==2"},
                {"text": "Locked", "targetNodeId": "one", "disabled": True,
                 "disabledReason": "Need key"},
            ],
        },
        {"id": "one", "text": "You chose one.", "nextNodeId": "-1"},
        {"id": "two", "text": "You chose two.", "nextNodeId": "-1"},
        {"id": "secret", "text": "How did you get here?"},
    ],
}

DANGLING = {
    "startNodeId": "a",
    "nodes": [{"id": "a", "text": "Going nowhere", "nextNodeId": "missing-id"}],
}

STOPS_AT_B = {
    "startNodeId": "a",
    "nodes": [
        {"id": "a", "nextNodeId": "b"},
        {"id": "b", "options": [{"text": "Done", "targetNodeId": ""}]},
    ],
}


@pytest.fixture
def documents():
    """Name -> raw document dict served by the memory store."""
    return {
        "greeting": GREETING,
        "linear": LINEAR,
        "branching": BRANCHING,
        "dangling": DANGLING,
        "stops_at_b": STOPS_AT_B,
    }


@pytest.fixture
def store(documents):
    return MemoryStore(documents)


@pytest.fixture
def repository(store):
    return DialogueRepository(store)


@pytest.fixture
def variables():
    return DictVariableStore({"x": 1})


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    return EventBus()


@pytest.fixture
def scheduler():
    return Scheduler()


@pytest.fixture
def manager(repository, variables, event_bus, scheduler):
    return DialogueManager(repository, variables=variables, events=event_bus, scheduler=scheduler)


@pytest.fixture
def recorder(event_bus):
    """Every dialogue notification, in order, as (kind, event)."""
    received = []
    for kind in DialogueEvent:
        event_bus.subscribe(kind, lambda e: received.append((e.type, e)), weak=False)
    return received


def shown_ids(recorder):
    return [e["node"].id for kind, e in recorder if kind == DialogueEvent.NODE_SHOWN]


def kinds(recorder):
    return [kind for kind, _ in recorder]
