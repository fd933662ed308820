"""
Dialogue Runtime

A data-driven branching conversation engine for games.

Quick Start:
    from dialogue_runtime import (
        DialogueManager, DialogueRepository, DirectoryStore,
        DictVariableStore, DialogueEvent,
    )

    manager = DialogueManager(
        DialogueRepository(DirectoryStore("data/dialogues")),
        variables=DictVariableStore({"met_mayor": 1}),
    )
    manager.subscribe(DialogueEvent.NODE_SHOWN, lambda e: print(e["node"].text))
    manager.start("village_mayor")

    # in the game loop
    manager.update(dt)
"""

__version__ = "0.1.0"

from dialogue_runtime.core import (
    DialogueConfig,
    EventBus,
    Event,
    DialogueEvent,
    Scheduler,
    ScheduledTask,
)
from dialogue_runtime.dialogue import (
    DialogueDocument,
    DialogueNode,
    DialogueOption,
    DialogueError,
    DialogueLoadError,
    DialogueNotFound,
    DialogueParseError,
    DialogueValidationError,
    DanglingNodeReference,
    NotAwaitingInput,
    InvalidOptionIndex,
    OptionDisabled,
    ConditionEvaluator,
    DictVariableStore,
    CommandDispatcher,
    DialogueRepository,
    DirectoryStore,
    MemoryStore,
    DialoguePhase,
    DialogueManager,
)

__all__ = [
    # Core
    "DialogueConfig",
    "EventBus",
    "Event",
    "DialogueEvent",
    "Scheduler",
    "ScheduledTask",
    # Model
    "DialogueDocument",
    "DialogueNode",
    "DialogueOption",
    # Errors
    "DialogueError",
    "DialogueLoadError",
    "DialogueNotFound",
    "DialogueParseError",
    "DialogueValidationError",
    "DanglingNodeReference",
    "NotAwaitingInput",
    "InvalidOptionIndex",
    "OptionDisabled",
    # Services
    "ConditionEvaluator",
    "DictVariableStore",
    "CommandDispatcher",
    "DialogueRepository",
    "DirectoryStore",
    "MemoryStore",
    "DialoguePhase",
    "DialogueManager",
]
