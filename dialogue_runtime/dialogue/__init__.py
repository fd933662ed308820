"""
Dialogue module - branching conversations driven by JSON documents.

Provides:
- Document loading, validation and caching
- Condition expressions gating options
- Event-trigger commands on nodes and options
- The conversation state machine
- A plain-text script compiler
"""

from dialogue_runtime.dialogue.models import DialogueDocument, DialogueNode, DialogueOption
from dialogue_runtime.dialogue.errors import (
    DialogueError,
    DialogueLoadError,
    DialogueNotFound,
    DialogueParseError,
    DialogueValidationError,
    DanglingNodeReference,
    NotAwaitingInput,
    InvalidOptionIndex,
    OptionDisabled,
)
from dialogue_runtime.dialogue.conditions import ConditionEvaluator, DictVariableStore, VariableStore
from dialogue_runtime.dialogue.commands import CommandDispatcher, CommandSink, parse_command
from dialogue_runtime.dialogue.repository import DialogueRepository, DirectoryStore, MemoryStore
from dialogue_runtime.dialogue.state import DialoguePhase, RunState
from dialogue_runtime.dialogue.manager import DialogueManager
from dialogue_runtime.dialogue.parser import DialogueScriptParser, compile_script_file

__all__ = [
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
    # Conditions
    "ConditionEvaluator",
    "DictVariableStore",
    "VariableStore",
    # Commands
    "CommandDispatcher",
    "CommandSink",
    "parse_command",
    # Loading
    "DialogueRepository",
    "DirectoryStore",
    "MemoryStore",
    # Engine
    "DialoguePhase",
    "RunState",
    "DialogueManager",
    # Scripts
    "DialogueScriptParser",
    "compile_script_file",
]
