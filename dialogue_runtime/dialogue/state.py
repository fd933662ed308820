"""
Run state - the single in-progress conversation owned by the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from dialogue_runtime.dialogue.models import DialogueDocument, DialogueNode, DialogueOption


class DialoguePhase(Enum):
    """Where the engine is in its state machine."""
    IDLE = auto()
    SHOWING_NODE = auto()
    AWAITING_CHOICE = auto()
    AUTO_ADVANCING = auto()
    ENDED = auto()


@dataclass
class RunState:
    """
    Mutable conversation record; only the engine writes to it.

    Attributes:
        document: Document being played, None when idle
        current_node_id: Id of the node on screen
        current_node: The node on screen
        visited_history: Every node shown this run, in order
        visible_options: Current node's options after hidden/condition filtering
        awaiting_choice: True while the player must pick an option
        ended: True once the run has finished
        started_at_tick: Scheduler clock when the run started
        phase: State machine position
    """
    document: Optional[DialogueDocument] = None
    current_node_id: str = ""
    current_node: Optional[DialogueNode] = None
    visited_history: list[DialogueNode] = field(default_factory=list)
    visible_options: list[DialogueOption] = field(default_factory=list)
    awaiting_choice: bool = False
    ended: bool = False
    started_at_tick: float = 0.0
    phase: DialoguePhase = DialoguePhase.IDLE

    @property
    def is_active(self) -> bool:
        return self.document is not None and not self.ended

    def reset(self, document: Optional[DialogueDocument] = None, tick: float = 0.0) -> None:
        """Clear everything and optionally bind a new document."""
        self.document = document
        self.current_node_id = ""
        self.current_node = None
        self.visited_history = []
        self.visible_options = []
        self.awaiting_choice = False
        self.ended = False
        self.started_at_tick = tick
        self.phase = DialoguePhase.IDLE

    def finish(self) -> None:
        """Drop the run and mark it ended."""
        self.reset()
        self.ended = True
        self.phase = DialoguePhase.ENDED

    def enter_node(self, node: DialogueNode) -> None:
        self.current_node_id = node.id
        self.current_node = node
        self.visited_history.append(node)
        self.visible_options = []
        self.awaiting_choice = False
        self.phase = DialoguePhase.SHOWING_NODE
