"""
Dialogue manager - the conversation state machine.

    IDLE -> SHOWING_NODE -> AWAITING_CHOICE --select_option--> SHOWING_NODE
                         -> AUTO_ADVANCING  --delay / skip---> SHOWING_NODE
                         -> ENDED

The manager owns exactly one RunState. Nodes without selectable choices
advance on their own after a fixed delay; that deferred transition is a
ScheduledTask on the cooperative scheduler, so the host must call
``update(dt)`` from its tick loop. Any transition cancels a pending
auto-advance first, so a slot is never advanced twice.

Usage:
    manager = DialogueManager(
        DialogueRepository(DirectoryStore("data/dialogues")),
        variables=DictVariableStore({"met_mayor": 1}),
    )
    manager.subscribe(DialogueEvent.NODE_SHOWN, ui.on_node)
    manager.subscribe(DialogueEvent.OPTIONS_SHOWN, ui.on_options)
    manager.commands.register("GiveGold", wallet.add_from_text)

    manager.start("village_mayor")
    ...
    manager.select_option(0)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from dialogue_runtime.core.config import DialogueConfig
from dialogue_runtime.core.events import DialogueEvent, EventBus, EventHandler
from dialogue_runtime.core.scheduler import ScheduledTask, Scheduler
from dialogue_runtime.dialogue.commands import CommandDispatcher
from dialogue_runtime.dialogue.conditions import ConditionEvaluator, VariableStore
from dialogue_runtime.dialogue.errors import (
    DanglingNodeReference,
    DialogueLoadError,
    InvalidOptionIndex,
    NotAwaitingInput,
    OptionDisabled,
)
from dialogue_runtime.dialogue.models import DialogueDocument, DialogueNode, DialogueOption
from dialogue_runtime.dialogue.repository import DialogueRepository
from dialogue_runtime.dialogue.state import DialoguePhase, RunState

logger = logging.getLogger(__name__)


class DialogueManager:
    """
    Runs one conversation at a time.

    Handles:
    - Resolving documents through the repository
    - Node transitions and enter/exit/select command hooks
    - Filtering options through the condition evaluator
    - Auto-advance scheduling and cancellation
    - Publishing DialogueEvent notifications
    """

    def __init__(
        self,
        repository: DialogueRepository,
        variables: Optional[VariableStore] = None,
        events: Optional[EventBus] = None,
        commands: Optional[CommandDispatcher] = None,
        scheduler: Optional[Scheduler] = None,
        config: Optional[DialogueConfig] = None,
    ):
        self.repository = repository
        self.conditions = ConditionEvaluator(variables)
        self.events = events or EventBus()
        self.commands = commands or CommandDispatcher()
        self.scheduler = scheduler or Scheduler()
        self.config = config or DialogueConfig()

        self._state = RunState()
        self._pending: Optional[ScheduledTask] = None

    # Queries

    @property
    def is_playing(self) -> bool:
        return self._state.is_active

    @property
    def phase(self) -> DialoguePhase:
        return self._state.phase

    @property
    def current_document(self) -> Optional[DialogueDocument]:
        return self._state.document

    @property
    def current_node(self) -> Optional[DialogueNode]:
        return self._state.current_node

    @property
    def current_options(self) -> list[DialogueOption]:
        """Visible options of the current node (disabled ones included)."""
        return list(self._state.visible_options)

    @property
    def current_speaker(self) -> Optional[str]:
        node = self._state.current_node
        return node.speaker if node else None

    @property
    def current_text(self) -> Optional[str]:
        node = self._state.current_node
        return node.text if node else None

    @property
    def is_awaiting_choice(self) -> bool:
        return self._state.awaiting_choice

    @property
    def history(self) -> tuple[DialogueNode, ...]:
        return tuple(self._state.visited_history)

    @property
    def has_pending_advance(self) -> bool:
        return self._pending is not None and self._pending.pending

    # Listeners

    def subscribe(
        self,
        kind: DialogueEvent,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = False,
    ) -> None:
        """
        Listen for one notification kind.

        Unlike ``EventBus.subscribe``, listeners are held strongly by
        default so lambdas and closures keep receiving notifications until
        ``unsubscribe``. Pass ``weak=True`` to let a listener's owner be
        garbage collected without unsubscribing.
        """
        self.events.subscribe(kind, handler, priority=priority, one_shot=one_shot, weak=weak)

    def unsubscribe(self, kind: DialogueEvent, handler: EventHandler) -> None:
        self.events.unsubscribe(kind, handler)

    # Flow

    def start(self, name: str, start_node_id: Optional[str] = None) -> bool:
        """
        Start a dialogue.

        Args:
            name: Document name in the repository
            start_node_id: Node to open on instead of the document's start node

        Returns:
            True if the dialogue is playing after the first node was shown
        """
        try:
            document = self.repository.load(name)
        except DialogueLoadError as e:
            logger.error(f"Cannot start dialogue: {e}")
            return False

        # An ended-listener may chain into another run; end those as well
        while self.is_playing:
            logger.info(
                f"Interrupting dialogue {self._state.document.name} to start {document.name}"
            )
            self.end()

        self._cancel_pending()
        self._state.reset(document, tick=self.scheduler.elapsed)
        logger.info(f"Starting dialogue {document.name}")

        self._notify(DialogueEvent.DIALOGUE_STARTED, None, is_starting=True)
        if self._state.document is not document:
            # A listener started or ended something else
            return self.is_playing

        self._show_node(start_node_id or document.start_node_id, is_starting=True)
        return self.is_playing

    def select_option(self, index: int) -> None:
        """
        Pick one of ``current_options``.

        Raises:
            NotAwaitingInput: No choice is on screen
            InvalidOptionIndex: ``index`` is outside ``current_options``
            OptionDisabled: The option is shown but not selectable
        """
        state = self._state
        if not self.is_playing or not state.awaiting_choice:
            logger.warning(f"select_option({index}) ignored: not waiting for a choice")
            raise NotAwaitingInput("no choice is waiting for input")

        options = state.visible_options
        if not 0 <= index < len(options):
            logger.warning(f"select_option({index}) ignored: {len(options)} options visible")
            raise InvalidOptionIndex(index, len(options))

        option = options[index]
        if option.disabled:
            logger.warning(f"select_option({index}) ignored: option is disabled")
            raise OptionDisabled(index, option.disabled_reason)

        node = state.current_node
        self.commands.dispatch(option.on_select_command)
        if not self._is_current(node):
            return

        self._notify(DialogueEvent.OPTION_SELECTED, node, option=option, index=index)
        if not self._is_current(node):
            return

        state.awaiting_choice = False
        state.phase = DialoguePhase.SHOWING_NODE
        self._cancel_pending()

        if option.target_node_id:
            self._show_node(option.target_node_id)
        else:
            self.end()

    def skip_current_node(self) -> None:
        """Continue past a node that has no choices, without waiting for the delay."""
        state = self._state
        if not self.is_playing:
            return
        if state.awaiting_choice:
            logger.warning("skip_current_node ignored: waiting for a choice")
            return

        node = state.current_node
        if node is None:
            return

        self._cancel_pending()
        if node.ends_after(self.config.end_sentinel):
            self.end()
        else:
            self._show_node(node.next_node_id)

    def end(self) -> None:
        """End the current dialogue; does nothing if none is playing."""
        state = self._state
        if not state.is_active:
            return

        document = state.document
        node = state.current_node
        history = tuple(state.visited_history)

        self._cancel_pending()
        state.finish()
        logger.info(f"Dialogue {document.name} ended")

        self.events.publish(
            DialogueEvent.DIALOGUE_ENDED,
            document=document,
            node=node,
            option=None,
            options=(),
            is_starting=False,
            is_ending=True,
            history=history,
        )

    def update(self, dt: float) -> int:
        """Advance the scheduler; call once per host tick."""
        return self.scheduler.update(dt)

    # Transitions

    def _show_node(self, node_id: str, is_starting: bool = False) -> None:
        state = self._state
        document = state.document
        if document is None:
            return

        node = document.get_node(node_id)
        if node is None:
            logger.error(str(DanglingNodeReference(document.name, node_id)))
            self.end()
            return

        previous = state.current_node
        if previous is not None and previous.on_exit_command:
            self.commands.dispatch(previous.on_exit_command)
            if not self._is_current(previous):
                return

        state.enter_node(node)

        if node.on_enter_command:
            self.commands.dispatch(node.on_enter_command)
            if not self._is_current(node):
                return

        self._notify(DialogueEvent.NODE_SHOWN, node, is_starting=is_starting)
        if not self._is_current(node):
            return

        visible = self._filter_options(node.options)
        state.visible_options = visible

        if visible:
            state.awaiting_choice = True
            state.phase = DialoguePhase.AWAITING_CHOICE
            self._notify(
                DialogueEvent.OPTIONS_SHOWN, node,
                options=tuple(visible), is_starting=is_starting,
            )
            return

        if node.ends_after(self.config.end_sentinel):
            self.end()
            return

        state.phase = DialoguePhase.AUTO_ADVANCING
        delay = self.config.auto_advance_delay + node.auto_advance_delay_seconds
        next_node_id = node.next_node_id
        self._cancel_pending()
        self._pending = self.scheduler.schedule(
            delay, lambda: self._auto_advance(node, next_node_id)
        )

    def _auto_advance(self, node: DialogueNode, next_node_id: str) -> None:
        self._pending = None
        if not self._is_current(node):
            return
        self._show_node(next_node_id)

    def _filter_options(self, options: tuple[DialogueOption, ...]) -> list[DialogueOption]:
        return [
            option for option in options
            if not option.hidden and self.conditions.evaluate(option.condition)
        ]

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _is_current(self, node: Optional[DialogueNode]) -> bool:
        """False once a hook or listener moved the run elsewhere."""
        return self._state.is_active and self._state.current_node is node

    def _notify(
        self,
        kind: DialogueEvent,
        node: Optional[DialogueNode],
        option: Optional[DialogueOption] = None,
        options: tuple[DialogueOption, ...] = (),
        is_starting: bool = False,
        **extra: Any,
    ) -> None:
        self.events.publish(
            kind,
            document=self._state.document,
            node=node,
            option=option,
            options=options,
            is_starting=is_starting,
            is_ending=False,
            **extra,
        )

    # Debug

    def stats(self) -> dict[str, Any]:
        state = self._state
        return {
            **self.repository.stats(),
            'current_dialogue': state.document.name if state.document else None,
            'current_node': state.current_node_id or None,
            'phase': state.phase.name,
            'visited': len(state.visited_history),
        }
