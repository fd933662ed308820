"""
Typed notification bus between the dialogue engine and its listeners.

Notification kinds are Enum members, so listeners never subscribe to
magic strings. The presentation layer registers per kind and gets an
Event whose data carries the document, node and option involved.

Usage:
    bus = EventBus()

    def on_node(event: Event) -> None:
        render(event["node"])

    bus.subscribe(DialogueEvent.NODE_SHOWN, on_node)
    bus.publish(DialogueEvent.NODE_SHOWN, document=doc, node=node)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


class DialogueEvent(Enum):
    """Notifications emitted by the dialogue engine."""
    DIALOGUE_STARTED = auto()
    NODE_SHOWN = auto()
    OPTIONS_SHOWN = auto()
    OPTION_SELECTED = auto()
    DIALOGUE_ENDED = auto()


@dataclass
class Event:
    """
    Notification container.

    Attributes:
        type: The notification kind (Enum member)
        data: Payload; dialogue notifications carry ``document``, ``node``,
            ``option``, ``options``, ``is_starting`` and ``is_ending``
        consumed: Whether a listener stopped propagation
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        """Stop delivery to lower-priority listeners."""
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


class EventBus:
    """
    Publish/subscribe registry keyed by notification kind.

    Features:
    - Priority ordering (higher first)
    - Weak references, so a destroyed listener drops out on its own
    - One-shot listeners
    - Consumption stops propagation

    Events published from inside a listener are queued and delivered after
    the current dispatch finishes, so listeners always observe notifications
    in emission order.
    """

    def __init__(self):
        # kind -> [(priority, handler_ref, one_shot)], highest priority first
        self._handlers: dict[Enum, list[tuple[int, Any, bool]]] = {}
        self._event_queue: list[Event] = []
        self._is_publishing = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> None:
        """
        Register a listener for one notification kind.

        Args:
            event_type: The kind to listen for
            handler: Callback receiving the Event
            priority: Higher priority listeners are called first
            one_shot: Remove the listener after its first call
            weak: Hold the listener weakly (bound methods via WeakMethod)
        """
        handlers = self._handlers.setdefault(event_type, [])

        if weak:
            handler_ref = WeakMethod(handler) if hasattr(handler, '__self__') else ref(handler)
        else:
            handler_ref = handler

        # Equal priorities keep subscription order
        insert_idx = len(handlers)
        for i, (p, _, _) in enumerate(handlers):
            if priority > p:
                insert_idx = i
                break

        handlers.insert(insert_idx, (priority, handler_ref, one_shot))

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """Remove a listener; unknown listeners are ignored."""
        if event_type not in self._handlers:
            return

        self._handlers[event_type] = [
            (p, h, o) for p, h, o in self._handlers[event_type]
            if self._get_handler(h) != handler
        ]

    def has_subscribers(self, event_type: Enum) -> bool:
        return any(
            self._get_handler(h) is not None
            for _, h, _ in self._handlers.get(event_type, [])
        )

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish a notification.

        Returns:
            The Event object (check .consumed to see if it was handled)
        """
        event = Event(type=event_type, data=data)

        if self._is_publishing:
            self._event_queue.append(event)
        else:
            self._dispatch(event)

        return event

    def clear(self, event_type: Enum | None = None) -> None:
        """Drop listeners for one kind, or for every kind when None."""
        if event_type is None:
            self._handlers.clear()
        elif event_type in self._handlers:
            del self._handlers[event_type]

    def _dispatch(self, event: Event) -> None:
        handlers = self._handlers.get(event.type)
        if handlers:
            self._is_publishing = True
            to_remove = []

            try:
                for priority, handler_ref, one_shot in list(handlers):
                    handler = self._get_handler(handler_ref)

                    if handler is None:
                        to_remove.append(handler_ref)
                        continue

                    try:
                        handler(event)
                    except Exception:
                        logger.exception(f"Error in listener for {event.type}")

                    if one_shot:
                        to_remove.append(handler_ref)

                    if event.consumed:
                        break
            finally:
                self._is_publishing = False

            if to_remove:
                self._handlers[event.type] = [
                    entry for entry in self._handlers.get(event.type, [])
                    if entry[1] not in to_remove
                ]

        while self._event_queue and not self._is_publishing:
            self._dispatch(self._event_queue.pop(0))

    def _get_handler(self, handler_ref: Any) -> EventHandler | None:
        if isinstance(handler_ref, (ref, WeakMethod)):
            return handler_ref()
        return handler_ref
