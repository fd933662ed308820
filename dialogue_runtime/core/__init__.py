"""
Core runtime module.

Exports:
- DialogueConfig: Runtime configuration
- EventBus, Event, DialogueEvent: Notification bus
- Scheduler, ScheduledTask: Cooperative deferred tasks
"""

from dialogue_runtime.core.config import DialogueConfig
from dialogue_runtime.core.events import EventBus, Event, DialogueEvent
from dialogue_runtime.core.scheduler import Scheduler, ScheduledTask

__all__ = [
    "DialogueConfig",
    # Events
    "EventBus",
    "Event",
    "DialogueEvent",
    # Scheduling
    "Scheduler",
    "ScheduledTask",
]
