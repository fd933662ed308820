"""
Dialogue document model - immutable shapes for a loaded dialogue graph.

Models are data-only pydantic containers, frozen after validation. JSON
uses camelCase keys; older documents that used ``startNode``,
``targetNode``, ``onEnterEvent`` and friends are still accepted. Unknown
keys are ignored so newer authoring tools can add fields freely.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

END_SENTINEL = "-1"


def _field(default: Any, *names: str) -> Any:
    """Field readable under any of ``names``, written under the first."""
    return Field(
        default,
        validation_alias=AliasChoices(*names),
        serialization_alias=names[0],
    )


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra='ignore',
        populate_by_name=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict using the document's camelCase keys."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class DialogueOption(_Model):
    """
    A player-facing choice.

    Attributes:
        text: Label shown to the player
        target_node_id: Node to go to; empty ends the dialogue
        condition: Gate expression; empty means always available
        on_select_command: Event-trigger command run when chosen
        hidden: Never shown, never counted as a choice
        disabled: Shown but not selectable
        disabled_reason: Hint shown next to a disabled option
        cost: Price hint for the presentation layer
        require_item: Item hint for the presentation layer
    """
    text: str = ""
    target_node_id: str = _field("", "targetNodeId", "targetNode", "target_node_id")
    condition: str = ""
    on_select_command: Optional[str] = _field(
        None, "onSelectCommand", "onSelectEvent", "on_select_command"
    )
    hidden: bool = False
    disabled: bool = False
    disabled_reason: str = _field("", "disabledReason", "disableReason", "disabled_reason")
    cost: int = 0
    require_item: str = _field("", "requireItem", "require_item")

    @field_validator('text', 'target_node_id', 'condition', 'disabled_reason', 'require_item',
                     mode='before')
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_selectable(self) -> bool:
        return not self.hidden and not self.disabled


class DialogueNode(_Model):
    """
    A single beat of dialogue.

    ``condition`` is carried for authoring tools but the engine never
    evaluates it; only option conditions gate anything.
    """
    id: str
    speaker: Optional[str] = None
    text: Optional[str] = None
    portrait_ref: Optional[str] = _field(None, "portraitRef", "portrait", "portrait_ref")
    options: tuple[DialogueOption, ...] = ()
    on_enter_command: Optional[str] = _field(
        None, "onEnterCommand", "onEnterEvent", "on_enter_command"
    )
    on_exit_command: Optional[str] = _field(
        None, "onExitCommand", "onExitEvent", "on_exit_command"
    )
    condition: Optional[str] = None
    next_node_id: Optional[str] = _field(None, "nextNodeId", "nextNode", "next_node_id")
    auto_advance_delay_seconds: float = _field(
        0.0, "autoAdvanceDelaySeconds", "displayTime", "auto_advance_delay_seconds"
    )
    sound_effect: Optional[str] = _field(None, "soundEffect", "sound_effect")

    @field_validator('id', mode='before')
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Authoring tools sometimes emit numeric ids
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator('options', mode='before')
    @classmethod
    def _none_as_no_options(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator('auto_advance_delay_seconds')
    @classmethod
    def _non_negative_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError("auto-advance delay cannot be negative")
        return value

    def ends_after(self, sentinel: str = END_SENTINEL) -> bool:
        """True when the node has no default successor."""
        return not self.next_node_id or self.next_node_id == sentinel


class DialogueDocument(_Model):
    """
    A named dialogue graph plus metadata.

    ``variables`` holds default values declared by the author; the engine
    does not consult it, the host may seed its variable store from it.
    """
    format_version: str = _field("1.0", "formatVersion", "version", "format_version")
    name: str = ""
    description: str = ""
    start_node_id: str = _field("start", "startNodeId", "startNode", "start_node_id")
    nodes: tuple[DialogueNode, ...] = ()
    variables: dict[str, Any] = Field(default_factory=dict)
    tags: tuple[str, ...] = ()
    author: Optional[str] = None
    created_at: Optional[str] = _field(None, "createdAt", "created_at")
    updated_at: Optional[str] = _field(None, "updatedAt", "updated_at")

    @field_validator('format_version', mode='before')
    @classmethod
    def _version_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator('name', 'description', mode='before')
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator('nodes', 'tags', 'variables', mode='before')
    @classmethod
    def _none_as_default(cls, value: Any, info) -> Any:
        if value is None:
            return {} if info.field_name == 'variables' else ()
        return value

    def get_node(self, node_id: str) -> Optional[DialogueNode]:
        """First node with a matching id, or None."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def has_node(self, node_id: str) -> bool:
        return self.get_node(node_id) is not None

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    @property
    def start_node(self) -> Optional[DialogueNode]:
        return self.get_node(self.start_node_id)
