"""
Runtime configuration.
"""

from __future__ import annotations

from pathlib import Path


class DialogueConfig:
    """Configuration for the dialogue runtime."""

    def __init__(
        self,
        dialogue_path: str | Path = "data/dialogues",
        file_suffix: str = ".json",
        auto_advance_delay: float = 0.5,
        end_sentinel: str = "-1",
        validate_schema: bool = True,
    ):
        self.dialogue_path = Path(dialogue_path)
        self.file_suffix = file_suffix
        # Minimum time a node without choices stays on screen
        self.auto_advance_delay = auto_advance_delay
        self.end_sentinel = end_sentinel
        self.validate_schema = validate_schema

    def __repr__(self) -> str:
        return (
            f"DialogueConfig(dialogue_path={str(self.dialogue_path)!r}, "
            f"auto_advance_delay={self.auto_advance_delay})"
        )
