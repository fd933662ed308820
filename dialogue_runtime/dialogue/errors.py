"""
Dialogue error taxonomy.

Load failures (``DialogueLoadError`` and subclasses) are raised by the
repository; the engine turns them into a ``False`` result from ``start``.
``DanglingNodeReference`` is logged and recovered by ending the run.
Caller misuse (``NotAwaitingInput``, ``InvalidOptionIndex``,
``OptionDisabled``) is raised to the caller with engine state untouched.
"""

from __future__ import annotations


class DialogueError(Exception):
    """Base class for dialogue runtime errors."""


class DialogueLoadError(DialogueError):
    """A document could not be produced for a name."""

    def __init__(self, name: str, message: str):
        super().__init__(f"{name}: {message}")
        self.name = name
        self.message = message


class DialogueNotFound(DialogueLoadError):
    """The backing store has no entry for the name."""

    def __init__(self, name: str, message: str = "no such dialogue"):
        super().__init__(name, message)


class DialogueParseError(DialogueLoadError):
    """The stored bytes are not well-formed JSON."""


class DialogueValidationError(DialogueLoadError):
    """The document is well-formed but structurally invalid."""

    def __init__(self, name: str, problems: list[str]):
        super().__init__(name, "; ".join(problems))
        self.problems = problems


class DanglingNodeReference(DialogueError):
    """A node id referenced at runtime is not in the document."""

    def __init__(self, document: str, node_id: str):
        super().__init__(f"node {node_id!r} not found in dialogue {document!r}")
        self.document = document
        self.node_id = node_id


class NotAwaitingInput(DialogueError):
    """An option was selected while no choice was on screen."""


class InvalidOptionIndex(DialogueError):
    """The selected index is outside the visible option list."""

    def __init__(self, index: int, count: int):
        super().__init__(f"option index {index} out of range (0..{count - 1})")
        self.index = index
        self.count = count


class OptionDisabled(DialogueError):
    """The selected option is shown but not selectable."""

    def __init__(self, index: int, reason: str = ""):
        message = f"option {index} is disabled"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.index = index
        self.reason = reason
