"""
Dialogue script parser - compiles plain-text scripts to dialogue JSON.

Script format:

```
$met_mayor = 0

# greet
@Mayor [mayor_happy]
Welcome to Oakvale, traveller.
! enter: PlaySound:bell

>> Who are you? -> who
>> I have the letter. -> letter [$has_letter == 1] ! SetFlag:letter_given
>> Goodbye. -> end

---

# who
@Mayor
I keep this village running.
! exit: SetFlag:met_mayor
! delay: 1.5
-> greet
```

- ``# id`` opens a node; ``---`` closes it (optional)
- ``@Speaker [portrait]`` sets speaker and portrait
- ``>> text -> target [condition] ! Command:arg`` adds an option
- ``-> next`` sets the default successor
- ``! enter:`` / ``! exit:`` set node hooks, ``! delay:`` extra auto-advance time
- ``$name = value`` before the first node declares a default variable
- ``end`` as a target or successor ends the dialogue
- ``//`` starts a comment line

The first node is the start node; the document name is the file stem.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dialogue_runtime.dialogue.models import END_SENTINEL

logger = logging.getLogger(__name__)

END_KEYWORD = "end"


class ScriptSyntaxError(ValueError):
    """A script line could not be understood."""

    def __init__(self, line_no: int, line: str, message: str):
        super().__init__(f"line {line_no}: {message}: {line.strip()!r}")
        self.line_no = line_no


@dataclass
class ParsedChoice:
    """A parsed option."""
    text: str
    target: str
    condition: Optional[str] = None
    command: Optional[str] = None


@dataclass
class ParsedNode:
    """A parsed dialogue node."""
    id: str
    speaker: Optional[str] = None
    portrait: Optional[str] = None
    text: str = ""
    next_node: Optional[str] = None
    choices: list[ParsedChoice] = field(default_factory=list)
    on_enter: Optional[str] = None
    on_exit: Optional[str] = None
    delay: float = 0.0


@dataclass
class ParsedScript:
    """A complete parsed script."""
    name: str
    nodes: list[ParsedNode] = field(default_factory=list)
    start_node: str = ""
    variables: dict[str, Any] = field(default_factory=dict)


class DialogueScriptParser:
    """Parses dialogue scripts from the text format above."""

    NODE_PATTERN = re.compile(r'^#\s*([\w.-]+)\s*$')
    SPEAKER_PATTERN = re.compile(r'^@\s*(.+?)(?:\s*\[([\w./-]+)\])?\s*$')
    CHOICE_PATTERN = re.compile(
        r'^>>\s*(.+?)\s*->\s*([\w.-]+)(?:\s*\[(.+?)\])?(?:\s*!\s*(.+?))?\s*$'
    )
    NEXT_PATTERN = re.compile(r'^->\s*([\w.-]+)\s*$')
    HOOK_PATTERN = re.compile(r'^!\s*(enter|exit|delay)\s*:\s*(.+?)\s*$')
    VARIABLE_PATTERN = re.compile(r'^\$(\w+)\s*=\s*(.+)$')

    def parse_file(self, path: str | Path) -> ParsedScript:
        """Parse a script file."""
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()

        script = self.parse_string(content)
        script.name = path.stem
        return script

    def parse_string(self, content: str, name: str = "script") -> ParsedScript:
        """Parse a script string."""
        script = ParsedScript(name=name)
        current: Optional[ParsedNode] = None
        text_lines: list[str] = []

        def close_node() -> None:
            nonlocal current, text_lines
            if current is not None:
                current.text = '\n'.join(text_lines).strip()
                script.nodes.append(current)
            current = None
            text_lines = []

        for line_no, raw_line in enumerate(content.split('\n'), start=1):
            line = raw_line.rstrip()
            stripped = line.strip()

            if not stripped:
                if current is not None and text_lines:
                    text_lines.append('')
                continue

            if stripped.startswith('//'):
                continue

            if stripped == '---':
                close_node()
                continue

            match = self.NODE_PATTERN.match(stripped)
            if match:
                close_node()
                current = ParsedNode(id=match.group(1))
                continue

            if current is None:
                match = self.VARIABLE_PATTERN.match(stripped)
                if not match:
                    raise ScriptSyntaxError(line_no, line, "text outside of a node")
                value = match.group(2).strip()
                try:
                    script.variables[match.group(1)] = json.loads(value)
                except json.JSONDecodeError:
                    script.variables[match.group(1)] = value
                continue

            match = self.SPEAKER_PATTERN.match(stripped)
            if match:
                current.speaker = match.group(1)
                current.portrait = match.group(2)
                continue

            match = self.CHOICE_PATTERN.match(stripped)
            if match:
                current.choices.append(ParsedChoice(
                    text=match.group(1),
                    target=match.group(2),
                    condition=match.group(3),
                    command=match.group(4),
                ))
                continue

            match = self.NEXT_PATTERN.match(stripped)
            if match:
                current.next_node = match.group(1)
                continue

            match = self.HOOK_PATTERN.match(stripped)
            if match:
                kind, value = match.groups()
                if kind == 'enter':
                    current.on_enter = value
                elif kind == 'exit':
                    current.on_exit = value
                else:
                    try:
                        current.delay = float(value)
                    except ValueError:
                        raise ScriptSyntaxError(line_no, line, "delay is not a number") from None
                continue

            if stripped.startswith(('>>', '!')):
                raise ScriptSyntaxError(line_no, line, "malformed directive")

            text_lines.append(line)

        close_node()

        if script.nodes:
            script.start_node = script.nodes[0].id

        return script

    def to_document_dict(self, script: ParsedScript) -> dict[str, Any]:
        """Convert a parsed script to the dialogue document format."""
        return {
            'formatVersion': "1.0",
            'name': script.name,
            'startNodeId': script.start_node,
            'variables': script.variables,
            'nodes': [self._node_dict(node) for node in script.nodes],
        }

    def save_json(self, script: ParsedScript, path: str | Path) -> None:
        """Write a parsed script as a dialogue document."""
        with open(Path(path), 'w', encoding='utf-8') as f:
            json.dump(self.to_document_dict(script), f, indent=2, ensure_ascii=False)

    def _node_dict(self, node: ParsedNode) -> dict[str, Any]:
        data: dict[str, Any] = {
            'id': node.id,
            'speaker': node.speaker,
            'text': node.text,
            'portraitRef': node.portrait,
            'options': [self._choice_dict(choice) for choice in node.choices],
            'onEnterCommand': node.on_enter,
            'onExitCommand': node.on_exit,
            'nextNodeId': self._successor(node.next_node),
            'autoAdvanceDelaySeconds': node.delay,
        }
        return _drop_none(data)

    def _choice_dict(self, choice: ParsedChoice) -> dict[str, Any]:
        return _drop_none({
            'text': choice.text,
            'targetNodeId': "" if choice.target == END_KEYWORD else choice.target,
            'condition': choice.condition or "",
            'onSelectCommand': choice.command,
        })

    @staticmethod
    def _successor(next_node: Optional[str]) -> str:
        if not next_node or next_node == END_KEYWORD:
            return END_SENTINEL
        return next_node


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def compile_script_file(
    input_path: str | Path,
    output_path: Optional[str | Path] = None,
) -> Path:
    """
    Compile a dialogue script to JSON.

    Args:
        input_path: Path to the script file
        output_path: Output path (default: same name with .json)

    Returns:
        The path written
    """
    input_path = Path(input_path)
    output_path = input_path.with_suffix('.json') if output_path is None else Path(output_path)

    parser = DialogueScriptParser()
    script = parser.parse_file(input_path)
    parser.save_json(script, output_path)
    logger.info(f"Compiled {input_path} -> {output_path}")
    return output_path
