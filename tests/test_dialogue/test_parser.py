import json

import pytest

from dialogue_runtime.dialogue.conditions import DictVariableStore
from dialogue_runtime.dialogue.manager import DialogueManager
from dialogue_runtime.dialogue.parser import (
    DialogueScriptParser,
    ScriptSyntaxError,
    compile_script_file,
)
from dialogue_runtime.dialogue.repository import DialogueRepository, MemoryStore


SCRIPT = """\
// Oakvale mayor
$met_mayor = 0
$title = traveller

# greet
@Mayor [mayor_happy]
Welcome to Oakvale,
traveller.
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

# letter
@Mayor
Ah, at last.
-> end
"""


@pytest.fixture
def parser():
    return DialogueScriptParser()


def test_parse_nodes(parser):
    script = parser.parse_string(SCRIPT, name="mayor")

    assert script.name == "mayor"
    assert script.start_node == "greet"
    assert [node.id for node in script.nodes] == ["greet", "who", "letter"]

    greet = script.nodes[0]
    assert greet.speaker == "Mayor"
    assert greet.portrait == "mayor_happy"
    assert greet.text == "Welcome to Oakvale,\ntraveller."
    assert greet.on_enter == "PlaySound:bell"
    assert greet.next_node is None

    who = script.nodes[1]
    assert who.portrait is None
    assert who.on_exit == "SetFlag:met_mayor"
    assert who.delay == 1.5
    assert who.next_node == "greet"


def test_parse_choices(parser):
    greet = parser.parse_string(SCRIPT).nodes[0]

    assert [c.text for c in greet.choices] == ["Who are you?", "I have the letter.", "Goodbye."]
    letter = greet.choices[1]
    assert letter.target == "letter"
    assert letter.condition == "$has_letter == 1"
    assert letter.command == "SetFlag:letter_given"
    assert greet.choices[0].condition is None
    assert greet.choices[2].target == "end"


def test_parse_variables(parser):
    script = parser.parse_string(SCRIPT)
    assert script.variables == {"met_mayor": 0, "title": "traveller"}


@pytest.mark.parametrize("content, fragment", [
    ("stray text", "text outside of a node"),
    ("# a\n! delay: soon", "delay is not a number"),
    ("# a\n>> no arrow here", "malformed directive"),
    ("# a\n! teleport: town", "malformed directive"),
])
def test_syntax_errors(parser, content, fragment):
    with pytest.raises(ScriptSyntaxError) as excinfo:
        parser.parse_string(content)

    assert fragment in str(excinfo.value)
    assert excinfo.value.line_no >= 1


def test_variables_after_first_node_are_text(parser):
    script = parser.parse_string("# a\n$x = 1")
    assert script.variables == {}
    assert script.nodes[0].text == "$x = 1"


def test_empty_script(parser):
    script = parser.parse_string("// nothing\n\n")
    assert script.nodes == []
    assert script.start_node == ""


def test_document_dict(parser):
    data = parser.to_document_dict(parser.parse_string(SCRIPT, name="mayor"))

    assert data["formatVersion"] == "1.0"
    assert data["startNodeId"] == "greet"
    greet, who, letter = data["nodes"]
    assert greet["nextNodeId"] == "-1"
    assert greet["options"][2]["targetNodeId"] == ""
    assert greet["options"][1]["onSelectCommand"] == "SetFlag:letter_given"
    assert "onSelectCommand" not in greet["options"][0]
    assert who["autoAdvanceDelaySeconds"] == 1.5
    assert "portraitRef" not in who
    assert letter["nextNodeId"] == "-1"


def test_compiled_script_plays(parser):
    data = parser.to_document_dict(parser.parse_string(SCRIPT, name="mayor"))
    manager = DialogueManager(
        DialogueRepository(MemoryStore({"mayor": data})),
        variables=DictVariableStore({"has_letter": 1}),
    )
    sounds = []
    manager.commands.register("PlaySound", sounds.append)

    assert manager.start("mayor")
    assert manager.current_speaker == "Mayor"
    assert [o.text for o in manager.current_options] == [
        "Who are you?", "I have the letter.", "Goodbye.",
    ]
    assert sounds == ["bell"]

    manager.select_option(2)
    assert not manager.is_playing


def test_compile_script_file(tmp_path):
    source = tmp_path / "mayor.dlg"
    source.write_text(SCRIPT, encoding="utf-8")

    output = compile_script_file(source)

    assert output == tmp_path / "mayor.json"
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["name"] == "mayor"
    assert len(data["nodes"]) == 3


def test_compile_script_file_explicit_output(tmp_path):
    source = tmp_path / "mayor.dlg"
    source.write_text(SCRIPT, encoding="utf-8")

    output = compile_script_file(source, tmp_path / "m.json")

    assert output.exists()
    assert DialogueRepository(MemoryStore({"m": output.read_bytes()})).load("m").name == "mayor"
