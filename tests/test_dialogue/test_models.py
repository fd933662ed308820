import pytest
from pydantic import ValidationError

from dialogue_runtime.dialogue.models import DialogueDocument, DialogueNode, DialogueOption


def test_document_from_json_keys():
    doc = DialogueDocument.model_validate({
        "formatVersion": "2.0",
        "name": "intro",
        "startNodeId": "a",
        "nodes": [
            {
                "id": "a",
                "speaker": "Guide",
                "portraitRef": "guide_smile",
                "onEnterCommand": "SetFlag:intro",
                "nextNodeId": "b",
                "autoAdvanceDelaySeconds": 1.5,
            },
            {"id": "b", "options": [{"text": "OK", "targetNodeId": "a", "disabledReason": "x"}]},
        ],
        "tags": ["tutorial"],
    })

    assert doc.format_version == "2.0"
    assert doc.start_node_id == "a"
    assert doc.node_ids == ["a", "b"]

    a = doc.get_node("a")
    assert a.portrait_ref == "guide_smile"
    assert a.on_enter_command == "SetFlag:intro"
    assert a.auto_advance_delay_seconds == 1.5
    assert doc.start_node is a

    option = doc.get_node("b").options[0]
    assert option.target_node_id == "a"
    assert option.disabled_reason == "x"
    assert option.condition == ""


def test_legacy_keys_are_accepted():
    doc = DialogueDocument.model_validate({
        "version": 1.0,
        "startNode": "start",
        "nodes": [
            {
                "id": "start",
                "portrait": "p",
                "onEnterEvent": "GiveGold:5",
                "onExitEvent": "SetFlag:x",
                "nextNode": "-1",
                "displayTime": 2,
                "options": [{"text": "t", "targetNode": "start", "onSelectEvent": "Go:1",
                             "disableReason": "why"}],
            },
        ],
    })

    node = doc.get_node("start")
    assert doc.format_version == "1.0"
    assert node.portrait_ref == "p"
    assert node.on_enter_command == "GiveGold:5"
    assert node.on_exit_command == "SetFlag:x"
    assert node.next_node_id == "-1"
    assert node.auto_advance_delay_seconds == 2
    assert node.options[0].on_select_command == "Go:1"
    assert node.options[0].disabled_reason == "why"


def test_unknown_fields_are_ignored():
    doc = DialogueDocument.model_validate({
        "startNodeId": "a",
        "editorLayout": {"zoom": 2},
        "nodes": [{"id": "a", "color": "red", "options": [{"text": "x", "weight": 3}]}],
    })

    assert doc.get_node("a").options[0].text == "x"
    assert not hasattr(doc, "editorLayout")


def test_nulls_read_as_defaults():
    doc = DialogueDocument.model_validate({
        "name": None,
        "startNodeId": "a",
        "tags": None,
        "variables": None,
        "nodes": [{"id": "a", "options": None},
                  {"id": "b", "options": [{"text": None, "targetNodeId": None, "condition": None}]}],
    })

    assert doc.name == ""
    assert doc.tags == ()
    assert doc.variables == {}
    assert doc.get_node("a").options == ()
    option = doc.get_node("b").options[0]
    assert option.text == ""
    assert option.target_node_id == ""
    assert option.condition == ""


def test_models_are_frozen():
    node = DialogueNode(id="a")
    with pytest.raises(ValidationError):
        node.text = "changed"


def test_numeric_ids_become_strings():
    node = DialogueNode.model_validate({"id": 7})
    assert node.id == "7"


def test_negative_delay_rejected():
    with pytest.raises(ValidationError):
        DialogueNode(id="a", auto_advance_delay_seconds=-1)


def test_duplicate_ids_resolve_to_first():
    doc = DialogueDocument(
        start_node_id="a",
        nodes=[DialogueNode(id="a", text="first"), DialogueNode(id="a", text="second")],
    )
    assert doc.get_node("a").text == "first"
    assert doc.get_node("zzz") is None


def test_ends_after():
    assert DialogueNode(id="a").ends_after()
    assert DialogueNode(id="a", next_node_id="").ends_after()
    assert DialogueNode(id="a", next_node_id="-1").ends_after()
    assert not DialogueNode(id="a", next_node_id="b").ends_after()
    assert DialogueNode(id="a", next_node_id="END").ends_after(sentinel="END")


def test_option_selectable():
    assert DialogueOption(text="a").is_selectable
    assert not DialogueOption(text="a", disabled=True).is_selectable
    assert not DialogueOption(text="a", hidden=True).is_selectable


def test_to_dict_uses_document_keys():
    node = DialogueNode(
        id="a",
        next_node_id="b",
        options=[DialogueOption(text="Go", target_node_id="b")],
    )
    data = node.to_dict()

    assert data["nextNodeId"] == "b"
    assert data["options"][0]["targetNodeId"] == "b"
    assert "speaker" not in data
    assert DialogueNode.model_validate(data) == node
