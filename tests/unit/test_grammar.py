import pytest
from bromato.core.errors import GrammarError
from bromato.core.grammar import (
    Action,
    GetBy,
    Getter,
    Instruction,
    NodeKind,
    is_batch,
    parse_chain,
    parse_input,
)


def test_parse_get_by_node():
    node = Instruction.from_dict({
        "type": "getBy",
        "operation": "role",
        "value": "button",
        "options": {"name": "Submit"},
    })

    assert node.kind is NodeKind.GET_BY
    assert node.operation is GetBy.ROLE
    assert node.value == "button"
    assert node.options == {"name": "Submit"}
    assert not node.is_terminal


def test_parse_terminal_nodes():
    action = Instruction.from_dict({"type": "action", "operation": "setInputFiles", "value": []})
    getter = Instruction.from_dict({"type": "getter", "operation": "innerHTML"})

    assert action.operation is Action.SET_INPUT_FILES
    assert getter.operation is Getter.INNER_HTML
    assert action.is_terminal and getter.is_terminal


def test_unknown_type_lists_accepted_values():
    with pytest.raises(GrammarError) as exc_info:
        Instruction.from_dict({"type": "xpath", "value": "//div"})

    assert exc_info.value.value == "xpath"
    assert "getBy" in exc_info.value.accepted
    assert "getter" in exc_info.value.accepted
    assert "xpath" in str(exc_info.value)


def test_action_requires_operation():
    with pytest.raises(GrammarError) as exc_info:
        Instruction.from_dict({"type": "action", "value": "x"})

    assert "click" in exc_info.value.accepted


def test_unknown_getter_operation():
    with pytest.raises(GrammarError) as exc_info:
        Instruction.from_dict({"type": "getter", "operation": "outerHTML"})

    assert exc_info.value.value == "outerHTML"
    assert "innerHTML" in exc_info.value.accepted


def test_unknown_get_by_accessor():
    with pytest.raises(GrammarError):
        Instruction.from_dict({"type": "getBy", "operation": "css", "value": "div"})


def test_or_elements_parsed_recursively():
    node = Instruction.from_dict({
        "type": "or",
        "elements": [
            {"type": "getBy", "operation": "text", "value": "Sign in"},
            {"type": "first"},
        ],
    })

    assert [e.kind for e in node.elements] == [NodeKind.GET_BY, NodeKind.FIRST]


def test_operation_ignored_on_plain_narrowing_nodes():
    node = Instruction.from_dict({"type": "first", "operation": "whatever"})
    assert node.operation is None


def test_options_must_be_a_mapping():
    with pytest.raises(GrammarError):
        Instruction.from_dict({"type": "filter", "options": ["has"]})


def test_empty_chain_rejected():
    with pytest.raises(GrammarError, match="cannot be empty"):
        parse_chain([])
    with pytest.raises(GrammarError):
        parse_input([])


def test_batch_is_detected_structurally():
    chain = [{"type": "getBy", "operation": "text", "value": "Hi"}]
    assert not is_batch(chain)
    assert is_batch([chain, chain])

    parsed = parse_input([chain, chain])
    assert len(parsed) == 2
    assert isinstance(parsed[0][0], Instruction)


def test_empty_chain_inside_batch_rejected():
    with pytest.raises(GrammarError):
        parse_input([[{"type": "first"}], []])


def test_to_dict_restores_wire_shape():
    raw = {
        "type": "and",
        "elements": [{"type": "locator", "value": ".card"}],
    }
    assert Instruction.from_dict(raw).to_dict() == raw


def test_kind_accepted_as_alias_for_type():
    node = Instruction.from_dict({"kind": "last"})
    assert node.kind is NodeKind.LAST


@pytest.mark.parametrize("kind", ["or", "and"])
def test_combinator_without_elements_rejected(kind):
    with pytest.raises(GrammarError, match="must have at least one element"):
        Instruction.from_dict({"type": kind, "elements": []})
    with pytest.raises(GrammarError, match="must have at least one element"):
        Instruction.from_dict({"type": kind})


def test_nodes_after_getter_are_not_parsed():
    chain = parse_chain([
        {"type": "locator", "value": "#status"},
        {"type": "getter", "operation": "isVisible"},
        {"type": "bogus"},
    ])

    assert [node.kind for node in chain] == [NodeKind.LOCATOR, NodeKind.GETTER]
