"""
Instruction Grammar - Node kinds, operations and wire parsing.

A chain is an ordered list of instruction nodes. Each node is a mapping
``{type, operation?, elements?, value?, options?}`` on the wire and an
:class:`Instruction` once parsed. The enumerated values below are the wire
contract shared with existing callers and must not be renamed.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

from bromato.core.errors import GrammarError

logger = logging.getLogger(__name__)

REGEX_MARKER = "regex:"
RELATIONAL_FILTER_KEYS = ("has", "hasNot")
WAIT_FOR_STATES = ("attached", "detached", "visible", "hidden")


class NodeKind(str, enum.Enum):
    """The ``type`` of an instruction node."""
    GET_BY = "getBy"
    FRAME_LOCATOR = "framelocator"
    OR = "or"
    AND = "and"
    FILTER = "filter"
    LOCATOR = "locator"
    NTH = "nth"
    FIRST = "first"
    LAST = "last"
    ACTION = "action"
    GETTER = "getter"

    @property
    def is_terminal(self) -> bool:
        return self in (NodeKind.ACTION, NodeKind.GETTER)


class GetBy(str, enum.Enum):
    """Accessors for ``getBy`` nodes."""
    ALT_TEXT = "altText"
    LABEL = "label"
    PLACEHOLDER = "placeholder"
    ROLE = "role"
    TEST_ID = "testId"
    TEXT = "text"
    TITLE = "title"


class Action(str, enum.Enum):
    """Verbs for ``action`` nodes."""
    CLICK = "click"
    DBLCLICK = "dblclick"
    FILL = "fill"
    SET_CHECKED = "setChecked"
    SELECT_OPTION = "selectOption"
    PRESS_SEQUENTIALLY = "pressSequentially"
    PRESS = "press"
    SET_INPUT_FILES = "setInputFiles"
    FOCUS = "focus"
    BLUR = "blur"
    CHECK = "check"
    UNCHECK = "uncheck"
    CLEAR = "clear"
    DRAG_TO = "dragTo"
    HOVER = "hover"
    TAP = "tap"
    WAIT = "wait"
    WAIT_FOR = "waitFor"


class Getter(str, enum.Enum):
    """Readers for ``getter`` nodes."""
    IS_VISIBLE = "isVisible"
    COUNT = "count"
    TEXT_CONTENT = "textContent"
    IS_HIDDEN = "isHidden"
    IS_ENABLED = "isEnabled"
    IS_EDITABLE = "isEditable"
    IS_DISABLED = "isDisabled"
    IS_CHECKED = "isChecked"
    INPUT_VALUE = "inputValue"
    INNER_HTML = "innerHTML"
    INNER_TEXT = "innerText"
    GET_ATTRIBUTE = "getAttribute"
    ALL_TEXT_CONTENTS = "allTextContents"
    ALL_INNER_TEXTS = "allInnerTexts"


# Actions that cannot run without a ``value``
VALUE_ACTIONS = frozenset({
    Action.FILL,
    Action.SET_CHECKED,
    Action.SELECT_OPTION,
    Action.PRESS_SEQUENTIALLY,
    Action.PRESS,
    Action.SET_INPUT_FILES,
    Action.DRAG_TO,
    Action.WAIT,
})

NARROWING_KINDS = tuple(kind for kind in NodeKind if not kind.is_terminal)
COMBINATOR_KINDS = (NodeKind.OR, NodeKind.AND)
OPERATIONS: Dict[NodeKind, Type[enum.Enum]] = {
    NodeKind.GET_BY: GetBy,
    NodeKind.ACTION: Action,
    NodeKind.GETTER: Getter,
}

Operation = Union[GetBy, Action, Getter]


def accepted_values(enum_cls: Type[enum.Enum]) -> List[str]:
    """Wire names accepted for an enumerated field."""
    return [member.value for member in enum_cls]


def _coerce(enum_cls, raw: Any, what: str):
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(raw)
    except ValueError:
        raise GrammarError(
            f"Invalid {what}: {raw!r}", value=raw, accepted=accepted_values(enum_cls)
        ) from None


def is_node_sequence(value: Any) -> bool:
    """True for a list/tuple (never a string) that can hold instruction nodes."""
    return isinstance(value, (list, tuple))


@dataclass(frozen=True)
class Instruction:
    """One parsed instruction node."""
    kind: NodeKind
    operation: Optional[Operation] = None
    elements: Tuple["Instruction", ...] = ()
    value: Any = None
    options: Optional[Dict[str, Any]] = None

    def __repr__(self) -> str:
        parts = [f"type='{self.kind.value}'"]
        if self.operation is not None:
            parts.append(f"operation='{self.operation.value}'")
        if self.elements:
            parts.append(f"elements={len(self.elements)}")
        if self.value is not None:
            parts.append(f"value={self.value!r}")
        if self.options:
            parts.append(f"options={sorted(self.options)}")
        return f"Instruction({', '.join(parts)})"

    @property
    def is_terminal(self) -> bool:
        return self.kind.is_terminal

    @classmethod
    def from_dict(cls, raw: Any) -> "Instruction":
        """
        Parse a wire node.

        Validates ``type`` and, for getBy/action/getter nodes, ``operation``.
        ``or``/``and`` sub-chains are parsed recursively.

        Raises:
            GrammarError: On any grammar violation
        """
        if isinstance(raw, Instruction):
            return raw
        if not isinstance(raw, Mapping):
            raise GrammarError(
                f"Instruction must be a mapping, got {type(raw).__name__}", value=raw
            )

        raw_kind = raw["type"] if "type" in raw else raw.get("kind")
        kind = _coerce(NodeKind, raw_kind, "locator type")

        operation = raw.get("operation")
        if kind in OPERATIONS:
            if operation is None:
                raise GrammarError(
                    f"{kind.value} item must have an operation",
                    accepted=accepted_values(OPERATIONS[kind]),
                )
            operation = _coerce(OPERATIONS[kind], operation, f"{kind.value} operation")
        else:
            operation = None

        elements: Tuple[Instruction, ...] = ()
        if kind in COMBINATOR_KINDS:
            raw_elements = raw.get("elements") or ()
            if not is_node_sequence(raw_elements):
                raise GrammarError(
                    f"{kind.value} elements must be a list of instructions", value=raw_elements
                )
            if len(raw_elements) == 0:
                raise GrammarError(
                    f"{kind.value.capitalize()} must have at least one element", value=list(raw_elements)
                )
            elements = tuple(cls.from_dict(element) for element in raw_elements)

        options = raw.get("options")
        if options is not None and not isinstance(options, Mapping):
            raise GrammarError(f"{kind.value} options must be a mapping", value=options)

        return cls(
            kind=kind,
            operation=operation,
            elements=elements,
            value=raw.get("value"),
            options=dict(options) if options is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the wire shape."""
        data: Dict[str, Any] = {"type": self.kind.value}
        if self.operation is not None:
            data["operation"] = self.operation.value
        if self.elements:
            data["elements"] = [element.to_dict() for element in self.elements]
        if self.value is not None:
            data["value"] = self.value
        if self.options is not None:
            data["options"] = self.options
        return data


Chain = List[Instruction]
ChainInput = Union[Chain, List[Chain]]


def is_batch(items: Sequence[Any]) -> bool:
    """A batch of chains is recognised by its first element being a sequence."""
    return len(items) > 0 and is_node_sequence(items[0])


def parse_chain(raw: Any) -> Chain:
    """
    Parse one chain of wire nodes.

    Raises:
        GrammarError: If the chain is empty or any node is malformed
    """
    if not is_node_sequence(raw):
        raise GrammarError(
            f"Locator chain must be a list, got {type(raw).__name__}", value=raw
        )
    if len(raw) == 0:
        raise GrammarError("Locator chain cannot be empty", value=raw)

    chain: Chain = []
    for node in raw:
        instruction = Instruction.from_dict(node)
        chain.append(instruction)
        if instruction.kind is NodeKind.GETTER:
            # Nodes after a getter never run, so they are not validated either
            if len(chain) < len(raw):
                logger.debug(f"[Grammar] Dropping {len(raw) - len(chain)} unreachable instructions after getter")
            break
    return chain


def parse_input(raw: Any) -> ChainInput:
    """Parse either a single chain or a batch (list of chains)."""
    if is_node_sequence(raw) and is_batch(raw):
        return [parse_chain(chain) for chain in raw]
    return parse_chain(raw)
