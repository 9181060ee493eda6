"""
Locator Chain Builder - Fold narrowing nodes into a single Locator.

Narrowing in Playwright is lazy: nothing here touches the page until a
terminal action or getter runs against the resulting Locator.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence, TYPE_CHECKING

from bromato.core.errors import GrammarError
from bromato.core.grammar import (
    GetBy,
    Instruction,
    NARROWING_KINDS,
    NodeKind,
    REGEX_MARKER,
    accepted_values,
)
from bromato.layers.locator.options import decode_regex, normalize_options

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

logger = logging.getLogger(__name__)

_GET_BY_METHODS = {
    GetBy.ALT_TEXT: "get_by_alt_text",
    GetBy.LABEL: "get_by_label",
    GetBy.PLACEHOLDER: "get_by_placeholder",
    GetBy.ROLE: "get_by_role",
    GetBy.TEST_ID: "get_by_test_id",
    GetBy.TEXT: "get_by_text",
    GetBy.TITLE: "get_by_title",
}


class LocatorChainBuilder:
    """
    Resolve chains of narrowing instructions against a page.

    Every chain, including ``or``/``and`` sub-chains and ``has``/``hasNot``
    relational filters, starts from the same root scope.

    Example:
        >>> builder = LocatorChainBuilder(page)
        >>> submit = builder.build([
        ...     {"type": "getBy", "operation": "role", "value": "button",
        ...      "options": {"name": "regex:^Sub"}},
        ...     {"type": "first"},
        ... ])
    """

    def __init__(self, page: "Page", root_selector: str = "body"):
        self.page = page
        self.root_selector = root_selector

    def root(self) -> "Locator":
        """The scope every chain starts from."""
        return self.page.locator(self.root_selector)

    def build(self, nodes: Sequence[Any], scope: Optional["Locator"] = None) -> "Locator":
        """
        Fold ``nodes`` into a Locator.

        Args:
            nodes: Narrowing instructions (parsed or raw wire mappings)
            scope: Starting scope, defaults to the root

        Raises:
            GrammarError: On an empty chain or a node that cannot narrow
        """
        chain = [Instruction.from_dict(node) for node in nodes]
        if not chain:
            raise GrammarError("Locator chain cannot be empty", value=list(nodes))

        locator = scope if scope is not None else self.root()
        for node in chain:
            locator = self.narrow(locator, node)
        return locator

    def normalize(self, options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Normalize node options, compiling relational filters with this builder."""
        return normalize_options(options, self.build)

    def narrow(self, locator: "Locator", node: Instruction) -> "Locator":
        """Apply a single narrowing node to ``locator``."""
        kind = node.kind
        logger.debug(f"[ChainBuilder] Narrowing with {node!r}")

        if kind is NodeKind.GET_BY:
            return self._get_by(locator, node)

        if kind is NodeKind.FRAME_LOCATOR:
            return locator.frame_locator(_require_value(node))

        if kind is NodeKind.OR or kind is NodeKind.AND:
            if not node.elements:
                raise GrammarError(
                    f"{kind.value.capitalize()} must have at least one element",
                    value=list(node.elements),
                )
            other = self.build(node.elements)
            return locator.or_(other) if kind is NodeKind.OR else locator.and_(other)

        if kind is NodeKind.FILTER:
            return locator.filter(**self.normalize(node.options))

        if kind is NodeKind.LOCATOR:
            return locator.locator(_require_value(node), **self.normalize(node.options))

        if kind is NodeKind.NTH:
            return locator.nth(_index(node))

        if kind is NodeKind.FIRST:
            return locator.first

        if kind is NodeKind.LAST:
            return locator.last

        raise GrammarError(
            f"Invalid locator type: {kind.value}",
            value=kind.value,
            accepted=[k.value for k in NARROWING_KINDS],
        )

    def _get_by(self, locator: "Locator", node: Instruction) -> "Locator":
        if not isinstance(node.operation, GetBy):
            raise GrammarError(
                f"Invalid 'by' value: {node.operation!r}",
                value=node.operation,
                accepted=accepted_values(GetBy),
            )
        method = getattr(locator, _GET_BY_METHODS[node.operation])
        parameter = _require_value(node)

        if node.operation is GetBy.TEST_ID:
            return method(_query_parameter(parameter))
        if node.operation is GetBy.ROLE:
            return method(parameter, **self.normalize(node.options))
        return method(_query_parameter(parameter), **self.normalize(node.options))


def _require_value(node: Instruction) -> Any:
    if node.value is None or node.value == "":
        raise GrammarError(f"{node.kind.value} item must have a value", value=node.value)
    return node.value


def _query_parameter(value: Any) -> Any:
    # Text-like accessors accept a pattern as well as a string
    if isinstance(value, str) and value.startswith(REGEX_MARKER):
        return decode_regex(value)
    return value


def _index(node: Instruction) -> int:
    value = _require_value(node)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise GrammarError(f"nth value must be an integer, got {value!r}", value=value) from None
