"""
Action Executor - Terminal actions and getters.

Maps ``action`` and ``getter`` nodes onto Playwright Locator calls. The
executor does not retry or wrap engine errors: a timeout or detached
element surfaces to the caller exactly as Playwright raised it.
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING

from bromato.core.errors import GrammarError
from bromato.core.grammar import (
    Action,
    Getter,
    Instruction,
    NodeKind,
    VALUE_ACTIONS,
    WAIT_FOR_STATES,
    accepted_values,
    is_node_sequence,
)

if TYPE_CHECKING:
    from playwright.async_api import Locator
    from bromato.layers.locator.chain_builder import LocatorChainBuilder

logger = logging.getLogger(__name__)


class ActionExecutor:
    """
    Execute terminal nodes against a resolved Locator.

    Example:
        >>> executor = ActionExecutor(builder)
        >>> await executor.run_action(locator, Action.FILL, "hello")
        >>> await executor.run_getter(locator, Getter.INPUT_VALUE)
        'hello'
    """

    # Upper bound for ``waitFor`` actions
    WAIT_FOR_TIMEOUT_MS = 5000

    def __init__(
        self,
        builder: "LocatorChainBuilder",
        wait_for_timeout_ms: Optional[int] = None,
    ):
        """
        Initialize the action executor.

        Args:
            builder: Chain builder used to resolve ``dragTo`` targets
            wait_for_timeout_ms: Timeout for ``waitFor``, defaults to 5000
        """
        self.builder = builder
        self.wait_for_timeout_ms = (
            wait_for_timeout_ms if wait_for_timeout_ms is not None else self.WAIT_FOR_TIMEOUT_MS
        )

    async def execute(self, locator: "Locator", node: Instruction) -> Any:
        """Run an ``action`` or ``getter`` node."""
        if node.kind is NodeKind.ACTION:
            await self.run_action(locator, node.operation, node.value)
            return None
        if node.kind is NodeKind.GETTER:
            return await self.run_getter(locator, node.operation, node.value)
        raise GrammarError(
            f"Not a terminal node: {node.kind.value}",
            value=node.kind.value,
            accepted=[NodeKind.ACTION.value, NodeKind.GETTER.value],
        )

    async def run_action(self, locator: "Locator", action: Any, value: Any = None) -> None:
        """
        Invoke an action verb and wait for it to complete.

        Raises:
            GrammarError: Unknown verb, or missing/invalid value
        """
        if not isinstance(action, Action):
            raise GrammarError(
                f"Invalid action: {action!r}", value=action, accepted=accepted_values(Action)
            )
        if action in VALUE_ACTIONS and value is None:
            raise GrammarError(f"{action.value} requires a value", value=value)

        logger.info(f"[ActionExecutor] {action.value}")

        if action is Action.CLICK:
            await locator.click()
        elif action is Action.DBLCLICK:
            await locator.dblclick()
        elif action is Action.FILL:
            await locator.fill(str(value))
        elif action is Action.SET_CHECKED:
            if not isinstance(value, bool):
                raise GrammarError(f"setChecked value must be true or false, got {value!r}", value=value)
            await locator.set_checked(value)
        elif action is Action.SELECT_OPTION:
            await locator.select_option(**_select_option_kwargs(value))
        elif action is Action.PRESS_SEQUENTIALLY:
            await locator.press_sequentially(str(value))
        elif action is Action.PRESS:
            await locator.press(str(value))
        elif action is Action.SET_INPUT_FILES:
            await locator.set_input_files(value)
        elif action is Action.FOCUS:
            await locator.focus()
        elif action is Action.BLUR:
            await locator.blur()
        elif action is Action.CHECK:
            await locator.check()
        elif action is Action.UNCHECK:
            await locator.uncheck()
        elif action is Action.CLEAR:
            await locator.clear()
        elif action is Action.DRAG_TO:
            await locator.drag_to(self._drag_target(value))
        elif action is Action.HOVER:
            await locator.hover()
        elif action is Action.TAP:
            await locator.tap()
        elif action is Action.WAIT:
            await asyncio.sleep(_milliseconds(value) / 1000)
        elif action is Action.WAIT_FOR:
            state = value or "visible"
            if state not in WAIT_FOR_STATES:
                raise GrammarError(
                    f"Invalid waitFor state: {state!r}", value=state, accepted=WAIT_FOR_STATES
                )
            await locator.wait_for(state=state, timeout=self.wait_for_timeout_ms)

    async def run_getter(self, locator: "Locator", getter: Any, value: Any = None) -> Any:
        """
        Invoke a reader and return its result.

        Raises:
            GrammarError: Unknown reader, or ``getAttribute`` without a name
        """
        if not isinstance(getter, Getter):
            raise GrammarError(
                f"Invalid getter: {getter!r}", value=getter, accepted=accepted_values(Getter)
            )

        logger.info(f"[ActionExecutor] {getter.value}")

        if getter is Getter.IS_VISIBLE:
            return await locator.is_visible()
        if getter is Getter.COUNT:
            return await locator.count()
        if getter is Getter.TEXT_CONTENT:
            return await locator.text_content()
        if getter is Getter.IS_HIDDEN:
            return await locator.is_hidden()
        if getter is Getter.IS_ENABLED:
            return await locator.is_enabled()
        if getter is Getter.IS_EDITABLE:
            return await locator.is_editable()
        if getter is Getter.IS_DISABLED:
            return await locator.is_disabled()
        if getter is Getter.IS_CHECKED:
            return await locator.is_checked()
        if getter is Getter.INPUT_VALUE:
            return await locator.input_value()
        if getter is Getter.INNER_HTML:
            return await locator.inner_html()
        if getter is Getter.INNER_TEXT:
            return await locator.inner_text()
        if getter is Getter.GET_ATTRIBUTE:
            if not value:
                raise GrammarError("getAttribute requires a value", value=value)
            return await locator.get_attribute(str(value))
        if getter is Getter.ALL_TEXT_CONTENTS:
            return await locator.all_text_contents()
        if getter is Getter.ALL_INNER_TEXTS:
            return await locator.all_inner_texts()

    def _drag_target(self, value: Any) -> "Locator":
        """A drop target is either a chain of nodes or a raw selector."""
        if is_node_sequence(value):
            return self.builder.build(value)
        if isinstance(value, str):
            return self.builder.page.locator(value)
        raise GrammarError(
            f"dragTo value must be a selector or a locator chain, got {type(value).__name__}",
            value=value,
        )


def _milliseconds(value: Any) -> float:
    try:
        millis = float(value)
    except (TypeError, ValueError):
        raise GrammarError(f"wait value must be a number of milliseconds, got {value!r}", value=value) from None
    if millis < 0:
        raise GrammarError(f"wait value must not be negative, got {value!r}", value=value)
    return millis


SELECT_OPTION_KEYS = ("value", "label", "index")


def _select_option_kwargs(value: Any) -> Dict[str, Any]:
    """
    Map a selectOption value onto ``select_option`` keyword arguments.

    Strings match by option value. ``{label}``/``{index}``/``{value}``
    mappings, alone or in a list, match by that key instead.
    """
    options = list(value) if is_node_sequence(value) else [value]
    if all(isinstance(option, str) for option in options):
        return {"value": value}

    kwargs: Dict[str, List[Any]] = {}
    for option in options:
        if isinstance(option, str):
            kwargs.setdefault("value", []).append(option)
            continue
        if not isinstance(option, Mapping) or not option:
            raise GrammarError(f"Invalid selectOption value: {option!r}", value=option)
        for key, item in option.items():
            if key not in SELECT_OPTION_KEYS:
                raise GrammarError(
                    f"Invalid selectOption key: {key!r}", value=key, accepted=list(SELECT_OPTION_KEYS)
                )
            kwargs.setdefault(key, []).append(item)

    return {key: items[0] if len(items) == 1 else items for key, items in kwargs.items()}
