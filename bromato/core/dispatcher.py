"""
Chain Dispatcher - Top-level entry point of the interpreter.

Takes one chain or a batch of chains, runs the middleware pipeline, then
walks each chain: narrowing nodes fold into a Locator, ``action`` nodes
run against it, and the first ``getter`` ends the chain with its result.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, TYPE_CHECKING

from bromato.core.config import BromatoConfig
from bromato.core.errors import GrammarError
from bromato.core.grammar import Chain, Instruction, NodeKind, is_batch, parse_input
from bromato.layers.action.executor import ActionExecutor
from bromato.layers.locator.chain_builder import LocatorChainBuilder
from bromato.layers.middleware.pipeline import Middleware, apply_middlewares

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page
    from bromato.reporters.chain_recorder import ChainRecorder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepOutcome:
    """
    State of the fold after one node.

    ``terminal`` is set once a getter has produced ``result``; nothing
    after that node is evaluated.
    """
    locator: Any
    terminal: bool = False
    result: Any = None


class ChainDispatcher:
    """
    Interpret instruction chains against a Playwright page.

    Chains of a batch run strictly one after another and every engine call
    is awaited before the next node is looked at. Errors are never caught
    for recovery: the first failure aborts the rest of the call and nothing
    already done is rolled back.

    Example:
        >>> dispatcher = ChainDispatcher(page, middlewares=[FileUploadStager(upload_dir)])
        >>> await dispatcher.run([
        ...     [{"type": "getBy", "operation": "label", "value": "Email"},
        ...      {"type": "action", "operation": "fill", "value": "me@example.com"}],
        ...     [{"type": "getBy", "operation": "role", "value": "alert"},
        ...      {"type": "getter", "operation": "textContent"}],
        ... ])
        'Thanks for signing up'
    """

    def __init__(
        self,
        page: "Page",
        middlewares: Sequence[Middleware] = (),
        config: Optional[BromatoConfig] = None,
        recorder: Optional["ChainRecorder"] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            page: Playwright page to run against
            middlewares: Rewrites applied, in order, before any chain runs
            config: Root selector and waitFor timeout
            recorder: Optional ChainRecorder for a step-by-step log
        """
        self.page = page
        self.middlewares = list(middlewares)
        self.config = config or BromatoConfig()
        self.recorder = recorder
        self.builder = LocatorChainBuilder(page, root_selector=self.config.root_selector)
        self.executor = ActionExecutor(self.builder, wait_for_timeout_ms=self.config.wait_for_timeout_ms)

    async def run(self, items: Any) -> Any:
        """
        Run a chain or a batch of chains.

        Returns:
            The getter result of the (last) chain, or None when it ends
            without a getter
        """
        parsed = apply_middlewares(parse_input(items), self.middlewares)

        if not is_batch(parsed):
            return await self.run_chain(parsed)

        logger.info(f"[ChainDispatcher] Running batch of {len(parsed)} chains")
        result = None
        for index, chain in enumerate(parsed):
            result = await self.run_chain(chain, index=index)
        return result

    async def run_chain(self, chain: Chain, index: int = 0) -> Any:
        """Run a single chain from the root scope."""
        if not chain:
            raise GrammarError("Locator chain cannot be empty", value=list(chain))

        logger.debug(f"[ChainDispatcher] Chain {index}: {len(chain)} instructions")
        if self.recorder:
            self.recorder.log_chain(index, len(chain))

        outcome = StepOutcome(locator=self.builder.root())
        for step, node in enumerate(chain, 1):
            node = Instruction.from_dict(node)
            try:
                outcome = await self.step(outcome.locator, node, step)
            except Exception as e:
                logger.error(f"[ChainDispatcher] Chain {index} failed at step {step} ({node!r}): {e}")
                if self.recorder:
                    self.recorder.log_error(step, node, e)
                raise
            if outcome.terminal:
                if step < len(chain):
                    logger.debug(f"[ChainDispatcher] Skipping {len(chain) - step} instructions after getter")
                return outcome.result
        return None

    async def step(self, locator: "Locator", node: Instruction, step: int = 0) -> StepOutcome:
        """Evaluate one node against the current scope."""
        if node.kind is NodeKind.ACTION:
            await self.executor.run_action(locator, node.operation, node.value)
            if self.recorder:
                self.recorder.log_action(step, node)
            return StepOutcome(locator=locator)

        if node.kind is NodeKind.GETTER:
            result = await self.executor.run_getter(locator, node.operation, node.value)
            if self.recorder:
                self.recorder.log_getter(step, node, result)
            return StepOutcome(locator=locator, terminal=True, result=result)

        narrowed = self.builder.narrow(locator, node)
        if self.recorder:
            self.recorder.log_node(step, node)
        return StepOutcome(locator=narrowed)


async def execute_locator_chain(
    page: "Page",
    items: Any,
    middlewares: Sequence[Middleware] = (),
    config: Optional[BromatoConfig] = None,
    recorder: Optional["ChainRecorder"] = None,
) -> Any:
    """Run ``items`` against ``page`` with a one-off ChainDispatcher."""
    return await ChainDispatcher(page, middlewares, config=config, recorder=recorder).run(items)
