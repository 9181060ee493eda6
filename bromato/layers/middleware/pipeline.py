"""
Middleware Pipeline - Rewrite instruction chains before they run.

A middleware is a plain callable taking one chain and returning a chain of
the same length and order. The pipeline takes care of batches, so a
middleware never needs to know whether it is looking at one chain or one
of many. A middleware that sets ``takes_batch = True`` is handed the whole
input instead and must return the same shape.
"""

import logging
from typing import Callable, Sequence

from bromato.core.grammar import Chain, ChainInput, is_batch

logger = logging.getLogger(__name__)

Middleware = Callable[[Chain], Chain]


def map_chains(items: ChainInput, middleware: Middleware) -> ChainInput:
    """Apply ``middleware`` to a single chain, or to each chain of a batch."""
    if getattr(middleware, "takes_batch", False):
        return middleware(items)
    if is_batch(items):
        return [middleware(chain) for chain in items]
    return middleware(items)


def apply_middlewares(items: ChainInput, middlewares: Sequence[Middleware]) -> ChainInput:
    """
    Fold ``middlewares`` over the input, in list order.

    Each middleware sees the output of the previous one. The input shape
    (single chain or batch) is preserved.
    """
    for middleware in middlewares:
        logger.debug(f"[MiddlewarePipeline] Applying {_name(middleware)}")
        items = map_chains(items, middleware)
    return items


def _name(middleware: Middleware) -> str:
    return getattr(middleware, "__name__", type(middleware).__name__)

