"""Core module - Grammar, dispatcher and configuration."""

from bromato.core.config import BromatoConfig
from bromato.core.dispatcher import ChainDispatcher, execute_locator_chain
from bromato.core.errors import BromatoError, GrammarError, PayloadValidationError
from bromato.core.grammar import Instruction, parse_input

__all__ = [
    "BromatoConfig",
    "BromatoError",
    "ChainDispatcher",
    "GrammarError",
    "Instruction",
    "PayloadValidationError",
    "execute_locator_chain",
    "parse_input",
]
