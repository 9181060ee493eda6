"""
Options Normalizer - Turn wire options into Playwright keyword arguments.

Wire options are JSON, so two things cannot be expressed directly:
regular expressions (encoded as ``"regex:<pattern>"`` strings) and
relational filters (``has``/``hasNot`` holding a chain of nodes rather than
a Locator). Both are decoded here.
"""

import re
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from bromato.core.errors import GrammarError
from bromato.core.grammar import REGEX_MARKER, RELATIONAL_FILTER_KEYS, is_node_sequence

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")

ChainCompiler = Callable[[Sequence[Any]], Any]


def to_snake_case(key: str) -> str:
    """``hasNot`` -> ``has_not``; snake_case keys are returned unchanged."""
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


_RELATIONAL_KWARGS = frozenset(to_snake_case(key) for key in RELATIONAL_FILTER_KEYS)


def decode_regex(value: str) -> "re.Pattern[str]":
    """Compile a ``regex:``-prefixed string."""
    pattern = value[len(REGEX_MARKER):]
    try:
        return re.compile(pattern)
    except re.error as e:
        raise GrammarError(f"Invalid regular expression {pattern!r}: {e}", value=value) from e


def normalize_options(
    options: Optional[Mapping[str, Any]],
    compile_chain: ChainCompiler,
) -> Dict[str, Any]:
    """
    Normalize an options mapping.

    Returns a new mapping, the input is left untouched. Running it again on
    its own output is a no-op.

    Args:
        options: Raw options from an instruction node
        compile_chain: Resolves a ``has``/``hasNot`` node list into a Locator

    Returns:
        Mapping with snake_case keys, compiled patterns and resolved
        sub-locators
    """
    if not options:
        return {}

    normalized: Dict[str, Any] = {}
    for key, value in options.items():
        name = to_snake_case(key)
        if isinstance(value, str) and value.startswith(REGEX_MARKER):
            value = decode_regex(value)
        elif isinstance(value, Mapping):
            value = normalize_options(value, compile_chain)
        elif name in _RELATIONAL_KWARGS and is_node_sequence(value):
            value = compile_chain(value)
        normalized[name] = value
    return normalized
